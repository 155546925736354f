"""Renderers for a monitored job: live terminal view and JSON records."""

from __future__ import annotations

import json
import queue
import sys
from dataclasses import dataclass, field
from typing import IO, Union

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from .config import Theme
from .fmt import job_rows
from .metrics import JobMetric, RealtimeMetrics
from .subscriber import Cancellation

TICK_CELL = "✔"
CROSS_CELL = "✗"


@dataclass(frozen=True)
class InterruptMsg:
    pass


@dataclass(frozen=True)
class SnapshotMsg:
    metrics: RealtimeMetrics


@dataclass(frozen=True)
class TickMsg:
    pass


Message = Union[InterruptMsg, SnapshotMsg, TickMsg]


@dataclass
class RenderState:
    current: JobMetric
    quitting: bool = False
    phase: int = 0


def spinner_frames(theme: Theme) -> tuple[list[str], float]:
    """Frames and tick interval (seconds) of the theme's spinner."""
    spinner = Spinner(theme.spinner)
    return list(spinner.frames), spinner.interval / 1000.0


def _header(state: RenderState, theme: Theme, frames: list[str]) -> Text:
    style = theme.style(theme.accent)
    if not state.quitting:
        return Text(frames[state.phase % len(frames)], style=style)
    if state.current.complete:
        return Text(TICK_CELL * 3, style=style)
    if state.current.failed:
        return Text(CROSS_CELL * 3, style=style)
    return Text("")


def render_view(state: RenderState, theme: Theme, frames: list[str]) -> RenderableType:
    parts: list[RenderableType] = [_header(state, theme, frames)]

    rows = job_rows(state.current)
    if rows:
        table = Table(
            box=None,
            show_header=False,
            show_edge=False,
            pad_edge=False,
            padding=(0, 1),
        )
        table.add_column(no_wrap=True)
        table.add_column(style=theme.style(theme.value_style), no_wrap=True)
        for label, value in rows:
            table.add_row(label, Text(value))
        parts.append(table)

    if state.quitting:
        parts.append(Text(""))
    return Group(*parts)


class InteractiveDisplay:
    """Single-consumer state machine redrawing a live view of one job.

    Messages are handled strictly in arrival order; once `quitting` is set
    the state is frozen and later messages are ignored.
    """

    def __init__(
        self,
        job_id: str,
        cancel: Cancellation,
        *,
        console: Console | None = None,
        theme: Theme | None = None,
    ) -> None:
        self.job_id = job_id
        self.cancel = cancel
        self.console = console or Console()
        self.theme = theme or Theme()
        self.state = RenderState(current=JobMetric.empty(job_id))
        self.messages: queue.Queue[Message] = queue.Queue()
        self._frames, self.tick_interval = spinner_frames(self.theme)

    def deliver(self, metrics: RealtimeMetrics) -> None:
        self.messages.put(SnapshotMsg(metrics))

    def vanished(self, metrics: RealtimeMetrics) -> None:
        self.messages.put(SnapshotMsg(metrics))

    def interrupt(self) -> None:
        self.messages.put(InterruptMsg())

    def update(self, msg: Message) -> bool:
        """Apply one message; returns False once the display should stop."""
        if self.state.quitting:
            return False

        if isinstance(msg, InterruptMsg):
            self.state.quitting = True
            return False

        if isinstance(msg, SnapshotMsg):
            job = msg.metrics.job(self.job_id)
            if job is None:
                self.state.quitting = True
                return False
            self.state.current = job
            if job.terminal:
                self.state.quitting = True
                return False
            return True

        if isinstance(msg, TickMsg):
            self.state.phase += 1
        return True

    def view(self) -> RenderableType:
        return render_view(self.state, self.theme, self._frames)

    def _next_message(self) -> Message | None:
        try:
            return self.messages.get(timeout=self.tick_interval)
        except queue.Empty:
            pass
        if not self.cancel.is_set():
            return TickMsg()
        # The feed stopped; drain what it sent before cancelling.
        try:
            return self.messages.get_nowait()
        except queue.Empty:
            return None

    def run(self) -> RenderState:
        with Live(
            self.view(),
            console=self.console,
            auto_refresh=False,
            transient=False,
        ) as live:
            running = True
            while running:
                try:
                    msg = self._next_message()
                    if msg is None:
                        self.state.quitting = True
                        running = False
                    else:
                        running = self.update(msg)
                    live.update(self.view(), refresh=True)
                except KeyboardInterrupt:
                    running = self.update(InterruptMsg())
                    live.update(self.view(), refresh=True)
        return self.state


class StructuredEmitter:
    """Writes one JSON record per delivered tick until the job is terminal."""

    def __init__(self, job_id: str, out: IO[str] | None = None) -> None:
        self.job_id = job_id
        self.out = out or sys.stdout
        self.emitted = 0
        self._done = False

    def deliver(self, metrics: RealtimeMetrics) -> None:
        if self._done:
            return
        self.out.write(json.dumps(metrics.raw, separators=(",", ":")) + "\n")
        self.out.flush()
        self.emitted += 1
        job = metrics.job(self.job_id)
        if job is not None and job.terminal:
            self._done = True

    def vanished(self, metrics: RealtimeMetrics) -> None:
        self._done = True
