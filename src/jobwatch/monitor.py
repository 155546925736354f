from __future__ import annotations

from typing import IO, Callable, Protocol

import httpx
from rich.console import Console

from .config import StatusConfig
from .display import InteractiveDisplay, StructuredEmitter
from .errors import AdminError, MonitorError, is_no_such_job
from .subscriber import Cancellation, MetricsFeed, MetricsSubscriber

NOT_ACTIVE_NOTICE = "Unable to find an active job, attempting to list from previously run jobs"
LOOKUP_FAILED = "Unable to lookup job status"
STATUS_FAILED = "Unable to get current batch status"

_JOIN_TIMEOUT = 5.0
_WAIT_POLL = 0.5


class StatusClient(MetricsFeed, Protocol):
    def describe_batch_job(self, job_id: str) -> str: ...


def resolve_job(
    client: StatusClient,
    job_id: str,
    target: str,
    *,
    notify: Callable[[str], None] | None = None,
) -> bool:
    """Return True if the job is active, False if only history may know it."""
    try:
        client.describe_batch_job(job_id)
    except AdminError as exc:
        if not is_no_such_job(exc):
            raise MonitorError(LOOKUP_FAILED, target, exc) from exc
        if notify is not None:
            notify(NOT_ACTIVE_NOTICE)
        return False
    except httpx.HTTPError as exc:
        raise MonitorError(LOOKUP_FAILED, target, exc) from exc
    return True


def _notifier(cfg: StatusConfig, err_console: Console) -> Callable[[str], None] | None:
    if cfg.json_output or cfg.quiet:
        return None

    def notify(message: str) -> None:
        err_console.print(f"[yellow]{message}[/yellow]")

    return notify


def _wait_cancelled(cancel: Cancellation) -> None:
    while not cancel.wait(_WAIT_POLL):
        pass


def run_status(
    cfg: StatusConfig,
    client: StatusClient,
    *,
    console: Console,
    err_console: Console,
    out: IO[str] | None = None,
) -> int:
    resolve_job(client, cfg.job_id, cfg.target, notify=_notifier(cfg, err_console))

    cancel = Cancellation()
    display: InteractiveDisplay | None = None
    if cfg.json_output:
        sink: StructuredEmitter | InteractiveDisplay = StructuredEmitter(cfg.job_id, out)
    else:
        display = InteractiveDisplay(cfg.job_id, cancel, console=console, theme=cfg.theme)
        sink = display

    subscriber = MetricsSubscriber(client, cfg.job_id, sink, cancel)
    subscriber.start()
    try:
        if display is not None:
            display.run()
        else:
            _wait_cancelled(cancel)
    except KeyboardInterrupt:
        pass
    finally:
        cancel.cancel()
        subscriber.join(_JOIN_TIMEOUT)

    if subscriber.error is not None:
        raise MonitorError(STATUS_FAILED, cfg.target, subscriber.error) from subscriber.error
    return 0
