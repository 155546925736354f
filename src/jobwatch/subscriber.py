from __future__ import annotations

import threading
from typing import Callable, Protocol

from .admin import METRICS_BATCH_JOBS, MetricsOptions
from .metrics import JobMetric, RealtimeMetrics


class Cancellation:
    """One-way running -> cancelled signal shared by the feed and the renderer."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def add_callback(self, fn: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(fn)
                return
        fn()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            fn()


class SnapshotStore:
    def __init__(self, job_id: str) -> None:
        self._lock = threading.Lock()
        self._snapshot = JobMetric.empty(job_id)

    def put(self, snapshot: JobMetric) -> None:
        with self._lock:
            self._snapshot = snapshot

    def get(self) -> JobMetric:
        with self._lock:
            return self._snapshot


class MetricsSink(Protocol):
    def deliver(self, metrics: RealtimeMetrics) -> None: ...

    def vanished(self, metrics: RealtimeMetrics) -> None: ...


class MetricsFeed(Protocol):
    def metrics(
        self,
        opts: MetricsOptions,
        on_tick: Callable[[RealtimeMetrics], None],
        cancel: Cancellation,
    ) -> None: ...


class MetricsSubscriber:
    """Runs the metrics feed on a background thread and routes each tick."""

    def __init__(
        self,
        feed: MetricsFeed,
        job_id: str,
        sink: MetricsSink,
        cancel: Cancellation,
        *,
        store: SnapshotStore | None = None,
        interval: float = 1.0,
    ) -> None:
        self.feed = feed
        self.job_id = job_id
        self.sink = sink
        self.cancel = cancel
        self.store = store or SnapshotStore(job_id)
        self.opts = MetricsOptions(
            types=METRICS_BATCH_JOBS,
            by_job_id=job_id,
            interval=interval,
        )
        self.error: BaseException | None = None
        self._thread: threading.Thread | None = None

    def on_tick(self, metrics: RealtimeMetrics) -> None:
        if self.cancel.is_set():
            return
        job = metrics.job(self.job_id)
        if job is None:
            self.sink.vanished(metrics)
            self.cancel.cancel()
            return

        self.store.put(job)
        self.sink.deliver(metrics)
        if job.terminal:
            self.cancel.cancel()

    def run(self) -> None:
        try:
            self.feed.metrics(self.opts, self.on_tick, self.cancel)
        except Exception as exc:
            if not self.cancel.is_set():
                self.error = exc
        finally:
            self.cancel.cancel()

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self.run,
            name=f"metrics-{self.job_id}",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
