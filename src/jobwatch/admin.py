"""Minimal admin API client: job describe and the realtime metrics feed."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Iterator

import httpx

from .errors import AdminError, MetricsDecodeError
from .metrics import RealtimeMetrics

if TYPE_CHECKING:
    from .subscriber import Cancellation

ADMIN_PREFIX = "/minio/admin/v3"

METRICS_BATCH_JOBS = 1 << 3

_TIMEOUT = httpx.Timeout(connect=10.0, read=60.0, write=30.0, pool=10.0)
_STREAM_TIMEOUT = httpx.Timeout(connect=10.0, read=None, write=30.0, pool=10.0)


@dataclass(frozen=True)
class MetricsOptions:
    types: int = METRICS_BATCH_JOBS
    by_job_id: str = ""
    interval: float = 1.0
    count: int = 0

    def params(self) -> dict[str, str]:
        params = {
            "types": str(self.types),
            "interval": f"{self.interval:g}s",
        }
        if self.by_job_id:
            params["by-jobID"] = self.by_job_id
        if self.count > 0:
            params["n"] = str(self.count)
        return params


def _error_from_response(response: httpx.Response) -> AdminError:
    code = f"HTTP{response.status_code}"
    message = response.reason_phrase
    try:
        body = json.loads(response.text)
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    if isinstance(body, dict):
        code = str(body.get("Code") or code)
        message = str(body.get("Message") or message)
    return AdminError(code, message, response.status_code)


def iter_documents(lines: Iterable[str]) -> Iterator[object]:
    """Decode a feed body that carries one JSON document per line.

    The first line that does not parse ends the feed with
    `MetricsDecodeError`; later lines are not read.
    """
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            doc = json.loads(line)
        except json.JSONDecodeError as exc:
            raise MetricsDecodeError(f"malformed metrics document: {line[:80]!r}") from exc
        yield doc


class AdminClient:
    def __init__(
        self,
        base_url: str,
        *,
        verify: bool = True,
        auth: httpx.Auth | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.Client(
            base_url=base_url,
            timeout=_TIMEOUT,
            verify=verify,
            auth=auth,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AdminClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def describe_batch_job(self, job_id: str) -> str:
        response = self._client.get(
            f"{ADMIN_PREFIX}/describe-job",
            params={"jobId": job_id},
        )
        if response.status_code != httpx.codes.OK:
            raise _error_from_response(response)
        return response.text

    def metrics(
        self,
        opts: MetricsOptions,
        on_tick: Callable[[RealtimeMetrics], None],
        cancel: Cancellation,
    ) -> None:
        """Deliver feed messages to `on_tick` until the stream ends or `cancel` fires.

        Cancelling closes the response so a blocked read returns promptly;
        whatever that raises is left for the caller to classify.
        """
        if cancel.is_set():
            return
        with self._client.stream(
            "GET",
            f"{ADMIN_PREFIX}/metrics",
            params=opts.params(),
            timeout=_STREAM_TIMEOUT,
        ) as response:
            if response.status_code != httpx.codes.OK:
                response.read()
                raise _error_from_response(response)
            cancel.add_callback(response.close)
            for doc in iter_documents(response.iter_lines()):
                if cancel.is_set():
                    return
                on_tick(RealtimeMetrics.from_dict(doc))
                if cancel.is_set():
                    return
