"""Batch job metric snapshots as delivered by the admin metrics feed."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from .errors import MetricsDecodeError

JOB_TYPE_REPLICATE = "replicate"
JOB_TYPE_KEYROTATE = "keyrotate"
JOB_TYPE_EXPIRE = "expire"

_RFC3339_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}:\d{2})$"
)
_GO_ZERO_YEAR = 1


def _to_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0
        try:
            return int(stripped)
        except ValueError:
            return 0
    return 0


def _to_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def parse_time(value: object) -> datetime | None:
    """Parse an RFC 3339 timestamp, keeping microsecond precision.

    Go's zero time (year 1) means "unset" and maps to None.
    """
    if not isinstance(value, str) or not value:
        return None
    m = _RFC3339_RE.match(value.strip())
    if m is None:
        raise MetricsDecodeError(f"invalid timestamp: {value!r}")
    frac = (m.group("frac") or "")[:6].ljust(6, "0")
    tz = m.group("tz")
    if tz == "Z":
        tz = "+00:00"
    dt = datetime.fromisoformat(f"{m.group('base')}.{frac}{tz}")
    if dt.year == _GO_ZERO_YEAR:
        return None
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class ReplicateInfo:
    objects: int = 0
    objects_failed: int = 0
    bytes_transferred: int = 0
    bytes_failed: int = 0
    object: str = ""
    last_bucket: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReplicateInfo:
        return cls(
            objects=_to_int(data.get("objects")),
            objects_failed=_to_int(data.get("objectsFailed")),
            bytes_transferred=_to_int(data.get("bytesTransferred")),
            bytes_failed=_to_int(data.get("bytesFailed")),
            object=_to_str(data.get("object")) or _to_str(data.get("lastObject")),
            last_bucket=_to_str(data.get("lastBucket")),
        )


@dataclass(frozen=True)
class KeyRotationInfo:
    objects: int = 0
    objects_failed: int = 0
    last_bucket: str = ""
    last_object: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KeyRotationInfo:
        return cls(
            objects=_to_int(data.get("objects")),
            objects_failed=_to_int(data.get("objectsFailed")),
            last_bucket=_to_str(data.get("lastBucket")),
            last_object=_to_str(data.get("lastObject")),
        )


@dataclass(frozen=True)
class ExpirationInfo(KeyRotationInfo):
    pass


@dataclass(frozen=True)
class JobMetric:
    job_id: str
    job_type: str = ""
    start_time: datetime | None = None
    last_update: datetime | None = None
    retry_attempts: int = 0
    complete: bool = False
    failed: bool = False
    replicate: ReplicateInfo | None = None
    key_rotate: KeyRotationInfo | None = None
    expired: ExpirationInfo | None = None

    def __post_init__(self) -> None:
        if self.complete and self.failed:
            raise ValueError(f"job {self.job_id!r} cannot be both complete and failed")

    @classmethod
    def empty(cls, job_id: str) -> JobMetric:
        return cls(job_id=job_id)

    @property
    def terminal(self) -> bool:
        return self.complete or self.failed

    @property
    def elapsed(self) -> timedelta:
        if self.start_time is None or self.last_update is None:
            return timedelta(0)
        return self.last_update - self.start_time

    @classmethod
    def from_dict(cls, job_id: str, data: object) -> JobMetric:
        if not isinstance(data, dict):
            raise MetricsDecodeError(f"job {job_id!r}: expected an object, got {type(data).__name__}")

        def _block(key: str, kind: type) -> Any:
            raw = data.get(key)
            return kind.from_dict(raw) if isinstance(raw, dict) else None

        try:
            return cls(
                job_id=_to_str(data.get("jobID")) or job_id,
                job_type=_to_str(data.get("jobType")),
                start_time=parse_time(data.get("startTime")),
                last_update=parse_time(data.get("lastUpdate")),
                retry_attempts=_to_int(data.get("retryAttempts")),
                complete=bool(data.get("complete")),
                failed=bool(data.get("failed")),
                replicate=_block("replicate", ReplicateInfo),
                key_rotate=_block("rotation", KeyRotationInfo),
                expired=_block("expired", ExpirationInfo),
            )
        except MetricsDecodeError:
            raise
        except ValueError as exc:
            raise MetricsDecodeError(str(exc)) from exc


@dataclass(frozen=True)
class BatchJobMetrics:
    collected_at: datetime | None = None
    jobs: dict[str, JobMetric] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BatchJobMetrics:
        raw_jobs = data.get("jobs")
        jobs: dict[str, JobMetric] = {}
        if isinstance(raw_jobs, dict):
            for job_id, raw in raw_jobs.items():
                jobs[str(job_id)] = JobMetric.from_dict(str(job_id), raw)
        return cls(collected_at=parse_time(data.get("collectedAt")), jobs=jobs)


@dataclass(frozen=True)
class RealtimeMetrics:
    """One feed-level message; `raw` is the decoded wire document."""

    batch_jobs: BatchJobMetrics | None = None
    final: bool = False
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    def job(self, job_id: str) -> JobMetric | None:
        if self.batch_jobs is None:
            return None
        return self.batch_jobs.jobs.get(job_id)

    @classmethod
    def from_dict(cls, data: object) -> RealtimeMetrics:
        if not isinstance(data, dict):
            raise MetricsDecodeError(f"metrics message must be an object, got {type(data).__name__}")
        aggregated = data.get("aggregated")
        batch_jobs = None
        if isinstance(aggregated, dict) and isinstance(aggregated.get("batchJobs"), dict):
            batch_jobs = BatchJobMetrics.from_dict(aggregated["batchJobs"])
        return cls(batch_jobs=batch_jobs, final=bool(data.get("final")), raw=data)
