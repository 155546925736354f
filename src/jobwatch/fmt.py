"""Human-readable formatting for job metric snapshots."""

from __future__ import annotations

from datetime import timedelta
from typing import Callable

from .metrics import (
    JOB_TYPE_EXPIRE,
    JOB_TYPE_KEYROTATE,
    JOB_TYPE_REPLICATE,
    JobMetric,
    KeyRotationInfo,
    ReplicateInfo,
)

Row = tuple[str, str]

_IEC_SIZES = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")


def ibytes(n: int) -> str:
    """Format a byte count with IEC units, e.g. 10485760 -> '10 MiB'."""
    if n < 10:
        return f"{n} B"
    exp = 0
    while exp < len(_IEC_SIZES) - 1 and n >= 1024 ** (exp + 1):
        exp += 1
    val = int(n / 1024**exp * 10 + 0.5) / 10
    if val < 10:
        return f"{val:.1f} {_IEC_SIZES[exp]}"
    return f"{val:.0f} {_IEC_SIZES[exp]}"


def _trim(value: float, digits: int) -> str:
    text = f"{value:.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_duration(td: timedelta) -> str:
    """Compact duration like '1h2m3.5s', '250ms' or '0s'."""
    us = td // timedelta(microseconds=1)
    if us == 0:
        return "0s"
    sign = "-" if us < 0 else ""
    us = abs(us)
    if us < 1000:
        return f"{sign}{us}µs"
    if us < 1_000_000:
        return f"{sign}{_trim(us / 1000, 3)}ms"

    hours, rem = divmod(us, 3_600_000_000)
    minutes, rem = divmod(rem, 60_000_000)
    secs = _trim(rem / 1_000_000, 6)
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


def throughput(
    bytes_transferred: int,
    objects: int,
    elapsed: timedelta,
) -> tuple[float, float] | None:
    """Return (bytes/sec, objects/sec), or None when no time has elapsed."""
    secs = elapsed.total_seconds()
    if secs <= 0:
        return None
    return bytes_transferred / secs, objects / secs


def _replicate_rows(job: JobMetric) -> list[Row]:
    info = job.replicate or ReplicateInfo()
    rows: list[Row] = [
        ("JobType:", job.job_type),
        ("Objects:", str(info.objects)),
        # no separate version counter in the feed
        ("Versions:", str(info.objects)),
        ("FailedObjects:", str(info.objects_failed)),
    ]
    rates = throughput(info.bytes_transferred, info.objects, job.elapsed)
    if rates is not None:
        bytes_per_sec, objects_per_sec = rates
        rows.append(("Throughput:", f"{ibytes(int(bytes_per_sec))}/s"))
        rows.append(("IOPs:", f"{objects_per_sec:.2f} objs/s"))
    rows.append(("Transferred:", ibytes(info.bytes_transferred)))
    rows.append(("Elapsed:", format_duration(job.elapsed)))
    rows.append(("CurrObjName:", info.object))
    return rows


def _object_scan_rows(job: JobMetric, info: KeyRotationInfo | None) -> list[Row]:
    info = info or KeyRotationInfo()
    return [
        ("JobType:", job.job_type),
        ("Objects:", str(info.objects)),
        ("FailedObjects:", str(info.objects_failed)),
        ("Elapsed:", format_duration(job.elapsed)),
        ("CurrObjName:", info.last_object),
    ]


_ROWS: dict[str, Callable[[JobMetric], list[Row]]] = {
    JOB_TYPE_REPLICATE: _replicate_rows,
    JOB_TYPE_KEYROTATE: lambda job: _object_scan_rows(job, job.key_rotate),
    JOB_TYPE_EXPIRE: lambda job: _object_scan_rows(job, job.expired),
}


def job_rows(job: JobMetric) -> list[Row]:
    """Label/value rows for the job's type; unknown types have none."""
    build = _ROWS.get(job.job_type)
    if build is None:
        return []
    return build(job)
