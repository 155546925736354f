from __future__ import annotations

NO_SUCH_JOB = "XMinioAdminNoSuchJob"


class ConfigError(Exception):
    pass


class MetricsDecodeError(ValueError):
    pass


class AdminError(Exception):
    """Error body returned by the admin API."""

    def __init__(self, code: str, message: str, status_code: int = 0) -> None:
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code
        self.message = message
        self.status_code = status_code


class MonitorError(Exception):
    """Fatal failure of one monitor operation against one target."""

    def __init__(self, operation: str, target: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.target = target
        self.cause = cause
        detail = f"{operation}: {target}"
        if cause is not None:
            detail += f": {cause}"
        super().__init__(detail)


def is_no_such_job(exc: BaseException) -> bool:
    return isinstance(exc, AdminError) and exc.code == NO_SUCH_JOB
