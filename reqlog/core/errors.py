from __future__ import annotations


class ReqLogError(Exception):
    """Base exception carrying user-presentable context."""

    def __init__(self, message: str, *, title: str, remediation: str | None = None) -> None:
        super().__init__(message)
        self.title = title
        self.remediation = remediation or ""


class ConfigError(ReqLogError):
    def __init__(self, message: str, *, remediation: str | None = None) -> None:
        super().__init__(message, title="Invalid Logger Configuration", remediation=remediation)


class InvalidLevelError(ReqLogError, ValueError):
    """Raised for a level token that is not info, warning or error."""

    def __init__(self, token: object) -> None:
        super().__init__(
            f"Unrecognized log level: {token!r}",
            title="Invalid Log Level",
            remediation="Use one of info/warning/error or the aliases i/w/e.",
        )
        self.token = token


class SinkIOError(ReqLogError):
    """The durable sink could not record or read entries."""

    def __init__(self, message: str, *, cause: BaseException) -> None:
        super().__init__(
            message,
            title="Request Log Unavailable",
            remediation="Check that the log store is reachable and the request_log table exists.",
        )
        self.cause = cause


class StoreConnectionError(ReqLogError):
    pass


class StoreConnectionTimeoutError(StoreConnectionError):
    pass


class StoreConnectionAuthenticationError(StoreConnectionError):
    pass


class StoreConnectionFailureError(StoreConnectionError):
    pass


__all__ = [
    "ReqLogError",
    "ConfigError",
    "InvalidLevelError",
    "SinkIOError",
    "StoreConnectionError",
    "StoreConnectionTimeoutError",
    "StoreConnectionAuthenticationError",
    "StoreConnectionFailureError",
]
