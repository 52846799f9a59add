from __future__ import annotations


class ArchiveError(RuntimeError):
    """Base class for errors raised by the archive tool."""


class ConfigError(ArchiveError):
    """Raised when a required setting is missing or invalid."""


class RemoteQueryError(ArchiveError):
    """Raised when the issue search cannot produce a complete result set."""


class JiraTransportError(ArchiveError):
    """Raised when a request never produced an HTTP response (timeout, DNS, reset)."""


class JiraAPIError(ArchiveError):
    def __init__(self, status_code: int, body: str, *, method: str = "", url: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.method = method
        self.url = url
        super().__init__(f"API returned status {status_code}: {body}")


class IssueArchiveRejected(ArchiveError):
    """Raised when Jira accepted the archive call but refused a specific issue."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        self.message = message
        super().__init__(f"{key}: {message}")
