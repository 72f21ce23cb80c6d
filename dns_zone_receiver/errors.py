"""Exception hierarchy for the zone receiver.

Storage failures carry the path that was being written so handlers can log
it next to the underlying cause.
"""

from __future__ import annotations


class ZoneReceiverError(Exception):
    """Base exception for all receiver failures."""


class ConfigError(ZoneReceiverError):
    """Raised for missing or invalid runtime configuration."""


class InvalidZoneNameError(ZoneReceiverError):
    """Raised when a zone identifier is unsafe to use as a path segment."""


class UploadTooLargeError(ZoneReceiverError):
    """Raised when an upload exceeds the configured byte limit."""


class StorageError(ZoneReceiverError):
    """Raised when a zone file cannot be staged or committed."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PermissionNormalizationError(StorageError):
    """Raised when the committed file cannot be chmod-ed.

    The new content is already in place when this is raised.
    """


class HookError(ZoneReceiverError):
    """Base exception for post-commit hook failures."""


class HookTimeoutError(HookError):
    """Raised when the hook was killed after exceeding its timeout."""


class HookExecutionError(HookError):
    """Raised when the hook could not be started or exited unsuccessfully."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode
