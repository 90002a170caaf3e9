"""
Error taxonomy for the reminder subsystem.

ValidationError and CapacityError are reported back to the caller.
StorageError and UpstreamError are logged by the dispatch loop and only
affect the single user being processed.
"""
from typing import Optional


class ReminderError(Exception):
    """Base class for all reminder errors."""


class ValidationError(ReminderError):
    def __init__(self, value: str, message: Optional[str] = None) -> None:
        self.value = value
        super().__init__(message or f"Invalid time format: {value!r}")


class DuplicateTimeError(ReminderError):
    def __init__(self, time: str) -> None:
        self.time = time
        super().__init__("duplicate")


class CapacityError(ReminderError):
    def __init__(self, limit: int, current: int) -> None:
        self.limit = limit
        self.current = current
        super().__init__(f"limit reached, max {limit}")

    @property
    def remaining(self) -> int:
        return max(self.limit - self.current, 0)


class StorageError(ReminderError):
    """The underlying database could not be read or written."""


class UpstreamError(ReminderError):
    def __init__(self, service: str, message: str, status_code: Optional[int] = None) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")
