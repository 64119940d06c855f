"""Ledger error types."""

from datetime import date


class LedgerError(Exception):
    """Base class for ledger failures."""


class EntryNotFoundError(LedgerError):
    """Raised when a food entry does not exist for the given day."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Food entry {entry_id} not found")
        self.entry_id = entry_id


class StorageUnavailableError(LedgerError):
    """Transient store failure. Callers may retry with backoff."""


class PartialWriteError(StorageUnavailableError):
    """The entry write landed but the daily totals were not updated."""

    def __init__(self, message: str, entry_id: str) -> None:
        super().__init__(message)
        self.entry_id = entry_id


class InvalidRangeError(LedgerError, ValueError):
    """Raised for empty or oversized date ranges."""

    def __init__(self, start: date, end: date, reason: str) -> None:
        super().__init__(f"Invalid range {start}..{end}: {reason}")
        self.start = start
        self.end = end


class InvalidTimezoneError(LedgerError, ValueError):
    """Raised when a timezone name does not resolve to an IANA zone."""

    def __init__(self, timezone_name: str) -> None:
        super().__init__(f"Unknown timezone {timezone_name!r}")
        self.timezone_name = timezone_name
