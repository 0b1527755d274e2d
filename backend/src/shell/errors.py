"""Errors raised by the orchestration layer.

Store clients log and return None/False on failure; the services turn those
results into these exceptions so callers can tell the failure kinds apart.
"""


class CustodyLogError(Exception):
    """Base class for custody log failures."""


class NotAuthenticatedError(CustodyLogError):
    """No authenticated user. The caller must re-authenticate."""

    def __init__(self) -> None:
        super().__init__("No authenticated user. Ensure API key is provided.")


class EntryCreateError(CustodyLogError):
    """The entry row could not be created. Safe to retry; nothing was written."""


class ExportReadError(CustodyLogError):
    """Entries for an export could not be read. No file is produced."""
