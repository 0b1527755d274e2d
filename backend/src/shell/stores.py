"""Storage capabilities the services depend on.

The Firestore client and the local blob store satisfy these; tests pass
in-memory fakes.
"""

from datetime import date
from typing import Callable, Protocol

from ..core.models import DailyEntry, Photo


# Returns the current user id, or None when unauthenticated
SessionProvider = Callable[[], str | None]


class RecordStore(Protocol):
    """Rows keyed by user and date."""

    def create_entry(self, entry: DailyEntry) -> DailyEntry | None: ...

    def create_photo(self, user_id: str, photo: Photo) -> bool: ...

    def get_entries_range(
        self, user_id: str, start_date: date, end_date: date
    ) -> list[DailyEntry] | None: ...

    def get_recent_entries(self, user_id: str, limit: int) -> list[DailyEntry]: ...

    def count_entries_since(self, user_id: str, since: date) -> int | None: ...


class BlobStore(Protocol):
    """Files addressable by key."""

    def put(self, key: str, content: bytes) -> bool: ...
