"""In-memory stand-ins for the record store, blob store and session."""

from datetime import date

import pytest

from src.core.models import DailyEntry, Photo


class InMemoryRecordStore:
    """Record store keeping rows in dicts; failures can be switched on."""

    def __init__(self) -> None:
        self.entries: dict[str, DailyEntry] = {}
        self.photos: list[tuple[str, Photo]] = []
        self.fail_create_entry = False
        self.fail_photo_for: set[str] = set()
        self.fail_reads = False
        self.calls: list[str] = []

    def create_entry(self, entry: DailyEntry) -> DailyEntry | None:
        self.calls.append("create_entry")
        if self.fail_create_entry:
            return None
        self.entries[entry.id] = entry
        return entry

    def create_photo(self, user_id: str, photo: Photo) -> bool:
        self.calls.append(f"create_photo:{photo.file_path}")
        if any(photo.file_path.endswith(name) for name in self.fail_photo_for):
            return False
        self.photos.append((user_id, photo))
        return True

    def photos_for(self, entry_id: str) -> list[Photo]:
        return [p for _, p in self.photos if p.entry_id == entry_id]

    def get_entries_range(
        self, user_id: str, start_date: date, end_date: date
    ) -> list[DailyEntry] | None:
        if self.fail_reads:
            return None
        return [
            e.model_copy(update={"photos": self.photos_for(e.id)})
            for e in self.entries.values()
            if e.user_id == user_id and start_date <= e.date <= end_date
        ]

    def get_recent_entries(self, user_id: str, limit: int) -> list[DailyEntry]:
        owned = [e for e in self.entries.values() if e.user_id == user_id]
        return sorted(owned, key=lambda e: e.created_at, reverse=True)[:limit]

    def count_entries_since(self, user_id: str, since: date) -> int | None:
        if self.fail_reads:
            return None
        return sum(1 for e in self.entries.values() if e.user_id == user_id and e.date >= since)


class FakeBlobStore:
    """Blob store keeping bytes in a dict; chosen filenames fail."""

    def __init__(self, calls: list[str] | None = None) -> None:
        self.blobs: dict[str, bytes] = {}
        self.fail_for: set[str] = set()
        self.raise_for: set[str] = set()
        self.calls = calls if calls is not None else []

    def put(self, key: str, content: bytes) -> bool:
        self.calls.append(f"put:{key}")
        if any(key.endswith(name) for name in self.raise_for):
            raise ConnectionError("storage unavailable")
        if any(key.endswith(name) for name in self.fail_for):
            return False
        self.blobs[key] = content
        return True


@pytest.fixture
def records():
    return InMemoryRecordStore()


@pytest.fixture
def blobs(records):
    # Share the call log so ordering across stores can be asserted
    return FakeBlobStore(calls=records.calls)
