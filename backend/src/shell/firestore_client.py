"""Firestore Client - Persistence for daily entries and their photos.

This module handles all database I/O for custody documentation.
All I/O is contained here; business logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from google.cloud import firestore

from ..core.models import DailyEntry, Photo


logger = logging.getLogger(__name__)


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


def _entry_from_doc(data: dict[str, Any], photos: list[Photo]) -> DailyEntry:
    """Build a DailyEntry from stored fields plus its joined photos."""
    data = dict(data)
    if isinstance(data.get("date"), str):
        data["date"] = date.fromisoformat(data["date"])
    data["photos"] = photos
    return DailyEntry(**data)


class CustodyLogFirestoreClient:
    """Client for persisting daily entries and photo rows to Firestore.

    Document structure per user:
        users/{user_id}/
            entries/{entry_id}: { id, user_id, date, activities, ... }
                photos/{photo_id}: { id, entry_id, file_path, location }
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore client.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _user_ref(self, user_id: str) -> firestore.DocumentReference:
        """Get reference to user document."""
        return self.client.collection("users").document(user_id)

    def _entries_ref(self, user_id: str) -> firestore.CollectionReference:
        """Get reference to a user's entries collection."""
        return self._user_ref(user_id).collection("entries")

    def _entry_ref(self, user_id: str, entry_id: str) -> firestore.DocumentReference:
        """Get reference to a daily entry document."""
        return self._entries_ref(user_id).document(entry_id)

    def _photos_ref(self, user_id: str, entry_id: str) -> firestore.CollectionReference:
        """Get reference to an entry's photos collection."""
        return self._entry_ref(user_id, entry_id).collection("photos")

    def _load_photos(self, user_id: str, entry_id: str) -> list[Photo]:
        """Fetch the photo rows joined to one entry."""
        return [Photo(**doc.to_dict()) for doc in self._photos_ref(user_id, entry_id).stream()]

    # ==================== Entry Operations ====================

    def create_entry(self, entry: DailyEntry) -> DailyEntry | None:
        """Create a daily entry row.

        Args:
            entry: The entry to store (photos are stored separately)

        Returns:
            The stored entry if acknowledged, None otherwise
        """
        logger.info("Creating entry for %s on %s", entry.user_id[:8], entry.date)
        try:
            data = entry.model_dump(exclude={"photos"})
            # Store date as ISO string so range queries compare lexically
            data["date"] = entry.date.isoformat()
            self._entry_ref(entry.user_id, entry.id).create(data)
            return entry
        except Exception as e:
            logger.error("Failed to create entry: %s", str(e))
            return None

    def create_photo(self, user_id: str, photo: Photo) -> bool:
        """Create a photo row under its entry.

        Args:
            user_id: Owner of the entry
            photo: The photo row to store

        Returns:
            True if successful
        """
        logger.info("Creating photo row for entry %s", photo.entry_id[:8])
        try:
            data = photo.model_dump(mode="json")
            self._photos_ref(user_id, photo.entry_id).document(photo.id).create(data)
            return True
        except Exception as e:
            logger.error("Failed to create photo row: %s", str(e))
            return False

    def get_entries_range(
        self, user_id: str, start_date: date, end_date: date
    ) -> list[DailyEntry] | None:
        """Fetch entries for a date range with their photos joined.

        Args:
            user_id: The user's ID
            start_date: Start of range (inclusive)
            end_date: End of range (inclusive)

        Returns:
            Entries ordered by date descending (may be empty), None if the read failed
        """
        logger.debug(
            "Fetching entries for %s from %s to %s", user_id[:8], start_date, end_date
        )
        entries: list[DailyEntry] = []

        try:
            query = (
                self._entries_ref(user_id)
                .where("date", ">=", start_date.isoformat())
                .where("date", "<=", end_date.isoformat())
                .order_by("date", direction=firestore.Query.DESCENDING)
            )

            for doc in query.stream():
                data = doc.to_dict()
                photos = self._load_photos(user_id, data["id"])
                entries.append(_entry_from_doc(data, photos))

            logger.debug("Found %d entries in range", len(entries))
            return entries
        except Exception as e:
            logger.error("Failed to fetch entries range: %s", str(e))
            return None

    def get_recent_entries(self, user_id: str, limit: int = 10) -> list[DailyEntry]:
        """Fetch the most recently created entries, without photos.

        Args:
            user_id: The user's ID
            limit: Maximum number of entries

        Returns:
            Entries newest first (empty on failure)
        """
        try:
            query = self._entries_ref(user_id).order_by(
                "created_at", direction=firestore.Query.DESCENDING
            ).limit(limit)
            return [_entry_from_doc(doc.to_dict(), []) for doc in query.stream()]
        except Exception as e:
            logger.error("Failed to fetch recent entries: %s", str(e))
            return []

    def count_entries_since(self, user_id: str, since: date) -> int | None:
        """Count entries dated on or after since.

        Args:
            user_id: The user's ID
            since: First date counted

        Returns:
            Entry count, None if the query failed
        """
        try:
            query = self._entries_ref(user_id).where("date", ">=", since.isoformat())
            return sum(1 for _ in query.stream())
        except Exception as e:
            logger.error("Failed to count entries: %s", str(e))
            return None
