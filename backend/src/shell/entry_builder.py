"""Entry Builder - Persist a day's entry, then attach its photos.

The entry row is the primary record and must be stored before any photo is
touched. Photos are best effort: each file either lands (blob and row) or is
skipped with a reason, and a skipped photo never fails the save.
"""

import logging
from datetime import date, datetime, timezone
from typing import Callable

from ..core.entries import (
    build_entry,
    next_photo_path,
    recent_custom_activities,
    recent_window_start,
)
from ..core.location import resolve_location
from ..core.models import (
    Coordinate,
    DailyEntry,
    EntrySaveResult,
    EntrySubmission,
    Photo,
    PhotoFile,
    PhotoOutcome,
    PhotoSaved,
    PhotoSkipped,
)
from .errors import EntryCreateError, NotAuthenticatedError
from .stores import BlobStore, RecordStore, SessionProvider


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntryBuilder:
    """Saves daily entries and their photos for the session's user."""

    def __init__(
        self,
        records: RecordStore,
        blobs: BlobStore,
        session: SessionProvider,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._records = records
        self._blobs = blobs
        self._session = session
        self._clock = clock

    def _require_user(self) -> str:
        user_id = self._session()
        if user_id is None:
            raise NotAuthenticatedError()
        return user_id

    def save_entry(
        self,
        submission: EntrySubmission,
        photos: list[PhotoFile] | None = None,
        ambient: Coordinate | None = None,
    ) -> EntrySaveResult:
        """Create the entry row, then process each photo in order.

        Args:
            submission: Validated entry fields
            photos: Selected files, processed one at a time in this order
            ambient: Device coordinate used when a photo has no geotag

        Returns:
            EntrySaveResult with the stored entry and one outcome per photo

        Raises:
            NotAuthenticatedError: If no user is signed in
            EntryCreateError: If the entry row was not stored (no photos processed)
        """
        user_id = self._require_user()

        entry = build_entry(user_id, submission, created_at=self._clock())
        stored = self._records.create_entry(entry)
        if stored is None:
            raise EntryCreateError("Failed to save documentation. Please try again.")

        logger.info(
            "Saved entry %s for %s on %s", stored.id[:8], user_id[:8], stored.date
        )

        outcomes: list[PhotoOutcome] = []
        used_keys: set[str] = set()
        for photo_file in photos or []:
            outcome = self._attach_photo(user_id, stored, photo_file, ambient, used_keys)
            outcomes.append(outcome)

        saved = [o.photo for o in outcomes if isinstance(o, PhotoSaved)]
        return EntrySaveResult(
            entry=stored.model_copy(update={"photos": saved}),
            outcomes=outcomes,
        )

    def _attach_photo(
        self,
        user_id: str,
        entry: DailyEntry,
        photo_file: PhotoFile,
        ambient: Coordinate | None,
        used_keys: set[str],
    ) -> PhotoOutcome:
        """Resolve, upload and record one photo. Never raises."""
        location = resolve_location(photo_file.content, ambient)

        timestamp_ms = int(self._clock().timestamp() * 1000)
        key = next_photo_path(user_id, entry.id, timestamp_ms, photo_file.filename, used_keys)
        used_keys.add(key)

        try:
            uploaded = self._blobs.put(key, photo_file.content)
        except Exception as e:
            logger.warning("Photo upload raised for %s: %s", photo_file.filename, str(e))
            uploaded = False
        if not uploaded:
            logger.warning("Photo upload failed, skipping: %s", photo_file.filename)
            return PhotoSkipped(filename=photo_file.filename, reason="upload failed")

        photo = Photo(entry_id=entry.id, file_path=key, location=location)
        try:
            recorded = self._records.create_photo(user_id, photo)
        except Exception as e:
            logger.warning("Photo row raised for %s: %s", photo_file.filename, str(e))
            recorded = False
        if not recorded:
            logger.warning("Photo row not created, skipping: %s", photo_file.filename)
            return PhotoSkipped(filename=photo_file.filename, reason="record failed")

        return PhotoSaved(photo=photo)

    def recent_custom_activities(self, limit: int = 10) -> list[str]:
        """Distinct custom activities from the user's latest entries.

        Raises:
            NotAuthenticatedError: If no user is signed in
        """
        user_id = self._require_user()
        entries = self._records.get_recent_entries(user_id, limit)
        return recent_custom_activities(entries, limit)

    def count_recent_entries(self, today: date | None = None, days: int = 7) -> int:
        """Number of entries dated within the last `days` days.

        Raises:
            NotAuthenticatedError: If no user is signed in
        """
        user_id = self._require_user()
        if today is None:
            today = date.today()
        count = self._records.count_entries_since(user_id, recent_window_start(today, days))
        return count or 0
