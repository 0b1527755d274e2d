"""Entry Assembly - Pure functions for building entries and photo keys.

All functions are pure: same input always produces same output, no side effects.
"""

import re
from datetime import date, datetime, timedelta

from .models import DailyEntry, EntrySubmission


_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]")


def build_entry(user_id: str, submission: EntrySubmission, created_at: datetime) -> DailyEntry:
    """Turn a validated submission into an entry row owned by user_id.

    Args:
        user_id: Owner of the entry
        submission: Validated user input
        created_at: Creation timestamp (set once, never changed)

    Returns:
        DailyEntry with a fresh id and no photos
    """
    return DailyEntry(
        user_id=user_id,
        date=submission.date,
        activities=list(submission.activities),
        custom_activities=list(submission.custom_activities),
        special_events=list(submission.special_events),
        meals=submission.meals,
        notes=submission.notes or "",
        created_at=created_at,
    )


def sanitize_filename(filename: str) -> str:
    """Reduce an uploaded filename to a safe single path segment."""
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", base).strip(" .")
    return cleaned or "photo"


def build_photo_path(user_id: str, entry_id: str, timestamp_ms: int, filename: str) -> str:
    """Build the blob store key for a photo.

    Format: {user_id}/{entry_id}/{timestamp_ms}_{filename}

    Args:
        user_id: Owner of the entry
        entry_id: Entry the photo belongs to
        timestamp_ms: Milliseconds since the epoch at upload time
        filename: Original filename as selected by the user

    Returns:
        Storage key string
    """
    return f"{user_id}/{entry_id}/{timestamp_ms}_{sanitize_filename(filename)}"


def next_photo_path(
    user_id: str,
    entry_id: str,
    timestamp_ms: int,
    filename: str,
    used: set[str],
) -> str:
    """Build a photo key not already present in used.

    Bumps the timestamp by one millisecond until the key is free, so two files
    with the same name in the same millisecond never collide.
    """
    key = build_photo_path(user_id, entry_id, timestamp_ms, filename)
    while key in used:
        timestamp_ms += 1
        key = build_photo_path(user_id, entry_id, timestamp_ms, filename)
    return key


def sort_entries_for_display(entries: list[DailyEntry]) -> list[DailyEntry]:
    """Order entries newest date first, most recently created first within a date."""
    return sorted(entries, key=lambda e: (e.date, e.created_at), reverse=True)


def recent_custom_activities(entries: list[DailyEntry], limit: int = 10) -> list[str]:
    """Collect distinct custom activities from the most recently created entries.

    Args:
        entries: Entries in any order
        limit: How many of the newest entries to look at

    Returns:
        Distinct custom activities, newest entry first
    """
    newest = sorted(entries, key=lambda e: e.created_at, reverse=True)[:limit]

    activities: list[str] = []
    for entry in newest:
        for activity in entry.custom_activities:
            if activity and activity not in activities:
                activities.append(activity)
    return activities


def recent_window_start(today: date, days: int = 7) -> date:
    """First date counted as recent for the dashboard counter."""
    return today - timedelta(days=days)
