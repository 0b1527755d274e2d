"""Core Data Models - Pydantic models for type safety.

All models are immutable value objects with no behavior beyond validation.
"""

from datetime import datetime, timezone
from datetime import date as DateType
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, Field, field_validator
import uuid


STANDARD_ACTIVITIES: tuple[str, ...] = (
    "Park visit",
    "Hiking",
    "Indoor play",
    "Movie/TV",
    "Reading",
    "Arts & crafts",
    "Outdoor sports",
    "Shopping",
    "Restaurant",
    "Home activities",
)

SPECIAL_EVENT_OPTIONS: tuple[str, ...] = (
    "Illness",
    "Conflict",
    "School issue",
    "Medical appointment",
    "Behavioral concern",
    "Positive milestone",
    "Family visit",
    "Special occasion",
)

MAX_SPECIAL_EVENTS = 5
MAX_MEALS = 10


def _unique(values: list[str]) -> list[str]:
    """Drop blanks and repeats, keeping first-seen order."""
    seen: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


class LocationSource(str, Enum):
    """Where a photo's coordinate came from, strongest first."""

    EXIF = "exif"
    GPS = "gps"
    MANUAL = "manual"


class Coordinate(BaseModel):
    """A bare latitude/longitude pair, e.g. the device's ambient position."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class PhotoLocation(BaseModel):
    """A resolved photo location tagged with its source."""

    lat: float
    lng: float
    source: LocationSource


class Photo(BaseModel):
    """A photo row owned by exactly one entry."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    entry_id: str
    file_path: str = Field(min_length=1, description="Blob store key")
    location: Optional[PhotoLocation] = None


class EntrySubmission(BaseModel):
    """User input for one day's documentation, validated before any write."""

    date: DateType = Field(default_factory=DateType.today)
    activities: list[str] = Field(min_length=1, description="Standard activities")
    custom_activities: list[str] = Field(default_factory=list)
    special_events: list[str] = Field(default_factory=list, max_length=MAX_SPECIAL_EVENTS)
    meals: int = Field(default=0, ge=0, le=MAX_MEALS)
    notes: Optional[str] = None

    @field_validator("activities")
    @classmethod
    def _known_activities(cls, value: list[str]) -> list[str]:
        unknown = [a for a in value if a not in STANDARD_ACTIVITIES]
        if unknown:
            raise ValueError(f"Unknown activities: {', '.join(unknown)}")
        return _unique(value)

    @field_validator("special_events")
    @classmethod
    def _known_events(cls, value: list[str]) -> list[str]:
        unknown = [e for e in value if e not in SPECIAL_EVENT_OPTIONS]
        if unknown:
            raise ValueError(f"Unknown special events: {', '.join(unknown)}")
        return _unique(value)

    @field_validator("custom_activities")
    @classmethod
    def _dedupe_custom(cls, value: list[str]) -> list[str]:
        return _unique(value)


class DailyEntry(BaseModel):
    """A persisted documentation record, with its photos when joined."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    date: DateType
    activities: list[str]
    custom_activities: list[str] = Field(default_factory=list)
    special_events: list[str] = Field(default_factory=list)
    meals: int = Field(ge=0, le=MAX_MEALS)
    notes: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    photos: list[Photo] = Field(default_factory=list)


class PhotoFile(BaseModel):
    """A selected file waiting to be attached to an entry."""

    filename: str = Field(min_length=1)
    content: bytes


class PhotoSaved(BaseModel):
    """Photo blob and row both written."""

    photo: Photo


class PhotoSkipped(BaseModel):
    """Photo dropped; the entry save is unaffected."""

    filename: str
    reason: str


PhotoOutcome = Union[PhotoSaved, PhotoSkipped]


class EntrySaveResult(BaseModel):
    """The saved entry plus one outcome per selected photo, in input order."""

    entry: DailyEntry
    outcomes: list[PhotoOutcome] = Field(default_factory=list)

    @property
    def saved_photos(self) -> list[Photo]:
        return [o.photo for o in self.outcomes if isinstance(o, PhotoSaved)]

    @property
    def skipped_photos(self) -> list[PhotoSkipped]:
        return [o for o in self.outcomes if isinstance(o, PhotoSkipped)]


class DateRange(BaseModel):
    """Inclusive calendar date range."""

    start: DateType
    end: DateType


class ExportFormat(str, Enum):
    """Supported export formats, keyed by file extension."""

    JSON = "json"
    CSV = "csv"
    HTML = "html"


class ExportAggregates(BaseModel):
    """Totals computed once and shared by every export format."""

    total_entries: int = Field(ge=0)
    total_meals: int = Field(ge=0)
    total_photos: int = Field(ge=0)


class ExportFile(BaseModel):
    """A rendered export ready for download."""

    filename: str
    media_type: str
    content: str


class User(BaseModel):
    """User record stored in Firestore."""

    email: str
    api_key_hash: str = Field(description="SHA256 hash of API key - never store plaintext")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
