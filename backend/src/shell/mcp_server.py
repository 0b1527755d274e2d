"""MCP Server - Tool definitions for Claude integration.

Defines the MCP tools for logging daily custody documentation and exporting it.
Handles authentication via API key in Authorization header.
"""

import base64
import binascii
import logging
import os
from datetime import date, timedelta

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from pydantic import ValidationError

from ..core.models import (
    STANDARD_ACTIVITIES,
    SPECIAL_EVENT_OPTIONS,
    Coordinate,
    DateRange,
    EntrySubmission,
    ExportFormat,
    PhotoFile,
)
from .auth import AuthClient, current_session_user
from .blob_store import BlobStoreConfig, LocalBlobStore
from .entry_builder import EntryBuilder
from .errors import CustodyLogError
from .export_service import ExportService
from .firestore_client import CustodyLogFirestoreClient, FirestoreConfig


logger = logging.getLogger(__name__)

# Configure transport security for Cloud Run deployment
transport_security = TransportSecuritySettings(
    enable_dns_rebinding_protection=True,
    allowed_hosts=[
        "localhost:*",
        "127.0.0.1:*",
        "*.run.app:*",
        "*.run.app",
    ],
)

# Initialize FastMCP server with stateless HTTP for cloud deployments
mcp = FastMCP(
    "custodylog",
    instructions="""Custody Log - Daily custodial care documentation.

Use these tools to record what happened during a custody day (activities,
special events, meals, notes, photos) and to export entries for a date range.

Call list_vocabulary to see the allowed activities and special events.
Before logging, call get_recent_custom_activities to reuse earlier wording.""",
    stateless_http=True,
    transport_security=transport_security,
)

# Lazy-initialized clients
_firestore_client: CustodyLogFirestoreClient | None = None
_blob_store: LocalBlobStore | None = None
_auth_client: AuthClient | None = None


def get_firestore_client() -> CustodyLogFirestoreClient:
    """Get or create Firestore client."""
    global _firestore_client
    if _firestore_client is None:
        config = FirestoreConfig(
            project_id=os.environ.get("GOOGLE_CLOUD_PROJECT"),
            database=os.environ.get("FIRESTORE_DATABASE", "custodylog"),
        )
        _firestore_client = CustodyLogFirestoreClient(config)
    return _firestore_client


def get_blob_store() -> LocalBlobStore:
    """Get or create the photo blob store."""
    global _blob_store
    if _blob_store is None:
        _blob_store = LocalBlobStore(BlobStoreConfig())
    return _blob_store


def get_auth_client() -> AuthClient:
    """Get or create Auth client."""
    global _auth_client
    if _auth_client is None:
        _auth_client = AuthClient(get_firestore_client().client)
    return _auth_client


def get_entry_builder() -> EntryBuilder:
    return EntryBuilder(get_firestore_client(), get_blob_store(), current_session_user)


def get_export_service() -> ExportService:
    return ExportService(get_firestore_client(), current_session_user)


def _decode_photos(photos: list[dict] | None) -> list[PhotoFile]:
    """Decode {filename, content_base64} dicts into PhotoFiles.

    Raises:
        ValueError: If a photo is missing a name or has invalid base64 content
    """
    files: list[PhotoFile] = []
    for item in photos or []:
        filename = item.get("filename")
        if not filename:
            raise ValueError("Each photo needs a filename")
        try:
            content = base64.b64decode(item.get("content_base64", ""), validate=True)
        except binascii.Error:
            raise ValueError(f"Photo {filename} is not valid base64") from None
        files.append(PhotoFile(filename=filename, content=content))
    return files


def _parse_range(start_date: str | None, end_date: str | None) -> DateRange:
    """Parse ISO dates, defaulting to the last month."""
    end = date.fromisoformat(end_date) if end_date else date.today()
    start = date.fromisoformat(start_date) if start_date else end - timedelta(days=30)
    return DateRange(start=start, end=end)


# ==================== Documentation Tools ====================


@mcp.tool()
def list_vocabulary() -> dict:
    """List the standard activities and special events that entries may use.

    Returns:
        Dictionary with 'activities' and 'special_events' lists
    """
    return {
        "activities": list(STANDARD_ACTIVITIES),
        "special_events": list(SPECIAL_EVENT_OPTIONS),
    }


@mcp.tool()
def log_entry(
    activities: list[str],
    meals: int,
    custom_activities: list[str] | None = None,
    special_events: list[str] | None = None,
    notes: str | None = None,
    entry_date: str | None = None,
    photos: list[dict] | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
) -> dict:
    """Save one day's documentation with optional photos.

    Args:
        activities: At least one standard activity (see list_vocabulary)
        meals: Number of meals provided, 0 to 10
        custom_activities: Free-text activities
        special_events: Up to 5 special events (see list_vocabulary)
        notes: Free-text notes
        entry_date: ISO date of the day documented (defaults to today)
        photos: List of {"filename": str, "content_base64": str}
        latitude: Current device latitude, used when a photo has no geotag
        longitude: Current device longitude, used when a photo has no geotag

    Returns:
        The saved entry, photo count, and any photos that were skipped
    """
    try:
        submission = EntrySubmission(
            date=date.fromisoformat(entry_date) if entry_date else date.today(),
            activities=activities,
            custom_activities=custom_activities or [],
            special_events=special_events or [],
            meals=meals,
            notes=notes,
        )
        files = _decode_photos(photos)
        if (latitude is None) != (longitude is None):
            return {"error": "latitude and longitude must be given together"}
        ambient = None
        if latitude is not None:
            ambient = Coordinate(lat=latitude, lng=longitude)
    except (ValidationError, ValueError) as e:
        return {"error": f"Invalid entry: {e}"}

    try:
        result = get_entry_builder().save_entry(submission, files, ambient)
    except CustodyLogError as e:
        return {"error": str(e)}

    response: dict = {
        "message": "Documentation saved successfully!",
        "entry": result.entry.model_dump(mode="json"),
        "photos_saved": len(result.saved_photos),
    }
    if result.skipped_photos:
        response["photos_skipped"] = [s.model_dump() for s in result.skipped_photos]
    return response


@mcp.tool()
def get_recent_custom_activities() -> list[str] | dict:
    """Custom activities used in the ten most recent entries, newest first.

    Returns:
        Distinct custom activity strings, or an error dictionary
    """
    try:
        return get_entry_builder().recent_custom_activities()
    except CustodyLogError as e:
        return {"error": str(e)}


@mcp.tool()
def get_dashboard() -> dict:
    """Quick overview: how many entries were logged in the last 7 days.

    Returns:
        Dictionary with recent_entries count
    """
    try:
        count = get_entry_builder().count_recent_entries()
    except CustodyLogError as e:
        return {"error": str(e)}
    return {"recent_entries": count, "window_days": 7}


# ==================== Export Tools ====================


@mcp.tool()
def get_export_summary(start_date: str | None = None, end_date: str | None = None) -> dict:
    """Totals for a date range plus the five most recent entries.

    Args:
        start_date: ISO start date, inclusive (defaults to 30 days before end)
        end_date: ISO end date, inclusive (defaults to today)

    Returns:
        total_entries, total_meals, total_photos and a recent_entries preview
    """
    try:
        date_range = _parse_range(start_date, end_date)
        return get_export_service().summary(date_range)
    except ValueError as e:
        return {"error": f"Invalid date: {e}"}
    except CustodyLogError as e:
        return {"error": str(e)}


@mcp.tool()
def export_entries(
    format: str = "json",
    start_date: str | None = None,
    end_date: str | None = None,
) -> dict:
    """Export entries in a date range as JSON, CSV, or a printable HTML document.

    Args:
        format: One of "json", "csv", "html"
        start_date: ISO start date, inclusive (defaults to 30 days before end)
        end_date: ISO end date, inclusive (defaults to today)

    Returns:
        Dictionary with filename, media_type and the file content
    """
    try:
        fmt = ExportFormat(format.lower())
        date_range = _parse_range(start_date, end_date)
    except ValueError as e:
        return {"error": f"Invalid export request: {e}"}

    try:
        return get_export_service().export(date_range, fmt).model_dump()
    except CustodyLogError as e:
        return {"error": str(e)}
