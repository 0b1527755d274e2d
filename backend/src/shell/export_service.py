"""Export Service - Fetch a user's entries for a range and render them."""

import logging
from typing import Any

from ..core.entries import sort_entries_for_display
from ..core.exports import compute_aggregates, format_long_date, render_export
from ..core.models import DailyEntry, DateRange, ExportFile, ExportFormat
from .errors import ExportReadError, NotAuthenticatedError
from .stores import RecordStore, SessionProvider


logger = logging.getLogger(__name__)


class ExportService:
    """Reads entries with their photos and hands them to the renderers."""

    def __init__(self, records: RecordStore, session: SessionProvider) -> None:
        self._records = records
        self._session = session

    def fetch(self, date_range: DateRange) -> list[DailyEntry]:
        """Fetch entries in range, newest date first, photos joined.

        Raises:
            NotAuthenticatedError: If no user is signed in
            ExportReadError: If the range query failed
        """
        user_id = self._session()
        if user_id is None:
            raise NotAuthenticatedError()

        entries = self._records.get_entries_range(user_id, date_range.start, date_range.end)
        if entries is None:
            raise ExportReadError("Failed to load entries. Please try again.")

        return sort_entries_for_display(entries)

    def export(self, date_range: DateRange, fmt: ExportFormat) -> ExportFile:
        """Render the range in one format. Nothing is returned if the read fails."""
        entries = self.fetch(date_range)
        export_file = render_export(entries, date_range, fmt)
        logger.info("Exported %d entries as %s", len(entries), fmt.value)
        return export_file

    def summary(self, date_range: DateRange, preview: int = 5) -> dict[str, Any]:
        """Totals for the range plus a short preview of the newest entries."""
        entries = self.fetch(date_range)
        aggregates = compute_aggregates(entries)

        return {
            "start": date_range.start.isoformat(),
            "end": date_range.end.isoformat(),
            **aggregates.model_dump(),
            "recent_entries": [
                {
                    "date": format_long_date(e.date),
                    "activities": ", ".join(e.activities),
                    "notes": e.notes,
                    "meals": e.meals,
                    "photos": len(e.photos),
                }
                for e in entries[:preview]
            ],
        }
