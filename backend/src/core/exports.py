"""Export Rendering - Pure functions for turning entries into files.

All functions are pure: same input always produces same output, no side effects.
Every renderer consumes the same entry list, and the totals they show come from
compute_aggregates so the formats cannot disagree.
"""

import csv
import io
import json
import pathlib
from datetime import date

import jinja2

from .models import DailyEntry, DateRange, ExportAggregates, ExportFile, ExportFormat


CSV_COLUMNS: tuple[str, ...] = (
    "Date",
    "Activities",
    "Custom Activities",
    "Special Events",
    "Meals",
    "Notes",
    "Number of Photos",
    "Created At",
)

MEDIA_TYPES: dict[ExportFormat, str] = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv; charset=utf-8",
    ExportFormat.HTML: "text/html; charset=utf-8",
}

_TEMPLATES_DIR = pathlib.Path(__file__).parent / "templates"

_env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(_TEMPLATES_DIR)),
    autoescape=jinja2.select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def compute_aggregates(entries: list[DailyEntry]) -> ExportAggregates:
    """Calculate totals across every entry in range.

    Args:
        entries: Entries with photos joined

    Returns:
        ExportAggregates with entry, meal and photo counts
    """
    return ExportAggregates(
        total_entries=len(entries),
        total_meals=sum(e.meals for e in entries),
        total_photos=sum(len(e.photos) for e in entries),
    )


def format_long_date(value: date) -> str:
    """Format a date like 'Monday, March 3, 2025'."""
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def export_filename(date_range: DateRange, fmt: ExportFormat) -> str:
    """Download name: custody-documentation-<start>-to-<end>.<ext>"""
    return (
        f"custody-documentation-{date_range.start.isoformat()}"
        f"-to-{date_range.end.isoformat()}.{fmt.value}"
    )


def render_json(entries: list[DailyEntry]) -> str:
    """Serialize entries as a pretty-printed JSON array, order preserved."""
    data = [e.model_dump(mode="json") for e in entries]
    return json.dumps(data, indent=2, ensure_ascii=False)


def render_csv(entries: list[DailyEntry]) -> str:
    """Render one CSV row per entry under the fixed column header."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(CSV_COLUMNS)

    for entry in entries:
        writer.writerow([
            entry.date.isoformat(),
            ", ".join(entry.activities),
            ", ".join(entry.custom_activities),
            ", ".join(entry.special_events),
            entry.meals,
            entry.notes,
            len(entry.photos),
            entry.created_at.isoformat(),
        ])

    return buffer.getvalue()


def render_printable(entries: list[DailyEntry], date_range: DateRange) -> str:
    """Render a self-contained HTML document suitable for printing.

    Custom activities, special events and notes are left out of an entry's
    section entirely when empty.
    """
    template = _env.get_template("printable.html")
    sections = [
        {
            "long_date": format_long_date(e.date),
            "activities": ", ".join(e.activities),
            "custom_activities": ", ".join(e.custom_activities),
            "special_events": ", ".join(e.special_events),
            "meals": e.meals,
            "notes": e.notes.strip(),
            "photo_count": len(e.photos),
        }
        for e in entries
    ]
    return template.render(
        start=date_range.start.isoformat(),
        end=date_range.end.isoformat(),
        entries=sections,
        aggregates=compute_aggregates(entries),
    )


def render_export(
    entries: list[DailyEntry],
    date_range: DateRange,
    fmt: ExportFormat,
) -> ExportFile:
    """Render entries into the requested format as a downloadable file.

    Args:
        entries: Entries in display order
        date_range: Range the entries were fetched for
        fmt: Output format

    Returns:
        ExportFile with name, media type and content
    """
    if fmt is ExportFormat.JSON:
        content = render_json(entries)
    elif fmt is ExportFormat.CSV:
        content = render_csv(entries)
    else:
        content = render_printable(entries, date_range)

    return ExportFile(
        filename=export_filename(date_range, fmt),
        media_type=MEDIA_TYPES[fmt],
        content=content,
    )
