"""Location Resolution - Pick the most authoritative coordinate for a photo.

Resolution tiers, strongest first: embedded EXIF GPS, then the ambient device
coordinate, then nothing. Reading metadata never raises to the caller.
"""

import io
import logging
from typing import Any

import exifread

from .models import Coordinate, LocationSource, PhotoLocation


logger = logging.getLogger(__name__)


def convert_to_degrees(value: Any) -> float:
    """Convert an EXIF degrees/minutes/seconds tag to decimal degrees.

    Args:
        value: exifread tag whose ``values`` holds three ratios

    Returns:
        Decimal degrees (always non-negative; hemisphere is applied separately)
    """
    degrees = float(value.values[0].num) / float(value.values[0].den)
    minutes = float(value.values[1].num) / float(value.values[1].den)
    seconds = float(value.values[2].num) / float(value.values[2].den)

    return degrees + (minutes / 60.0) + (seconds / 3600.0)


def extract_exif_coordinate(content: bytes) -> Coordinate | None:
    """Read the embedded GPS coordinate from image bytes.

    Args:
        content: Raw file bytes

    Returns:
        Coordinate if a complete, well-formed geotag is present, None otherwise
    """
    try:
        tags = exifread.process_file(io.BytesIO(content), details=False)

        gps_latitude = tags.get("GPS GPSLatitude")
        gps_latitude_ref = tags.get("GPS GPSLatitudeRef")
        gps_longitude = tags.get("GPS GPSLongitude")
        gps_longitude_ref = tags.get("GPS GPSLongitudeRef")

        if not all([gps_latitude, gps_latitude_ref, gps_longitude, gps_longitude_ref]):
            return None

        lat = convert_to_degrees(gps_latitude)
        if str(gps_latitude_ref).strip().upper() == "S":
            lat = -lat

        lng = convert_to_degrees(gps_longitude)
        if str(gps_longitude_ref).strip().upper() == "W":
            lng = -lng

        return Coordinate(lat=lat, lng=lng)
    except Exception as e:
        # Corrupt or unsupported files simply have no usable geotag
        logger.debug("No EXIF location: %s", str(e))
        return None


def resolve_location(content: bytes, ambient: Coordinate | None = None) -> PhotoLocation | None:
    """Resolve a photo's location from its metadata or the ambient coordinate.

    Args:
        content: Raw file bytes
        ambient: Device coordinate captured once per session, if granted

    Returns:
        PhotoLocation with source exif or gps, or None when neither is available
    """
    embedded = extract_exif_coordinate(content)
    if embedded is not None:
        return PhotoLocation(lat=embedded.lat, lng=embedded.lng, source=LocationSource.EXIF)

    if ambient is not None:
        return PhotoLocation(lat=ambient.lat, lng=ambient.lng, source=LocationSource.GPS)

    return None
