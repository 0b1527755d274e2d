"""Shared fixtures for core tests: tiny TIFF files carrying a GPS block."""

import struct

import pytest


def _rationals(values: tuple[tuple[int, int], ...]) -> bytes:
    return b"".join(struct.pack(">II", num, den) for num, den in values)


def make_geotagged_tiff(
    lat_dms: tuple[tuple[int, int], ...],
    lat_ref: str,
    lng_dms: tuple[tuple[int, int], ...],
    lng_ref: str,
) -> bytes:
    """Big-endian TIFF with one IFD pointing at a four-entry GPS IFD."""
    ifd0_offset = 8
    gps_offset = ifd0_offset + 2 + 12 + 4
    data_offset = gps_offset + 2 + 4 * 12 + 4
    lat_offset = data_offset
    lng_offset = data_offset + 24

    header = b"MM" + struct.pack(">HI", 42, ifd0_offset)

    # IFD0: single GPSInfo pointer (LONG)
    ifd0 = struct.pack(">H", 1)
    ifd0 += struct.pack(">HHII", 0x8825, 4, 1, gps_offset)
    ifd0 += struct.pack(">I", 0)

    gps = struct.pack(">H", 4)
    gps += struct.pack(">HHI", 0x0001, 2, 2) + lat_ref.encode() + b"\x00\x00\x00"
    gps += struct.pack(">HHII", 0x0002, 5, 3, lat_offset)
    gps += struct.pack(">HHI", 0x0003, 2, 2) + lng_ref.encode() + b"\x00\x00\x00"
    gps += struct.pack(">HHII", 0x0004, 5, 3, lng_offset)
    gps += struct.pack(">I", 0)

    return header + ifd0 + gps + _rationals(lat_dms) + _rationals(lng_dms)


@pytest.fixture
def geotagged_tiff():
    """48°30'0" N, 2°15'36" W."""
    return make_geotagged_tiff(
        lat_dms=((48, 1), (30, 1), (0, 1)),
        lat_ref="N",
        lng_dms=((2, 1), (15, 1), (36, 1)),
        lng_ref="W",
    )
