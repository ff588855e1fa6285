"""Resolution of the ``lon``/``lat``/``zon`` query parameters.

Two policies share the same range checks:

* :func:`strict_validation` rejects the whole query on the first missing,
  unparsable or out-of-range value.
* :func:`lenient_defaulting` replaces each bad value with a fixed default and
  always yields a usable query.
"""

from __future__ import annotations

import math
import re
from typing import Optional, Tuple

from models import (
    LATITUDE_RANGE,
    LONGITUDE_RANGE,
    ZONE_OFFSET_RANGE,
    GeoQuery,
)

__all__ = [
    "DEFAULT_LATITUDE",
    "DEFAULT_LONGITUDE",
    "DEFAULT_ZONE_OFFSET",
    "latitude_in_range",
    "lenient_defaulting",
    "longitude_in_range",
    "parse_float",
    "strict_validation",
    "zone_offset_in_range",
]

DEFAULT_LONGITUDE = 144.0
DEFAULT_LATITUDE = -37.0
DEFAULT_ZONE_OFFSET = 10.0

_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def _within(value: float, bounds: Tuple[float, float]) -> bool:
    return bounds[0] <= value <= bounds[1]


def longitude_in_range(value: float) -> bool:
    return _within(value, LONGITUDE_RANGE)


def latitude_in_range(value: float) -> bool:
    return _within(value, LATITUDE_RANGE)


def zone_offset_in_range(value: float) -> bool:
    return _within(value, ZONE_OFFSET_RANGE)


def parse_float(raw: Optional[str]) -> Optional[float]:
    """Parse *raw* as a finite float, or return ``None``.

    Only plain decimal notation is accepted: no surrounding whitespace, no
    digit separators, no ``nan`` or ``inf``.
    """

    if raw is None or not _DECIMAL.fullmatch(raw):
        return None
    value = float(raw)
    if not math.isfinite(value):
        return None
    return value


_CHECKS = (longitude_in_range, latitude_in_range, zone_offset_in_range)
_DEFAULTS = (DEFAULT_LONGITUDE, DEFAULT_LATITUDE, DEFAULT_ZONE_OFFSET)


def lenient_defaulting(
    lon: Optional[str], lat: Optional[str], zon: Optional[str]
) -> GeoQuery:
    """Resolve the raw strings, substituting the default for any bad value."""

    resolved = []
    for raw, in_range, default in zip((lon, lat, zon), _CHECKS, _DEFAULTS):
        value = parse_float(raw)
        if value is None or not in_range(value):
            value = default
        resolved.append(value)
    return GeoQuery(
        longitude=resolved[0], latitude=resolved[1], zone_offset_hours=resolved[2]
    )


def strict_validation(
    lon: Optional[str], lat: Optional[str], zon: Optional[str]
) -> Optional[GeoQuery]:
    """Resolve the raw strings, or return ``None`` if any of them is unusable.

    An absent or empty value fails before anything is parsed. Values are then
    checked in the order lon, lat, zon and the first failure stops the
    evaluation.
    """

    raws = (lon, lat, zon)
    if any(not raw for raw in raws):
        return None
    resolved = []
    for raw, in_range in zip(raws, _CHECKS):
        value = parse_float(raw)
        if value is None or not in_range(value):
            return None
        resolved.append(value)
    return GeoQuery(
        longitude=resolved[0], latitude=resolved[1], zone_offset_hours=resolved[2]
    )
