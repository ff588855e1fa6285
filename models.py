"""Pydantic models shared by the core and the HTTP layer."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

ERROR_SENTINEL = "error"

LONGITUDE_RANGE = (-180.0, 180.0)
LATITUDE_RANGE = (-90.0, 90.0)
ZONE_OFFSET_RANGE = (-12.0, 14.0)


class RiseSet(BaseModel):
    """Formatted local rise and set times of one body on one day."""

    model_config = ConfigDict(frozen=True)

    rise: str = Field(..., description="Rise time (HH:MM), 'none' or 'error'")
    set: str = Field(..., description="Set time (HH:MM), 'none' or 'error'")

    @classmethod
    def error(cls) -> "RiseSet":
        return cls(rise=ERROR_SENTINEL, set=ERROR_SENTINEL)

    @property
    def is_error(self) -> bool:
        return self.rise == ERROR_SENTINEL and self.set == ERROR_SENTINEL


class GeoQuery(BaseModel):
    """A resolved observer location and numeric timezone offset."""

    model_config = ConfigDict(frozen=True)

    longitude: float = Field(
        ..., ge=LONGITUDE_RANGE[0], le=LONGITUDE_RANGE[1], description="Longitude in degrees"
    )
    latitude: float = Field(
        ..., ge=LATITUDE_RANGE[0], le=LATITUDE_RANGE[1], description="Latitude in degrees"
    )
    zone_offset_hours: float = Field(
        ...,
        ge=ZONE_OFFSET_RANGE[0],
        le=ZONE_OFFSET_RANGE[1],
        description="Hours the local clock runs ahead of UT",
    )


class CalendarRow(BaseModel):
    """One day of the calendar grid."""

    date: str = Field(..., description="Local date (DD-MM-YYYY)")
    moon: RiseSet
    sun: RiseSet


class CalendarPage(BaseModel):
    """Context handed to the calendar template."""

    rows: List[CalendarRow]
    lon: float
    lat: float
    zon: float


class MapsKeyResponse(BaseModel):
    key: str


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
