"""Rise and set times of the Sun and Moon.

The positions come from the low-precision analytical series of Montenbruck
and Pfleger ("Astronomy on the Personal Computer"), accurate to roughly a
minute of time for the Sun and a few minutes for the Moon. No ephemeris
files are needed.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple

import erfa
import numpy as np

from models import RiseSet

__all__ = [
    "Body",
    "ComputationError",
    "HORIZON_ALTITUDES",
    "compute_rise_set",
    "sine_altitude",
]

ARCSEC_PER_RADIAN = 206264.8062
OBLIQUITY_J2000 = math.radians(23.43929111)
MJD_J2000 = 51544.5
MJD_ZERO = 2400000.5

NO_EVENT = "none"


class Body(str, Enum):
    """Celestial bodies the calculator knows about."""

    sun = "sun"
    moon = "moon"


# Altitude of the body's centre at the moment of rise or set, in degrees.
HORIZON_ALTITUDES: Dict[Body, float] = {
    Body.sun: -50.0 / 60.0,
    Body.moon: 8.0 / 60.0,
}


class ComputationError(RuntimeError):
    """Raised when no rise or set happens on the requested local day."""

    def __init__(self, body: Body, reason: str) -> None:
        super().__init__(f"{body.value}: {reason}")
        self.body = body
        self.reason = reason


def _frac(x: np.ndarray) -> np.ndarray:
    return x - np.floor(x)


def _equatorial(
    lon: np.ndarray, lat: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Rotate ecliptic coordinates (radians) to right ascension and declination."""

    cos_eps, sin_eps = math.cos(OBLIQUITY_J2000), math.sin(OBLIQUITY_J2000)
    x = np.cos(lat) * np.cos(lon)
    v = np.cos(lat) * np.sin(lon)
    w = np.sin(lat)
    y = cos_eps * v - sin_eps * w
    z = sin_eps * v + cos_eps * w
    rho = np.sqrt(1.0 - z * z)
    dec = np.arctan2(z, rho)
    ra = np.mod(2.0 * np.arctan2(y, x + rho), 2.0 * math.pi)
    return ra, dec


def _mini_sun(t: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    anomaly = 2.0 * math.pi * _frac(0.993133 + 99.997361 * t)
    dl = 6893.0 * np.sin(anomaly) + 72.0 * np.sin(2.0 * anomaly)
    lon = 2.0 * math.pi * _frac(
        0.7859453 + anomaly / (2.0 * math.pi) + (6191.2 * t + dl) / 1296000.0
    )
    return _equatorial(lon, np.zeros_like(lon))


def _mini_moon(t: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    l0 = _frac(0.606433 + 1336.855225 * t)
    l = 2.0 * math.pi * _frac(0.374897 + 1325.552410 * t)
    ls = 2.0 * math.pi * _frac(0.993133 + 99.997361 * t)
    d = 2.0 * math.pi * _frac(0.827361 + 1236.853086 * t)
    f = 2.0 * math.pi * _frac(0.259086 + 1342.227825 * t)

    dl = (
        22640.0 * np.sin(l)
        - 4586.0 * np.sin(l - 2.0 * d)
        + 2370.0 * np.sin(2.0 * d)
        + 769.0 * np.sin(2.0 * l)
        - 668.0 * np.sin(ls)
        - 412.0 * np.sin(2.0 * f)
        - 212.0 * np.sin(2.0 * l - 2.0 * d)
        - 206.0 * np.sin(l + ls - 2.0 * d)
        + 192.0 * np.sin(l + 2.0 * d)
        - 165.0 * np.sin(ls - 2.0 * d)
        - 125.0 * np.sin(d)
        - 110.0 * np.sin(l + ls)
        + 148.0 * np.sin(l - ls)
        - 55.0 * np.sin(2.0 * f - 2.0 * d)
    )
    s = f + (dl + 412.0 * np.sin(2.0 * f) + 541.0 * np.sin(ls)) / ARCSEC_PER_RADIAN
    h = f - 2.0 * d
    n = (
        -526.0 * np.sin(h)
        + 44.0 * np.sin(l + h)
        - 31.0 * np.sin(-l + h)
        - 23.0 * np.sin(ls + h)
        + 11.0 * np.sin(-ls + h)
        - 25.0 * np.sin(-2.0 * l + f)
        + 21.0 * np.sin(-l + f)
    )
    lon = 2.0 * math.pi * _frac(l0 + dl / 1296000.0)
    lat = (18520.0 * np.sin(s) + n) / ARCSEC_PER_RADIAN
    return _equatorial(lon, lat)


_POSITIONS = {Body.sun: _mini_sun, Body.moon: _mini_moon}


def sine_altitude(
    body: Body, mjd: np.ndarray, longitude: float, latitude: float
) -> np.ndarray:
    """Sine of the geometric altitude of *body* at the UT modified julian dates *mjd*.

    Longitude is east-positive, both angles in degrees.
    """

    mjd = np.asarray(mjd, dtype=float)
    t = (mjd - MJD_J2000) / 36525.0
    ra, dec = _POSITIONS[body](t)
    # UT1 - UTC is below a second, far under the accuracy of the series.
    lmst = erfa.gmst82(MJD_ZERO, mjd) + math.radians(longitude)
    phi = math.radians(latitude)
    return math.sin(phi) * np.sin(dec) + math.cos(phi) * np.cos(dec) * np.cos(lmst - ra)


def _quadratic_roots(
    y_minus: float, y_zero: float, y_plus: float
) -> Tuple[float, float, float, int]:
    """Fit a parabola through three equally spaced samples at x = -1, 0, 1.

    Returns the ordinate of the extremum, the two roots and how many of the
    roots fall inside [-1, 1].
    """

    a = 0.5 * (y_plus + y_minus) - y_zero
    b = 0.5 * (y_plus - y_minus)
    c = y_zero
    if a == 0.0:
        if b == 0.0:
            return c, 0.0, 0.0, 0
        root = -c / b
        return c, root, root, 1 if abs(root) <= 1.0 else 0

    x_extremum = -b / (2.0 * a)
    y_extremum = (a * x_extremum + b) * x_extremum + c
    discriminant = b * b - 4.0 * a * c
    if discriminant < 0.0:
        return y_extremum, 0.0, 0.0, 0

    dx = 0.5 * math.sqrt(discriminant) / abs(a)
    root1, root2 = x_extremum - dx, x_extremum + dx
    count = 0
    if abs(root1) <= 1.0:
        count += 1
    if abs(root2) <= 1.0:
        count += 1
    if root1 < -1.0:
        root1 = root2
    return y_extremum, root1, root2, count


def _format_hours(hours: Optional[float]) -> str:
    if hours is None:
        return NO_EVENT
    minutes = min(int(round(hours * 60.0)), 24 * 60 - 1)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def compute_rise_set(
    body: Body,
    instant: datetime,
    longitude: float,
    latitude: float,
    zone_offset_hours: float,
) -> RiseSet:
    """Return local rise and set times of *body* on the local day of *instant*.

    Parameters
    ----------
    body:
        Sun or Moon.
    instant:
        Local wall-clock time; only its calendar date is used.
    longitude, latitude:
        Observer position in degrees, east-positive longitude.
    zone_offset_hours:
        Hours the local clock runs ahead of UT.

    Returns
    -------
    RiseSet
        ``HH:MM`` strings. An event that does not happen on this local day
        reads ``"none"``.

    Raises
    ------
    ComputationError
        If the body neither rises nor sets that day.
    """

    _, mjd_midnight = erfa.cal2jd(instant.year, instant.month, instant.day)
    mjd_start = float(mjd_midnight) - zone_offset_hours / 24.0
    hours = np.arange(25, dtype=float)
    samples = sine_altitude(body, mjd_start + hours / 24.0, longitude, latitude)
    samples = samples - math.sin(math.radians(HORIZON_ALTITUDES[body]))

    rise: Optional[float] = None
    sett: Optional[float] = None
    for hour in range(1, 24, 2):
        y_minus, y_zero, y_plus = samples[hour - 1], samples[hour], samples[hour + 1]
        y_extremum, root1, root2, count = _quadratic_roots(y_minus, y_zero, y_plus)
        if count == 1:
            if y_minus < 0.0:
                rise = rise if rise is not None else hour + root1
            else:
                sett = sett if sett is not None else hour + root1
        elif count == 2:
            if y_extremum < 0.0:
                rise = rise if rise is not None else hour + root2
                sett = sett if sett is not None else hour + root1
            else:
                rise = rise if rise is not None else hour + root1
                sett = sett if sett is not None else hour + root2
        if rise is not None and sett is not None:
            break

    if rise is None and sett is None:
        reason = "always_above" if samples[0] > 0.0 else "always_below"
        raise ComputationError(body, reason)

    return RiseSet(rise=_format_hours(rise), set=_format_hours(sett))
