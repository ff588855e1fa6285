from __future__ import annotations

import re
import sys
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import numpy as np
import pytest

from core.astro import Body, ComputationError, compute_rise_set, sine_altitude

TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

MELBOURNE = {"longitude": 144.9631, "latitude": -37.8136}
SVALBARD = {"longitude": 15.6469, "latitude": 78.2232}


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def test_melbourne_winter_solstice_sun():
    result = compute_rise_set(
        Body.sun, datetime(2025, 6, 21), zone_offset_hours=10.0, **MELBOURNE
    )
    assert TIME_OF_DAY.match(result.rise)
    assert TIME_OF_DAY.match(result.set)
    # Published: sunrise 07:35, sunset 17:08 AEST.
    assert abs(_minutes(result.rise) - (7 * 60 + 35)) <= 5
    assert abs(_minutes(result.set) - (17 * 60 + 8)) <= 5


def test_zone_offset_shifts_local_times():
    utc = compute_rise_set(Body.sun, datetime(2025, 3, 20), 0.0, 0.0, 0.0)
    shifted = compute_rise_set(Body.sun, datetime(2025, 3, 20), 0.0, 0.0, 3.0)
    # Equinox on the equator at Greenwich: about 06:00 and 18:00 UT.
    assert abs(_minutes(utc.rise) - 6 * 60) <= 15
    assert abs(_minutes(utc.set) - 18 * 60) <= 15
    assert abs(_minutes(shifted.rise) - _minutes(utc.rise) - 180) <= 2


def test_only_the_calendar_date_of_the_instant_matters():
    morning = compute_rise_set(Body.moon, datetime(2025, 10, 1, 0, 5), zone_offset_hours=10.0, **MELBOURNE)
    evening = compute_rise_set(Body.moon, datetime(2025, 10, 1, 23, 55), zone_offset_hours=10.0, **MELBOURNE)
    assert morning == evening


def test_moon_at_mid_latitude_never_errors():
    for day in range(1, 31):
        result = compute_rise_set(
            Body.moon, datetime(2025, 9, day), zone_offset_hours=10.0, **MELBOURNE
        )
        assert not result.is_error
        values = (result.rise, result.set)
        # At most one of the two events may be missing on a given day.
        assert sum(value == "none" for value in values) <= 1
        for value in values:
            assert value == "none" or TIME_OF_DAY.match(value)


def test_polar_day_raises():
    with pytest.raises(ComputationError) as excinfo:
        compute_rise_set(Body.sun, datetime(2025, 6, 21), zone_offset_hours=1.0, **SVALBARD)
    assert excinfo.value.reason == "always_above"
    assert excinfo.value.body is Body.sun


def test_polar_night_raises():
    with pytest.raises(ComputationError) as excinfo:
        compute_rise_set(Body.sun, datetime(2025, 12, 21), zone_offset_hours=1.0, **SVALBARD)
    assert excinfo.value.reason == "always_below"


def test_sine_altitude_is_vectorised_and_bounded():
    mjd = 60800.0 + np.arange(48) / 48.0
    values = sine_altitude(Body.moon, mjd, **MELBOURNE)
    assert values.shape == (48,)
    assert np.all(np.abs(values) <= 1.0)
    # The Moon is up for part of any day at this latitude.
    assert values.min() < 0.0 < values.max()


def test_deterministic():
    args = (Body.moon, datetime(2025, 4, 12), 144.0, -37.0, 10.0)
    assert compute_rise_set(*args) == compute_rise_set(*args)
