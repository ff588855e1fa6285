"""Ten-day rise/set grid for the calendar page."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Callable, List

from models import CalendarRow, GeoQuery, RiseSet

from .astro import Body, ComputationError, compute_rise_set

__all__ = [
    "CALENDAR_DAYS",
    "DATE_FORMAT",
    "RiseSetCalculator",
    "build_calendar",
    "rise_set_or_error",
]

LOGGER = logging.getLogger(__name__)

CALENDAR_DAYS = 10
DATE_FORMAT = "%d-%m-%Y"

RiseSetCalculator = Callable[[Body, datetime, float, float, float], RiseSet]


def rise_set_or_error(
    calculator: RiseSetCalculator, body: Body, instant: datetime, query: GeoQuery
) -> RiseSet:
    """Call *calculator*, turning a :class:`ComputationError` into the error sentinel."""

    try:
        return calculator(
            body, instant, query.longitude, query.latitude, query.zone_offset_hours
        )
    except ComputationError as exc:
        LOGGER.debug(
            json.dumps(
                {
                    "event": "computation_failed",
                    "body": body.value,
                    "date": instant.date().isoformat(),
                    "reason": exc.reason,
                }
            )
        )
        return RiseSet.error()


def build_calendar(
    query: GeoQuery,
    now: datetime,
    calculator: RiseSetCalculator = compute_rise_set,
) -> List[CalendarRow]:
    """Build the rows for the ten days following the local date of *now*.

    *now* is shifted by the zone offset first, so the first row is the day
    after the current local date at the queried offset.
    """

    # Fractional zones such as +9.5 are added in full, not truncated to hours.
    base = now + timedelta(hours=query.zone_offset_hours)
    rows: List[CalendarRow] = []
    for day in range(1, CALENDAR_DAYS + 1):
        instant = base + timedelta(days=day)
        rows.append(
            CalendarRow(
                date=instant.strftime(DATE_FORMAT),
                moon=rise_set_or_error(calculator, Body.moon, instant, query),
                sun=rise_set_or_error(calculator, Body.sun, instant, query),
            )
        )
    return rows
