"""Core rise/set utilities for the Riseset service."""

from .astro import Body, ComputationError, compute_rise_set
from .calendar import build_calendar
from .params import lenient_defaulting, strict_validation

__all__ = [
    "Body",
    "ComputationError",
    "build_calendar",
    "compute_rise_set",
    "lenient_defaulting",
    "strict_validation",
]
