"""
util.py – slugs, unit conversion and small numeric helpers.
"""
from __future__ import annotations

import re
from typing import Sequence

METERS_PER_MILE = 1_609.344
SECONDS_PER_HOUR = 3_600


class MalformedInputError(ValueError):
    """Raised when an operation is handed input it cannot work on (empty sets, …)."""


class TransportError(RuntimeError):
    """Network or protocol failure talking to an upstream service."""


def slugify(name: str) -> str:
    """Stable cache key for a name (“Ben & Jerry's” → “ben--jerrys”)."""
    slug = name.lower()
    slug = re.sub(r"\s", "-", slug)
    return re.sub(r"[^\w-]+", "", slug)


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE


def seconds_to_hours(seconds: float) -> float:
    return seconds / SECONDS_PER_HOUR


def round2(value: float) -> float:
    return round(value, 2)


def median(values: Sequence[float]) -> float:
    """
    Median of a sequence; the mean of the two middle values for even lengths.

    An empty sequence is a contract violation, never a silent zero.
    """
    if not values:
        raise MalformedInputError("median() of an empty sequence")
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2
