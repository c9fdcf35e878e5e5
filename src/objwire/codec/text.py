"""Textual representations of timestamps and durations.

Formats without native timestamp or duration types write them as text;
these helpers keep the written form and the parsed form in sync.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from decimal import ROUND_HALF_EVEN, Decimal

_DURATION = re.compile(r"^\s*(-?\d+(?:\.\d*)?(?:[eE][-+]?\d+)?)\s*s?\s*$")

# One day past the largest timedelta, so overflow is reported before the int conversion
_MAX_SECONDS = Decimal((timedelta.max.days + 1) * 86400)


def format_time_text(value: datetime) -> str:
    return value.isoformat()


def parse_time_text(text: str) -> datetime:
    """Parse an ISO-8601 timestamp.

    Raises:
        ValueError: If the text is not a timestamp
    """
    return datetime.fromisoformat(text)


def format_duration_text(value: timedelta) -> str:
    """Write a duration as exact decimal seconds, e.g. ``"1.5s"``."""
    micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    sign = "-" if micros < 0 else ""
    whole, frac = divmod(abs(micros), 1_000_000)
    if frac:
        return f"{sign}{whole}.{frac:06d}".rstrip("0") + "s"
    return f"{sign}{whole}s"


def parse_duration_text(text: str) -> timedelta:
    """Parse a duration written as ``"<seconds>s"`` or as plain seconds.

    Fractions below the microsecond are rounded.

    Raises:
        ValueError: If the text is not a duration or is out of range
    """
    match = _DURATION.match(text)
    if match is None:
        raise ValueError(f"invalid duration {text!r}")
    seconds = Decimal(match.group(1))
    if abs(seconds) > _MAX_SECONDS:
        raise ValueError(f"duration {text!r} is out of range")
    micros = int(seconds.scaleb(6).to_integral_value(ROUND_HALF_EVEN))
    try:
        return timedelta(microseconds=micros)
    except OverflowError as err:
        raise ValueError(f"duration {text!r} is out of range") from err
