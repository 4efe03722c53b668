"""
Civil time to UTC normalization.

Offsets come from the IANA time zone database (zoneinfo), so seasonal
transitions follow the zone's real rules. In Europe/Madrid the clocks move
at 02:00 local on the last Sunday of March (+1h -> +2h) and at 03:00 local on
the last Sunday of October (+2h -> +1h).

Wall-clock times that fall in the spring gap or in the repeated autumn hour
are resolved with fold=0, i.e. with the offset in force before the change.
"""

from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.errors import TimeConversionError

INVALID_TIME = "INVALID"

_OFFSET_NO_COLON_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise TimeConversionError(f"{name} is not a number: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise TimeConversionError(f"{name} is not a number: {value!r}")


def load_zone(zone: str) -> ZoneInfo:
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise TimeConversionError(f"unknown time zone {zone!r}: {e}")


def resolve_utc_instant(
    year: Any,
    month: Any,
    day: Any,
    hour: Any,
    minute: Any,
    second: Any = 0,
    zone: str = "UTC",
) -> datetime:
    """
    Interpret wall-clock components in `zone` and return the UTC instant.

    Raises:
        TimeConversionError: non-numeric or out-of-range components, unknown zone.
    """
    tz = load_zone(zone)
    try:
        local = datetime(
            _as_int(year, "year"),
            _as_int(month, "month"),
            _as_int(day, "day"),
            _as_int(hour, "hour"),
            _as_int(minute, "minute"),
            _as_int(second, "second"),
            tzinfo=tz,
        )
    except ValueError as e:
        raise TimeConversionError(f"invalid wall-clock time: {e}")
    return local.astimezone(timezone.utc)


def format_utc_hhmm(instant: datetime, marker: bool = False) -> str:
    """Format an aware datetime as zero-padded UTC "HH:MM" (optionally "HH:MM Z")."""
    utc = instant.astimezone(timezone.utc)
    text = f"{utc.hour:02d}:{utc.minute:02d}"
    return f"{text} Z" if marker else text


def to_utc_hhmm(
    year: Any,
    month: Any,
    day: Any,
    hour: Any,
    minute: Any,
    second: Any = 0,
    zone: str = "UTC",
    marker: bool = False,
) -> str:
    """
    Civil wall-clock time in `zone` to UTC "HH:MM".

    Never raises: malformed input gives INVALID_TIME so the caller can carry
    on with the field unknown.
    """
    try:
        instant = resolve_utc_instant(year, month, day, hour, minute, second, zone)
    except TimeConversionError:
        return INVALID_TIME
    return format_utc_hhmm(instant, marker=marker)


def parse_iso_instant(text: Optional[str], default_zone: str = "UTC") -> datetime:
    """
    Parse an ISO-8601 timestamp ("2025-10-21T18:00:00", "...Z", "...+0000").
    Naive timestamps are read as wall-clock time in `default_zone`.

    Raises:
        TimeConversionError: unparseable text or unknown zone.
    """
    if not isinstance(text, str) or not text.strip():
        raise TimeConversionError(f"empty timestamp: {text!r}")

    cleaned = text.strip().replace("Z", "+00:00")
    cleaned = _OFFSET_NO_COLON_RE.sub(r"\1:\2", cleaned)
    try:
        parsed = datetime.fromisoformat(cleaned)
    except ValueError as e:
        raise TimeConversionError(f"invalid timestamp {text!r}: {e}")

    if parsed.tzinfo is None:
        return resolve_utc_instant(
            parsed.year, parsed.month, parsed.day,
            parsed.hour, parsed.minute, parsed.second,
            zone=default_zone,
        )
    return parsed.astimezone(timezone.utc)


def iso_to_utc_hhmm(text: Optional[str], default_zone: str = "UTC", marker: bool = False) -> str:
    """ISO timestamp to UTC "HH:MM", or INVALID_TIME."""
    try:
        return format_utc_hhmm(parse_iso_instant(text, default_zone), marker=marker)
    except TimeConversionError:
        return INVALID_TIME
