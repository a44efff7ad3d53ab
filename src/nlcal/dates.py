"""Timezone and date anchoring for prompt generation.

Resolves "today", "tomorrow" and the current UTC offset in the caller's
timezone.  Nothing in this module raises: a malformed timezone degrades to
the host zone, and the offset falls back to the host offset and finally to
``-06:00``, because the prompt must be built regardless.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone as dt_timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from nlcal.models.event import ResolvedDateContext

logger = logging.getLogger(__name__)

DEFAULT_OFFSET = "-06:00"

_OFFSET_INPUT = re.compile(r"^(?:UTC|GMT)?\s*([+-])(\d{1,2}):?(\d{2})$", re.IGNORECASE)
_OFFSET_SUFFIX = re.compile(r"([+-]\d{2}:\d{2})(?::\d{2}(?:\.\d+)?)?$")


def _utc_now() -> datetime:
    return datetime.now(dt_timezone.utc)


def _as_aware(now: datetime | None) -> datetime:
    if now is None:
        return _utc_now()
    if now.tzinfo is None:
        return now.replace(tzinfo=dt_timezone.utc)
    return now


def _host_timezone() -> tuple[tzinfo, str]:
    local = datetime.now().astimezone()
    return local.tzinfo or dt_timezone.utc, local.tzname() or "UTC"


def _parse_fixed_offset(value: str) -> tzinfo | None:
    """Return a fixed-offset tzinfo for strings like ``+05:30`` or ``UTC-06:00``."""
    if value.strip().upper() in {"UTC", "GMT", "Z"}:
        return dt_timezone.utc
    match = _OFFSET_INPUT.match(value.strip())
    if not match:
        return None
    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if delta >= timedelta(hours=24):
        return None
    return dt_timezone(-delta if sign == "-" else delta)


def _lookup_timezone(value: str) -> tzinfo:
    """Resolve *value* strictly; raises on unknown or malformed names."""
    fixed = _parse_fixed_offset(value)
    if fixed is not None:
        return fixed
    return ZoneInfo(value.strip())


def resolve_timezone(timezone: str | None) -> tuple[tzinfo, str]:
    """Resolve a timezone identifier, falling back to the host zone.

    Args:
        timezone: IANA zone id, ``±HH:MM`` offset, or ``None``.

    Returns:
        A ``(tzinfo, display_name)`` pair.  The display name is the input
        string when it resolved, otherwise the host zone's name.
    """
    if timezone and timezone.strip():
        try:
            return _lookup_timezone(timezone), timezone.strip()
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            logger.warning("Unknown timezone %r, using host timezone: %s", timezone, exc)
    return _host_timezone()


def format_offset(delta: timedelta) -> str:
    """Render a UTC offset as ``±HH:MM`` (seconds are truncated)."""
    total_minutes = int(delta.total_seconds() // 60)
    sign = "-" if total_minutes < 0 else "+"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def _host_offset(now: datetime) -> str:
    return format_offset(now.astimezone().utcoffset() or timedelta(0))


def get_offset(timezone: str | None, now: datetime | None = None) -> str:
    """Return the UTC offset of *timezone* at *now* as ``±HH:MM``.

    The instant is rendered in the target zone as ISO 8601 and the offset
    is read off its suffix.  If the zone cannot be resolved the host's
    current offset is used, and if even that fails, :data:`DEFAULT_OFFSET`.

    Args:
        timezone: IANA zone id or ``±HH:MM`` offset.  ``None`` uses the
            host zone.
        now: The instant to evaluate (defaults to the current time).
            Naive values are treated as UTC.

    Returns:
        The offset string, e.g. ``"-05:00"`` or ``"+05:30"``.
    """
    try:
        instant = _as_aware(now)
        try:
            if not timezone or not timezone.strip():
                raise ValueError("no timezone given")
            local = instant.astimezone(_lookup_timezone(timezone))
            match = _OFFSET_SUFFIX.search(local.isoformat())
            if match:
                return match.group(1)
            raise ValueError(f"no offset in {local.isoformat()!r}")
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            logger.debug("Falling back to host UTC offset for %r: %s", timezone, exc)
            return _host_offset(instant)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Could not determine UTC offset for %r: %s", timezone, exc)
        return DEFAULT_OFFSET


def resolve_date_context(
    timezone: str | None = None,
    now: datetime | None = None,
) -> ResolvedDateContext:
    """Compute the date anchors for a request.

    "Today" is the calendar date of *now* as seen in the target zone, not
    the UTC date, so requests near midnight resolve to the user's day.

    Args:
        timezone: IANA zone id or ``±HH:MM`` offset; invalid or missing
            values use the host zone.
        now: Override for the current instant (useful for testing).

    Returns:
        A fresh :class:`ResolvedDateContext`; never cached.
    """
    instant = _as_aware(now)
    zone, zone_name = resolve_timezone(timezone)
    today = instant.astimezone(zone).date()

    context = ResolvedDateContext(
        today=today,
        tomorrow=today + timedelta(days=1),
        timezone_id=zone_name,
        timezone_offset=get_offset(timezone, instant),
    )
    logger.debug("Resolved date context: %s", context)
    return context
