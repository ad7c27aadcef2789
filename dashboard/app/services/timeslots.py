"""Service-day time slot arithmetic.

Slots are hourly wall-clock labels (``HH:MM``) in the restaurant's timezone.
A restaurant whose closing time is earlier than its opening time operates
overnight: its service day wraps past midnight and every computation here
measures positions as an offset from opening time rather than from 00:00.
"""
from datetime import date, datetime
from math import ceil
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

SLOT_MINUTES = 60
MINUTES_PER_DAY = 24 * 60


def zone(timezone: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {timezone}") from exc


def to_minutes(value: str) -> int:
    hour, _, minute = value.partition(":")
    try:
        hours, minutes = int(hour), int(minute or 0)
    except ValueError as exc:
        raise ValueError(f"Invalid time: {value!r}") from exc
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time: {value!r}")
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_overnight(opening_time: str, closing_time: str) -> bool:
    return to_minutes(closing_time) < to_minutes(opening_time)


def generate_time_slots(
    opening_time: str,
    closing_time: str,
    avg_duration_minutes: int,
    timezone: str,
) -> list[str]:
    """Return the ordered bookable slots for one service day.

    Standard hours stop at the last start that still ends by closing time.
    Overnight hours run from opening to midnight and on until closing.
    """
    zone(timezone)
    opening = to_minutes(opening_time)
    closing = to_minutes(closing_time)

    if closing < opening:
        slots = [format_minutes(m) for m in range(opening, MINUTES_PER_DAY, SLOT_MINUTES)]
        slots.extend(format_minutes(m) for m in range(0, closing, SLOT_MINUTES))
        return slots

    last_start = closing - avg_duration_minutes
    return [format_minutes(m) for m in range(opening, last_start + 1, SLOT_MINUTES)]


def duration_slot_count(duration_minutes: int) -> int:
    return max(1, ceil(duration_minutes / SLOT_MINUTES))


def window(start_time: str, count: int) -> list[str]:
    """Consecutive slot labels starting at ``start_time``, wrapping at midnight."""
    start = to_minutes(start_time)
    return [format_minutes(start + i * SLOT_MINUTES) for i in range(count)]


def fits_hours(start_time: str, duration_minutes: int, opening_time: str, closing_time: str) -> bool:
    start = to_minutes(start_time)
    opening = to_minutes(opening_time)
    closing = to_minutes(closing_time)

    if closing < opening:
        service_length = closing + MINUTES_PER_DAY - opening
        offset = (start - opening) % MINUTES_PER_DAY
    else:
        service_length = closing - opening
        offset = start - opening

    return offset >= 0 and offset + duration_minutes <= service_length


def shift(time: str, hours: int) -> str:
    return format_minutes(to_minutes(time) + hours * 60)


def slot_range_label(start_time: str, duration_minutes: int) -> str:
    return f"{start_time}-{format_minutes(to_minutes(start_time) + duration_minutes)}"


def restaurant_today(timezone: str) -> date:
    """Today's date as seen by the restaurant, not by the server."""
    return datetime.now(zone(timezone)).date()
