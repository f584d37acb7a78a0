"""
Temporal status of an event, derived from its dates and optional "HH:MM" times.

All instants are naive local times, matching how events are entered.
"""
from datetime import date, datetime, time
from typing import Optional

END_OF_DAY = time(23, 59, 59, 999000)
START_OF_DAY = time(0, 0)

RUNNING = "Running"
PAST = "Past"
UPCOMING = "Upcoming"


def parse_clock(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    hour, minute = value.split(":")[:2]
    return time(int(hour), int(minute))


def _attr(event, name):
    if isinstance(event, dict):
        return event.get(name)
    return getattr(event, name, None)


def _date_attr(event, name) -> Optional[date]:
    # Cached listings carry dates as ISO strings
    value = _attr(event, name)
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


def event_start_instant(event) -> datetime:
    start_date: date = _date_attr(event, "start_date")
    return datetime.combine(start_date, parse_clock(_attr(event, "start_time")) or START_OF_DAY)


def event_end_instant(event) -> datetime:
    """End date (or start date) at the end time, or at 23:59:59.999 when no end time is set."""
    end_date: date = _date_attr(event, "end_date") or _date_attr(event, "start_date")
    return datetime.combine(end_date, parse_clock(_attr(event, "end_time")) or END_OF_DAY)


def is_event_past(event, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    return now > event_end_instant(event)


def is_event_running(event, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    return event_start_instant(event) <= now <= event_end_instant(event)


def get_event_status(event, now: Optional[datetime] = None) -> str:
    # Running takes precedence over Past.
    now = now or datetime.now()
    if is_event_running(event, now):
        return RUNNING
    if is_event_past(event, now):
        return PAST
    return UPCOMING
