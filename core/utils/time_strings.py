# core/utils/time_strings.py
"""
Helpers for the clinic-local ``HH:MM`` / ``YYYY-MM-DD`` strings stored on
schedules, exceptions and appointments.
"""
import re
from datetime import date, datetime, time

from core.exceptions import InvalidTimeFormat

TIME_RE = re.compile(r'^([0-1][0-9]|2[0-3]):[0-5][0-9]$')
DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def parse_time(value):
    """Return an ``HH:MM`` string for a ``time`` or a valid ``HH:MM`` string"""
    if isinstance(value, time):
        return value.strftime('%H:%M')
    if isinstance(value, str) and TIME_RE.match(value):
        return value
    raise InvalidTimeFormat(f"Invalid time format (HH:MM): {value!r}")


def parse_date(value):
    """Return a ``date`` for a ``date`` or a ``YYYY-MM-DD`` string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and DATE_RE.match(value):
        try:
            return datetime.strptime(value, '%Y-%m-%d').date()
        except ValueError:
            pass
    raise InvalidTimeFormat(f"Invalid date format (YYYY-MM-DD): {value!r}")


def time_to_minutes(value):
    hours, minutes = parse_time(value).split(':')
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes):
    if minutes < 0 or minutes >= 24 * 60:
        raise InvalidTimeFormat(f"Minutes out of range for a day: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def times_overlap(start1, end1, start2, end2):
    """Half-open ranges [start1, end1) and [start2, end2) share at least a minute"""
    return (
        time_to_minutes(start1) < time_to_minutes(end2)
        and time_to_minutes(end1) > time_to_minutes(start2)
    )
