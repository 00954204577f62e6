# core/utils/timezones.py
"""
Conversion between clinic-local wall-clock time and UTC instants.

Appointments and schedules are stored as clinic-local ``YYYY-MM-DD`` /
``HH:MM`` values while every timestamp persisted by the ORM is UTC. All
"what day is it" / "what weekday is this" questions must be answered in the
clinic's IANA timezone, never in the server process' local time.
"""
from datetime import datetime, time, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings
from django.utils import timezone

from core.exceptions import ConfigurationError
from core.utils.time_strings import parse_date, parse_time


def get_zone(tz_name):
    """Resolve an IANA identifier; unknown identifiers are a configuration error."""
    if not tz_name or not isinstance(tz_name, str):
        raise ConfigurationError(f"Missing timezone identifier: {tz_name!r}")
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone identifier: {tz_name!r}") from e


def resolve_clinic_timezone(clinic):
    """
    Timezone name for a clinic.

    A clinic without a timezone falls back to ``settings.CLINIC_FALLBACK_TIMEZONE``
    only when that setting is configured; otherwise it is a ConfigurationError.
    """
    tz_name = getattr(clinic, 'timezone', None)
    if not tz_name:
        tz_name = getattr(settings, 'CLINIC_FALLBACK_TIMEZONE', None)
        if not tz_name:
            raise ConfigurationError(
                f"Clinic {getattr(clinic, 'id', clinic)} has no timezone configured"
            )
    get_zone(tz_name)
    return tz_name


def _to_utc(naive, tz_name):
    # fold=0: ambiguous wall-clock times resolve to their first occurrence and
    # non-existent ones (DST gap) move forward by the length of the gap.
    aware = naive.replace(tzinfo=get_zone(tz_name), fold=0)
    return aware.astimezone(dt_timezone.utc)


def local_midnight_to_utc(value, tz_name):
    """00:00 local wall-clock of ``value`` in ``tz_name`` as a UTC instant."""
    day = parse_date(value)
    return _to_utc(datetime.combine(day, time(0, 0)), tz_name)


def local_datetime_to_utc(value, time_value, tz_name):
    """Local date + ``HH:MM`` in ``tz_name`` as a UTC instant."""
    day = parse_date(value)
    hours, minutes = parse_time(time_value).split(':')
    return _to_utc(datetime.combine(day, time(int(hours), int(minutes))), tz_name)


def utc_to_local(instant, tz_name):
    if timezone.is_naive(instant):
        instant = instant.replace(tzinfo=dt_timezone.utc)
    return instant.astimezone(get_zone(tz_name))


def utc_to_local_date_string(instant, tz_name):
    return utc_to_local(instant, tz_name).strftime('%Y-%m-%d')


def utc_to_local_time_string(instant, tz_name):
    return utc_to_local(instant, tz_name).strftime('%H:%M')


def current_local_date(tz_name, now=None):
    """Today's date in ``tz_name`` as ``YYYY-MM-DD``."""
    return utc_to_local_date_string(now or timezone.now(), tz_name)


def current_local_time(tz_name, now=None):
    """Current wall-clock time in ``tz_name`` as ``HH:MM``."""
    return utc_to_local_time_string(now or timezone.now(), tz_name)
