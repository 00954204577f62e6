# services/schedule_resolver.py
"""
Effective working intervals of a doctor on a clinic-local calendar date.

1. A full-day exception (no start/end time) empties the day.
2. A doctor with at least one active schedule row of their own uses only those
   rows; the clinic's weekly schedule is then ignored on every weekday.
3. Otherwise the clinic's rows for that weekday are the template.
4. Partial exceptions are applied on top (see PARTIAL_EXCEPTION_POLICY).

Overlapping rows are returned as-is: callers summing capacity over them
double-count the overlap.
"""
import logging
from typing import NamedTuple

from django.conf import settings

from core.constants import PartialExceptionPolicy, Weekday
from core.exceptions import ConfigurationError
from core.utils.time_strings import (
    minutes_to_time,
    parse_date,
    parse_time,
    time_to_minutes,
)

logger = logging.getLogger(__name__)

SOURCE_DOCTOR = 'doctor'
SOURCE_CLINIC = 'clinic'


class Interval(NamedTuple):
    """Half-open clinic-local range [start_time, end_time) as HH:MM strings"""
    start_time: str
    end_time: str

    @property
    def start_minutes(self):
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self):
        return time_to_minutes(self.end_time)

    @property
    def duration_minutes(self):
        return max(0, self.end_minutes - self.start_minutes)

    @classmethod
    def from_row(cls, row):
        return cls(parse_time(row.start_time), parse_time(row.end_time))


def is_live(row):
    """Row is active and not soft-deleted"""
    return getattr(row, 'is_active', True) and getattr(row, 'deleted_at', None) is None


def is_full_day(exception):
    return not exception.start_time and not exception.end_time


def is_partial(exception):
    return bool(exception.start_time) and bool(exception.end_time)


def schedule_source(doctor_schedules):
    """'doctor' when the doctor has any live row of their own, else 'clinic'"""
    if any(is_live(row) for row in doctor_schedules):
        return SOURCE_DOCTOR
    return SOURCE_CLINIC


def weekday_intervals(rows, weekday):
    return [
        Interval.from_row(row)
        for row in sorted(rows, key=lambda r: parse_time(r.start_time))
        if is_live(row) and int(row.weekday) == weekday
    ]


def get_partial_exception_policy():
    policy = getattr(
        settings, 'PARTIAL_EXCEPTION_POLICY', PartialExceptionPolicy.OVERRIDE
    )
    if policy not in (PartialExceptionPolicy.OVERRIDE, PartialExceptionPolicy.BLOCK):
        raise ConfigurationError(f"Unknown PARTIAL_EXCEPTION_POLICY: {policy!r}")
    return policy


def subtract_interval(intervals, carve):
    """Remove ``carve`` from every interval, splitting where needed"""
    result = []
    for interval in intervals:
        if carve.end_minutes <= interval.start_minutes or carve.start_minutes >= interval.end_minutes:
            result.append(interval)
            continue
        if interval.start_minutes < carve.start_minutes:
            result.append(Interval(interval.start_time, carve.start_time))
        if carve.end_minutes < interval.end_minutes:
            result.append(Interval(carve.end_time, interval.end_time))
    return result


def apply_partial_exceptions(intervals, exceptions, policy):
    partials = [
        Interval.from_row(e)
        for e in exceptions
        if is_partial(e) and time_to_minutes(e.start_time) < time_to_minutes(e.end_time)
    ]
    for carve in partials:
        intervals = subtract_interval(intervals, carve)

    if policy == PartialExceptionPolicy.OVERRIDE:
        intervals = intervals + partials
        intervals.sort(key=lambda i: (i.start_minutes, i.end_minutes))

    return intervals


def resolve_availability(
    doctor,
    date,
    *,
    doctor_schedules,
    clinic_schedules,
    exceptions,
    policy=None,
):
    """
    Bookable intervals for ``doctor`` on the clinic-local ``date``.

    ``doctor_schedules`` must hold ALL the doctor's rows (every weekday): the
    fallback decision depends on whether any exist. ``exceptions`` may hold rows
    for other dates or doctors; they are filtered here.
    """
    day = parse_date(date)
    day_exceptions = [
        e for e in exceptions
        if is_live(e)
        and parse_date(e.date) == day
        and str(getattr(e, 'doctor_id', doctor.id)) == str(doctor.id)
    ]

    if any(is_full_day(e) for e in day_exceptions):
        return []

    weekday = Weekday.from_date(day)
    if schedule_source(doctor_schedules) == SOURCE_DOCTOR:
        intervals = weekday_intervals(doctor_schedules, weekday)
    else:
        intervals = weekday_intervals(clinic_schedules, weekday)

    if any(is_partial(e) for e in day_exceptions):
        intervals = apply_partial_exceptions(
            intervals,
            day_exceptions,
            policy or get_partial_exception_policy(),
        )

    return intervals


def effective_weekly_schedule(doctor_schedules, clinic_schedules):
    """
    Weekly rows shown for a doctor: their own rows, or the clinic's rows
    flagged as inherited when they have none.
    """
    source = schedule_source(doctor_schedules)
    rows = doctor_schedules if source == SOURCE_DOCTOR else clinic_schedules
    return [
        {
            'weekday': int(row.weekday),
            'weekday_name': Weekday.NAMES[int(row.weekday)],
            'start_time': parse_time(row.start_time),
            'end_time': parse_time(row.end_time),
            'inherited': source == SOURCE_CLINIC,
        }
        for row in sorted(rows, key=lambda r: (int(r.weekday), parse_time(r.start_time)))
        if is_live(row)
    ]


class ScheduleResolver:
    """Resolves availability through a persistence port"""

    def __init__(self, repository, policy=None):
        self.repository = repository
        self.policy = policy

    def resolve_availability(self, doctor, date):
        day = parse_date(date)
        doctor_schedules = self.repository.get_doctor_schedules(doctor.id)
        clinic_schedules = []
        if schedule_source(doctor_schedules) == SOURCE_CLINIC:
            clinic_schedules = self.repository.get_clinic_schedules(doctor.clinic_id)
        exceptions = self.repository.get_exceptions(doctor.id, day)

        intervals = resolve_availability(
            doctor,
            day,
            doctor_schedules=doctor_schedules,
            clinic_schedules=clinic_schedules,
            exceptions=exceptions,
            policy=self.policy,
        )
        logger.debug(
            f"Resolved {len(intervals)} interval(s) for doctor {doctor.id} on {day}"
        )
        return intervals

    def weekly_schedule(self, doctor):
        doctor_schedules = self.repository.get_doctor_schedules(doctor.id)
        clinic_schedules = self.repository.get_clinic_schedules(doctor.clinic_id)
        return effective_weekly_schedule(doctor_schedules, clinic_schedules)
