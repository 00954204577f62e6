# tests/test_schedule_resolver.py
from datetime import timedelta

import pytest

from core.constants import PartialExceptionPolicy, Weekday
from core.exceptions import ConfigurationError
from services.repositories import InMemorySchedulingRepository
from services.schedule_resolver import (
    Interval,
    ScheduleResolver,
    effective_weekly_schedule,
    get_partial_exception_policy,
    resolve_availability,
    schedule_source,
    subtract_interval,
)
from tests import factories as f

MONDAY = f.FUTURE_MONDAY
TUESDAY = MONDAY + timedelta(days=1)

CLINIC_ROWS = [
    f.schedule(Weekday.MONDAY, '09:00', '13:00', clinic_id=1),
    f.schedule(Weekday.MONDAY, '15:00', '19:00', clinic_id=1),
    f.schedule(Weekday.TUESDAY, '08:00', '12:00', clinic_id=1),
]


def resolve(doctor_rows=(), clinic_rows=CLINIC_ROWS, exceptions=(), day=MONDAY, policy=None):
    return resolve_availability(
        f.doctor(),
        day,
        doctor_schedules=list(doctor_rows),
        clinic_schedules=list(clinic_rows),
        exceptions=list(exceptions),
        policy=policy,
    )


class TestFallback:
    def test_doctor_without_rows_inherits_clinic_schedule(self):
        assert resolve() == [Interval('09:00', '13:00'), Interval('15:00', '19:00')]

    def test_own_rows_replace_clinic_schedule_on_every_weekday(self):
        own = [f.schedule(Weekday.MONDAY, '10:00', '12:00', doctor_id=1)]
        assert resolve(own) == [Interval('10:00', '12:00')]
        # No own row on Tuesday: the doctor does not work, clinic rows are ignored
        assert resolve(own, day=TUESDAY) == []

    def test_inactive_or_deleted_rows_do_not_count_as_own_schedule(self):
        own = [
            f.schedule(Weekday.MONDAY, '10:00', '12:00', doctor_id=1, is_active=False),
            f.schedule(Weekday.MONDAY, '14:00', '16:00', doctor_id=1, deleted_at='2029-12-01'),
        ]
        assert schedule_source(own) == 'clinic'
        assert resolve(own) == [Interval('09:00', '13:00'), Interval('15:00', '19:00')]

    def test_intervals_are_sorted_and_overlaps_kept(self):
        own = [
            f.schedule(Weekday.MONDAY, '11:00', '14:00', doctor_id=1),
            f.schedule(Weekday.MONDAY, '09:00', '12:00', doctor_id=1),
        ]
        assert resolve(own) == [Interval('09:00', '12:00'), Interval('11:00', '14:00')]


class TestExceptions:
    def test_full_day_exception_empties_the_day(self):
        assert resolve(exceptions=[f.exception(MONDAY)]) == []

    def test_full_day_exception_on_another_date_is_ignored(self):
        assert len(resolve(exceptions=[f.exception(TUESDAY)])) == 2

    def test_exception_of_another_doctor_is_ignored(self):
        assert len(resolve(exceptions=[f.exception(MONDAY, doctor_id=99)])) == 2

    def test_partial_exception_override_keeps_its_window(self):
        intervals = resolve(
            exceptions=[f.exception(MONDAY, '10:00', '11:00')],
            policy=PartialExceptionPolicy.OVERRIDE,
        )
        assert intervals == [
            Interval('09:00', '10:00'),
            Interval('10:00', '11:00'),
            Interval('11:00', '13:00'),
            Interval('15:00', '19:00'),
        ]

    def test_partial_exception_override_can_add_hours(self):
        intervals = resolve(
            exceptions=[f.exception(MONDAY, '19:00', '21:00')],
            policy=PartialExceptionPolicy.OVERRIDE,
        )
        assert Interval('19:00', '21:00') in intervals

    def test_partial_exception_block_removes_its_window(self):
        intervals = resolve(
            exceptions=[f.exception(MONDAY, '10:00', '11:00')],
            policy=PartialExceptionPolicy.BLOCK,
        )
        assert intervals == [
            Interval('09:00', '10:00'),
            Interval('11:00', '13:00'),
            Interval('15:00', '19:00'),
        ]

    def test_policy_defaults_to_setting(self, settings):
        settings.PARTIAL_EXCEPTION_POLICY = PartialExceptionPolicy.BLOCK
        intervals = resolve(exceptions=[f.exception(MONDAY, '09:00', '13:00')])
        assert intervals == [Interval('15:00', '19:00')]

    def test_unknown_policy_setting(self, settings):
        settings.PARTIAL_EXCEPTION_POLICY = 'merge'
        with pytest.raises(ConfigurationError):
            get_partial_exception_policy()


def test_subtract_interval_splits():
    assert subtract_interval([Interval('09:00', '13:00')], Interval('10:00', '11:00')) == [
        Interval('09:00', '10:00'),
        Interval('11:00', '13:00'),
    ]


def test_weekly_schedule_marks_inherited_rows():
    rows = effective_weekly_schedule([], CLINIC_ROWS)
    assert [r['weekday_name'] for r in rows] == ['Monday', 'Monday', 'Tuesday']
    assert all(r['inherited'] for r in rows)


def test_resolver_reads_through_repository():
    repository = InMemorySchedulingRepository(
        clinics=[f.clinic()],
        clinic_schedules=CLINIC_ROWS,
        exceptions=[f.exception(MONDAY)],
    )
    resolver = ScheduleResolver(repository)
    assert resolver.resolve_availability(f.doctor(), MONDAY) == []
    assert resolver.resolve_availability(f.doctor(), TUESDAY) == [Interval('08:00', '12:00')]
