# tests/test_occupancy.py
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from core.constants import AppointmentStatus, Weekday
from core.exceptions import AvailabilityConflict
from services.occupancy import (
    OccupancyCalculator,
    effective_price,
    estimated_income,
    find_conflicts,
    generate_slots,
    occupancy_rate,
    occupied_slots,
    total_possible_slots,
)
from services.repositories import InMemorySchedulingRepository
from services.schedule_resolver import Interval, ScheduleResolver
from tests import factories as f

MONDAY = f.FUTURE_MONDAY


class TestCapacity:
    def test_total_slots_floor_per_interval(self):
        intervals = [Interval('09:00', '10:45'), Interval('15:00', '16:00')]
        assert total_possible_slots(intervals, 30) == 3 + 2

    @pytest.mark.parametrize('slot', [0, -15, None])
    def test_slot_duration_must_be_positive(self, slot):
        with pytest.raises(ValueError):
            total_possible_slots([Interval('09:00', '10:00')], slot)

    def test_rate_is_zero_without_capacity(self):
        assert occupancy_rate(5, 0) == 0.0
        assert occupancy_rate(1, 3) == 33.33

    def test_cancelled_and_deleted_do_not_occupy(self):
        appointments = [
            f.appointment(id=1),
            f.appointment(id=2, status=AppointmentStatus.CANCELLED),
            f.appointment(id=3, is_active=False),
            f.appointment(id=4, status=AppointmentStatus.NO_SHOW),
            f.appointment(id=5, doctor_id=2),
        ]
        assert occupied_slots(appointments, doctor_id=1, date=MONDAY) == 2


class TestPrice:
    def test_custom_price_wins(self):
        assert effective_price(f.appointment(custom_price='30000', type_price='25000')) == Decimal('30000')

    def test_zero_custom_price_falls_back_to_type(self):
        assert effective_price(f.appointment(custom_price='0', type_price='25000')) == Decimal('25000')

    def test_no_price_is_zero(self):
        assert effective_price(f.appointment()) == Decimal('0')

    def test_estimated_income_skips_cancelled(self):
        appointments = [
            f.appointment(id=1, custom_price='10000'),
            f.appointment(id=2, custom_price='5000', status=AppointmentStatus.CANCELLED),
            f.appointment(id=3, type_price='2500.50'),
        ]
        assert estimated_income(appointments) == Decimal('12500.50')


class TestSlots:
    def test_slots_skip_booked_ranges(self):
        slots = generate_slots([Interval('09:00', '11:00')], 30, booked=[('09:30', '10:00')])
        assert [s.start_time for s in slots] == ['09:00', '10:00', '10:30']

    def test_longer_duration_steps_by_slot_size(self):
        slots = generate_slots([Interval('09:00', '10:30')], 30, duration_minutes=60)
        assert slots == [Interval('09:00', '10:00'), Interval('09:30', '10:30')]

    def test_conflicts_report_doctor_room_and_patient(self):
        existing = [f.appointment(id=1, room_id=7, patient_id=3)]
        candidate = SimpleNamespace(
            doctor_id=1, patient_id=3, room_id=7, date=MONDAY, start_time='09:15', end_time='09:45'
        )
        assert find_conflicts(candidate, existing) == [
            "Doctor is not available at this time",
            "Room is not available at this time",
            "Patient has another appointment at this time",
        ]
        assert find_conflicts(candidate, existing, exclude_id=1) == []


@pytest.fixture
def repository():
    return InMemorySchedulingRepository(
        clinics=[f.clinic()],
        clinic_schedules=[f.schedule(Weekday.MONDAY, '09:00', '11:00', clinic_id=1)],
        appointments=[
            f.appointment(id=1, start_time='09:00', end_time='09:30'),
            f.appointment(id=2, start_time='10:00', end_time='10:30', status=AppointmentStatus.CANCELLED),
        ],
    )


@pytest.fixture
def calculator(repository):
    return OccupancyCalculator(repository, ScheduleResolver(repository))


class TestCalculator:
    def test_compute_occupancy(self, calculator):
        result = calculator.compute_occupancy([f.doctor(), f.doctor(id=2)], MONDAY)
        assert result.total_slots == 8
        assert result.occupied_slots == 1
        assert result.rate == 12.5

    def test_no_schedule_means_zero_rate(self, calculator):
        result = calculator.compute_occupancy([f.doctor()], MONDAY + timedelta(days=1))
        assert result.total_slots == 0
        assert result.rate == 0.0

    def test_available_slots_exclude_booked(self, calculator):
        slots = calculator.available_slots(f.doctor(), MONDAY)
        assert [s.start_time for s in slots] == ['09:30', '10:00', '10:30']

    def test_started_slots_dropped_on_clinic_today(self, calculator):
        # 13:10 UTC is 10:10 in Santiago (UTC-3 in January)
        now = datetime(2030, 1, 7, 13, 10, tzinfo=dt_timezone.utc)
        slots = calculator.available_slots(f.doctor(), MONDAY, now=now)
        assert [s.start_time for s in slots] == ['10:30']

    def test_availability_range(self, calculator):
        days = calculator.availability_range(f.doctor(), MONDAY, MONDAY + timedelta(days=1))
        assert days == [
            {'date': '2030-01-07', 'available': True},
            {'date': '2030-01-08', 'available': False},
        ]

    def test_check_availability_outside_schedule(self, calculator):
        candidate = SimpleNamespace(
            doctor_id=1, patient_id=9, room_id=None, date=MONDAY, start_time='10:45', end_time='11:15'
        )
        with pytest.raises(AvailabilityConflict) as exc:
            calculator.check_availability(f.doctor(), candidate)
        assert exc.value.existing_count == 1
        assert exc.value.intervals == [Interval('09:00', '11:00')]

    def test_check_availability_taken_slot(self, calculator):
        candidate = SimpleNamespace(
            doctor_id=1, patient_id=9, room_id=None, date=MONDAY, start_time='09:00', end_time='09:30'
        )
        with pytest.raises(AvailabilityConflict) as exc:
            calculator.check_availability(f.doctor(), candidate)
        assert "Doctor is not available at this time" in exc.value.conflicts

    def test_check_availability_ok_over_cancelled(self, calculator):
        candidate = SimpleNamespace(
            doctor_id=1, patient_id=9, room_id=None, date=MONDAY, start_time='10:00', end_time='10:30'
        )
        calculator.check_availability(f.doctor(), candidate)


class TestMexicoCityClinic:
    """Doctor without own rows on a clinic open Mondays 09:00-13:00"""

    @pytest.fixture
    def repository(self):
        return InMemorySchedulingRepository(
            clinics=[f.clinic(timezone='America/Mexico_City', default_slot_minutes=30)],
            clinic_schedules=[f.schedule(Weekday.MONDAY, '09:00', '13:00', clinic_id=1)],
        )

    @pytest.fixture
    def calculator(self, repository):
        return OccupancyCalculator(repository, ScheduleResolver(repository))

    def test_monday_has_eight_slots(self, calculator):
        assert calculator.resolver.resolve_availability(f.doctor(), MONDAY) == [Interval('09:00', '13:00')]
        result = calculator.compute_occupancy([f.doctor()], MONDAY)
        assert result.total_slots == 8
        assert result.rate == 0.0
        assert len(calculator.available_slots(f.doctor(), MONDAY)) == 8

    def test_full_day_exception_empties_the_day(self, repository, calculator):
        repository.exceptions.append(f.exception(MONDAY))
        assert calculator.resolver.resolve_availability(f.doctor(), MONDAY) == []
        result = calculator.compute_occupancy([f.doctor()], MONDAY)
        assert result.total_slots == 0
        assert result.rate == 0.0

    def test_today_is_read_in_the_clinic_timezone(self, calculator):
        # 05:30 UTC on Monday is still Sunday evening in Mexico City (UTC-6)
        sunday_night = datetime(2030, 1, 7, 5, 30, tzinfo=dt_timezone.utc)
        assert len(calculator.available_slots(f.doctor(), MONDAY, now=sunday_night)) == 8

        # 16:10 UTC is 10:10 local
        morning = datetime(2030, 1, 7, 16, 10, tzinfo=dt_timezone.utc)
        slots = calculator.available_slots(f.doctor(), MONDAY, now=morning)
        assert [s.start_time for s in slots] == ['10:30', '11:00', '11:30', '12:00', '12:30']
