# services/occupancy.py
"""
Slot capacity, occupancy and booking checks built on resolved availability.

Capacity is an estimate: one appointment consumes one slot whatever its
duration, and overlapping schedule intervals are summed as returned by the
resolver.
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

from core.constants import AppointmentStatus
from core.exceptions import AvailabilityConflict
from core.utils.time_strings import (
    minutes_to_time,
    parse_date,
    time_to_minutes,
    times_overlap,
)
from core.utils.timezones import (
    current_local_date,
    current_local_time,
    resolve_clinic_timezone,
)
from services.schedule_resolver import Interval

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


# ===========================================
# PURE CALCULATIONS
# ===========================================
def total_possible_slots(intervals, slot_minutes):
    if not slot_minutes or slot_minutes <= 0:
        raise ValueError(f"Slot duration must be a positive number of minutes: {slot_minutes!r}")
    return sum(interval.duration_minutes // slot_minutes for interval in intervals)


def is_booked(appointment):
    """Active, not soft-deleted and not cancelled"""
    return (
        getattr(appointment, 'is_active', True)
        and getattr(appointment, 'deleted_at', None) is None
        and appointment.status != AppointmentStatus.CANCELLED
    )


def occupied_slots(appointments, doctor_id=None, date=None):
    day = parse_date(date) if date is not None else None
    return sum(
        1 for a in appointments
        if is_booked(a)
        and (doctor_id is None or str(a.doctor_id) == str(doctor_id))
        and (day is None or parse_date(a.date) == day)
    )


def occupancy_rate(occupied, total):
    if not total:
        return 0.0
    return round(occupied / total * 100, 2)


def to_decimal(value):
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def effective_price(appointment):
    """
    Price captured on the appointment, else its type's standard price.
    A zero custom price falls back to the type price.
    """
    custom = to_decimal(getattr(appointment, 'custom_price', None))
    if custom:
        return custom
    appointment_type = getattr(appointment, 'appointment_type', None)
    if appointment_type is not None:
        return to_decimal(getattr(appointment_type, 'price', None))
    return ZERO


def estimated_income(appointments):
    return sum((effective_price(a) for a in appointments if is_booked(a)), ZERO)


# ===========================================
# SLOT GENERATION
# ===========================================
def generate_slots(intervals, slot_minutes, duration_minutes=None, booked=()):
    """
    Free (start, end) slots stepping by ``slot_minutes`` through each interval.

    ``booked`` holds (start, end) pairs; a slot overlapping any of them is
    skipped.
    """
    if not slot_minutes or slot_minutes <= 0:
        raise ValueError(f"Slot duration must be a positive number of minutes: {slot_minutes!r}")
    duration = duration_minutes or slot_minutes
    taken = list(booked)

    slots = []
    for interval in intervals:
        current = interval.start_minutes
        while current + duration <= interval.end_minutes:
            slot = Interval(minutes_to_time(current), minutes_to_time(current + duration))
            if not any(times_overlap(slot.start_time, slot.end_time, s, e) for s, e in taken):
                slots.append(slot)
            current += slot_minutes
    return slots


def find_conflicts(candidate, appointments, exclude_id=None):
    """
    Overlap messages for a candidate booking (doctor, room and patient).
    ``candidate`` exposes doctor_id, patient_id, room_id, date, start_time, end_time.
    """
    day = parse_date(candidate.date)
    overlapping = [
        a for a in appointments
        if is_booked(a)
        and (exclude_id is None or str(a.id) != str(exclude_id))
        and parse_date(a.date) == day
        and times_overlap(candidate.start_time, candidate.end_time, a.start_time, a.end_time)
    ]

    conflicts = []
    if any(str(a.doctor_id) == str(candidate.doctor_id) for a in overlapping):
        conflicts.append("Doctor is not available at this time")
    room_id = getattr(candidate, 'room_id', None)
    if room_id and any(str(getattr(a, 'room_id', None)) == str(room_id) for a in overlapping):
        conflicts.append("Room is not available at this time")
    patient_id = getattr(candidate, 'patient_id', None)
    if patient_id and any(str(a.patient_id) == str(patient_id) for a in overlapping):
        conflicts.append("Patient has another appointment at this time")
    return conflicts


# ===========================================
# REPOSITORY-BACKED CALCULATOR
# ===========================================
@dataclass
class DoctorOccupancy:
    doctor_id: object
    intervals: list
    total_slots: int
    occupied_slots: int

    @property
    def rate(self):
        return occupancy_rate(self.occupied_slots, self.total_slots)


@dataclass
class Occupancy:
    total_slots: int = 0
    occupied_slots: int = 0
    doctors: list = field(default_factory=list)

    @property
    def rate(self):
        return occupancy_rate(self.occupied_slots, self.total_slots)

    def as_dict(self):
        return {
            'total_slots': self.total_slots,
            'occupied_slots': self.occupied_slots,
            'rate': self.rate,
        }


class OccupancyCalculator:
    """Occupancy, income and booking checks fed through a persistence port"""

    def __init__(self, repository, resolver):
        self.repository = repository
        self.resolver = resolver

    def _slot_minutes(self, clinic):
        return clinic.default_slot_minutes

    def compute_occupancy(self, doctors, date):
        day = parse_date(date)
        result = Occupancy()
        clinics = {}

        for doctor in doctors:
            if doctor.clinic_id not in clinics:
                clinics[doctor.clinic_id] = self.repository.get_clinic(doctor.clinic_id)
            clinic = clinics[doctor.clinic_id]

            intervals = self.resolver.resolve_availability(doctor, day)
            total = total_possible_slots(intervals, self._slot_minutes(clinic))
            occupied = occupied_slots(
                self.repository.get_appointments(doctor_id=doctor.id, date=day),
                doctor_id=doctor.id,
                date=day,
            )

            result.doctors.append(DoctorOccupancy(doctor.id, intervals, total, occupied))
            result.total_slots += total
            result.occupied_slots += occupied

        return result

    def estimated_income(self, clinic_id, date):
        return estimated_income(
            self.repository.get_appointments(clinic_id=clinic_id, date=parse_date(date))
        )

    def available_slots(self, doctor, date, duration_minutes=None, now=None):
        """
        Free slots for a doctor; on the clinic's current date slots that already
        started are dropped.
        """
        day = parse_date(date)
        clinic = self.repository.get_clinic(doctor.clinic_id)
        tz_name = resolve_clinic_timezone(clinic)

        intervals = self.resolver.resolve_availability(doctor, day)
        if not intervals:
            return []

        booked = [
            (a.start_time, a.end_time)
            for a in self.repository.get_appointments(doctor_id=doctor.id, date=day)
            if is_booked(a)
        ]
        slots = generate_slots(
            intervals,
            self._slot_minutes(clinic),
            duration_minutes,
            booked=booked,
        )

        if day.isoformat() == current_local_date(tz_name, now=now):
            current = time_to_minutes(current_local_time(tz_name, now=now))
            slots = [s for s in slots if s.start_minutes > current]

        return slots

    def availability_range(self, doctor, start_date, end_date, now=None):
        """Per-day flag telling whether the doctor has at least one free slot"""
        day = parse_date(start_date)
        last = parse_date(end_date)
        results = []
        while day <= last:
            results.append({
                'date': day.isoformat(),
                'available': bool(self.available_slots(doctor, day, now=now)),
            })
            day += timedelta(days=1)
        return results

    def is_doctor_available(self, doctor, date, start_time, end_time):
        """The whole window fits inside one resolved interval"""
        start = time_to_minutes(start_time)
        end = time_to_minutes(end_time)
        return any(
            i.start_minutes <= start and end <= i.end_minutes
            for i in self.resolver.resolve_availability(doctor, date)
        )

    def check_availability(self, doctor, candidate, exclude_id=None):
        """
        Raise AvailabilityConflict when ``candidate`` cannot be booked.
        Callers run this inside the transaction that writes the appointment.
        """
        day = parse_date(candidate.date)
        intervals = self.resolver.resolve_availability(doctor, day)
        existing = self.repository.get_appointments(date=day)
        existing_count = occupied_slots(existing, doctor_id=doctor.id, date=day)

        if not intervals:
            raise AvailabilityConflict(
                "Doctor is not available on this date",
                intervals=intervals,
                existing_count=existing_count,
            )

        start = time_to_minutes(candidate.start_time)
        end = time_to_minutes(candidate.end_time)
        if not any(i.start_minutes <= start and end <= i.end_minutes for i in intervals):
            raise AvailabilityConflict(
                "Requested time is outside the doctor's schedule",
                intervals=intervals,
                existing_count=existing_count,
            )

        conflicts = find_conflicts(candidate, existing, exclude_id=exclude_id)
        if conflicts:
            logger.warning(
                f"Booking conflicts for doctor {doctor.id} on {day}: {', '.join(conflicts)}"
            )
            raise AvailabilityConflict(
                f"Appointment conflicts detected: {', '.join(conflicts)}",
                intervals=intervals,
                existing_count=existing_count,
                conflicts=conflicts,
            )

        return intervals
