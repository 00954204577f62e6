# apps/appointments/services.py
import logging
from decimal import Decimal, InvalidOperation
from types import SimpleNamespace

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from core.constants import AppointmentStatus, PaymentMethod, Weekday
from core.exceptions import InvalidTransitionError
from core.utils.time_strings import (
    minutes_to_time,
    parse_date,
    parse_time,
    time_to_minutes,
    times_overlap,
)
from core.utils.timezones import current_local_date, resolve_clinic_timezone
from services import state_machine
from services.occupancy import OccupancyCalculator
from services.repositories import DjangoSchedulingRepository
from services.schedule_resolver import ScheduleResolver

from .models import Appointment

logger = logging.getLogger(__name__)

SCHEDULING_FIELDS = ('date', 'start_time', 'end_time', 'doctor')
EDITABLE_FIELDS = SCHEDULING_FIELDS + ('room', 'appointment_type', 'notes', 'custom_price')

INCOMPLETE_PATIENT_MESSAGE = (
    "El paciente no tiene los datos obligatorios completos. Por favor, complete "
    "la información del paciente antes de iniciar la consulta."
)


def build_calculator(repository=None):
    repository = repository or DjangoSchedulingRepository()
    return OccupancyCalculator(repository, ScheduleResolver(repository))


def clean_payment_amount(value):
    """A finite, non-negative amount as Decimal; None when not given"""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError("Invalid payment amount")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid payment amount")
    if not amount.is_finite() or amount < 0:
        raise ValidationError("Invalid payment amount")
    return amount


class AppointmentService:
    """Booking and status changes; every write re-checks inside the row lock"""

    @staticmethod
    def _lock_doctor(doctor):
        from apps.doctors.models import Doctor
        # Serializes concurrent bookings for the same doctor
        return Doctor.objects.select_for_update().get(pk=doctor.pk)

    @staticmethod
    def _default_end_time(clinic, start_time, appointment_type):
        minutes = (
            appointment_type.duration_minutes
            if appointment_type is not None
            else clinic.default_slot_minutes
        )
        end = time_to_minutes(start_time) + minutes
        if end >= 24 * 60:
            raise ValidationError("Appointment must end before midnight")
        return minutes_to_time(end)

    @staticmethod
    def create_appointment(*, clinic, doctor, patient, date, start_time, end_time=None,
                           room=None, appointment_type=None, custom_price=None,
                           notes='', user=None, calculator=None):
        """
        Book a new appointment in PENDING. Raises AvailabilityConflict when the
        doctor does not work then or the slot is taken.
        """
        if doctor.clinic_id != clinic.id:
            raise ValidationError("Doctor does not belong to this clinic")
        if patient.clinic_id != clinic.id:
            raise ValidationError("Patient does not belong to this clinic")

        day = parse_date(date)
        start_time = parse_time(start_time)
        if end_time is None:
            end_time = AppointmentService._default_end_time(clinic, start_time, appointment_type)
        end_time = parse_time(end_time)
        if time_to_minutes(end_time) <= time_to_minutes(start_time):
            raise ValidationError("End time must be after start time")

        if room is None:
            room = doctor.default_room

        calculator = calculator or build_calculator()

        with transaction.atomic():
            doctor = AppointmentService._lock_doctor(doctor)
            candidate = SimpleNamespace(
                doctor_id=doctor.id,
                patient_id=patient.id,
                room_id=room.id if room else None,
                date=day,
                start_time=start_time,
                end_time=end_time,
            )
            calculator.check_availability(doctor, candidate)

            appointment = Appointment(
                clinic=clinic,
                doctor=doctor,
                patient=patient,
                room=room,
                appointment_type=appointment_type,
                date=day,
                start_time=start_time,
                end_time=end_time,
                custom_price=clean_payment_amount(custom_price),
                notes=notes or '',
                status=state_machine.INITIAL_STATUS,
                created_by=user,
                updated_by=user,
            )
            appointment.save()

        logger.info(
            f"Appointment {appointment.appointment_id} booked for doctor {doctor.id} "
            f"on {day} {start_time}-{end_time}"
        )
        return appointment

    @staticmethod
    def update_appointment(appointment_id, *, user=None, calculator=None, **changes):
        """
        Edit an appointment. Moving date, time or doctor re-checks availability;
        an appointment waiting for a new slot goes back to PENDING once moved.
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        calculator = calculator or build_calculator()

        with transaction.atomic():
            appointment = Appointment.objects.select_for_update().get(pk=appointment_id)
            if appointment.is_terminal:
                raise ValidationError(
                    f"Appointment in status {appointment.status} cannot be edited"
                )

            if 'date' in changes:
                changes['date'] = parse_date(changes['date'])
            for field in ('start_time', 'end_time'):
                if field in changes:
                    changes[field] = parse_time(changes[field])
            if 'custom_price' in changes:
                changes['custom_price'] = clean_payment_amount(changes['custom_price'])

            rescheduled = any(
                field in changes and changes[field] != getattr(appointment, field)
                for field in SCHEDULING_FIELDS
            )

            for field, value in changes.items():
                setattr(appointment, field, value)
            appointment.full_clean(exclude=['clinic', 'patient', 'appointment_id'])

            if rescheduled:
                doctor = AppointmentService._lock_doctor(appointment.doctor)
                if doctor.clinic_id != appointment.clinic_id:
                    raise ValidationError("Doctor does not belong to this clinic")
                calculator.check_availability(doctor, appointment, exclude_id=appointment.pk)

                if appointment.status == AppointmentStatus.REQUIRES_RESCHEDULE:
                    appointment.transition_to(AppointmentStatus.PENDING)

            appointment.updated_by = user
            appointment.save()

        logger.info(f"Appointment {appointment.appointment_id} updated")
        return appointment

    @staticmethod
    def change_status(appointment_id, status, *, user=None, cancel_reason=None, notes=None,
                      payment_method=None, payment_confirmed=None, payment_amount=None):
        """
        Apply a status change through the state machine.

        Asking for PAID with an unconfirmed bank transfer lands in
        TRANSFER_PENDING instead. A payment amount, when given, replaces the
        appointment's price.
        """
        requested = state_machine.coerce(status)
        if requested is None:
            raise ValidationError(f"Unknown appointment status: {status}")

        if payment_method and payment_method not in PaymentMethod.values:
            raise ValidationError(f"Unknown payment method: {payment_method}")

        target = requested
        if (
            requested == AppointmentStatus.PAID
            and payment_method == PaymentMethod.TRANSFER
            and payment_confirmed is not True
        ):
            target = AppointmentStatus.TRANSFER_PENDING

        amount = clean_payment_amount(payment_amount)

        with transaction.atomic():
            appointment = (
                Appointment.objects.select_for_update()
                .select_related('patient')
                .get(pk=appointment_id)
            )
            previous = appointment.status

            if not state_machine.is_valid_transition(previous, target):
                logger.warning(
                    f"Rejected status change of {appointment.appointment_id}: {previous} -> {target}"
                )
                raise InvalidTransitionError(previous, target)

            if (
                requested == AppointmentStatus.IN_CONSULTATION
                and previous == AppointmentStatus.CONFIRMED
                and not appointment.patient.has_complete_data
            ):
                raise ValidationError(INCOMPLETE_PATIENT_MESSAGE)

            if requested == AppointmentStatus.CANCELLED:
                if not cancel_reason:
                    raise ValidationError("Cancel reason is required")
                appointment.cancel_reason = cancel_reason
                appointment.cancelled_at = timezone.now()
                appointment.cancelled_by = user

            appointment.transition_to(target)

            if notes:
                appointment.notes = notes
            if payment_method:
                appointment.payment_method = payment_method
            if isinstance(payment_confirmed, bool):
                appointment.payment_confirmed = payment_confirmed
            if amount is not None:
                appointment.custom_price = amount

            appointment.updated_by = user
            appointment.save()

        logger.info(
            f"Appointment {appointment.appointment_id} status changed: {previous} -> {target}"
            + (f" (requested {requested})" if requested != target else "")
        )
        return appointment

    @staticmethod
    def delete_appointment(appointment_id, user=None):
        with transaction.atomic():
            appointment = Appointment.objects.select_for_update().get(pk=appointment_id)
            appointment._request_user = user
            appointment.delete()
        logger.info(f"Appointment {appointment.appointment_id} deleted")
        return appointment

    # ===========================================
    # RESCHEDULE FLAGGING
    # ===========================================
    @staticmethod
    def flag_for_reschedule(appointments, reason):
        """
        Move each PENDING / CONFIRMED appointment to REQUIRES_RESCHEDULE.
        Returns the ids that were flagged.
        """
        flagged = []
        with transaction.atomic():
            for candidate in appointments:
                appointment = Appointment.objects.select_for_update().get(pk=candidate.pk)
                if appointment.status not in state_machine.ACTIVE_BOOKING_STATUSES:
                    continue
                appointment.transition_to(AppointmentStatus.REQUIRES_RESCHEDULE)
                appointment.save(update_fields=['status', 'updated_at'])
                flagged.append(appointment.pk)

        if flagged:
            logger.info(f"Flagged {len(flagged)} appointment(s) for reschedule: {reason}")
        return flagged

    @staticmethod
    def flag_exception_conflicts(exception, calculator=None):
        """
        Appointments the doctor exception collides with need a new slot.

        Only overlapping appointments that no longer fit the resolved
        availability are flagged, so under the "override" partial exception
        policy a booking inside the exception window is kept.
        """
        calculator = calculator or build_calculator()
        qs = Appointment.objects.live().filter(
            doctor_id=exception.doctor_id,
            date=exception.date,
            status__in=state_machine.ACTIVE_BOOKING_STATUSES,
        )
        overlapping = [
            a for a in qs
            if exception.is_full_day
            or times_overlap(exception.start_time, exception.end_time, a.start_time, a.end_time)
        ]
        affected = [
            a for a in overlapping
            if not calculator.is_doctor_available(exception.doctor, a.date, a.start_time, a.end_time)
        ]
        return AppointmentService.flag_for_reschedule(
            affected, f"exception on {exception.date} for doctor {exception.doctor_id}"
        )

    @staticmethod
    def flag_unfit_appointments(doctor, weekdays, calculator=None, now=None):
        """
        Future appointments on ``weekdays`` that no longer fit the doctor's
        resolved availability need a new slot.
        """
        calculator = calculator or build_calculator()
        today = current_local_date(resolve_clinic_timezone(doctor.clinic), now=now)
        weekdays = set(weekdays)

        qs = Appointment.objects.live().filter(
            doctor_id=doctor.id,
            date__gte=today,
            status__in=state_machine.ACTIVE_BOOKING_STATUSES,
        )
        affected = [
            a for a in qs
            if Weekday.from_date(a.date) in weekdays
            and not calculator.is_doctor_available(doctor, a.date, a.start_time, a.end_time)
        ]
        return AppointmentService.flag_for_reschedule(
            affected, f"schedule change for doctor {doctor.id}"
        )
