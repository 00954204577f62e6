# apps/doctors/services.py
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from core.exceptions import ClinicError
from core.utils.time_strings import times_overlap

from .models import DoctorException, DoctorSchedule

logger = logging.getLogger(__name__)


def check_schedule_overlap(existing, weekday, start_time, end_time, exclude_id=None):
    """Raise if [start_time, end_time) overlaps a live block on the same weekday"""
    for row in existing:
        if exclude_id is not None and row.pk == exclude_id:
            continue
        if int(row.weekday) != int(weekday):
            continue
        if times_overlap(start_time, end_time, row.start_time, row.end_time):
            raise ValidationError(
                f"Schedule conflicts with existing schedule: {row.start_time} - {row.end_time}"
            )


class DoctorScheduleService:
    """Weekly blocks and date exceptions of a doctor"""

    @staticmethod
    def _flag_unfit(doctor, weekdays):
        from apps.appointments.services import AppointmentService

        # Runs after the schedule write has been committed
        try:
            return AppointmentService.flag_unfit_appointments(doctor, weekdays)
        except (DatabaseError, ValidationError, ClinicError) as e:
            logger.error(f"Error marking affected appointments for doctor {doctor.id}: {e}")
            return []

    @staticmethod
    def create_schedule(doctor, weekday, start_time, end_time, user=None):
        schedule = DoctorSchedule(
            doctor=doctor,
            weekday=weekday,
            start_time=start_time,
            end_time=end_time,
            created_by=user,
            updated_by=user,
        )
        schedule.full_clean(exclude=['doctor'])

        with transaction.atomic():
            existing = list(DoctorSchedule.objects.select_for_update().live().filter(doctor=doctor))
            check_schedule_overlap(existing, schedule.weekday, schedule.start_time, schedule.end_time)
            schedule.save()

        logger.info(f"Schedule created for doctor {doctor.id}: {schedule}")
        if not existing:
            # First own block: the clinic schedule stops applying on every weekday
            DoctorScheduleService._flag_unfit(doctor, set(range(7)))
        return schedule

    @staticmethod
    def update_schedule(schedule_id, user=None, **changes):
        with transaction.atomic():
            schedule = DoctorSchedule.objects.select_for_update().get(pk=schedule_id)
            old_weekday = schedule.weekday

            for field in ('weekday', 'start_time', 'end_time'):
                if field in changes:
                    setattr(schedule, field, changes[field])
            schedule.full_clean(exclude=['doctor'])

            existing = DoctorSchedule.objects.live().filter(doctor_id=schedule.doctor_id)
            check_schedule_overlap(
                existing, schedule.weekday, schedule.start_time, schedule.end_time,
                exclude_id=schedule.pk,
            )
            schedule.updated_by = user
            schedule.save()

        logger.info(f"Schedule {schedule.pk} updated for doctor {schedule.doctor_id}")
        DoctorScheduleService._flag_unfit(schedule.doctor, {old_weekday, schedule.weekday})
        return schedule

    @staticmethod
    def delete_schedule(schedule_id, user=None):
        with transaction.atomic():
            schedule = DoctorSchedule.objects.select_for_update().get(pk=schedule_id)
            schedule._request_user = user
            schedule.delete()

        logger.info(f"Schedule {schedule.pk} deleted for doctor {schedule.doctor_id}")
        DoctorScheduleService._flag_unfit(schedule.doctor, {schedule.weekday})
        return schedule

    @staticmethod
    def create_exception(doctor, date, start_time=None, end_time=None, reason='', user=None):
        """
        Record a date exception and push overlapping PENDING / CONFIRMED
        appointments to REQUIRES_RESCHEDULE.
        """
        exception = DoctorException(
            doctor=doctor,
            date=date,
            start_time=start_time or None,
            end_time=end_time or None,
            reason=reason or '',
            created_by=user,
            updated_by=user,
        )
        exception.full_clean(exclude=['doctor'])
        exception.save()
        logger.info(f"Exception created for doctor {doctor.id}: {exception}")

        DoctorScheduleService._flag_exception(exception)
        return exception

    @staticmethod
    def update_exception(exception_id, user=None, **changes):
        """
        Change the date, range or reason of an exception and re-flag the
        appointments that collide with its new window.
        """
        with transaction.atomic():
            exception = DoctorException.objects.select_for_update().get(pk=exception_id)

            for field in ('date', 'start_time', 'end_time', 'reason'):
                if field in changes:
                    setattr(exception, field, changes[field])
            exception.start_time = exception.start_time or None
            exception.end_time = exception.end_time or None
            exception.reason = exception.reason or ''
            exception.full_clean(exclude=['doctor'])

            exception.updated_by = user
            exception.save()

        logger.info(f"Exception {exception.pk} updated for doctor {exception.doctor_id}: {exception}")
        DoctorScheduleService._flag_exception(exception)
        return exception

    @staticmethod
    def _flag_exception(exception):
        from apps.appointments.services import AppointmentService

        try:
            return AppointmentService.flag_exception_conflicts(exception)
        except (DatabaseError, ValidationError, ClinicError) as e:
            logger.error(f"Error marking affected appointments: {e}")
            return []
