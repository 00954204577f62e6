# apps/clinics/services/schedule_service.py
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from apps.clinics.models import ClinicSchedule
from apps.doctors.services import check_schedule_overlap
from core.exceptions import ClinicError

logger = logging.getLogger(__name__)


class ClinicScheduleService:
    """Weekly opening blocks of a clinic, inherited by doctors without their own"""

    @staticmethod
    def _inheriting_doctors(clinic_id):
        from apps.doctors.models import Doctor, DoctorSchedule

        owners = DoctorSchedule.objects.live().filter(
            doctor__clinic_id=clinic_id
        ).values("doctor_id")
        return Doctor.objects.live().filter(clinic_id=clinic_id).exclude(id__in=owners)

    @staticmethod
    def _flag_unfit(clinic_id, weekdays):
        from apps.appointments.services import AppointmentService

        flagged = []
        for doctor in ClinicScheduleService._inheriting_doctors(clinic_id):
            try:
                flagged += AppointmentService.flag_unfit_appointments(doctor, weekdays)
            except (DatabaseError, ValidationError, ClinicError) as e:
                logger.error(f"Error marking affected appointments for doctor {doctor.id}: {e}")
        return flagged

    @staticmethod
    def create_schedule(clinic, weekday, start_time, end_time, user=None):
        schedule = ClinicSchedule(
            clinic=clinic,
            weekday=weekday,
            start_time=start_time,
            end_time=end_time,
            created_by=user,
            updated_by=user,
        )
        schedule.full_clean(exclude=['clinic'])

        with transaction.atomic():
            existing = ClinicSchedule.objects.select_for_update().live().filter(clinic=clinic)
            check_schedule_overlap(existing, schedule.weekday, schedule.start_time, schedule.end_time)
            schedule.save()

        logger.info(f"Schedule created for clinic {clinic.id}: {schedule}")
        return schedule

    @staticmethod
    def update_schedule(schedule_id, user=None, **changes):
        with transaction.atomic():
            schedule = ClinicSchedule.objects.select_for_update().get(pk=schedule_id)
            old_weekday = schedule.weekday

            for field in ('weekday', 'start_time', 'end_time'):
                if field in changes:
                    setattr(schedule, field, changes[field])
            schedule.full_clean(exclude=['clinic'])

            existing = ClinicSchedule.objects.live().filter(clinic_id=schedule.clinic_id)
            check_schedule_overlap(
                existing, schedule.weekday, schedule.start_time, schedule.end_time,
                exclude_id=schedule.pk,
            )
            schedule.updated_by = user
            schedule.save()

        logger.info(f"Schedule {schedule.pk} updated for clinic {schedule.clinic_id}")
        ClinicScheduleService._flag_unfit(schedule.clinic_id, {old_weekday, schedule.weekday})
        return schedule

    @staticmethod
    def delete_schedule(schedule_id, user=None):
        with transaction.atomic():
            schedule = ClinicSchedule.objects.select_for_update().get(pk=schedule_id)
            schedule._request_user = user
            schedule.delete()

        logger.info(f"Schedule {schedule.pk} deleted for clinic {schedule.clinic_id}")
        ClinicScheduleService._flag_unfit(schedule.clinic_id, {schedule.weekday})
        return schedule
