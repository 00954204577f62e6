# services/repositories.py
"""
Persistence port for the scheduling core.

The resolver and calculator only ever read through one of these; callers
choose the implementation (ORM in the API, in-memory in tests and scripts).
"""
from typing import Protocol

from core.utils.time_strings import parse_date


class SchedulingRepository(Protocol):
    def get_clinic(self, clinic_id): ...

    def get_doctor_schedules(self, doctor_id): ...

    def get_clinic_schedules(self, clinic_id): ...

    def get_exceptions(self, doctor_id, date): ...

    def get_appointments(self, *, clinic_id=None, doctor_id=None, date=None,
                         date_from=None, date_to=None, appointment_type_id=None): ...


class DjangoSchedulingRepository:
    """ORM-backed repository; returns model instances"""

    def get_clinic(self, clinic_id):
        from apps.clinics.models import Clinic
        return Clinic.objects.get(id=clinic_id)

    def get_doctor_schedules(self, doctor_id):
        from apps.doctors.models import DoctorSchedule
        return list(
            DoctorSchedule.objects.filter(
                doctor_id=doctor_id,
                is_active=True,
                deleted_at__isnull=True,
            ).order_by('weekday', 'start_time')
        )

    def get_clinic_schedules(self, clinic_id):
        from apps.clinics.models import ClinicSchedule
        return list(
            ClinicSchedule.objects.filter(
                clinic_id=clinic_id,
                is_active=True,
                deleted_at__isnull=True,
            ).order_by('weekday', 'start_time')
        )

    def get_exceptions(self, doctor_id, date):
        from apps.doctors.models import DoctorException
        return list(
            DoctorException.objects.filter(
                doctor_id=doctor_id,
                date=parse_date(date),
                is_active=True,
                deleted_at__isnull=True,
            )
        )

    def get_appointments(self, *, clinic_id=None, doctor_id=None, date=None,
                         date_from=None, date_to=None, appointment_type_id=None):
        from apps.appointments.models import Appointment
        qs = Appointment.objects.filter(
            is_active=True,
            deleted_at__isnull=True,
        ).select_related('appointment_type')

        if clinic_id is not None:
            qs = qs.filter(clinic_id=clinic_id)
        if doctor_id is not None:
            qs = qs.filter(doctor_id=doctor_id)
        if date is not None:
            qs = qs.filter(date=parse_date(date))
        if date_from is not None:
            qs = qs.filter(date__gte=parse_date(date_from))
        if date_to is not None:
            qs = qs.filter(date__lte=parse_date(date_to))
        if appointment_type_id is not None:
            qs = qs.filter(appointment_type_id=appointment_type_id)

        return list(qs.order_by('date', 'start_time'))


class InMemorySchedulingRepository:
    """Repository over plain objects exposing the same attributes as the models"""

    def __init__(self, clinics=(), doctor_schedules=(), clinic_schedules=(),
                 exceptions=(), appointments=()):
        self.clinics = {str(c.id): c for c in clinics}
        self.doctor_schedules = list(doctor_schedules)
        self.clinic_schedules = list(clinic_schedules)
        self.exceptions = list(exceptions)
        self.appointments = list(appointments)

    def get_clinic(self, clinic_id):
        return self.clinics[str(clinic_id)]

    def get_doctor_schedules(self, doctor_id):
        return [s for s in self.doctor_schedules if str(s.doctor_id) == str(doctor_id)]

    def get_clinic_schedules(self, clinic_id):
        return [s for s in self.clinic_schedules if str(s.clinic_id) == str(clinic_id)]

    def get_exceptions(self, doctor_id, date):
        day = parse_date(date)
        return [
            e for e in self.exceptions
            if str(e.doctor_id) == str(doctor_id) and parse_date(e.date) == day
        ]

    def get_appointments(self, *, clinic_id=None, doctor_id=None, date=None,
                         date_from=None, date_to=None, appointment_type_id=None):
        result = []
        for a in self.appointments:
            day = parse_date(a.date)
            if clinic_id is not None and str(a.clinic_id) != str(clinic_id):
                continue
            if doctor_id is not None and str(a.doctor_id) != str(doctor_id):
                continue
            if date is not None and day != parse_date(date):
                continue
            if date_from is not None and day < parse_date(date_from):
                continue
            if date_to is not None and day > parse_date(date_to):
                continue
            if (appointment_type_id is not None
                    and str(getattr(a, 'appointment_type_id', None)) != str(appointment_type_id)):
                continue
            result.append(a)
        return result
