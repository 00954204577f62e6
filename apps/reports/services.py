# apps/reports/services.py
import logging
from datetime import timedelta

from django.core.exceptions import ValidationError

from apps.doctors.models import Doctor
from apps.patients.models import Patient
from core.constants import Weekday
from core.utils.time_strings import parse_date
from core.utils.timezones import current_local_date, resolve_clinic_timezone
from services import metrics
from services.occupancy import OccupancyCalculator
from services.repositories import DjangoSchedulingRepository
from services.schedule_resolver import ScheduleResolver

logger = logging.getLogger(__name__)


class ReportService:
    """Loads appointments through the repository and hands them to the metrics aggregator"""

    @staticmethod
    def _repository(repository=None):
        return repository or DjangoSchedulingRepository()

    @staticmethod
    def clinic_today(clinic, now=None):
        """Today's date in the clinic's own timezone"""
        return parse_date(current_local_date(resolve_clinic_timezone(clinic), now=now))

    @staticmethod
    def build_period(clinic, period_name, start=None, end=None, now=None):
        today = ReportService.clinic_today(clinic, now=now)
        try:
            return metrics.ReportPeriod.for_name(period_name, today, start, end)
        except ValueError as e:
            raise ValidationError(str(e))

    @staticmethod
    def summary(clinic, period, doctor_id=None, appointment_type_id=None, repository=None):
        """
        MetricsReport for ``period``; ``doctor_id`` narrows it to one doctor and
        ``appointment_type_id`` to one kind of appointment.
        """
        repository = ReportService._repository(repository)
        date_from, date_to = period.fetch_range()

        appointments = repository.get_appointments(
            clinic_id=clinic.id,
            doctor_id=doctor_id,
            date_from=date_from,
            date_to=date_to,
            appointment_type_id=appointment_type_id,
        )
        report = metrics.aggregate(appointments, period)

        scope = f"doctor {doctor_id}" if doctor_id else f"clinic {clinic.id}"
        if appointment_type_id:
            scope += f", appointment type {appointment_type_id}"
        logger.info(
            f"Report {period.name} {period.start}..{period.end} for {scope}: "
            f"{report.total_appointments} appointment(s)"
        )
        return report

    @staticmethod
    def dashboard(clinic, repository=None, now=None):
        """Clinic dashboard cards for the clinic's current local date"""
        repository = ReportService._repository(repository)
        today = ReportService.clinic_today(clinic, now=now)

        appointments = repository.get_appointments(
            clinic_id=clinic.id,
            date_from=today.replace(day=1),
        )
        doctors = list(Doctor.objects.live().filter(clinic=clinic))
        calculator = OccupancyCalculator(repository, ScheduleResolver(repository))

        return {
            'date': today.isoformat(),
            **metrics.dashboard_metrics(
                appointments,
                today,
                occupancy=calculator.compute_occupancy(doctors, today),
                total_patients=Patient.objects.live().filter(clinic=clinic).count(),
                total_doctors=len(doctors),
            ),
        }

    @staticmethod
    def doctor_dashboard(doctor, repository=None, now=None):
        """Dashboard cards for a single doctor; the week runs Sunday to Saturday"""
        repository = ReportService._repository(repository)
        today = ReportService.clinic_today(doctor.clinic, now=now)
        week_start = today - timedelta(days=Weekday.from_date(today))

        appointments = repository.get_appointments(
            doctor_id=doctor.id,
            date_from=week_start,
            date_to=week_start + timedelta(days=6),
        )
        return {
            'date': today.isoformat(),
            'doctor_id': doctor.id,
            **metrics.doctor_metrics(appointments, doctor.id, today),
        }

    @staticmethod
    def export_sheets(report):
        """Workbook sheets for an exported report"""
        summary = report.as_dict()['summary']
        return {
            'Summary': [
                {'metric': key, 'value': float(value) if hasattr(value, 'is_finite') else value}
                for key, value in summary.items()
            ],
            'Breakdown': report.rows(),
            'By weekday': [{'weekday': k, 'count': v} for k, v in report.by_weekday.items()],
            'By hour': [{'hour': k, 'count': v} for k, v in report.by_hour.items()],
        }
