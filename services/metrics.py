# services/metrics.py
"""
Dashboard and report figures computed from an already-loaded appointment
collection. Every aggregation is a single pass; grouping keys with no
appointments are absent from the result maps.
"""
import calendar
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from core.constants import AppointmentStatus, ReportPeriods, Weekday
from core.utils.time_strings import parse_date, parse_time
from services.occupancy import effective_price, estimated_income, is_booked
from services.state_machine import ACTIVE_BOOKING_STATUSES, REVENUE_STATUSES

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
UNTYPED_LABEL = 'Sin tipo'


def percentage(part, whole):
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def percent_change(current, previous):
    """Relative change; a previous value of zero is reported as 0%"""
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def _is_live(appointment):
    return (
        getattr(appointment, 'is_active', True)
        and getattr(appointment, 'deleted_at', None) is None
    )


# ===========================================
# PERIODS
# ===========================================
@dataclass(frozen=True)
class ReportPeriod:
    """Inclusive range of clinic-local calendar dates"""
    name: str
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Period end {self.end} is before start {self.start}")

    @classmethod
    def for_name(cls, name, today, start=None, end=None):
        today = parse_date(today)

        if name == ReportPeriods.CUSTOM:
            if start is None or end is None:
                raise ValueError("A custom period needs both start and end dates")
            return cls(name, parse_date(start), parse_date(end))

        if name == ReportPeriods.DAY:
            return cls(name, today, today)

        if name == ReportPeriods.WEEK:
            monday = today - timedelta(days=today.weekday())
            return cls(name, monday, monday + timedelta(days=6))

        if name == ReportPeriods.MONTH:
            last = calendar.monthrange(today.year, today.month)[1]
            return cls(name, today.replace(day=1), today.replace(day=last))

        if name == ReportPeriods.YEAR:
            return cls(name, date(today.year, 1, 1), date(today.year, 12, 31))

        raise ValueError(f"Unknown report period: {name!r}")

    @property
    def days(self):
        return (self.end - self.start).days + 1

    def contains(self, value):
        return self.start <= parse_date(value) <= self.end

    def previous(self):
        """The immediately preceding period of the same kind"""
        if self.name == ReportPeriods.MONTH:
            prev_end = self.start - timedelta(days=1)
            return ReportPeriod(self.name, prev_end.replace(day=1), prev_end)

        if self.name == ReportPeriods.YEAR:
            year = self.start.year - 1
            return ReportPeriod(self.name, date(year, 1, 1), date(year, 12, 31))

        # day, week and custom ranges shift back by their own length
        shift = timedelta(days=self.days)
        return ReportPeriod(self.name, self.start - shift, self.end - shift)

    def fetch_range(self):
        """Date range a caller must load so that aggregate() sees both periods"""
        return self.previous().start, self.end

    def as_dict(self):
        return {
            'period': self.name,
            'from': self.start.isoformat(),
            'to': self.end.isoformat(),
        }


# ===========================================
# REPORT
# ===========================================
def _doctor_bucket():
    return {'count': 0, 'completed': 0, 'cancelled': 0, 'no_show': 0, 'revenue': ZERO}


def _type_bucket():
    return {'count': 0, 'revenue': ZERO}


@dataclass
class MetricsReport:
    period: ReportPeriod
    total_appointments: int = 0
    previous_total: int = 0
    total_revenue: Decimal = ZERO
    projected_revenue: Decimal = ZERO
    by_status: dict = field(default_factory=dict)
    by_doctor: dict = field(default_factory=dict)
    by_type: dict = field(default_factory=dict)
    by_weekday: dict = field(default_factory=dict)
    by_hour: dict = field(default_factory=dict)
    revenue_by_payment_method: dict = field(default_factory=dict)

    @property
    def cancellation_rate(self):
        cancelled = (
            self.by_status.get(AppointmentStatus.CANCELLED.value, 0)
            + self.by_status.get(AppointmentStatus.NO_SHOW.value, 0)
        )
        return percentage(cancelled, self.total_appointments)

    @property
    def no_show_rate(self):
        return percentage(
            self.by_status.get(AppointmentStatus.NO_SHOW.value, 0),
            self.total_appointments,
        )

    @property
    def appointment_change(self):
        return percent_change(self.total_appointments, self.previous_total)

    def as_dict(self):
        previous = self.period.previous()
        return {
            **self.period.as_dict(),
            'previous_period': {
                'from': previous.start.isoformat(),
                'to': previous.end.isoformat(),
            },
            'summary': {
                'total_appointments': self.total_appointments,
                'previous_total': self.previous_total,
                'total_revenue': self.total_revenue,
                'projected_revenue': self.projected_revenue,
                'cancellation_rate': self.cancellation_rate,
                'no_show_rate': self.no_show_rate,
                'appointment_change': self.appointment_change,
            },
            'appointments_by_status': self.by_status,
            'appointments_by_doctor': self.by_doctor,
            'appointments_by_type': self.by_type,
            'appointments_by_weekday': self.by_weekday,
            'appointments_by_hour': self.by_hour,
            'revenue_by_payment_method': self.revenue_by_payment_method,
        }

    def rows(self):
        """Flat rows for tabular export"""
        rows = []
        for status, count in self.by_status.items():
            rows.append({'group': 'status', 'key': status, 'count': count, 'revenue': None})
        for doctor, bucket in self.by_doctor.items():
            rows.append({'group': 'doctor', 'key': doctor, 'count': bucket['count'],
                         'revenue': float(bucket['revenue'])})
        for type_name, bucket in self.by_type.items():
            rows.append({'group': 'type', 'key': type_name, 'count': bucket['count'],
                         'revenue': float(bucket['revenue'])})
        for method, revenue in self.revenue_by_payment_method.items():
            rows.append({'group': 'payment_method', 'key': method, 'count': None,
                         'revenue': float(revenue)})
        return rows


def aggregate(appointments, period):
    """
    Build a MetricsReport for ``period``.

    ``appointments`` may include rows from the previous period (see
    ``ReportPeriod.fetch_range``); those only feed the period-over-period change.
    Anything outside both ranges is ignored.
    """
    previous = period.previous()
    report = MetricsReport(period=period)

    by_status = Counter()
    by_weekday = Counter()
    by_hour = Counter()
    by_doctor = defaultdict(_doctor_bucket)
    by_type = defaultdict(_type_bucket)
    by_method = defaultdict(lambda: ZERO)

    for appointment in appointments:
        if not _is_live(appointment):
            continue

        day = parse_date(appointment.date)
        if not period.contains(day):
            if previous.contains(day):
                report.previous_total += 1
            continue

        status = AppointmentStatus(appointment.status)
        price = effective_price(appointment)
        earns = status in REVENUE_STATUSES

        report.total_appointments += 1
        by_status[status.value] += 1
        by_weekday[Weekday.NAMES[Weekday.from_date(day)]] += 1
        by_hour[f"{parse_time(appointment.start_time)[:2]}:00"] += 1

        doctor = by_doctor[str(appointment.doctor_id)]
        doctor['count'] += 1
        if earns:
            doctor['completed'] += 1
            doctor['revenue'] += price
        elif status == AppointmentStatus.CANCELLED:
            doctor['cancelled'] += 1
        elif status == AppointmentStatus.NO_SHOW:
            doctor['no_show'] += 1

        appointment_type = getattr(appointment, 'appointment_type', None)
        type_bucket = by_type[getattr(appointment_type, 'name', None) or UNTYPED_LABEL]
        type_bucket['count'] += 1

        if earns:
            type_bucket['revenue'] += price
            report.total_revenue += price
            method = getattr(appointment, 'payment_method', None)
            if method:
                by_method[str(method)] += price
        elif status in ACTIVE_BOOKING_STATUSES:
            report.projected_revenue += price

    report.by_status = dict(by_status)
    report.by_weekday = dict(by_weekday)
    report.by_hour = dict(sorted(by_hour.items()))
    report.by_doctor = dict(by_doctor)
    report.by_type = dict(by_type)
    report.revenue_by_payment_method = dict(by_method)

    logger.debug(
        f"Aggregated {report.total_appointments} appointment(s) for "
        f"{period.name} {period.start}..{period.end}"
    )
    return report


# ===========================================
# DASHBOARDS
# ===========================================
def dashboard_metrics(appointments, today, occupancy=None, total_patients=0, total_doctors=0):
    """
    Clinic dashboard cards. ``appointments`` must cover the current month and
    every future date; ``occupancy`` is today's Occupancy from the calculator.
    """
    today = parse_date(today)
    month_start = today.replace(day=1)

    today_count = 0
    upcoming = 0
    month_total = 0
    month_no_shows = 0
    todays = []

    for appointment in appointments:
        if not _is_live(appointment):
            continue
        day = parse_date(appointment.date)
        status = appointment.status

        if day == today:
            todays.append(appointment)
            if status != AppointmentStatus.CANCELLED:
                today_count += 1
        if day >= today and status in ACTIVE_BOOKING_STATUSES:
            upcoming += 1
        if day >= month_start:
            month_total += 1
            if status == AppointmentStatus.NO_SHOW:
                month_no_shows += 1

    return {
        'today_appointments': today_count,
        'upcoming_appointments': upcoming,
        'total_patients': total_patients,
        'total_doctors': total_doctors,
        'no_shows_this_month': month_no_shows,
        'no_show_percentage': percentage(month_no_shows, month_total),
        'occupancy_rate': occupancy.rate if occupancy is not None else 0.0,
        'estimated_income': estimated_income(todays),
    }


def doctor_metrics(appointments, doctor_id, today):
    """Doctor dashboard cards; the week runs Sunday to Saturday."""
    today = parse_date(today)
    week_start = today - timedelta(days=Weekday.from_date(today))
    week_end = week_start + timedelta(days=6)

    metrics = {'today_total': 0, 'today_completed': 0, 'week_total': 0, 'week_upcoming': 0}
    for appointment in appointments:
        if not _is_live(appointment) or str(appointment.doctor_id) != str(doctor_id):
            continue
        day = parse_date(appointment.date)
        status = appointment.status

        if day == today:
            if is_booked(appointment):
                metrics['today_total'] += 1
            if status == AppointmentStatus.COMPLETED:
                metrics['today_completed'] += 1
        if week_start <= day <= week_end:
            metrics['week_total'] += 1
            if status in ACTIVE_BOOKING_STATUSES:
                metrics['week_upcoming'] += 1

    return metrics
