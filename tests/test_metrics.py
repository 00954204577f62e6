# tests/test_metrics.py
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from core.constants import AppointmentStatus as S, PaymentMethod, ReportPeriods
from services.metrics import (
    ReportPeriod,
    aggregate,
    dashboard_metrics,
    doctor_metrics,
    percent_change,
)
from services.repositories import InMemorySchedulingRepository
from tests import factories as f

TODAY = date(2030, 1, 15)  # Tuesday


class TestReportPeriod:
    def test_week_starts_on_monday(self):
        period = ReportPeriod.for_name(ReportPeriods.WEEK, date(2030, 1, 9))
        assert (period.start, period.end) == (date(2030, 1, 7), date(2030, 1, 13))
        previous = period.previous()
        assert (previous.start, previous.end) == (date(2029, 12, 31), date(2030, 1, 6))

    def test_previous_month_handles_leap_february(self):
        period = ReportPeriod.for_name(ReportPeriods.MONTH, '2024-03-10')
        previous = period.previous()
        assert (previous.start, previous.end) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_previous_year(self):
        previous = ReportPeriod.for_name(ReportPeriods.YEAR, TODAY).previous()
        assert (previous.start, previous.end) == (date(2029, 1, 1), date(2029, 12, 31))

    def test_custom_previous_has_equal_length(self):
        period = ReportPeriod.for_name(ReportPeriods.CUSTOM, TODAY, '2030-01-10', '2030-01-12')
        previous = period.previous()
        assert (previous.start, previous.end) == (date(2030, 1, 7), date(2030, 1, 9))

    def test_custom_needs_both_bounds(self):
        with pytest.raises(ValueError):
            ReportPeriod.for_name(ReportPeriods.CUSTOM, TODAY, start='2030-01-10')

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            ReportPeriod.for_name('fortnight', TODAY)

    def test_fetch_range_spans_both_periods(self):
        period = ReportPeriod.for_name(ReportPeriods.DAY, TODAY)
        assert period.fetch_range() == (date(2030, 1, 14), TODAY)


class TestAggregate:
    @pytest.fixture
    def report(self):
        month = ReportPeriod.for_name(ReportPeriods.MONTH, TODAY)
        appointments = [
            f.appointment(id=1, day=date(2030, 1, 2), status=S.COMPLETED, custom_price='10000',
                          payment_method=PaymentMethod.CASH, type_name='Consulta'),
            f.appointment(id=2, day=date(2030, 1, 3), start_time='10:15', end_time='10:45',
                          status=S.PAID, type_name='Control', type_price='5000',
                          payment_method=PaymentMethod.TRANSFER, doctor_id=2),
            f.appointment(id=3, day=date(2030, 1, 20), status=S.PENDING, custom_price='3000'),
            f.appointment(id=4, day=date(2030, 1, 21), status=S.CANCELLED, custom_price='9999'),
            f.appointment(id=5, day=date(2030, 1, 22), status=S.NO_SHOW),
            # previous month
            f.appointment(id=6, day=date(2029, 12, 30), status=S.COMPLETED, custom_price='7000'),
            f.appointment(id=7, day=date(2029, 12, 31), status=S.CANCELLED),
            # outside both ranges / deleted
            f.appointment(id=8, day=date(2029, 10, 1), status=S.COMPLETED),
            f.appointment(id=9, day=date(2030, 1, 5), status=S.COMPLETED, is_active=False),
        ]
        return aggregate(appointments, month)

    def test_totals(self, report):
        assert report.total_appointments == 5
        assert report.previous_total == 2
        assert report.total_revenue == Decimal('15000')
        assert report.projected_revenue == Decimal('3000')
        assert report.appointment_change == 150.0

    def test_cancellation_rate_counts_no_shows(self, report):
        assert report.cancellation_rate == 40.0
        assert report.no_show_rate == 20.0

    def test_group_maps_omit_empty_keys(self, report):
        assert report.by_status == {
            'COMPLETED': 1, 'PAID': 1, 'PENDING': 1, 'CANCELLED': 1, 'NO_SHOW': 1,
        }
        assert report.by_hour == {'09:00': 4, '10:00': 1}
        assert 'REQUIRES_RESCHEDULE' not in report.by_status

    def test_breakdowns(self, report):
        assert report.by_doctor['1'] == {
            'count': 4, 'completed': 1, 'cancelled': 1, 'no_show': 1, 'revenue': Decimal('10000'),
        }
        assert report.by_type['Control'] == {'count': 1, 'revenue': Decimal('5000')}
        assert report.by_type['Sin tipo']['count'] == 3
        assert report.revenue_by_payment_method == {
            'CASH': Decimal('10000'), 'TRANSFER': Decimal('5000'),
        }
        assert report.by_weekday['Wednesday'] == 1

    def test_as_dict_shape(self, report):
        data = report.as_dict()
        assert data['from'] == '2030-01-01'
        assert data['previous_period'] == {'from': '2029-12-01', 'to': '2029-12-31'}
        assert data['summary']['total_appointments'] == 5

    def test_rows_for_export(self, report):
        groups = {row['group'] for row in report.rows()}
        assert groups == {'status', 'doctor', 'type', 'payment_method'}


def test_period_over_period_change():
    period = ReportPeriod.for_name(ReportPeriods.DAY, TODAY)
    yesterday = TODAY - timedelta(days=1)
    appointments = (
        [f.appointment(id=i, day=TODAY) for i in range(10)]
        + [f.appointment(id=100 + i, day=yesterday) for i in range(8)]
    )
    assert aggregate(appointments, period).appointment_change == 25.0


def test_change_against_empty_previous_period_is_zero():
    assert percent_change(4, 0) == 0.0


def test_empty_collection():
    report = aggregate([], ReportPeriod.for_name(ReportPeriods.WEEK, TODAY))
    assert report.total_appointments == 0
    assert report.cancellation_rate == 0.0
    assert report.by_status == {}


def test_dashboard_metrics():
    appointments = [
        f.appointment(id=1, day=TODAY, custom_price='1000'),
        f.appointment(id=2, day=TODAY, status=S.CANCELLED, custom_price='500'),
        f.appointment(id=3, day=TODAY + timedelta(days=3), status=S.CONFIRMED),
        f.appointment(id=4, day=date(2030, 1, 2), status=S.NO_SHOW),
    ]
    occupancy = SimpleNamespace(rate=37.5)
    data = dashboard_metrics(appointments, TODAY, occupancy=occupancy, total_patients=12, total_doctors=3)
    assert data['today_appointments'] == 1
    assert data['upcoming_appointments'] == 2
    assert data['no_shows_this_month'] == 1
    assert data['no_show_percentage'] == 25.0
    assert data['occupancy_rate'] == 37.5
    assert data['estimated_income'] == Decimal('1000')
    assert data['total_patients'] == 12


def test_doctor_metrics_week_runs_sunday_to_saturday():
    sunday = date(2030, 1, 13)
    appointments = [
        f.appointment(id=1, day=TODAY, status=S.COMPLETED),
        f.appointment(id=2, day=TODAY, status=S.PENDING),
        f.appointment(id=3, day=sunday, status=S.CONFIRMED),
        f.appointment(id=4, day=sunday - timedelta(days=1), status=S.PENDING),
        f.appointment(id=5, day=TODAY, doctor_id=2),
    ]
    assert doctor_metrics(appointments, 1, TODAY) == {
        'today_total': 2,
        'today_completed': 1,
        'week_total': 3,
        'week_upcoming': 2,
    }


MIXED_STATUS_SETS = [
    [S.CANCELLED] * 4,
    [S.NO_SHOW, S.CANCELLED, S.NO_SHOW],
    [S.PENDING, S.CONFIRMED, S.PAID],
    [S.CANCELLED, S.COMPLETED, S.NO_SHOW, S.REQUIRES_RESCHEDULE, S.TRANSFER_PENDING],
    [S.IN_CONSULTATION],
    list(S) * 3,
]


@pytest.mark.parametrize('statuses', MIXED_STATUS_SETS)
def test_cancellation_rate_stays_within_bounds(statuses):
    period = ReportPeriod.for_name(ReportPeriods.DAY, TODAY)
    appointments = [f.appointment(id=i, day=TODAY, status=s) for i, s in enumerate(statuses)]
    appointments.append(f.appointment(id=999, day=TODAY, status=S.CANCELLED, is_active=False))

    report = aggregate(appointments, period)

    cancelled = sum(s in (S.CANCELLED, S.NO_SHOW) for s in statuses)
    assert 0 <= report.cancellation_rate <= 100
    assert report.cancellation_rate == round(cancelled / len(statuses) * 100, 2)


def test_summary_narrowed_to_one_appointment_type():
    from apps.reports.services import ReportService

    repository = InMemorySchedulingRepository(appointments=[
        f.appointment(id=1, day=TODAY, appointment_type_id=7, type_name='Control', type_price=5000),
        f.appointment(id=2, day=TODAY, appointment_type_id=8, type_name='Consulta', type_price=9000),
        f.appointment(id=3, day=TODAY, start_time='11:00', end_time='11:30', appointment_type_id=7,
                      type_name='Control', type_price=5000, status=S.CANCELLED),
    ])
    period = ReportPeriod.for_name(ReportPeriods.DAY, TODAY)

    report = ReportService.summary(f.clinic(), period, appointment_type_id=7, repository=repository)

    assert report.total_appointments == 2
    assert set(report.by_type) == {'Control'}
    assert report.by_type['Control']['count'] == 2
    assert report.cancellation_rate == 50.0
