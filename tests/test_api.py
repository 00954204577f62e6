# tests/test_api.py
from datetime import datetime, timezone as dt_timezone
from unittest import mock

import pytest

from apps.appointments.models import Appointment
from apps.appointments.services import AppointmentService
from core.constants import AppointmentStatus as S, Weekday
from tests.factories import FUTURE_MONDAY

pytestmark = pytest.mark.django_db

MONDAY = FUTURE_MONDAY.isoformat()


@pytest.fixture
def booking(clinic, doctor, patient, clinic_schedule):
    return AppointmentService.create_appointment(
        clinic=clinic, doctor=doctor, patient=patient, date=FUTURE_MONDAY, start_time='09:00',
    )


def test_requires_authentication(api_client):
    response = api_client.get('/api/appointments/')
    assert response.status_code == 401


class TestAvailability:
    def test_inherited_schedule(self, client_for, receptionist, doctor, clinic_schedule, booking):
        response = client_for(receptionist).get(f'/api/doctors/{doctor.id}/availability/', {'date': MONDAY})
        assert response.status_code == 200
        assert response.data['timezone'] == 'America/Santiago'
        assert response.data['is_available'] is True
        assert response.data['intervals'] == [{'start_time': '09:00', 'end_time': '13:00'}]
        starts = [s['start_time'] for s in response.data['available_slots']]
        assert '09:00' not in starts
        assert starts[0] == '09:30'

    def test_bad_date(self, client_for, receptionist, doctor):
        response = client_for(receptionist).get(f'/api/doctors/{doctor.id}/availability/', {'date': '07-01-2030'})
        assert response.status_code == 400

    def test_weekly_schedule_source(self, client_for, receptionist, doctor, clinic_schedule):
        response = client_for(receptionist).get(f'/api/doctors/{doctor.id}/weekly-schedule/')
        assert response.data['source'] == 'clinic'
        assert response.data['schedule'][0]['inherited'] is True

    def test_other_clinic_doctor_is_hidden(self, client_for, other_clinic, doctor):
        from apps.accounts.models import User
        outsider = User.objects.create_user(
            email='out@example.com', password='x' * 10, full_name='Out', role='RECEPTION', clinic=other_clinic,
        )
        response = client_for(outsider).get(f'/api/doctors/{doctor.id}/availability/', {'date': MONDAY})
        assert response.status_code == 404


class TestAppointmentsApi:
    def test_create(self, client_for, receptionist, clinic, doctor, patient, clinic_schedule):
        response = client_for(receptionist).post('/api/appointments/', {
            'clinic': clinic.id, 'doctor': doctor.id, 'patient': patient.id,
            'date': MONDAY, 'start_time': '10:00',
        }, format='json')
        assert response.status_code == 201
        assert response.data['status'] == S.PENDING
        assert response.data['end_time'] == '10:30'
        assert response.data['status_info']['label'] == 'Pendiente'

    def test_create_conflict_is_409(self, client_for, receptionist, clinic, doctor, patient, booking):
        response = client_for(receptionist).post('/api/appointments/', {
            'clinic': clinic.id, 'doctor': doctor.id, 'patient': patient.id,
            'date': MONDAY, 'start_time': '09:00',
        }, format='json')
        assert response.status_code == 409
        assert response.data['existing_count'] == 1
        assert response.data['conflicts']

    def test_nurse_cannot_book(self, client_for, nurse, clinic, doctor, patient, clinic_schedule):
        response = client_for(nurse).post('/api/appointments/', {
            'clinic': clinic.id, 'doctor': doctor.id, 'patient': patient.id,
            'date': MONDAY, 'start_time': '10:00',
        }, format='json')
        assert response.status_code == 403

    def test_status_change_and_transitions(self, client_for, receptionist, booking):
        client = client_for(receptionist)
        response = client.post(f'/api/appointments/{booking.id}/status/', {'status': 'CONFIRMED'}, format='json')
        assert response.status_code == 200
        assert response.data['status'] == S.CONFIRMED

        response = client.get(f'/api/appointments/{booking.id}/transitions/')
        assert response.data['current']['status'] == 'CONFIRMED'
        assert {t['status'] for t in response.data['available']} == {
            'IN_CONSULTATION', 'CANCELLED', 'NO_SHOW', 'REQUIRES_RESCHEDULE',
        }

    def test_illegal_status_change_is_400(self, client_for, receptionist, booking):
        response = client_for(receptionist).post(
            f'/api/appointments/{booking.id}/status/', {'status': 'COMPLETED'}, format='json'
        )
        assert response.status_code == 400
        assert response.data['from_status'] == 'PENDING'
        booking.refresh_from_db()
        assert booking.status == S.PENDING

    def test_cancel_without_reason_is_400(self, client_for, receptionist, booking):
        response = client_for(receptionist).post(
            f'/api/appointments/{booking.id}/status/', {'status': 'CANCELLED'}, format='json'
        )
        assert response.status_code == 400

    def test_doctor_sees_only_own_agenda(self, client_for, doctor_user, second_doctor, clinic, patient, booking):
        Appointment.objects.create(
            clinic=clinic, doctor=second_doctor, patient=patient,
            date=FUTURE_MONDAY, start_time='11:00', end_time='11:30',
        )
        response = client_for(doctor_user).get('/api/appointments/')
        assert [a['id'] for a in response.data['results']] == [booking.id]


class TestSchedulesApi:
    def test_exception_flags_booking(self, client_for, receptionist, doctor, booking):
        response = client_for(receptionist).post('/api/doctors/exceptions/', {
            'doctor': doctor.id, 'date': MONDAY, 'start_time': '', 'end_time': '', 'reason': 'Vacaciones',
        }, format='json')
        assert response.status_code == 201
        assert response.data['is_full_day'] is True
        booking.refresh_from_db()
        assert booking.status == S.REQUIRES_RESCHEDULE

    def test_exception_update_reflags_booking(self, client_for, receptionist, doctor, booking, settings):
        from apps.doctors.models import DoctorException
        settings.PARTIAL_EXCEPTION_POLICY = 'block'
        exception = DoctorException.objects.create(
            doctor=doctor, date=FUTURE_MONDAY, start_time='12:00', end_time='13:00'
        )

        response = client_for(receptionist).patch(f'/api/doctors/exceptions/{exception.id}/', {
            'start_time': '09:00', 'end_time': '10:00',
        }, format='json')

        assert response.status_code == 200
        assert response.data['start_time'] == '09:00'
        booking.refresh_from_db()
        assert booking.status == S.REQUIRES_RESCHEDULE

    def test_exception_update_with_one_bound_keeps_the_other(self, client_for, receptionist, doctor):
        from apps.doctors.models import DoctorException
        exception = DoctorException.objects.create(
            doctor=doctor, date=FUTURE_MONDAY, start_time='12:00', end_time='13:00'
        )
        client = client_for(receptionist)

        response = client.patch(f'/api/doctors/exceptions/{exception.id}/', {'end_time': '12:30'}, format='json')
        assert response.status_code == 200
        assert response.data['end_time'] == '12:30'

        response = client.patch(f'/api/doctors/exceptions/{exception.id}/', {'end_time': '11:00'}, format='json')
        assert response.status_code == 400

    def test_half_specified_exception_is_rejected(self, client_for, receptionist, doctor):
        response = client_for(receptionist).post('/api/doctors/exceptions/', {
            'doctor': doctor.id, 'date': MONDAY, 'start_time': '10:00',
        }, format='json')
        assert response.status_code == 400

    def test_doctor_schedule_overlap_is_400(self, client_for, receptionist, doctor):
        client = client_for(receptionist)
        payload = {'doctor': doctor.id, 'weekday': Weekday.MONDAY, 'start_time': '08:00', 'end_time': '12:00'}
        assert client.post('/api/doctors/schedules/', payload, format='json').status_code == 201
        payload.update(start_time='11:00', end_time='13:00')
        response = client.post('/api/doctors/schedules/', payload, format='json')
        assert response.status_code == 400
        assert 'Schedule conflicts with existing schedule: 08:00 - 12:00' in response.data['error']

    def test_clinic_schedule_create(self, client_for, clinic_admin, clinic):
        response = client_for(clinic_admin).post('/api/clinics/schedules/', {
            'clinic': clinic.id, 'weekday': Weekday.SATURDAY, 'start_time': '09:00', 'end_time': '12:00',
        }, format='json')
        assert response.status_code == 201

    def test_clinic_occupancy(self, client_for, clinic_admin, clinic, booking):
        response = client_for(clinic_admin).get(f'/api/clinics/{clinic.id}/occupancy/', {'date': MONDAY})
        assert response.status_code == 200
        assert response.data['total_slots'] == 8
        assert response.data['occupied_slots'] == 1
        assert response.data['rate'] == 12.5


class TestReportsApi:
    NOW = datetime(2030, 1, 8, 15, 0, tzinfo=dt_timezone.utc)

    def test_summary(self, client_for, clinic_admin, booking):
        with mock.patch('django.utils.timezone.now', return_value=self.NOW):
            response = client_for(clinic_admin).get('/api/reports/summary/', {'period': 'month'})
        assert response.status_code == 200
        assert response.data['from'] == '2030-01-01'
        assert response.data['summary']['total_appointments'] == 1

    def test_summary_by_appointment_type(self, client_for, clinic_admin, clinic, doctor, patient,
                                         clinic_schedule, appointment_type, booking):
        AppointmentService.create_appointment(
            clinic=clinic, doctor=doctor, patient=patient, date=FUTURE_MONDAY,
            start_time='10:00', appointment_type=appointment_type,
        )
        params = {'period': 'custom', 'start': MONDAY, 'end': MONDAY}
        client = client_for(clinic_admin)

        everything = client.get('/api/reports/summary/', params)
        by_type = client.get('/api/reports/summary/', {**params, 'appointment_type': appointment_type.id})

        assert everything.data['summary']['total_appointments'] == 2
        assert by_type.status_code == 200
        assert by_type.data['summary']['total_appointments'] == 1

    def test_custom_period_needs_bounds(self, client_for, clinic_admin):
        response = client_for(clinic_admin).get('/api/reports/summary/', {'period': 'custom'})
        assert response.status_code == 400

    def test_reception_cannot_see_reports(self, client_for, receptionist):
        response = client_for(receptionist).get('/api/reports/summary/')
        assert response.status_code == 403

    def test_admin_must_name_a_clinic(self, client_for, admin_user, clinic):
        client = client_for(admin_user)
        assert client.get('/api/reports/summary/').status_code == 400
        assert client.get('/api/reports/summary/', {'clinic': clinic.id}).status_code == 200

    def test_doctor_dashboard(self, client_for, doctor_user, booking):
        with mock.patch('django.utils.timezone.now', return_value=self.NOW):
            response = client_for(doctor_user).get('/api/reports/dashboard/')
        assert response.status_code == 200
        assert response.data['week_total'] == 1
        assert response.data['week_upcoming'] == 1

    def test_clinic_dashboard(self, client_for, receptionist, booking):
        with mock.patch('django.utils.timezone.now', return_value=self.NOW):
            response = client_for(receptionist).get('/api/reports/dashboard/')
        assert response.status_code == 200
        assert response.data['date'] == '2030-01-08'
        assert response.data['upcoming_appointments'] == 0
        assert response.data['total_doctors'] == 1

    def test_export_xlsx(self, client_for, clinic_admin, booking):
        response = client_for(clinic_admin).get('/api/reports/summary/export/')
        assert response.status_code == 200
        assert response['Content-Type'].startswith('application/vnd.openxmlformats')
        assert response['Content-Disposition'].endswith('.xlsx"')

    def test_export_csv(self, client_for, clinic_admin, booking):
        response = client_for(clinic_admin).get('/api/reports/summary/export/', {
            'file_format': 'csv', 'period': 'custom', 'start': MONDAY, 'end': MONDAY,
        })
        assert response.status_code == 200
        assert response.content.decode().startswith('group,key,count,revenue')
