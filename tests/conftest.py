# tests/conftest.py
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from core.constants import UserRoles, Weekday


@pytest.fixture
def clinic(db):
    from apps.clinics.models import Clinic
    return Clinic.objects.create(
        name='Clinica Centro',
        code='CC-01',
        timezone='America/Santiago',
        default_slot_minutes=30,
    )


@pytest.fixture
def other_clinic(db):
    from apps.clinics.models import Clinic
    return Clinic.objects.create(name='Clinica Norte', code='CN-01', timezone='America/New_York')


@pytest.fixture
def room(clinic):
    from apps.clinics.models import Room
    return Room.objects.create(clinic=clinic, name='Box 1')


@pytest.fixture
def clinic_schedule(clinic):
    """Mondays 09:00-13:00"""
    from apps.clinics.models import ClinicSchedule
    return ClinicSchedule.objects.create(
        clinic=clinic, weekday=Weekday.MONDAY, start_time='09:00', end_time='13:00'
    )


def _user(email, role, clinic=None):
    from apps.accounts.models import User
    return User.objects.create_user(
        email=email, password='s3cret-pass', full_name=email.split('@')[0],
        role=role, clinic=clinic,
    )


@pytest.fixture
def admin_user(db):
    return _user('admin@example.com', UserRoles.ADMIN)


@pytest.fixture
def clinic_admin(clinic):
    return _user('manager@example.com', UserRoles.CLINIC_ADMIN, clinic)


@pytest.fixture
def receptionist(clinic):
    return _user('reception@example.com', UserRoles.RECEPTION, clinic)


@pytest.fixture
def nurse(clinic):
    return _user('nurse@example.com', UserRoles.NURSE, clinic)


@pytest.fixture
def doctor_user(clinic):
    return _user('doctor@example.com', UserRoles.DOCTOR, clinic)


@pytest.fixture
def doctor(clinic, room, doctor_user):
    from apps.doctors.models import Doctor
    return Doctor.objects.create(
        clinic=clinic, user=doctor_user, first_name='Juan', last_name='Perez',
        specialty='General', default_room=room,
    )


@pytest.fixture
def second_doctor(clinic):
    from apps.doctors.models import Doctor
    return Doctor.objects.create(clinic=clinic, first_name='Ana', last_name='Rojas')


@pytest.fixture
def patient(clinic):
    from apps.patients.models import Patient
    return Patient.objects.create(
        clinic=clinic, first_name='Maria', last_name='Gonzalez', second_last_name='Soto',
        phone='+56911111111', birth_date='1990-05-04', gender='F',
    )


@pytest.fixture
def incomplete_patient(clinic):
    from apps.patients.models import Patient
    return Patient.objects.create(clinic=clinic, first_name='Pedro', last_name='Diaz')


@pytest.fixture
def appointment_type(clinic):
    from apps.appointments.models import AppointmentType
    return AppointmentType.objects.create(
        clinic=clinic, name='Consulta', duration_minutes=30, price=Decimal('25000.00')
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(api_client):
    """APIClient authenticated as the given user"""
    def _client(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _client
