# core/permissions.py
"""
Role capability predicates.

Pure functions of a (role, clinic_id) pair; request and view plumbing lives in
each app's ``permissions.py``.
"""
from typing import NamedTuple, Optional

from .constants import UserRoles


class PermissionCheck(NamedTuple):
    role: str
    clinic_id: Optional[object] = None

    @classmethod
    def for_user(cls, user):
        return cls(getattr(user, 'role', None), getattr(user, 'clinic_id', None))


def _role(user):
    return user.role if hasattr(user, 'role') else user


ADMINS = frozenset({UserRoles.ADMIN, UserRoles.CLINIC_ADMIN})
FRONT_OFFICE = ADMINS | {UserRoles.RECEPTION}


class Permissions:

    @staticmethod
    def can_manage_clinics(user):
        return _role(user) == UserRoles.ADMIN

    @staticmethod
    def can_manage_users(user):
        return _role(user) in ADMINS

    @staticmethod
    def can_manage_rooms(user):
        return _role(user) in FRONT_OFFICE

    @staticmethod
    def can_view_rooms(user):
        return _role(user) in FRONT_OFFICE

    @staticmethod
    def can_manage_doctors(user):
        return _role(user) in ADMINS

    @staticmethod
    def can_manage_doctor_schedules(user):
        return _role(user) in FRONT_OFFICE

    @staticmethod
    def can_view_doctors(user):
        return _role(user) in FRONT_OFFICE | {UserRoles.DOCTOR}

    @staticmethod
    def can_view_patients(user):
        return _role(user) in FRONT_OFFICE | {UserRoles.DOCTOR}

    @staticmethod
    def can_manage_patients(user):
        return _role(user) in FRONT_OFFICE | {UserRoles.NURSE}

    @staticmethod
    def can_view_appointment_types(user):
        return _role(user) in FRONT_OFFICE

    @staticmethod
    def can_manage_appointment_types(user):
        return _role(user) in FRONT_OFFICE

    @staticmethod
    def can_view_appointments(user):
        return _role(user) in FRONT_OFFICE | {UserRoles.NURSE, UserRoles.DOCTOR}

    @staticmethod
    def can_create_appointments(user):
        return _role(user) in FRONT_OFFICE

    @staticmethod
    def can_manage_appointments(user):
        return _role(user) in FRONT_OFFICE | {UserRoles.DOCTOR}

    @staticmethod
    def can_view_dashboard(user):
        return _role(user) in FRONT_OFFICE | {UserRoles.DOCTOR}

    @staticmethod
    def can_view_reports(user):
        return _role(user) in ADMINS

    @staticmethod
    def can_view_own_reports(user):
        return _role(user) == UserRoles.DOCTOR

    @staticmethod
    def requires_clinic_scope(role):
        return role != UserRoles.ADMIN

    @staticmethod
    def can_access_clinic(user, target_clinic_id):
        if _role(user) == UserRoles.ADMIN:
            return True
        clinic_id = getattr(user, 'clinic_id', None)
        return clinic_id is not None and str(clinic_id) == str(target_clinic_id)
