# apps/doctors/permissions.py

from rest_framework import permissions

from core.constants import UserRoles
from core.permissions import Permissions


class DoctorPermissions(permissions.BasePermission):
    """
    Custom permissions for Doctor operations
    """

    def has_permission(self, request, view):
        user = request.user

        # Staff that book appointments need the doctor list
        if request.method in permissions.SAFE_METHODS:
            return Permissions.can_view_doctors(user) or Permissions.can_view_appointments(user)

        return Permissions.can_manage_doctors(user)

    def has_object_permission(self, request, view, obj):
        return Permissions.can_access_clinic(request.user, obj.clinic_id)


class DoctorSchedulePermissions(permissions.BasePermission):
    """Schedules and exceptions: front office, or the doctor on their own rows"""

    def has_permission(self, request, view):
        user = request.user

        if request.method in permissions.SAFE_METHODS:
            return Permissions.can_view_doctors(user)

        return Permissions.can_manage_doctor_schedules(user) or user.role == UserRoles.DOCTOR

    def has_object_permission(self, request, view, obj):
        user = request.user
        if not Permissions.can_access_clinic(user, obj.doctor.clinic_id):
            return False

        if request.method in permissions.SAFE_METHODS:
            return True

        if Permissions.can_manage_doctor_schedules(user):
            return True

        # Doctors can only modify their own rows
        return user.role == UserRoles.DOCTOR and obj.doctor.user_id == user.id


def can_edit_doctor_rows(user, doctor):
    """Write access to ``doctor``'s schedules and exceptions"""
    if not Permissions.can_access_clinic(user, doctor.clinic_id):
        return False
    if Permissions.can_manage_doctor_schedules(user):
        return True
    return user.role == UserRoles.DOCTOR and doctor.user_id == user.id
