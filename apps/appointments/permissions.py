# apps/appointments/permissions.py

from rest_framework import permissions

from core.constants import UserRoles
from core.permissions import Permissions


class AppointmentPermissions(permissions.BasePermission):
    """
    Everyone with access to appointments reads them; reception books them;
    status changes need appointment management rights.
    """

    def has_permission(self, request, view):
        user = request.user

        if request.method in permissions.SAFE_METHODS:
            return Permissions.can_view_appointments(user)

        if view.action == 'create':
            return Permissions.can_create_appointments(user)

        return Permissions.can_manage_appointments(user)

    def has_object_permission(self, request, view, obj):
        user = request.user
        if not Permissions.can_access_clinic(user, obj.clinic_id):
            return False

        # Doctors only act on their own appointments
        if user.role == UserRoles.DOCTOR and request.method not in permissions.SAFE_METHODS:
            return obj.doctor.user_id == user.id

        return True


class AppointmentTypePermissions(permissions.BasePermission):

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return Permissions.can_view_appointment_types(request.user)
        return Permissions.can_manage_appointment_types(request.user)

    def has_object_permission(self, request, view, obj):
        return Permissions.can_access_clinic(request.user, obj.clinic_id)
