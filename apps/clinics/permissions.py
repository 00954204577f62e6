# apps/clinics/permissions.py

from rest_framework import permissions

from core.permissions import Permissions


class ClinicPermissions(permissions.BasePermission):
    """Only ADMIN creates or edits clinics; staff read their own"""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return Permissions.can_manage_clinics(request.user)

    def has_object_permission(self, request, view, obj):
        return Permissions.can_access_clinic(request.user, obj.id)


class ClinicSchedulePermissions(permissions.BasePermission):

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return Permissions.can_view_doctors(request.user)
        return Permissions.can_manage_doctor_schedules(request.user)

    def has_object_permission(self, request, view, obj):
        return Permissions.can_access_clinic(request.user, obj.clinic_id)


class RoomPermissions(permissions.BasePermission):

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return Permissions.can_view_rooms(request.user)
        return Permissions.can_manage_rooms(request.user)

    def has_object_permission(self, request, view, obj):
        return Permissions.can_access_clinic(request.user, obj.clinic_id)
