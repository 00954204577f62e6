# apps/patients/permissions.py

from rest_framework import permissions

from core.permissions import Permissions


class PatientPermissions(permissions.BasePermission):

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return Permissions.can_view_patients(request.user)
        return Permissions.can_manage_patients(request.user)

    def has_object_permission(self, request, view, obj):
        return Permissions.can_access_clinic(request.user, obj.clinic_id)
