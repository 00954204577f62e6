# apps/accounts/permissions.py

from rest_framework import permissions

from core.constants import UserRoles
from core.permissions import Permissions


class UserPermissions(permissions.BasePermission):
    """Clinic admins manage staff of their own clinic; ADMIN manages everyone"""

    def has_permission(self, request, view):
        if view.action in ('me', 'change_password'):
            return True
        return Permissions.can_manage_users(request.user)

    def has_object_permission(self, request, view, obj):
        if request.user.role == UserRoles.ADMIN:
            return True
        return Permissions.can_access_clinic(request.user, obj.clinic_id)
