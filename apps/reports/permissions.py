# apps/reports/permissions.py
from rest_framework import permissions

from core.permissions import Permissions


class DashboardPermissions(permissions.BasePermission):

    def has_permission(self, request, view):
        return Permissions.can_view_dashboard(request.user)


class ReportPermissions(permissions.BasePermission):
    """Clinic-wide reports for admins; doctors only get their own figures"""

    def has_permission(self, request, view):
        user = request.user
        return Permissions.can_view_reports(user) or Permissions.can_view_own_reports(user)
