# apps/reports/views.py
import logging

from django.shortcuts import get_object_or_404
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.clinics.models import Clinic
from core.constants import UserRoles
from core.permissions import Permissions
from core.utils.excel_export import export_multiple_sheets, export_to_csv
from .permissions import DashboardPermissions, ReportPermissions
from .serializers import ReportQuerySerializer, ExportQuerySerializer
from .services import ReportService

logger = logging.getLogger(__name__)


class ReportScopeMixin:
    """Resolves which clinic (and doctor) a report request covers"""

    def get_clinic(self, request, clinic_id=None):
        user = request.user
        if clinic_id is None:
            clinic_id = user.clinic_id
        if clinic_id is None:
            raise ValidationError({'clinic': 'Clinic is required'})
        if not Permissions.can_access_clinic(user, clinic_id):
            raise PermissionDenied("Cannot view reports for another clinic")
        return get_object_or_404(Clinic.objects.live(), pk=clinic_id)

    def get_own_doctor(self, request):
        doctor = request.user.doctor
        if doctor is None:
            raise PermissionDenied("No doctor profile linked to this account")
        return doctor

    def get_report(self, request, serializer_class):
        query = serializer_class(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data

        if request.user.role == UserRoles.DOCTOR:
            doctor = self.get_own_doctor(request)
            clinic, doctor_id = doctor.clinic, doctor.id
        else:
            clinic = self.get_clinic(request, data.get('clinic'))
            doctor_id = data.get('doctor')

        period = ReportService.build_period(clinic, data['period'], data.get('start'), data.get('end'))
        report = ReportService.summary(
            clinic, period, doctor_id=doctor_id, appointment_type_id=data.get('appointment_type')
        )
        return report, data


class DashboardView(ReportScopeMixin, APIView):
    """Dashboard cards for today in the clinic's timezone"""
    permission_classes = [IsAuthenticated, DashboardPermissions]

    def get(self, request):
        if request.user.role == UserRoles.DOCTOR:
            return Response(ReportService.doctor_dashboard(self.get_own_doctor(request)))

        clinic = self.get_clinic(request, request.query_params.get('clinic'))
        return Response({'clinic_id': clinic.id, **ReportService.dashboard(clinic)})


class ReportSummaryView(ReportScopeMixin, APIView):
    permission_classes = [IsAuthenticated, ReportPermissions]

    def get(self, request):
        report, _ = self.get_report(request, ReportQuerySerializer)
        return Response(report.as_dict())


class ReportExportView(ReportScopeMixin, APIView):
    """Download the summary as an Excel workbook (or CSV of the breakdown)"""
    permission_classes = [IsAuthenticated, ReportPermissions]

    def get(self, request):
        report, data = self.get_report(request, ExportQuerySerializer)
        filename = f"report_{report.period.name}_{report.period.start}_{report.period.end}"
        logger.info(f"Report export ({data['file_format']}) requested by {request.user.email}")

        if data['file_format'] == 'csv':
            return export_to_csv(report.rows(), filename=filename)
        return export_multiple_sheets(ReportService.export_sheets(report), filename=filename)
