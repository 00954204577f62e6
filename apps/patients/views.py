# apps/patients/views.py
from django.db.models import Q
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.mixins.clinic_queryset import ClinicQuerySetMixin
from core.permissions import Permissions
from .models import Patient
from .permissions import PatientPermissions
from .serializers import PatientSerializer


class PatientViewSet(ClinicQuerySetMixin, viewsets.ModelViewSet):
    queryset = Patient.objects.live()
    serializer_class = PatientSerializer
    permission_classes = [IsAuthenticated, PatientPermissions]
    filterset_fields = ['clinic', 'gender']

    def get_queryset(self):
        queryset = super().get_queryset()
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(second_last_name__icontains=search)
                | Q(phone__icontains=search)
            )
        return queryset

    def perform_create(self, serializer):
        if not Permissions.can_access_clinic(self.request.user, serializer.validated_data['clinic'].id):
            raise PermissionDenied("Cannot register patients for another clinic")
        serializer.save(created_by=self.request.user, updated_by=self.request.user)

    def perform_update(self, serializer):
        serializer.save(updated_by=self.request.user)

    def perform_destroy(self, instance):
        instance._request_user = self.request.user
        instance.delete()

    @action(detail=True, methods=['get'], url_path='data-check')
    def data_check(self, request, pk=None):
        """Mandatory fields still missing before the patient can be seen"""
        patient = self.get_object()
        return Response({
            'patient_id': patient.id,
            'has_complete_data': patient.has_complete_data,
            'missing_fields': patient.missing_fields,
        })
