# apps/appointments/views.py

from django.shortcuts import get_object_or_404
from django_filters import rest_framework as filters
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.clinics.models import Clinic, Room
from apps.doctors.models import Doctor
from apps.patients.models import Patient
from core.constants import UserRoles
from core.mixins.clinic_queryset import ClinicQuerySetMixin
from core.permissions import Permissions
from core.utils.timezones import current_local_date, resolve_clinic_timezone
from services import state_machine

from .filters import AppointmentFilter
from .models import Appointment, AppointmentType
from .permissions import AppointmentPermissions, AppointmentTypePermissions
from .serializers import (
    AppointmentSerializer,
    AppointmentCreateSerializer,
    AppointmentUpdateSerializer,
    AppointmentStatusSerializer,
    AppointmentTypeSerializer,
)
from .services import AppointmentService

RELATED_MODELS = {
    'doctor': Doctor,
    'room': Room,
    'appointment_type': AppointmentType,
}


def _clinic_object(model, pk, clinic_id):
    """Live row of ``model`` that belongs to ``clinic_id``"""
    return get_object_or_404(model.objects.live(), pk=pk, clinic_id=clinic_id)


class AppointmentViewSet(ClinicQuerySetMixin, viewsets.ModelViewSet):
    """
    ViewSet for appointments. Writes go through AppointmentService, which
    re-checks availability and the status machine inside the row lock.
    """
    queryset = Appointment.objects.live().select_related(
        'doctor', 'patient', 'room', 'appointment_type'
    )
    serializer_class = AppointmentSerializer
    permission_classes = [IsAuthenticated, AppointmentPermissions]
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = AppointmentFilter

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user

        # Doctors only see their own agenda
        if user.role == UserRoles.DOCTOR:
            queryset = queryset.filter(doctor__user=user)

        # Nurses work with the current day only
        if user.role == UserRoles.NURSE and user.clinic is not None:
            today = current_local_date(resolve_clinic_timezone(user.clinic))
            queryset = queryset.filter(date=today)

        return queryset

    def create(self, request, *args, **kwargs):
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if not Permissions.can_access_clinic(request.user, data['clinic']):
            raise PermissionDenied("Cannot book appointments for another clinic")

        clinic = get_object_or_404(Clinic.objects.live(), pk=data['clinic'])
        related = {
            field: _clinic_object(model, data[field], clinic.id)
            for field, model in RELATED_MODELS.items()
            if data.get(field) is not None
        }

        appointment = AppointmentService.create_appointment(
            clinic=clinic,
            patient=_clinic_object(Patient, data['patient'], clinic.id),
            date=data['date'],
            start_time=data['start_time'],
            end_time=data.get('end_time'),
            custom_price=data.get('custom_price'),
            notes=data.get('notes', ''),
            user=request.user,
            **related,
        )
        return Response(AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = AppointmentUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        changes = dict(serializer.validated_data)
        for field, model in RELATED_MODELS.items():
            if field in changes and changes[field] is not None:
                changes[field] = _clinic_object(model, changes[field], instance.clinic_id)

        appointment = AppointmentService.update_appointment(instance.pk, user=request.user, **changes)
        return Response(AppointmentSerializer(appointment).data)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        AppointmentService.delete_appointment(instance.pk, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path='status')
    def change_status(self, request, pk=None):
        """Move the appointment to a new status"""
        instance = self.get_object()
        serializer = AppointmentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        appointment = AppointmentService.change_status(
            instance.pk,
            data['status'],
            user=request.user,
            cancel_reason=data.get('cancel_reason'),
            notes=data.get('notes'),
            payment_method=data.get('payment_method'),
            payment_confirmed=data.get('payment_confirmed'),
            payment_amount=data.get('payment_amount'),
        )
        return Response(AppointmentSerializer(appointment).data)

    @action(detail=True, methods=['get'])
    def transitions(self, request, pk=None):
        """Statuses reachable from the current one, with their labels"""
        instance = self.get_object()
        return Response({
            'current': state_machine.describe(instance.status),
            'available': [
                {'status': str(s), 'label': state_machine.label(s)}
                for s in sorted(state_machine.available_transitions(instance.status))
            ],
        })


class AppointmentTypeViewSet(ClinicQuerySetMixin, viewsets.ModelViewSet):
    queryset = AppointmentType.objects.live()
    serializer_class = AppointmentTypeSerializer
    permission_classes = [IsAuthenticated, AppointmentTypePermissions]

    def perform_create(self, serializer):
        if not Permissions.can_access_clinic(self.request.user, serializer.validated_data['clinic'].id):
            raise PermissionDenied("Cannot create appointment types for another clinic")
        serializer.save(created_by=self.request.user, updated_by=self.request.user)

    def perform_destroy(self, instance):
        instance._request_user = self.request.user
        instance.delete()
