# apps/doctors/views.py

from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters import rest_framework as filters

from core.constants import UserRoles
from core.mixins.clinic_queryset import ClinicQuerySetMixin
from core.permissions import Permissions
from core.utils.timezones import resolve_clinic_timezone
from services.occupancy import OccupancyCalculator
from services.repositories import DjangoSchedulingRepository
from services.schedule_resolver import ScheduleResolver, schedule_source

from .filters import DoctorFilter, DoctorScheduleFilter, DoctorExceptionFilter
from .models import Doctor, DoctorSchedule, DoctorException
from .permissions import DoctorPermissions, DoctorSchedulePermissions, can_edit_doctor_rows
from .serializers import (
    DoctorSerializer,
    DoctorScheduleSerializer,
    DoctorExceptionSerializer,
    IntervalSerializer,
    AvailabilityQuerySerializer,
    AvailabilityRangeQuerySerializer,
)
from .services import DoctorScheduleService


class DoctorViewSet(ClinicQuerySetMixin, viewsets.ModelViewSet):
    """
    ViewSet for Doctor CRUD operations plus resolved availability
    """
    queryset = Doctor.objects.live().select_related('clinic', 'default_room')

    serializer_class = DoctorSerializer
    permission_classes = [IsAuthenticated, DoctorPermissions]
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = DoctorFilter

    def perform_create(self, serializer):
        if not Permissions.can_access_clinic(self.request.user, serializer.validated_data['clinic'].id):
            raise PermissionDenied("Cannot create doctors for another clinic")
        serializer.save(created_by=self.request.user, updated_by=self.request.user)

    def perform_update(self, serializer):
        serializer.save(updated_by=self.request.user)

    def perform_destroy(self, instance):
        instance._request_user = self.request.user
        instance.delete()

    def _calculator(self):
        repository = DjangoSchedulingRepository()
        return OccupancyCalculator(repository, ScheduleResolver(repository))

    @action(detail=True, methods=['get'])
    def availability(self, request, pk=None):
        """Resolved working intervals and free slots for one date"""
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        doctor = self.get_object()
        target_date = query.validated_data['date']
        calculator = self._calculator()

        intervals = calculator.resolver.resolve_availability(doctor, target_date)
        slots = calculator.available_slots(
            doctor, target_date, duration_minutes=query.validated_data.get('duration')
        )

        return Response({
            'doctor_id': doctor.id,
            'doctor_name': doctor.full_name,
            'date': target_date.isoformat(),
            'timezone': resolve_clinic_timezone(doctor.clinic),
            'is_available': bool(intervals),
            'intervals': IntervalSerializer(intervals, many=True).data,
            'available_slots': IntervalSerializer(slots, many=True).data,
        })

    @action(detail=True, methods=['get'], url_path='availability-range')
    def availability_range(self, request, pk=None):
        """Per-day flag telling whether any slot is still free"""
        query = AvailabilityRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        doctor = self.get_object()
        days = self._calculator().availability_range(
            doctor, query.validated_data['start'], query.validated_data['end']
        )
        return Response({'doctor_id': doctor.id, 'days': days})

    @action(detail=True, methods=['get'], url_path='weekly-schedule')
    def weekly_schedule(self, request, pk=None):
        """Own weekly rows, or the clinic's rows flagged as inherited"""
        doctor = self.get_object()
        repository = DjangoSchedulingRepository()
        rows = ScheduleResolver(repository).weekly_schedule(doctor)
        own = repository.get_doctor_schedules(doctor.id)
        return Response({
            'doctor_id': doctor.id,
            'source': schedule_source(own),
            'schedule': rows,
        })


class DoctorScheduleViewSet(ClinicQuerySetMixin, viewsets.ModelViewSet):
    """
    ViewSet for Doctor Schedule CRUD operations
    """
    queryset = DoctorSchedule.objects.live().select_related('doctor')
    clinic_field = 'doctor__clinic_id'

    serializer_class = DoctorScheduleSerializer
    permission_classes = [IsAuthenticated, DoctorSchedulePermissions]
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = DoctorScheduleFilter

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user

        # Doctors only see their own schedules
        if user.role == UserRoles.DOCTOR:
            queryset = queryset.filter(doctor__user=user)

        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if not can_edit_doctor_rows(request.user, data['doctor']):
            raise PermissionDenied("Cannot manage this doctor's schedule")

        schedule = DoctorScheduleService.create_schedule(
            data['doctor'], data['weekday'], data['start_time'], data['end_time'],
            user=request.user,
        )
        return Response(self.get_serializer(schedule).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        changes = {
            field: value for field, value in serializer.validated_data.items()
            if field in ('weekday', 'start_time', 'end_time')
        }
        schedule = DoctorScheduleService.update_schedule(instance.pk, user=request.user, **changes)
        return Response(self.get_serializer(schedule).data)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        DoctorScheduleService.delete_schedule(instance.pk, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DoctorExceptionViewSet(
    ClinicQuerySetMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Date exceptions. Creating or moving one flags the appointments it collides with.
    """
    queryset = DoctorException.objects.live().select_related('doctor')
    clinic_field = 'doctor__clinic_id'

    serializer_class = DoctorExceptionSerializer
    permission_classes = [IsAuthenticated, DoctorSchedulePermissions]
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = DoctorExceptionFilter

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.request.user.role == UserRoles.DOCTOR:
            queryset = queryset.filter(doctor__user=self.request.user)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if not can_edit_doctor_rows(request.user, data['doctor']):
            raise PermissionDenied("Cannot manage this doctor's exceptions")

        exception = DoctorScheduleService.create_exception(
            data['doctor'],
            data['date'],
            start_time=data.get('start_time'),
            end_time=data.get('end_time'),
            reason=data.get('reason', ''),
            user=request.user,
        )
        return Response(self.get_serializer(exception).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        changes = {
            field: value for field, value in serializer.validated_data.items()
            if field in ('date', 'start_time', 'end_time', 'reason')
        }
        exception = DoctorScheduleService.update_exception(instance.pk, user=request.user, **changes)
        return Response(self.get_serializer(exception).data)

    def perform_destroy(self, instance):
        instance._request_user = self.request.user
        instance.delete()
