from rest_framework import status, viewsets
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.clinics.models import ClinicSchedule, Room
from apps.clinics.permissions import ClinicSchedulePermissions, RoomPermissions
from apps.clinics.serializers import ClinicScheduleSerializer, RoomSerializer
from apps.clinics.services.schedule_service import ClinicScheduleService
from core.mixins.clinic_queryset import ClinicQuerySetMixin
from core.permissions import Permissions


class ClinicScheduleViewSet(ClinicQuerySetMixin, viewsets.ModelViewSet):
    """
    Weekly clinic blocks (?clinic= to filter, ADMIN only).
    """
    queryset = ClinicSchedule.objects.live().select_related("clinic")
    serializer_class = ClinicScheduleSerializer
    permission_classes = [IsAuthenticated, ClinicSchedulePermissions]

    def get_queryset(self):
        queryset = super().get_queryset()
        clinic_id = self.request.query_params.get("clinic")
        if clinic_id:
            queryset = queryset.filter(clinic_id=clinic_id)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if not Permissions.can_access_clinic(request.user, data["clinic"].id):
            raise PermissionDenied("Cannot manage another clinic's schedule")

        schedule = ClinicScheduleService.create_schedule(
            data["clinic"], data["weekday"], data["start_time"], data["end_time"],
            user=request.user,
        )
        return Response(self.get_serializer(schedule).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        changes = {
            field: value for field, value in serializer.validated_data.items()
            if field in ("weekday", "start_time", "end_time")
        }
        schedule = ClinicScheduleService.update_schedule(instance.pk, user=request.user, **changes)
        return Response(self.get_serializer(schedule).data)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        ClinicScheduleService.delete_schedule(instance.pk, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class RoomViewSet(ClinicQuerySetMixin, viewsets.ModelViewSet):
    queryset = Room.objects.live()
    serializer_class = RoomSerializer
    permission_classes = [IsAuthenticated, RoomPermissions]

    def perform_create(self, serializer):
        if not Permissions.can_access_clinic(self.request.user, serializer.validated_data["clinic"].id):
            raise PermissionDenied("Cannot create rooms for another clinic")
        serializer.save(created_by=self.request.user, updated_by=self.request.user)

    def perform_destroy(self, instance):
        instance._request_user = self.request.user
        instance.delete()
