import logging

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.clinics.models import Clinic
from apps.clinics.permissions import ClinicPermissions
from apps.clinics.serializers import ClinicSerializer
from core.mixins.clinic_queryset import ClinicQuerySetMixin
from core.utils.time_strings import parse_date
from core.utils.timezones import current_local_date, resolve_clinic_timezone
from services.occupancy import OccupancyCalculator
from services.repositories import DjangoSchedulingRepository
from services.schedule_resolver import ScheduleResolver

logger = logging.getLogger(__name__)


class ClinicViewSet(ClinicQuerySetMixin, viewsets.ModelViewSet):
    """
    Clinics; staff only see the clinic they belong to.
    """
    queryset = Clinic.objects.live()
    serializer_class = ClinicSerializer
    permission_classes = [IsAuthenticated, ClinicPermissions]
    clinic_field = "id"

    def perform_create(self, serializer):
        clinic = serializer.save(created_by=self.request.user, updated_by=self.request.user)
        logger.info(f"Clinic created: {clinic.name} ({clinic.timezone})")

    def perform_update(self, serializer):
        serializer.save(updated_by=self.request.user)

    def perform_destroy(self, instance):
        instance._request_user = self.request.user
        instance.delete()

    @action(detail=True, methods=["get"])
    def occupancy(self, request, pk=None):
        """
        Slot occupancy of every active doctor for ?date= (defaults to the
        clinic's current local date).
        """
        from apps.doctors.models import Doctor

        clinic = self.get_object()
        tz_name = resolve_clinic_timezone(clinic)
        target = request.query_params.get("date") or current_local_date(tz_name)
        day = parse_date(target)

        repository = DjangoSchedulingRepository()
        calculator = OccupancyCalculator(repository, ScheduleResolver(repository))
        doctors = Doctor.objects.live().filter(clinic=clinic)
        result = calculator.compute_occupancy(doctors, day)

        return Response({
            "clinic_id": clinic.id,
            "date": day.isoformat(),
            **result.as_dict(),
            "doctors": [
                {
                    "doctor_id": d.doctor_id,
                    "total_slots": d.total_slots,
                    "occupied_slots": d.occupied_slots,
                    "rate": d.rate,
                }
                for d in result.doctors
            ],
            "estimated_income": calculator.estimated_income(clinic.id, day),
        })
