# apps/appointments/filters.py

from django_filters import rest_framework as filters

from core.constants import AppointmentStatus
from .models import Appointment


class AppointmentFilter(filters.FilterSet):
    """Filter for appointments"""

    clinic = filters.NumberFilter(field_name='clinic_id')
    doctor = filters.NumberFilter(field_name='doctor_id')
    patient = filters.NumberFilter(field_name='patient_id')
    status = filters.MultipleChoiceFilter(choices=AppointmentStatus.choices)
    date = filters.DateFilter(field_name='date')
    date_from = filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = filters.DateFilter(field_name='date', lookup_expr='lte')

    class Meta:
        model = Appointment
        fields = ['clinic', 'doctor', 'patient', 'status', 'date', 'date_from', 'date_to']
