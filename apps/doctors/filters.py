# apps/doctors/filters.py

from django_filters import rest_framework as filters
from django.db.models import Q

from .models import Doctor, DoctorSchedule, DoctorException


class DoctorFilter(filters.FilterSet):
    """Filter for doctors"""

    search = filters.CharFilter(method='filter_search')
    clinic = filters.NumberFilter(field_name='clinic_id')
    specialty = filters.CharFilter(field_name='specialty', lookup_expr='iexact')

    class Meta:
        model = Doctor
        fields = ['clinic', 'specialty']

    def filter_search(self, queryset, name, value):
        """Search by name or acronym"""
        return queryset.filter(
            Q(first_name__icontains=value) |
            Q(last_name__icontains=value) |
            Q(acronym__icontains=value)
        )


class DoctorScheduleFilter(filters.FilterSet):
    doctor = filters.NumberFilter(field_name='doctor_id')
    weekday = filters.NumberFilter(field_name='weekday')

    class Meta:
        model = DoctorSchedule
        fields = ['doctor', 'weekday']


class DoctorExceptionFilter(filters.FilterSet):
    doctor = filters.NumberFilter(field_name='doctor_id')
    date = filters.DateFilter(field_name='date')
    date_from = filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = filters.DateFilter(field_name='date', lookup_expr='lte')

    class Meta:
        model = DoctorException
        fields = ['doctor', 'date', 'date_from', 'date_to']
