# apps/patients/admin.py
from django.contrib import admin

from .models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'clinic', 'phone', 'birth_date', 'is_active')
    list_filter = ('clinic', 'gender', 'is_active')
    search_fields = ('first_name', 'last_name', 'second_last_name', 'phone')
