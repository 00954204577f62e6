# apps/clinics/admin.py
from django.contrib import admin

from .models import Clinic, ClinicSchedule, Room


class ClinicScheduleInline(admin.TabularInline):
    model = ClinicSchedule
    extra = 0
    fields = ('weekday', 'start_time', 'end_time', 'is_active')


@admin.register(Clinic)
class ClinicAdmin(admin.ModelAdmin):
    list_display = ('name', 'code', 'timezone', 'default_slot_minutes', 'is_active')
    search_fields = ('name', 'code')
    inlines = [ClinicScheduleInline]


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('name', 'clinic', 'is_active')
    list_filter = ('clinic',)
