# apps/doctors/admin.py
from django.contrib import admin

from .models import Doctor, DoctorSchedule, DoctorException


class DoctorScheduleInline(admin.TabularInline):
    model = DoctorSchedule
    extra = 0
    fields = ('weekday', 'start_time', 'end_time', 'is_active')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'acronym', 'clinic', 'specialty', 'is_active')
    list_filter = ('clinic', 'is_active')
    search_fields = ('first_name', 'last_name', 'acronym')
    raw_id_fields = ('user', 'default_room')
    inlines = [DoctorScheduleInline]


@admin.register(DoctorException)
class DoctorExceptionAdmin(admin.ModelAdmin):
    list_display = ('doctor', 'date', 'start_time', 'end_time', 'reason', 'is_active')
    list_filter = ('date', 'is_active')
    search_fields = ('doctor__first_name', 'doctor__last_name', 'reason')
    date_hierarchy = 'date'
