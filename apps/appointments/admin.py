# apps/appointments/admin.py
from django.contrib import admin

from .models import Appointment, AppointmentType


@admin.register(AppointmentType)
class AppointmentTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'clinic', 'duration_minutes', 'price', 'is_active')
    list_filter = ('clinic', 'is_active')
    search_fields = ('name',)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('appointment_id', 'patient', 'doctor', 'clinic', 'status', 'date', 'start_time')
    list_filter = ('status', 'clinic', 'doctor', 'date')
    search_fields = ('appointment_id', 'patient__first_name', 'patient__last_name')
    # Status only changes through AppointmentService
    readonly_fields = ('appointment_id', 'status', 'cancelled_at', 'cancelled_by')
    raw_id_fields = ('patient', 'doctor', 'clinic', 'room', 'appointment_type')

    fieldsets = (
        ('Basic Info', {
            'fields': ('appointment_id', 'clinic', 'patient', 'doctor', 'room', 'appointment_type', 'status')
        }),
        ('Timing', {
            'fields': ('date', 'start_time', 'end_time')
        }),
        ('Payment', {
            'fields': ('custom_price', 'payment_method', 'payment_confirmed')
        }),
        ('Cancellation', {
            'fields': ('cancel_reason', 'cancelled_at', 'cancelled_by'),
            'classes': ('collapse',)
        }),
        ('Details', {
            'fields': ('notes',)
        }),
    )
