# apps/appointments/models.py

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from core.constants import AppointmentStatus, PaymentMethod
from core.mixins.audit_fields import AuditFieldsMixin
from core.mixins.soft_delete import SoftDeleteMixin
from core.mixins.time_range import validate_hhmm
from core.utils.time_strings import time_to_minutes
from services import state_machine


class AppointmentType(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """Template with the standard duration and price of a consultation"""

    clinic = models.ForeignKey(
        'clinics.Clinic',
        on_delete=models.CASCADE,
        related_name='appointment_types'
    )
    name = models.CharField(max_length=100)
    duration_minutes = models.PositiveIntegerField(default=30, validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    class Meta:
        db_table = 'appointment_types'
        ordering = ['clinic', 'name']
        unique_together = ('clinic', 'name')

    def __str__(self):
        return self.name


class Appointment(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """
    Booking of a patient with a doctor. ``date`` is the clinic-local calendar
    date; ``start_time`` / ``end_time`` are clinic-local HH:MM.
    """

    clinic = models.ForeignKey(
        'clinics.Clinic',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    doctor = models.ForeignKey(
        'doctors.Doctor',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    room = models.ForeignKey(
        'clinics.Room',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='appointments'
    )
    appointment_type = models.ForeignKey(
        AppointmentType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='appointments'
    )

    # Appointment details
    appointment_id = models.CharField(max_length=50, unique=True, blank=True)
    status = models.CharField(
        max_length=30,
        choices=AppointmentStatus.choices,
        default=state_machine.INITIAL_STATUS
    )

    # Timing
    date = models.DateField()
    start_time = models.CharField(max_length=5, validators=[validate_hhmm])
    end_time = models.CharField(max_length=5, validators=[validate_hhmm])

    # Payment
    custom_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, blank=True)
    payment_confirmed = models.BooleanField(default=False)

    # Cancellation
    cancel_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='cancelled_appointments'
    )

    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'appointments'
        ordering = ['date', 'start_time']
        indexes = [
            models.Index(fields=['appointment_id']),
            models.Index(fields=['clinic', 'date']),
            models.Index(fields=['doctor', 'date']),
            models.Index(fields=['patient', 'date']),
            models.Index(fields=['status', 'date']),
        ]

    def __str__(self):
        return f"Appointment {self.appointment_id}: {self.patient} with {self.doctor} ({self.get_status_display()})"

    def clean(self):
        if self.start_time and self.end_time:
            if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
                raise ValidationError("End time must be after start time")
        if self.custom_price is not None and self.custom_price < 0:
            raise ValidationError({'custom_price': "Price cannot be negative"})

    def save(self, *args, **kwargs):
        if not self.appointment_id:
            self.appointment_id = self._generate_appointment_id()
        super().save(*args, **kwargs)

    def _generate_appointment_id(self):
        """Generate APPT-YYYYMMDD-XXXX format ID"""
        date_str = self.date.strftime('%Y%m%d')

        last_appointment = Appointment.objects.filter(
            appointment_id__startswith=f'APPT-{date_str}-'
        ).order_by('appointment_id').last()

        if last_appointment:
            new_num = int(last_appointment.appointment_id.split('-')[-1]) + 1
        else:
            new_num = 1

        return f'APPT-{date_str}-{new_num:04d}'

    @property
    def is_terminal(self):
        return state_machine.is_terminal(self.status)

    @property
    def available_transitions(self):
        return state_machine.available_transitions(self.status)

    def transition_to(self, new_status):
        """Move to ``new_status`` if the state machine allows it; does not save."""
        state_machine.assert_transition(self.status, new_status)
        self.status = new_status
