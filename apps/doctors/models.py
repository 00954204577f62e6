#apps/doctors/models.py

from django.core.exceptions import ValidationError
from django.db import models

from core.constants import Weekday
from core.mixins.audit_fields import AuditFieldsMixin
from core.mixins.soft_delete import SoftDeleteMixin
from core.mixins.time_range import WeeklyTimeRangeMixin, validate_hhmm
from core.utils.time_strings import TIME_RE, time_to_minutes


class Doctor(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """Doctor working in one clinic, optionally linked to a staff account"""

    clinic = models.ForeignKey(
        'clinics.Clinic',
        on_delete=models.PROTECT,
        related_name='doctors'
    )
    user = models.OneToOneField(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='doctor_profile'
    )

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    # Short display code, e.g. DrJP
    acronym = models.CharField(max_length=10, blank=True)
    specialty = models.CharField(max_length=100, blank=True)

    default_room = models.ForeignKey(
        'clinics.Room',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='default_doctors'
    )

    class Meta:
        db_table = 'doctors'
        ordering = ['last_name', 'first_name']
        indexes = [
            models.Index(fields=['clinic', 'is_active']),
        ]

    def __str__(self):
        return f"Dr. {self.full_name}"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def save(self, *args, **kwargs):
        if not self.acronym:
            self.acronym = self._generate_acronym()
        super().save(*args, **kwargs)

    def _generate_acronym(self):
        """Dr + initials, e.g. DrJP"""
        initials = "".join(part[0].upper() for part in (self.first_name, self.last_name) if part)
        return f"Dr{initials}"


class DoctorSchedule(AuditFieldsMixin, SoftDeleteMixin, WeeklyTimeRangeMixin):
    """
    Doctor's own weekly working block. Once a doctor has any of these, the
    clinic schedule no longer applies to them on any weekday.
    """

    doctor = models.ForeignKey(
        Doctor,
        on_delete=models.CASCADE,
        related_name='schedules'
    )

    class Meta:
        db_table = 'doctor_schedules'
        ordering = ['doctor', 'weekday', 'start_time']
        indexes = [
            models.Index(fields=['doctor', 'weekday', 'is_active']),
        ]

    def __str__(self):
        return f"{self.doctor} - {Weekday.NAMES[self.weekday]} {self.start_time}-{self.end_time}"


class DoctorException(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """
    Date-specific change to a doctor's availability.
    No times: the doctor is off all day. Both times: partial block for that range.
    """

    doctor = models.ForeignKey(
        Doctor,
        on_delete=models.CASCADE,
        related_name='exceptions'
    )

    date = models.DateField()
    start_time = models.CharField(max_length=5, null=True, blank=True, validators=[validate_hhmm])
    end_time = models.CharField(max_length=5, null=True, blank=True, validators=[validate_hhmm])
    reason = models.CharField(max_length=200, blank=True)

    class Meta:
        db_table = 'doctor_exceptions'
        ordering = ['-date']
        indexes = [
            models.Index(fields=['doctor', 'date']),
        ]

    def __str__(self):
        if self.is_full_day:
            return f"{self.doctor} - {self.date} (full day)"
        return f"{self.doctor} - {self.date} {self.start_time}-{self.end_time}"

    @property
    def is_full_day(self):
        return not self.start_time and not self.end_time

    def clean(self):
        if bool(self.start_time) != bool(self.end_time):
            raise ValidationError("Both start and end time are required for a partial exception")
        if not self.start_time:
            return
        if not (TIME_RE.match(self.start_time) and TIME_RE.match(self.end_time)):
            raise ValidationError("Invalid time format (HH:MM)")
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValidationError("End time must be after start time")
