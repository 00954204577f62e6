# apps/clinics/models/schedule.py
from django.db import models

from core.constants import Weekday
from core.mixins.audit_fields import AuditFieldsMixin
from core.mixins.soft_delete import SoftDeleteMixin
from core.mixins.time_range import WeeklyTimeRangeMixin


class ClinicSchedule(AuditFieldsMixin, SoftDeleteMixin, WeeklyTimeRangeMixin):
    """
    Weekly opening block of a clinic. Several blocks per weekday are allowed
    (morning / afternoon).
    """

    clinic = models.ForeignKey(
        "clinics.Clinic",
        on_delete=models.CASCADE,
        related_name="schedules",
    )

    class Meta:
        db_table = "clinic_schedules"
        ordering = ["clinic", "weekday", "start_time"]
        indexes = [
            models.Index(fields=["clinic", "weekday", "is_active"]),
        ]

    def __str__(self):
        return f"{self.clinic} - {Weekday.NAMES[self.weekday]} {self.start_time}-{self.end_time}"
