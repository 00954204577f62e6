# apps/clinics/models/room.py
from django.db import models

from core.mixins.audit_fields import AuditFieldsMixin
from core.mixins.soft_delete import SoftDeleteMixin


class Room(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """Consultation room inside a clinic"""

    clinic = models.ForeignKey(
        "clinics.Clinic",
        on_delete=models.CASCADE,
        related_name="rooms",
    )
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "rooms"
        ordering = ["clinic", "name"]
        unique_together = ("clinic", "name")

    def __str__(self):
        return f"{self.name} ({self.clinic})"
