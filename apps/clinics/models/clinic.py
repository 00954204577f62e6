# apps/clinics/models/clinic.py
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.mixins.audit_fields import AuditFieldsMixin
from core.mixins.soft_delete import SoftDeleteMixin


def default_timezone():
    return settings.DEFAULT_CLINIC_TIMEZONE


def default_slot_minutes():
    return settings.DEFAULT_SLOT_MINUTES


class Clinic(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """
    Tenant. Owns the weekly schedule inherited by doctors without their own,
    and the timezone every date/time of its appointments is read in.
    """

    name = models.CharField(max_length=255)
    code = models.CharField(max_length=50, unique=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)

    # IANA identifier, e.g. America/Santiago
    timezone = models.CharField(max_length=64, blank=True, default=default_timezone)
    default_slot_minutes = models.PositiveIntegerField(
        default=default_slot_minutes,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "clinics"
        ordering = ["name"]

    def __str__(self):
        return self.name
