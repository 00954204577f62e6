# apps/patients/models.py
from django.db import models

from core.constants import Gender
from core.mixins.audit_fields import AuditFieldsMixin
from core.mixins.soft_delete import SoftDeleteMixin


class Patient(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """Patient registered in a clinic"""

    clinic = models.ForeignKey(
        'clinics.Clinic',
        on_delete=models.PROTECT,
        related_name='patients'
    )

    # Personal details
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    second_last_name = models.CharField(max_length=100, blank=True)
    no_second_last_name = models.BooleanField(default=False)
    birth_date = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=1, choices=Gender.choices, blank=True)

    # Contact
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)

    class Meta:
        db_table = 'patients'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['clinic', 'last_name']),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        parts = [self.first_name, self.last_name, self.second_last_name]
        return " ".join(p for p in parts if p)

    @property
    def missing_fields(self):
        """Mandatory fields still empty before a consultation can start"""
        missing = []
        for field in ('first_name', 'last_name', 'phone', 'birth_date', 'gender'):
            if not getattr(self, field):
                missing.append(field)
        if not self.second_last_name and not self.no_second_last_name:
            missing.append('second_last_name')
        return missing

    @property
    def has_complete_data(self):
        return not self.missing_fields
