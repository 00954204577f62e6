# core/constants.py

from django.db import models


class UserRoles:
    """User role constants for RBAC"""
    ADMIN = 'ADMIN'
    CLINIC_ADMIN = 'CLINIC_ADMIN'
    DOCTOR = 'DOCTOR'
    RECEPTION = 'RECEPTION'
    NURSE = 'NURSE'

    CHOICES = [
        (ADMIN, 'Administrator'),
        (CLINIC_ADMIN, 'Clinic Administrator'),
        (DOCTOR, 'Doctor'),
        (RECEPTION, 'Reception'),
        (NURSE, 'Nurse'),
    ]


class Gender(models.TextChoices):
    MALE = 'M', 'Male'
    FEMALE = 'F', 'Female'
    OTHER = 'O', 'Other'


class AppointmentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pendiente'
    CONFIRMED = 'CONFIRMED', 'Confirmada'
    IN_CONSULTATION = 'IN_CONSULTATION', 'En Consulta'
    TRANSFER_PENDING = 'TRANSFER_PENDING', 'Esperando Confirmación de Pago'
    PAID = 'PAID', 'Pagada'
    COMPLETED = 'COMPLETED', 'Completada'
    CANCELLED = 'CANCELLED', 'Cancelada'
    NO_SHOW = 'NO_SHOW', 'No Asistió'
    REQUIRES_RESCHEDULE = 'REQUIRES_RESCHEDULE', 'Requiere Reagendar'


class PaymentMethod(models.TextChoices):
    CASH = 'CASH', 'Efectivo'
    DEBIT_CARD = 'DEBIT_CARD', 'Tarjeta de Débito'
    CREDIT_CARD = 'CREDIT_CARD', 'Tarjeta de Crédito'
    TRANSFER = 'TRANSFER', 'Transferencia'


class Weekday:
    """Weekday numbering used by schedules: 0 = Sunday ... 6 = Saturday"""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    CHOICES = [
        (SUNDAY, 'Sunday'),
        (MONDAY, 'Monday'),
        (TUESDAY, 'Tuesday'),
        (WEDNESDAY, 'Wednesday'),
        (THURSDAY, 'Thursday'),
        (FRIDAY, 'Friday'),
        (SATURDAY, 'Saturday'),
    ]

    NAMES = [name for _, name in CHOICES]

    @staticmethod
    def from_date(value):
        """Map a calendar date to the schedule weekday (Python's weekday() is Monday-based)."""
        return (value.weekday() + 1) % 7


class ReportPeriods:
    DAY = 'day'
    WEEK = 'week'
    MONTH = 'month'
    YEAR = 'year'
    CUSTOM = 'custom'

    CHOICES = [
        (DAY, 'Day'),
        (WEEK, 'Week'),
        (MONTH, 'Month'),
        (YEAR, 'Year'),
        (CUSTOM, 'Custom range'),
    ]


class PartialExceptionPolicy:
    """How a partial-day doctor exception combines with the day's schedule"""
    OVERRIDE = 'override'
    BLOCK = 'block'

    CHOICES = [
        (OVERRIDE, 'Exception interval takes precedence over overlapping schedule'),
        (BLOCK, 'Exception interval is removed from the schedule'),
    ]
