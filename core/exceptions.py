# core/exceptions.py
import logging

from django.core.exceptions import ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ClinicError(Exception):
    """Base class for scheduling errors raised by the core"""


class ConfigurationError(ClinicError):
    """Missing or invalid clinic configuration (e.g. unknown IANA timezone)"""


class InvalidTimeFormat(ClinicError, ValueError):
    """Malformed HH:MM / YYYY-MM-DD input"""


class InvalidTransitionError(ClinicError):
    """Attempted appointment status change not allowed by the state machine"""

    def __init__(self, from_status, to_status, message=None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message or f"Invalid state transition from {from_status} to {to_status}"
        )


class AvailabilityConflict(ClinicError):
    """
    Booking rejected because the doctor is unavailable.
    Carries the facts the decision was based on; retry policy is the caller's.
    """

    def __init__(self, message, intervals=None, existing_count=0, conflicts=None):
        self.intervals = list(intervals or [])
        self.existing_count = existing_count
        self.conflicts = list(conflicts or [])
        super().__init__(message)

    def as_dict(self):
        return {
            "detail": str(self),
            "intervals": [
                {"start_time": i.start_time, "end_time": i.end_time}
                for i in self.intervals
            ],
            "existing_count": self.existing_count,
            "conflicts": self.conflicts,
        }


def clinic_exception_handler(exc, context):
    """DRF exception handler translating core errors into API responses"""
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, AvailabilityConflict):
        return Response(exc.as_dict(), status=status.HTTP_409_CONFLICT)

    if isinstance(exc, InvalidTransitionError):
        return Response(
            {
                "detail": str(exc),
                "from_status": exc.from_status,
                "to_status": exc.to_status,
            },
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, ValidationError):
        return Response({"error": exc.messages}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, InvalidTimeFormat):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, ConfigurationError):
        logger.error(f"Clinic configuration error: {exc}")
        return Response(
            {"detail": str(exc)},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return None
