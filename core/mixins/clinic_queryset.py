from core.permissions import Permissions


class ClinicQuerySetMixin:
    """
    Enforces clinic-based queryset filtering.
    """

    clinic_field = "clinic_id"

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user

        if not Permissions.requires_clinic_scope(user.role):
            return qs

        return qs.filter(**{self.clinic_field: user.clinic_id})
