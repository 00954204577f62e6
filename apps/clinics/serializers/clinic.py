from rest_framework import serializers

from apps.clinics.models import Clinic
from core.exceptions import ConfigurationError
from core.utils.timezones import get_zone


    # =========================
    #✅ Clinic
    # =========================
class ClinicSerializer(serializers.ModelSerializer):
    class Meta:
        model = Clinic
        fields = [
            "id",
            "name",
            "code",
            "email",
            "phone",
            "address",
            "timezone",
            "default_slot_minutes",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_timezone(self, value):
        if not value:
            return value
        try:
            get_zone(value)
        except ConfigurationError as e:
            raise serializers.ValidationError(str(e))
        return value
