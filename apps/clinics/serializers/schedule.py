from rest_framework import serializers

from apps.clinics.models import ClinicSchedule, Room
from apps.doctors.serializers import HHMMField
from core.constants import Weekday


class ClinicScheduleSerializer(serializers.ModelSerializer):
    """Weekly clinic block; writes go through ClinicScheduleService"""

    weekday = serializers.ChoiceField(choices=Weekday.CHOICES)
    weekday_name = serializers.SerializerMethodField()
    start_time = HHMMField()
    end_time = HHMMField()

    class Meta:
        model = ClinicSchedule
        fields = [
            "id",
            "clinic",
            "weekday",
            "weekday_name",
            "start_time",
            "end_time",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "is_active", "created_at", "updated_at"]

    def get_weekday_name(self, obj):
        return Weekday.NAMES[obj.weekday]

    def validate(self, attrs):
        start_time = attrs.get("start_time", getattr(self.instance, "start_time", None))
        end_time = attrs.get("end_time", getattr(self.instance, "end_time", None))
        if start_time and end_time and end_time <= start_time:
            raise serializers.ValidationError({"end_time": "End time must be after start time"})
        return attrs


class RoomSerializer(serializers.ModelSerializer):
    class Meta:
        model = Room
        fields = ["id", "clinic", "name", "description", "is_active", "created_at"]
        read_only_fields = ["id", "created_at"]
