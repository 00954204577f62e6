# apps/doctors/serializers.py

from rest_framework import serializers

from core.constants import Weekday
from core.utils.time_strings import TIME_RE
from .models import Doctor, DoctorSchedule, DoctorException


class DoctorMinimalSerializer(serializers.ModelSerializer):
    """Minimal doctor serializer for dropdowns and basic info"""

    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Doctor
        fields = ['id', 'full_name', 'acronym', 'specialty', 'clinic', 'is_active']


class DoctorSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    default_room_name = serializers.CharField(source='default_room.name', read_only=True, default=None)

    class Meta:
        model = Doctor
        fields = [
            'id', 'clinic', 'user', 'first_name', 'last_name', 'full_name',
            'acronym', 'specialty', 'default_room', 'default_room_name',
            'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        clinic = attrs.get('clinic') or getattr(self.instance, 'clinic', None)
        room = attrs.get('default_room')
        if room and clinic and room.clinic_id != clinic.id:
            raise serializers.ValidationError({
                'default_room': 'Room belongs to another clinic'
            })
        return attrs


class HHMMField(serializers.CharField):
    """Clinic-local HH:MM wall-clock time"""

    def __init__(self, **kwargs):
        kwargs.setdefault('max_length', 5)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        if not TIME_RE.match(value):
            raise serializers.ValidationError('Invalid time format (HH:MM)')
        return value


class DoctorScheduleSerializer(serializers.ModelSerializer):
    """Serializer for doctor schedules; writes go through DoctorScheduleService"""

    weekday = serializers.ChoiceField(choices=Weekday.CHOICES)
    weekday_name = serializers.SerializerMethodField()
    start_time = HHMMField()
    end_time = HHMMField()

    class Meta:
        model = DoctorSchedule
        fields = [
            'id', 'doctor', 'weekday', 'weekday_name',
            'start_time', 'end_time', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['is_active', 'created_at', 'updated_at']

    def get_weekday_name(self, obj):
        return Weekday.NAMES[obj.weekday]

    def validate(self, attrs):
        start_time = attrs.get('start_time', getattr(self.instance, 'start_time', None))
        end_time = attrs.get('end_time', getattr(self.instance, 'end_time', None))
        if start_time and end_time and end_time <= start_time:
            raise serializers.ValidationError({
                'end_time': 'End time must be after start time'
            })
        return attrs


class DoctorExceptionSerializer(serializers.ModelSerializer):
    start_time = HHMMField(required=False, allow_null=True, allow_blank=True)
    end_time = HHMMField(required=False, allow_null=True, allow_blank=True)
    is_full_day = serializers.BooleanField(read_only=True)

    class Meta:
        model = DoctorException
        fields = [
            'id', 'doctor', 'date', 'start_time', 'end_time', 'reason',
            'is_full_day', 'created_at',
        ]
        read_only_fields = ['created_at']

    def to_internal_value(self, data):
        # Blank times mean a full-day exception
        if hasattr(data, 'copy'):
            data = data.copy()
        for field in ('start_time', 'end_time'):
            if field in data and data[field] == '':
                data[field] = None
        return super().to_internal_value(data)

    def validate(self, attrs):
        # PATCH keeps the stored bound that was not sent
        start_time = attrs.get('start_time', getattr(self.instance, 'start_time', None))
        end_time = attrs.get('end_time', getattr(self.instance, 'end_time', None))
        if bool(start_time) != bool(end_time):
            raise serializers.ValidationError(
                'Both start and end time are required for a partial exception'
            )
        if start_time and end_time <= start_time:
            raise serializers.ValidationError({
                'end_time': 'End time must be after start time'
            })
        return attrs


class IntervalSerializer(serializers.Serializer):
    start_time = serializers.CharField()
    end_time = serializers.CharField()


class AvailabilityQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
    duration = serializers.IntegerField(required=False, min_value=1, max_value=24 * 60)


class AvailabilityRangeQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):
        if attrs['end'] < attrs['start']:
            raise serializers.ValidationError({'end': 'End date must not be before start date'})
        if (attrs['end'] - attrs['start']).days > 92:
            raise serializers.ValidationError({'end': 'Range cannot exceed 92 days'})
        return attrs
