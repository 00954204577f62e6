# apps/appointments/serializers.py

from rest_framework import serializers

from apps.doctors.serializers import HHMMField, DoctorMinimalSerializer
from core.constants import AppointmentStatus, PaymentMethod
from services import state_machine
from services.occupancy import effective_price
from .models import Appointment, AppointmentType


class AppointmentTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentType
        fields = ['id', 'clinic', 'name', 'duration_minutes', 'price', 'is_active']


class AppointmentSerializer(serializers.ModelSerializer):
    """Read shape of an appointment, with the status presentation block"""

    doctor_info = DoctorMinimalSerializer(source='doctor', read_only=True)
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    room_name = serializers.CharField(source='room.name', read_only=True, default=None)
    appointment_type_name = serializers.CharField(source='appointment_type.name', read_only=True, default=None)
    price = serializers.SerializerMethodField()
    status_info = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            'id', 'appointment_id', 'clinic', 'doctor', 'doctor_info',
            'patient', 'patient_name', 'room', 'room_name',
            'appointment_type', 'appointment_type_name',
            'date', 'start_time', 'end_time',
            'status', 'status_info',
            'custom_price', 'price', 'payment_method', 'payment_confirmed',
            'cancel_reason', 'cancelled_at', 'cancelled_by',
            'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_price(self, obj):
        return str(effective_price(obj))

    def get_status_info(self, obj):
        return state_machine.describe(obj.status)


class AppointmentCreateSerializer(serializers.Serializer):
    clinic = serializers.IntegerField()
    doctor = serializers.IntegerField()
    patient = serializers.IntegerField()
    room = serializers.IntegerField(required=False, allow_null=True)
    appointment_type = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField()
    start_time = HHMMField()
    end_time = HHMMField(required=False)
    custom_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        end_time = attrs.get('end_time')
        if end_time and end_time <= attrs['start_time']:
            raise serializers.ValidationError({'end_time': 'End time must be after start time'})
        return attrs


class AppointmentUpdateSerializer(serializers.Serializer):
    doctor = serializers.IntegerField(required=False)
    room = serializers.IntegerField(required=False, allow_null=True)
    appointment_type = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField(required=False)
    start_time = HHMMField(required=False)
    end_time = HHMMField(required=False)
    custom_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AppointmentStatus.choices)
    cancel_reason = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)
    payment_confirmed = serializers.BooleanField(required=False, allow_null=True, default=None)
    payment_amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )

    def validate_payment_amount(self, value):
        if value is not None and (not value.is_finite() or value < 0):
            raise serializers.ValidationError('Invalid payment amount')
        return value

    def validate(self, attrs):
        if attrs['status'] == AppointmentStatus.CANCELLED and not attrs.get('cancel_reason'):
            raise serializers.ValidationError({'cancel_reason': 'Cancel reason is required'})
        return attrs
