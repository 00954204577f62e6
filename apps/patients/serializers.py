# apps/patients/serializers.py
from rest_framework import serializers

from .models import Patient


class PatientSerializer(serializers.ModelSerializer):
    """Main serializer for Patient model"""

    full_name = serializers.CharField(read_only=True)
    missing_fields = serializers.ListField(child=serializers.CharField(), read_only=True)
    has_complete_data = serializers.BooleanField(read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id', 'clinic',
            'first_name', 'last_name', 'second_last_name', 'no_second_last_name',
            'full_name', 'birth_date', 'gender', 'phone', 'email',
            'missing_fields', 'has_complete_data',
            'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'is_active', 'created_at', 'updated_at']

    def validate(self, attrs):
        no_second = attrs.get('no_second_last_name', getattr(self.instance, 'no_second_last_name', False))
        second = attrs.get('second_last_name', getattr(self.instance, 'second_last_name', ''))
        if no_second and second:
            raise serializers.ValidationError({
                'second_last_name': 'Leave empty when the patient has no second last name'
            })
        return attrs
