# apps/reports/serializers.py
from rest_framework import serializers

from core.constants import ReportPeriods


class ReportQuerySerializer(serializers.Serializer):
    """Query parameters shared by the summary and export endpoints"""
    period = serializers.ChoiceField(choices=ReportPeriods.CHOICES, default=ReportPeriods.MONTH)
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)
    clinic = serializers.IntegerField(required=False)
    doctor = serializers.IntegerField(required=False)
    appointment_type = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if attrs['period'] == ReportPeriods.CUSTOM:
            if not attrs.get('start') or not attrs.get('end'):
                raise serializers.ValidationError('Custom period requires start and end dates')
            if attrs['end'] < attrs['start']:
                raise serializers.ValidationError({'end': 'End date must be on or after start date'})
        return attrs


class ExportQuerySerializer(ReportQuerySerializer):
    file_format = serializers.ChoiceField(choices=['xlsx', 'csv'], default='xlsx')
