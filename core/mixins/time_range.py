# core/mixins/time_range.py
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models

from core.utils.time_strings import TIME_RE, time_to_minutes

validate_hhmm = RegexValidator(TIME_RE, "Invalid time format (HH:MM)")


class WeeklyTimeRangeMixin(models.Model):
    """
    One weekly working block: weekday (0 = Sunday) plus clinic-local
    HH:MM start and end.
    """
    weekday = models.PositiveSmallIntegerField()
    start_time = models.CharField(max_length=5, validators=[validate_hhmm])
    end_time = models.CharField(max_length=5, validators=[validate_hhmm])

    class Meta:
        abstract = True

    def clean(self):
        super().clean()
        if self.weekday is not None and not 0 <= self.weekday <= 6:
            raise ValidationError({'weekday': "Weekday must be between 0 (Sunday) and 6 (Saturday)"})
        if not (self.start_time and self.end_time):
            return
        if not (TIME_RE.match(self.start_time) and TIME_RE.match(self.end_time)):
            raise ValidationError("Invalid time format (HH:MM)")
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValidationError("End time must be after start time")
