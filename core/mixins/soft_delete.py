# core/mixins/soft_delete.py

from django.conf import settings
from django.db import models
from django.utils import timezone


class LiveQuerySet(models.QuerySet):
    def live(self):
        """Active rows that have not been soft deleted"""
        return self.filter(is_active=True, deleted_at__isnull=True)


class SoftDeleteMixin(models.Model):
    """Soft delete instead of actual deletion"""
    is_active = models.BooleanField(default=True)
    deleted_at = models.DateTimeField(null=True, blank=True, editable=False)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        editable=False,
        related_name='deleted_%(class)ss'
    )

    objects = LiveQuerySet.as_manager()
    
    def delete(self, *args, **kwargs):
        """Override delete to soft delete"""
        from django.db import transaction
        
        with transaction.atomic():
            self.is_active = False
            self.deleted_at = timezone.now()
            if hasattr(self, '_request_user'):
                self.deleted_by = self._request_user
            self.save()
    
    class Meta:
        abstract = True
