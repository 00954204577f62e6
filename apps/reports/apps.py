from django.apps import AppConfig


class ReportsConfig(AppConfig):
    name = 'apps.reports'
    verbose_name = 'Reports & Analytics'
    default_auto_field = 'django.db.models.BigAutoField'
