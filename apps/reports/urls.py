# apps/reports/urls.py

from django.urls import path

from .views import DashboardView, ReportSummaryView, ReportExportView

urlpatterns = [
    path('dashboard/', DashboardView.as_view(), name='report-dashboard'),
    path('summary/', ReportSummaryView.as_view(), name='report-summary'),
    path('summary/export/', ReportExportView.as_view(), name='report-export'),
]
