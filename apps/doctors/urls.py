# apps/doctors/urls.py

from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import DoctorViewSet, DoctorScheduleViewSet, DoctorExceptionViewSet

router = SimpleRouter()
# Registered before the doctor routes so "schedules/" is not read as a doctor id
router.register(r'schedules', DoctorScheduleViewSet, basename='doctor-schedule')
router.register(r'exceptions', DoctorExceptionViewSet, basename='doctor-exception')
router.register(r'', DoctorViewSet, basename='doctor')

urlpatterns = [
    path('', include(router.urls)),
]
