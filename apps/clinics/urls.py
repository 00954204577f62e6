# apps/clinics/urls.py
from django.urls import path, include
from rest_framework.routers import SimpleRouter

from apps.clinics import views

router = SimpleRouter()
router.register(r'schedules', views.ClinicScheduleViewSet, basename='clinic-schedule')
router.register(r'rooms', views.RoomViewSet, basename='room')
router.register(r'', views.ClinicViewSet, basename='clinic')

urlpatterns = [
    path('', include(router.urls)),
]
