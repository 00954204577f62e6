# apps/appointments/urls.py

from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import AppointmentViewSet, AppointmentTypeViewSet

router = SimpleRouter()
router.register(r'types', AppointmentTypeViewSet, basename='appointment-type')
router.register(r'', AppointmentViewSet, basename='appointment')

urlpatterns = [
    path('', include(router.urls)),
]
