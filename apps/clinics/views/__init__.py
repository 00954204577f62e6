from .clinic import ClinicViewSet
from .schedule import ClinicScheduleViewSet, RoomViewSet
