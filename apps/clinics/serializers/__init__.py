from .clinic import ClinicSerializer
from .schedule import ClinicScheduleSerializer, RoomSerializer
