from .clinic import Clinic
from .room import Room
from .schedule import ClinicSchedule

__all__ = ["Clinic", "ClinicSchedule", "Room"]
