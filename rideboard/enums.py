from enum import Enum


class DriverStateEnum(str, Enum):
    AVAILABLE = "available"
    ON_TRIP = "on_trip"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


class NotificationTypeEnum(str, Enum):
    DRIVER_AVAILABLE = "driver_available"


class ProximityReasonEnum(str, Enum):
    SCF = "scf"
    RADIUS = "radius"
