"""
Fleet enumerations for trucks, drivers and acting labour profiles.
"""

import enum


class TruckStatus(str, enum.Enum):
    """Truck status enumeration."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    MAINTENANCE = "MAINTENANCE"


class DriverStatus(str, enum.Enum):
    """Driver availability (attendance) enumeration."""
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"


class LabourType(str, enum.Enum):
    """Kind of acting labour profile."""
    TRUCK_OWNER = "TRUCK_OWNER"
    AGENT = "AGENT"
