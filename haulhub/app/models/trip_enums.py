"""
Order and trip status enumerations.
"""

import enum


class OrderStatus(str, enum.Enum):
    """Order status enumeration."""
    PENDING = "PENDING"  # Placed by a buyer
    CONFIRMED = "CONFIRMED"  # Accepted by the manufacturer
    ASSIGNED = "ASSIGNED"  # Handed to a truck owner, no trip yet
    IN_PROGRESS = "IN_PROGRESS"  # A trip exists and is not finished
    COMPLETED = "COMPLETED"  # Delivered
    CANCELLED = "CANCELLED"


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    UPCOMING = "UPCOMING"  # Driver and truck bound, not started
    RUNNING = "RUNNING"  # Driver is on the road
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
