"""
User roles and account status enumerations.

Defines the role types for the logistics marketplace.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        SUPER_ADMIN: Approves accounts and oversees every order
        MANUFACTURER: Lists catalog products
        TRUCK_OWNER: Owns trucks and drivers, fulfils assigned orders
        AGENT: Acting labour that fulfils orders like a truck owner
        DRIVER: Executes trips
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    MANUFACTURER = "MANUFACTURER"
    TRUCK_OWNER = "TRUCK_OWNER"
    AGENT = "AGENT"
    DRIVER = "DRIVER"


class AccountStatus(str, enum.Enum):
    """Account approval status. Only APPROVED accounts can sign in."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"
