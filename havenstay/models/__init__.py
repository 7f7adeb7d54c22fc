# Import all models so they're registered with Base.metadata
from havenstay.models.user import User, UserRole
from havenstay.models.property import Property
from havenstay.models.booking import Booking, BookingStatus
from havenstay.models.favorite import Favorite
from havenstay.models.audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "Property",
    "Booking",
    "BookingStatus",
    "Favorite",
    "AuditLog",
]
