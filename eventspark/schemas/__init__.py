from eventspark.schemas.event import Event, EventStatus, EventSummary, PersonRef
from eventspark.schemas.booking import Booking, BookingStatus, PaymentStatus
from eventspark.schemas.user import User, UserBuckets, UserCreate, UserRole

__all__ = [
    "Event", "EventStatus", "EventSummary", "PersonRef",
    "Booking", "BookingStatus", "PaymentStatus",
    "User", "UserBuckets", "UserCreate", "UserRole",
]
