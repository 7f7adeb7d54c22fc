from sqlalchemy import (
    Column,
    Integer,
    Float,
    Date,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Enum as SqlEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from havenstay.database import Base
import enum


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"


# Statuses that hold the dates of a property
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.ACCEPTED)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    traveler_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Half-open stay: start_date is check-in, end_date is check-out
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    number_of_guests = Column(Integer, nullable=False, default=1)
    total_price = Column(Float, nullable=False)
    status = Column(
        SqlEnum(
            BookingStatus,
            values_callable=lambda obj: [e.value for e in obj],
            native_enum=False,
        ),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_bookings_date_order"),
        CheckConstraint("number_of_guests >= 1", name="ck_bookings_guests"),
    )

    # Relationships
    property = relationship("Property", back_populates="bookings")
    traveler = relationship("User", back_populates="bookings")
