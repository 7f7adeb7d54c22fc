from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Float,
    Time,
    DateTime,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from havenstay.database import Base
import json


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    property_name = Column(String(200), nullable=False)
    property_type = Column(String(50), nullable=False, default="Apartment")
    description = Column(Text, nullable=True)

    # Location
    location = Column(String(255), nullable=True, index=True)
    street_address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    # Stay details
    price_per_night = Column(Float, nullable=False)
    bedrooms = Column(Integer, nullable=False, default=1)
    bathrooms = Column(Float, nullable=False, default=1)
    max_guests = Column(Integer, nullable=False, default=2)
    amenities = Column(Text, nullable=True)  # "Wifi, Kitchen, Pool"
    photos = Column(Text, nullable=True)  # JSON encoded list of photo paths/urls
    check_in_time = Column(Time, nullable=True)
    check_out_time = Column(Time, nullable=True)

    # Bumped by every booking write; the UPDATE is what serializes them
    availability_version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("price_per_night > 0", name="ck_properties_price_positive"),
        CheckConstraint("max_guests >= 1", name="ck_properties_max_guests"),
    )

    # Relationships
    owner = relationship("User", back_populates="properties")
    bookings = relationship(
        "Booking", back_populates="property", cascade="all, delete-orphan"
    )
    favorites = relationship(
        "Favorite", back_populates="property", cascade="all, delete-orphan"
    )

    def photo_list(self) -> list[str]:
        if not self.photos:
            return []
        try:
            value = json.loads(self.photos)
        except (TypeError, ValueError):
            return []
        return [p for p in value if isinstance(p, str)] if isinstance(value, list) else []

    def set_photo_list(self, photos: list[str]) -> None:
        self.photos = json.dumps(list(photos))
