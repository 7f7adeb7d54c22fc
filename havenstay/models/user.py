from sqlalchemy import Column, Integer, String, Text, DateTime, Enum as SqlEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from havenstay.database import Base
from enum import Enum


class UserRole(Enum):
    TRAVELER = "traveler"
    OWNER = "owner"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    # Set once at signup, never updated
    role = Column(
        SqlEnum(
            UserRole,
            values_callable=lambda obj: [e.value for e in obj],
            native_enum=False,
        ),
        nullable=False,
    )

    # Profile
    phone_number = Column(String(30), nullable=True)
    about_me = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    languages = Column(String(255), nullable=True)
    gender = Column(String(30), nullable=True)
    profile_picture = Column(String(1000), nullable=True)
    location = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    properties = relationship(
        "Property", back_populates="owner", cascade="all, delete-orphan"
    )
    bookings = relationship(
        "Booking", back_populates="traveler", cascade="all, delete-orphan"
    )
    favorites = relationship(
        "Favorite", back_populates="traveler", cascade="all, delete-orphan"
    )
