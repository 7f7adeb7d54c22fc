import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session, selectinload

from havenstay.models.booking import Booking, BookingStatus, ACTIVE_BOOKING_STATUSES
from havenstay.models.property import Property
from havenstay.schemas.booking import BookingCreate
from havenstay.services.booking_rules import (
    BookingValidationError,
    calculate_total_price,
    check_transition,
    validate_stay,
)

logger = logging.getLogger(__name__)


def _with_parties(query):
    return query.options(
        selectinload(Booking.property), selectinload(Booking.traveler)
    )


class BookingService:
    def _lock_property(self, db: Session, property_id: int) -> None:
        # The UPDATE takes a write lock (row lock on PostgreSQL/MySQL, database
        # lock on SQLite) held until commit, so competing booking writes for the
        # same property run their overlap check one after the other.
        db.execute(
            update(Property)
            .where(Property.id == property_id)
            .values(availability_version=Property.availability_version + 1)
        )

    def _overlapping(
        self,
        db: Session,
        property_id: int,
        start_date,
        end_date,
        statuses=ACTIVE_BOOKING_STATUSES,
        exclude_id: Optional[int] = None,
    ):
        query = select(Booking).where(
            Booking.property_id == property_id,
            Booking.status.in_(statuses),
            Booking.start_date < end_date,
            Booking.end_date > start_date,
        )
        if exclude_id is not None:
            query = query.where(Booking.id != exclude_id)
        return db.execute(query).scalars().all()

    async def create_booking(
        self, db: Session, booking_data: BookingCreate, traveler_id: int
    ) -> Booking:
        prop = db.execute(
            select(Property).where(Property.id == booking_data.property_id)
        ).scalar_one_or_none()
        if not prop:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Property not found"
            )

        try:
            self._lock_property(db, prop.id)
            existing = self._overlapping(
                db, prop.id, booking_data.start_date, booking_data.end_date
            )
            validate_stay(
                max_guests=prop.max_guests,
                start_date=booking_data.start_date,
                end_date=booking_data.end_date,
                number_of_guests=booking_data.number_of_guests,
                existing=existing,
            )
            booking = Booking(
                property_id=prop.id,
                traveler_id=traveler_id,
                start_date=booking_data.start_date,
                end_date=booking_data.end_date,
                number_of_guests=booking_data.number_of_guests,
                total_price=calculate_total_price(
                    prop.price_per_night, booking_data.start_date, booking_data.end_date
                ),
                status=BookingStatus.PENDING,
            )
            db.add(booking)
            db.commit()
        except BookingValidationError as e:
            db.rollback()
            logger.info(
                "Booking rejected for property %s (%s): %s", prop.id, e.rule, e.message
            )
            raise
        except Exception:
            db.rollback()
            raise

        return await self.get_booking(db, booking.id)

    async def get_booking(self, db: Session, booking_id: int) -> Booking:
        booking = db.execute(
            _with_parties(select(Booking).where(Booking.id == booking_id))
        ).scalar_one_or_none()
        if not booking:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
            )
        return booking

    async def get_booking_for_party(
        self, db: Session, booking_id: int, user: dict
    ) -> Booking:
        """The booking, if ``user`` is its traveler or the property's owner."""
        booking = await self.get_booking(db, booking_id)
        if user["id"] not in (booking.traveler_id, booking.property.owner_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not authorized to view this booking",
            )
        return booking

    async def list_bookings(self, db: Session, user: dict):
        query = _with_parties(select(Booking))
        if user.get("role") == "owner":
            query = query.join(Property, Booking.property_id == Property.id).where(
                Property.owner_id == user["id"]
            )
        else:
            query = query.where(Booking.traveler_id == user["id"])
        query = query.order_by(Booking.created_at.desc(), Booking.id.desc())
        return db.execute(query).scalars().all()

    async def traveler_history(self, db: Session, traveler_id: int):
        query = (
            _with_parties(select(Booking))
            .where(Booking.traveler_id == traveler_id)
            .order_by(Booking.start_date.desc(), Booking.id.desc())
        )
        return db.execute(query).scalars().all()

    async def accept_booking(self, db: Session, booking_id: int, user: dict) -> Booking:
        booking = await self.get_booking(db, booking_id)
        if booking.property.owner_id != user["id"]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the property owner can accept this booking",
            )

        try:
            check_transition(booking.status.value, BookingStatus.ACCEPTED.value)
            self._lock_property(db, booking.property_id)
            clashes = self._overlapping(
                db,
                booking.property_id,
                booking.start_date,
                booking.end_date,
                statuses=(BookingStatus.ACCEPTED,),
                exclude_id=booking.id,
            )
            if clashes:
                raise BookingValidationError(
                    "availability",
                    "Another accepted booking already holds these dates",
                    status_code=409,
                )
            booking.status = BookingStatus.ACCEPTED
            db.commit()
        except Exception:
            db.rollback()
            raise

        return await self.get_booking(db, booking_id)

    async def cancel_booking(self, db: Session, booking_id: int, user: dict) -> Booking:
        booking = await self.get_booking(db, booking_id)
        if user["id"] not in (booking.traveler_id, booking.property.owner_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not authorized to cancel this booking",
            )

        check_transition(booking.status.value, BookingStatus.CANCELLED.value)
        booking.status = BookingStatus.CANCELLED
        db.commit()

        return await self.get_booking(db, booking_id)

    async def owner_dashboard(self, db: Session, owner_id: int) -> dict:
        total_properties = db.execute(
            select(func.count(Property.id)).where(Property.owner_id == owner_id)
        ).scalar_one()

        owned = select(Property.id).where(Property.owner_id == owner_id)
        counts = dict(
            db.execute(
                select(Booking.status, func.count(Booking.id))
                .where(Booking.property_id.in_(owned))
                .group_by(Booking.status)
            ).all()
        )
        revenue = db.execute(
            select(func.coalesce(func.sum(Booking.total_price), 0.0)).where(
                Booking.property_id.in_(owned),
                Booking.status == BookingStatus.ACCEPTED,
            )
        ).scalar_one()

        base = _with_parties(select(Booking)).where(Booking.property_id.in_(owned))
        pending = (
            db.execute(
                base.where(Booking.status == BookingStatus.PENDING).order_by(
                    Booking.start_date
                )
            )
            .scalars()
            .all()
        )
        recent = (
            db.execute(base.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(10))
            .scalars()
            .all()
        )

        return {
            "stats": {
                "total_properties": total_properties,
                "total_bookings": sum(counts.values()),
                "pending_bookings": counts.get(BookingStatus.PENDING, 0),
                "accepted_bookings": counts.get(BookingStatus.ACCEPTED, 0),
                "cancelled_bookings": counts.get(BookingStatus.CANCELLED, 0),
                "total_revenue": round(float(revenue), 2),
            },
            "pending_requests": pending,
            "recent_bookings": recent,
        }
