import logging
import math
from datetime import date
from typing import Mapping, Optional

from sqlalchemy import select, and_, or_, func, exists
from sqlalchemy.orm import Session, selectinload
from fastapi import HTTPException, status

from havenstay.models.booking import Booking, ACTIVE_BOOKING_STATUSES
from havenstay.models.property import Property
from havenstay.schemas.property import PropertyCreate, PropertyUpdate
from havenstay.services.booking_rules import blocked_dates, parse_date
from havenstay.services.pexels_service import PexelsService

logger = logging.getLogger(__name__)

# NOT NULL columns; an explicit null in an update leaves them unchanged
REQUIRED_FIELDS = {
    "property_name",
    "property_type",
    "price_per_night",
    "bedrooms",
    "bathrooms",
    "max_guests",
}

MAX_DB_INTEGER = 2**63 - 1


def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # "nan", "inf" and "1e400" parse but are not usable bounds
    return number if math.isfinite(number) else None


def _to_int(value) -> Optional[int]:
    number = _to_float(value)
    if number is None or abs(number) > MAX_DB_INTEGER:
        return None
    return int(number)


def _to_text(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class PropertyService:
    async def search_properties(self, db: Session, filters: Mapping[str, object]):
        """
        Return properties matching ``filters`` in natural (id) order.

        Recognised keys: location, min_price, max_price, guests,
        property_type, start_date/end_date. Missing keys are no-ops and
        values that do not parse are ignored rather than rejected.
        """
        conditions = []

        location = _to_text(filters.get("location"))
        if location:
            needle = func.lower(location)
            conditions.append(
                or_(
                    func.lower(Property.location).contains(needle),
                    func.lower(Property.city).contains(needle),
                    func.lower(Property.state).contains(needle),
                    func.lower(Property.country).contains(needle),
                )
            )

        min_price = _to_float(filters.get("min_price"))
        if min_price is not None:
            conditions.append(Property.price_per_night >= min_price)
        max_price = _to_float(filters.get("max_price"))
        if max_price is not None:
            conditions.append(Property.price_per_night <= max_price)

        guests = _to_int(filters.get("guests"))
        if guests is not None and guests > 0:
            conditions.append(Property.max_guests >= guests)

        property_type = _to_text(filters.get("property_type"))
        if property_type:
            conditions.append(
                func.lower(Property.property_type) == property_type.lower()
            )

        start = parse_date(filters.get("start_date"))
        end = parse_date(filters.get("end_date"))
        if start and end and end > start:
            conditions.append(
                ~exists().where(
                    and_(
                        Booking.property_id == Property.id,
                        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                        Booking.start_date < end,
                        Booking.end_date > start,
                    )
                )
            )

        query = select(Property)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(Property.id)

        return db.execute(query).scalars().all()

    async def get_property(self, db: Session, property_id: int) -> Property:
        result = db.execute(
            select(Property)
            .options(selectinload(Property.owner))
            .where(Property.id == property_id)
        )
        prop = result.scalar_one_or_none()

        if not prop:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Property not found",
            )
        return prop

    async def get_blocked_dates(
        self, db: Session, property_id: int, today: Optional[date] = None
    ) -> list[str]:
        today = today or date.today()
        rows = (
            db.execute(
                select(Booking).where(
                    Booking.property_id == property_id,
                    Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                    Booking.end_date > today,
                )
            )
            .scalars()
            .all()
        )
        return blocked_dates(rows, today=today)

    async def get_owner_properties(self, db: Session, owner_id: int):
        query = (
            select(Property)
            .where(Property.owner_id == owner_id)
            .order_by(Property.created_at.desc(), Property.id.desc())
        )
        return db.execute(query).scalars().all()

    async def create_property(
        self, db: Session, property_data: PropertyCreate, owner_id: int
    ) -> Property:
        data = property_data.model_dump(exclude={"photos"})
        new_property = Property(**data, owner_id=owner_id)

        photos = property_data.photos
        if not photos:
            # Seed a gallery so new listings never render empty
            photos = PexelsService().get_property_images(
                property_type=property_data.property_type,
                title=property_data.property_name,
                location=property_data.location or "",
            )
        new_property.set_photo_list(photos)

        db.add(new_property)
        db.commit()
        db.refresh(new_property)
        logger.info("Property %s created by owner %s", new_property.id, owner_id)

        return new_property

    async def get_owned_property(
        self, db: Session, property_id: int, owner_id: int, action: str = "modify"
    ) -> Property:
        prop = db.execute(
            select(Property).where(Property.id == property_id)
        ).scalar_one_or_none()

        if not prop:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Property not found",
            )

        if prop.owner_id != owner_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"You are not authorized to {action} this property",
            )
        return prop

    async def update_property(
        self,
        db: Session,
        property_id: int,
        property_data: PropertyUpdate,
        owner_id: int,
    ) -> Property:
        prop = await self.get_owned_property(db, property_id, owner_id, "update")

        update_data = property_data.model_dump(exclude_unset=True)
        photos = update_data.pop("photos", None)
        for key, value in update_data.items():
            if value is None and key in REQUIRED_FIELDS:
                continue
            setattr(prop, key, value)
        if photos is not None:
            prop.set_photo_list(photos)

        db.commit()
        db.refresh(prop)

        return prop

    async def delete_property(self, db: Session, property_id: int, owner_id: int):
        prop = await self.get_owned_property(db, property_id, owner_id, "delete")

        db.delete(prop)
        db.commit()

        return {"message": "Property deleted successfully"}

    async def add_photo(self, db: Session, prop: Property, photo_url: str) -> Property:
        photos = prop.photo_list()
        photos.append(photo_url)
        prop.set_photo_list(photos)
        db.commit()
        db.refresh(prop)
        return prop
