from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError

from havenstay.dependencies import db_dependency, require_permission, Permission
from havenstay.models.favorite import Favorite
from havenstay.models.property import Property
from havenstay.schemas.booking import BookingListResponse, BookingResponse
from havenstay.schemas.favorite import FavoriteEnvelope, FavoriteListResponse
from havenstay.schemas.user import ProfileUpdate, UserEnvelope
from havenstay.services.audit_log_service import AuditLogService
from havenstay.services.booking_service import BookingService
from havenstay.services.profile_service import ProfileService

router = APIRouter(prefix="/traveler", tags=["traveler"])

traveler_dependency = Annotated[
    dict, Depends(require_permission(Permission.MANAGE_FAVORITES))
]


@router.get("/profile", response_model=UserEnvelope)
def get_profile(db: db_dependency, current_user: traveler_dependency):
    return {"user": ProfileService().get_profile(db, current_user["id"])}


@router.put("/profile", response_model=UserEnvelope)
def update_profile(
    db: db_dependency,
    profile: ProfileUpdate,
    current_user: traveler_dependency,
    request: Request,
):
    user, changes = ProfileService().update_profile(db, current_user["id"], profile)
    if changes:
        AuditLogService().log_request(
            db,
            request,
            action="user.update_profile",
            resource_type="user",
            resource_id=user.id,
            user=current_user,
            changes=changes,
            status_code=status.HTTP_200_OK,
        )
    return {"user": user}


@router.get("/favorites", response_model=FavoriteListResponse)
def list_favorites(db: db_dependency, current_user: traveler_dependency):
    properties = (
        db.query(Property)
        .join(Favorite, Favorite.property_id == Property.id)
        .filter(Favorite.traveler_id == current_user["id"])
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        .all()
    )
    return {"favorites": properties}


def _find_favorite(db, traveler_id: int, property_id: int):
    return (
        db.query(Favorite)
        .filter(Favorite.traveler_id == traveler_id, Favorite.property_id == property_id)
        .first()
    )


@router.post(
    "/favorites/{property_id}",
    response_model=FavoriteEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def add_favorite(property_id: int, db: db_dependency, current_user: traveler_dependency):
    prop = db.query(Property).filter(Property.id == property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    # Idempotent: return existing
    existing = _find_favorite(db, current_user["id"], property_id)
    if existing:
        return {"message": "Already in favorites", "favorite": existing}

    fav = Favorite(traveler_id=current_user["id"], property_id=property_id)
    db.add(fav)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with an identical request; the row exists either way
        db.rollback()
        return {
            "message": "Already in favorites",
            "favorite": _find_favorite(db, current_user["id"], property_id),
        }
    db.refresh(fav)
    return {"message": "Added to favorites", "favorite": fav}


@router.delete("/favorites/{property_id}", status_code=status.HTTP_200_OK)
def remove_favorite(
    property_id: int, db: db_dependency, current_user: traveler_dependency
):
    fav = _find_favorite(db, current_user["id"], property_id)
    if fav:
        db.delete(fav)
        db.commit()
    return {"message": "Removed from favorites"}


@router.get("/history", response_model=BookingListResponse)
async def booking_history(db: db_dependency, current_user: traveler_dependency):
    bookings = await BookingService().traveler_history(db, current_user["id"])
    return {"bookings": [BookingResponse.from_booking(b) for b in bookings]}
