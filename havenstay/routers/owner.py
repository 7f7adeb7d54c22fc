from typing import Annotated
from fastapi import APIRouter, Depends, Request
from starlette import status

from havenstay.dependencies import db_dependency, require_permission, Permission, OwnerUser
from havenstay.schemas.booking import BookingResponse, DashboardResponse
from havenstay.schemas.property import (
    PropertyCreate,
    PropertyEnvelope,
    PropertyListResponse,
    PropertyUpdate,
)
from havenstay.schemas.user import ProfileUpdate, UserEnvelope
from havenstay.services.audit_log_service import AuditLogService
from havenstay.services.booking_service import BookingService
from havenstay.services.profile_service import ProfileService
from havenstay.services.property_service import PropertyService

router = APIRouter(prefix="/owner", tags=["owner"])

dashboard_dependency = Annotated[
    dict, Depends(require_permission(Permission.VIEW_DASHBOARD))
]


@router.get("/profile", response_model=UserEnvelope)
def get_profile(db: db_dependency, current_user: OwnerUser):
    return {"user": ProfileService().get_profile(db, current_user["id"])}


@router.put("/profile", response_model=UserEnvelope)
def update_profile(
    db: db_dependency,
    profile: ProfileUpdate,
    current_user: OwnerUser,
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


@router.get("/properties", response_model=PropertyListResponse)
async def list_properties(db: db_dependency, current_user: OwnerUser):
    properties = await PropertyService().get_owner_properties(db, current_user["id"])
    return {"properties": properties}


@router.post(
    "/properties",
    response_model=PropertyEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_property(
    db: db_dependency,
    property: PropertyCreate,
    current_user: OwnerUser,
    request: Request,
):
    result = await PropertyService().create_property(
        db=db, property_data=property, owner_id=current_user["id"]
    )
    AuditLogService().log_request(
        db,
        request,
        action="property.create",
        resource_type="property",
        resource_id=result.id,
        user=current_user,
        status_code=status.HTTP_201_CREATED,
    )
    return {"message": "Property created successfully", "property": result}


@router.put("/properties/{property_id}", response_model=PropertyEnvelope)
async def update_property(
    db: db_dependency,
    property: PropertyUpdate,
    current_user: OwnerUser,
    property_id: int,
    request: Request,
):
    result = await PropertyService().update_property(
        db, property_id, property, current_user["id"]
    )
    AuditLogService().log_request(
        db,
        request,
        action="property.update",
        resource_type="property",
        resource_id=property_id,
        user=current_user,
        changes=property.model_dump(exclude_unset=True, mode="json"),
        status_code=status.HTTP_200_OK,
    )
    return {"message": "Property updated successfully", "property": result}


@router.delete("/properties/{property_id}", status_code=status.HTTP_200_OK)
async def delete_property(
    db: db_dependency, current_user: OwnerUser, property_id: int, request: Request
):
    result = await PropertyService().delete_property(
        db, property_id, current_user["id"]
    )
    AuditLogService().log_request(
        db,
        request,
        action="property.delete",
        resource_type="property",
        resource_id=property_id,
        user=current_user,
        status_code=status.HTTP_200_OK,
    )
    return result


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(db: db_dependency, current_user: dashboard_dependency):
    data = await BookingService().owner_dashboard(db, current_user["id"])
    return {
        "stats": data["stats"],
        "pending_requests": [
            BookingResponse.from_booking(b) for b in data["pending_requests"]
        ],
        "recent_bookings": [
            BookingResponse.from_booking(b) for b in data["recent_bookings"]
        ],
    }
