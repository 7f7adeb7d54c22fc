from fastapi import APIRouter, File, Request, UploadFile, status

from havenstay.dependencies import db_dependency, OwnerUser, ProfileUser
from havenstay.services.audit_log_service import AuditLogService
from havenstay.services.profile_service import ProfileService
from havenstay.services.property_service import PropertyService
from havenstay.services.upload_service import UploadService

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("/property/{property_id}", status_code=status.HTTP_201_CREATED)
async def upload_property_photo(
    db: db_dependency,
    current_user: OwnerUser,
    property_id: int,
    request: Request,
    photo: UploadFile = File(...),
):
    service = PropertyService()
    prop = await service.get_owned_property(db, property_id, current_user["id"], "update")

    uploads = UploadService()
    url = await uploads.save_image(photo, f"properties/{property_id}")
    try:
        prop = await service.add_photo(db, prop, url)
    except Exception:
        uploads.delete_image(url)
        raise

    AuditLogService().log_request(
        db,
        request,
        action="property.upload_photo",
        resource_type="property",
        resource_id=property_id,
        user=current_user,
        status_code=status.HTTP_201_CREATED,
    )
    return {
        "message": "Photo uploaded successfully",
        "url": url,
        "photos": prop.photo_list(),
    }


@router.post("/profile", status_code=status.HTTP_201_CREATED)
async def upload_profile_picture(
    db: db_dependency,
    current_user: ProfileUser,
    request: Request,
    photo: UploadFile = File(...),
):
    uploads = UploadService()
    url = await uploads.save_image(photo, "profiles")
    try:
        user, previous = ProfileService().set_profile_picture(
            db, current_user["id"], url
        )
    except Exception:
        uploads.delete_image(url)
        raise
    if previous and previous != url:
        uploads.delete_image(previous)

    AuditLogService().log_request(
        db,
        request,
        action="user.upload_profile_picture",
        resource_type="user",
        resource_id=user.id,
        user=current_user,
        status_code=status.HTTP_201_CREATED,
    )
    return {"message": "Profile picture updated", "profile_picture": url}
