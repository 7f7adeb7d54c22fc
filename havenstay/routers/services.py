from fastapi import APIRouter, Query
from starlette import status

from havenstay.schemas.property import PropertyImagesResponse
from havenstay.services.pexels_service import PexelsService

router = APIRouter(prefix="/services", tags=["services"])


@router.get(
    "/property-images",
    response_model=PropertyImagesResponse,
    status_code=status.HTTP_200_OK,
)
def property_images(
    property_type: str = Query("house", description="Apartment, villa, cabin, ..."),
    title: str = Query("", description="Listing title, used for keywords"),
    location: str = Query(""),
):
    """Four stock photo URLs suited to a listing."""
    images = PexelsService().get_property_images(
        property_type=property_type, title=title, location=location
    )
    return {"images": images}
