from fastapi import APIRouter, Request
from starlette import status

from havenstay.dependencies import db_dependency
from havenstay.schemas.property import (
    PropertyDetail,
    PropertyDetailResponse,
    PropertyListResponse,
)
from havenstay.services.property_service import PropertyService

router = APIRouter(prefix="/properties", tags=["properties"])


@router.get("", response_model=PropertyListResponse, status_code=status.HTTP_200_OK)
async def get_properties(db: db_dependency, request: Request):
    """All listings, optionally narrowed by the same filters as /search."""
    properties = await PropertyService().search_properties(
        db, dict(request.query_params)
    )
    return {"properties": properties}


@router.get(
    "/search", response_model=PropertyListResponse, status_code=status.HTTP_200_OK
)
async def search_properties(db: db_dependency, request: Request):
    """
    Search listings.

    Query parameters (all optional): ``location`` (substring of location,
    city, state or country), ``min_price``, ``max_price``, ``guests``,
    ``property_type`` and ``start_date``/``end_date`` to keep only listings
    free for that stay. Values that fail to parse are ignored.
    """
    properties = await PropertyService().search_properties(
        db, dict(request.query_params)
    )
    return {"properties": properties}


@router.get(
    "/{property_id}",
    response_model=PropertyDetailResponse,
    status_code=status.HTTP_200_OK,
)
async def get_property(db: db_dependency, property_id: int):
    service = PropertyService()
    prop = await service.get_property(db, property_id)
    return {
        "property": PropertyDetail.from_property(prop),
        "blockedDates": await service.get_blocked_dates(db, property_id),
    }
