from enum import Enum
from typing import Annotated, Callable

from fastapi import Depends, HTTPException
from starlette import status
from sqlalchemy.orm import Session

from havenstay.database import SessionLocal
from havenstay.services.auth_service import get_current_user


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


db_dependency = Annotated[Session, Depends(get_db)]
CurrentUser = Annotated[dict, Depends(get_current_user)]


class Permission(str, Enum):
    READ_PROFILE = "read:profile"
    BOOK_PROPERTIES = "book:properties"
    MANAGE_FAVORITES = "manage:favorites"
    MANAGE_PROPERTIES = "manage:properties"
    VIEW_DASHBOARD = "view:dashboard"


# Map role strings (as carried in the session token) to allowed permissions
ROLE_PERMISSIONS: dict[str, list[Permission]] = {
    "traveler": [
        Permission.READ_PROFILE,
        Permission.BOOK_PROPERTIES,
        Permission.MANAGE_FAVORITES,
    ],
    "owner": [
        Permission.READ_PROFILE,
        Permission.MANAGE_PROPERTIES,
        Permission.VIEW_DASHBOARD,
    ],
}


def require_permission(required: Permission) -> Callable[..., dict]:
    def dependency(current_user: CurrentUser) -> dict:
        role = current_user.get("role")
        if role is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
            )

        allowed = ROLE_PERMISSIONS.get(role, [])
        if required not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )

        return current_user

    return dependency


TravelerUser = Annotated[dict, Depends(require_permission(Permission.BOOK_PROPERTIES))]
OwnerUser = Annotated[dict, Depends(require_permission(Permission.MANAGE_PROPERTIES))]
# Any signed-in traveler or owner
ProfileUser = Annotated[dict, Depends(require_permission(Permission.READ_PROFILE))]
