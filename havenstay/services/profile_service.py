from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from havenstay.models.user import User
from havenstay.schemas.user import ProfileUpdate


class ProfileService:
    def get_profile(self, db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
            )
        return user

    def update_profile(
        self, db: Session, user_id: int, profile: ProfileUpdate
    ) -> tuple[User, dict]:
        """Apply the sent fields; return the user and an old/new change map."""
        user = self.get_profile(db, user_id)
        changes = {}
        for key, value in profile.model_dump(exclude_unset=True).items():
            if key == "name" and not value:
                continue
            old = getattr(user, key)
            if old != value:
                changes[key] = {"old": old, "new": value}
                setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user, changes

    def set_profile_picture(
        self, db: Session, user_id: int, path: str
    ) -> tuple[User, Optional[str]]:
        user = self.get_profile(db, user_id)
        previous = user.profile_picture
        user.profile_picture = path
        db.commit()
        db.refresh(user)
        return user, previous
