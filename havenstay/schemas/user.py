from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import datetime
from typing import Optional

from havenstay.models.user import UserRole


class UserSignup(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)
    user_type: UserRole
    location: Optional[str] = None


class UserLogin(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    # role and email never change after signup
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=30)
    about_me: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    languages: Optional[str] = Field(None, max_length=255)
    gender: Optional[str] = Field(None, max_length=30)
    location: Optional[str] = Field(None, max_length=255)


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    user_type: UserRole = Field(validation_alias="role")
    phone_number: Optional[str] = None
    about_me: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    languages: Optional[str] = None
    gender: Optional[str] = None
    profile_picture: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class UserEnvelope(BaseModel):
    user: UserResponse


class LoginResponse(UserEnvelope):
    message: str


class SignupResponse(UserEnvelope):
    message: str
    userId: int
    user_type: UserRole

    model_config = ConfigDict(use_enum_values=True)
