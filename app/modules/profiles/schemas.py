from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import date, datetime
from app.config.access_config import Role, ProfileStatus


class Profile(BaseModel):
    id: Optional[str] = None
    user_id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    preferred_language: Literal["en", "th"] = "en"
    role: Role = Role.USER
    status: ProfileStatus = ProfileStatus.ACTIVE
    login_count: int = 0
    last_login_at: Optional[datetime] = None
    suspended_until: Optional[datetime] = None
    suspension_reason: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        use_enum_values = True
        validate_default = True


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=2000)
    website: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    preferred_language: Optional[Literal["en", "th"]] = None


class AvatarResponse(BaseModel):
    avatar_url: str
