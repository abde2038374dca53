from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict, Any, Literal
from datetime import date, datetime
from app.config.access_config import Role, ProfileStatus
from app.modules.profiles.schemas import Profile


class NewUserRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
    role: Role = Role.USER


class UserUpdateRequest(BaseModel):
    """Fields outside the allowed update list are dropped by the service."""

    class Config:
        extra = "allow"

    full_name: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    preferred_language: Optional[Literal["en", "th"]] = None
    role: Optional[Role] = None
    status: Optional[ProfileStatus] = None


class RoleUpdateRequest(BaseModel):
    role: Role


class SuspendUserRequest(BaseModel):
    suspend_until: datetime
    reason: str = Field(min_length=1)


class BanUserRequest(BaseModel):
    reason: str = Field(min_length=1)


class AdminLog(BaseModel):
    id: Optional[str] = None
    admin_id: str
    action: str
    target_user_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None


class UserStatistics(BaseModel):
    date: date
    new_users: int = 0
    active_users: int = 0
    suspended_users: int = 0
    banned_users: int = 0


class UserListResponse(BaseModel):
    data: List[Profile]
    count: int
    page: int
    limit: int


class AdminLogListResponse(BaseModel):
    data: List[AdminLog]
    count: int
    page: int
    limit: int


class AdminStatusResponse(BaseModel):
    is_admin: bool
    role: str
    status: str


class AdminOverviewResponse(BaseModel):
    users: List[Profile]
    total_users: int
    admin_logs: List[AdminLog]
    user_stats: List[UserStatistics]


class MessageResponse(BaseModel):
    message: str
