from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict, Any
from app.modules.profiles.schemas import Profile


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class MeResponse(BaseModel):
    user: Dict[str, Any]
    profile: Profile
    permissions: List[str]
    is_admin: bool


class RouteAccessResponse(BaseModel):
    path: str
    allowed: bool
    redirect_to: Optional[str] = None
    required_roles: Optional[List[str]] = None
    required_permissions: Optional[List[str]] = None
