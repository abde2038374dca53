from fastapi import APIRouter, BackgroundTasks, Depends, Query
from app.core.access import evaluate_route
from app.core.context import RequestContext
from app.core.dependencies import (
    get_auth_service, get_current_token, get_optional_context, get_optional_user, get_session_auth_service,
    get_profile_service, get_request_context, get_user_supabase,
)
from app.database.supabase_client import get_service_supabase
from app.modules.admin.service import AdminService
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    MeResponse, RouteAccessResponse
)
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from postgrest import SyncPostgrestClient
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_session_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    background_tasks: BackgroundTasks,
    service: AuthService = Depends(get_session_auth_service),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Login and get access token; login statistics are updated in the background"""
    token = service.login(login_data)
    background_tasks.add_task(profile_service.update_login_stats, token.user_id)
    return token


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    context: RequestContext = Depends(get_request_context),
    user_client: SyncPostgrestClient = Depends(get_user_supabase),
    supabase: Client = Depends(get_service_supabase),
):
    """Current user, profile, permissions and admin status (for the frontend UI)."""
    is_admin = AdminService(supabase).resolve_admin_status(context, user_client)
    return MeResponse(
        user=context.user,
        profile=context.profile,
        permissions=context.permissions,
        is_admin=is_admin,
    )


@router.get("/route-access", response_model=RouteAccessResponse)
async def route_access(
    path: str = Query(..., min_length=1),
    user_data: Optional[Dict] = Depends(get_optional_user),
    context: Optional[RequestContext] = Depends(get_optional_context),
):
    """Route guard decision for a dashboard page: allow, or where to redirect."""
    decision = evaluate_route(path, user_data, context.profile if context else None)
    return RouteAccessResponse(
        path=path,
        allowed=decision.allowed,
        redirect_to=decision.redirect_to,
        required_roles=decision.required_roles,
        required_permissions=decision.required_permissions,
    )
