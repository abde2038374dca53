from fastapi import APIRouter, Depends, Query, Response
from app.config.access_config import Role
from app.core.context import RequestContext
from app.core.dependencies import get_user_supabase, require_access, require_active
from app.database.supabase_client import SupabaseClient, get_service_supabase
from app.modules.admin.schemas import (
    NewUserRequest, UserUpdateRequest, RoleUpdateRequest, SuspendUserRequest,
    BanUserRequest, UserStatistics, UserListResponse, AdminLogListResponse,
    AdminStatusResponse, AdminOverviewResponse, MessageResponse
)
from app.modules.admin.service import AdminService
from app.modules.profiles.schemas import Profile
from postgrest import SyncPostgrestClient
from supabase import Client
from typing import List

router = APIRouter(prefix="/admin", tags=["admin"])

ADMIN = [Role.ADMIN.value]


def get_admin_service(supabase: Client = Depends(get_service_supabase)) -> AdminService:
    return AdminService(supabase, service_role=SupabaseClient.has_service_role())


@router.get("/status", response_model=AdminStatusResponse)
async def admin_status(
    context: RequestContext = Depends(require_active),
    user_client: SyncPostgrestClient = Depends(get_user_supabase),
    service: AdminService = Depends(get_admin_service)
):
    """Whether the caller is an admin; open to any active user"""
    return AdminStatusResponse(
        is_admin=service.resolve_admin_status(context, user_client),
        role=context.profile.role,
        status=context.profile.status,
    )


@router.get("/overview", response_model=AdminOverviewResponse)
async def admin_overview(
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["admin.access"])),
    service: AdminService = Depends(get_admin_service)
):
    """Users, recent admin logs and statistics for the admin dashboard"""
    return service.get_overview()


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.read"])),
    service: AdminService = Depends(get_admin_service)
):
    """List users, newest first"""
    users, count = service.list_users(page, limit)
    return UserListResponse(data=users, count=count, page=page, limit=limit)


@router.get("/users/search", response_model=List[Profile])
async def search_users(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.read"])),
    service: AdminService = Depends(get_admin_service)
):
    return service.search_users(q, limit)


@router.get("/users/{user_id}", response_model=Profile)
async def get_user(
    user_id: str,
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.read"])),
    service: AdminService = Depends(get_admin_service)
):
    return service.get_user(user_id)


@router.post("/users", response_model=Profile, status_code=201)
async def create_user(
    user_data: NewUserRequest,
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.create"])),
    service: AdminService = Depends(get_admin_service)
):
    """Create an auth user and its profile"""
    return service.create_user(context, user_data)


@router.patch("/users/{user_id}", response_model=Profile)
@router.put("/users/{user_id}", response_model=Profile)
async def update_user(
    user_id: str,
    updates: UserUpdateRequest,
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.update"])),
    service: AdminService = Depends(get_admin_service)
):
    """Update profile fields; unknown fields are ignored"""
    return service.update_user(context, user_id, updates.model_dump(mode="json", exclude_unset=True))


@router.put("/users/{user_id}/role", response_model=Profile)
async def update_user_role(
    user_id: str,
    body: RoleUpdateRequest,
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.update"])),
    service: AdminService = Depends(get_admin_service)
):
    return service.update_user_role(context, user_id, body.role)


@router.post("/users/{user_id}/suspend", response_model=Profile)
async def suspend_user(
    user_id: str,
    body: SuspendUserRequest,
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.update"])),
    service: AdminService = Depends(get_admin_service)
):
    """Suspend until the given time"""
    return service.suspend_user(context, user_id, body.suspend_until, body.reason)


@router.post("/users/{user_id}/unsuspend", response_model=Profile)
async def unsuspend_user(
    user_id: str,
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.update"])),
    service: AdminService = Depends(get_admin_service)
):
    return service.unsuspend_user(context, user_id)


@router.post("/users/{user_id}/ban", response_model=Profile)
async def ban_user(
    user_id: str,
    body: BanUserRequest,
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.update"])),
    service: AdminService = Depends(get_admin_service)
):
    """Ban permanently"""
    return service.ban_user(context, user_id, body.reason)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.delete"])),
    service: AdminService = Depends(get_admin_service)
):
    """Delete the auth user and, through the cascade, the profile"""
    service.delete_user(context, user_id)
    return MessageResponse(message="User deleted successfully")


@router.delete("/users/{user_id}/profile", response_model=MessageResponse)
async def delete_user_profile(
    user_id: str,
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.delete"])),
    service: AdminService = Depends(get_admin_service)
):
    """Delete only the profile row"""
    service.delete_user_profile(context, user_id)
    return MessageResponse(message="User profile deleted successfully")


@router.get("/logs", response_model=AdminLogListResponse)
async def get_admin_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["admin.access"])),
    service: AdminService = Depends(get_admin_service)
):
    logs, count = service.get_admin_logs(page, limit)
    return AdminLogListResponse(data=logs, count=count, page=page, limit=limit)


@router.get("/statistics", response_model=List[UserStatistics])
async def get_user_statistics(
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["analytics.view"])),
    service: AdminService = Depends(get_admin_service)
):
    return service.get_user_statistics()


@router.get("/export")
async def export_users(
    format: str = Query("csv"),
    context: RequestContext = Depends(require_access(roles=ADMIN, permissions=["user.read"])),
    service: AdminService = Depends(get_admin_service)
):
    """Download every user as CSV or JSON"""
    content = service.export_users(format)
    media_type = "application/json" if format == "json" else "text/csv"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="users.{format}"'},
    )
