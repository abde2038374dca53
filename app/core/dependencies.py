"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.access_config import Role
from app.core.access import authorize, effective_status, get_user_permissions, is_active
from app.core.context import RequestContext
from app.database.supabase_client import SupabaseClient, get_session_supabase, get_supabase, get_service_supabase
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from postgrest import SyncPostgrestClient
from supabase import Client
from typing import Any, Dict, Iterator, List, Optional, Sequence
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for access data (context, admin status)."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_session_auth_service(session_client: Client = Depends(get_session_supabase)) -> AuthService:
    """AuthService for sign-up/sign-in, on a client of its own"""
    return AuthService(session_client)


def get_profile_service(supabase: Client = Depends(get_service_supabase)) -> ProfileService:
    return ProfileService(supabase)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Current user if a valid token was sent, None otherwise"""
    if not credentials or not credentials.credentials:
        return None
    try:
        return auth_service.get_current_user(credentials.credentials)
    except HTTPException:
        return None


def get_request_context(
    request: Request,
    token: str = Depends(get_current_token),
    user_data: dict = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
) -> RequestContext:
    """Resolve caller, profile (created on first use) and permissions once per request."""
    cache = _get_request_cache(request)
    if "context" in cache:
        return cache["context"]
    profile = profile_service.ensure_profile(user_data)
    context = RequestContext(
        user=user_data,
        profile=profile,
        permissions=get_user_permissions(profile),
        token=token,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    cache["context"] = context
    return context


def get_optional_context(
    request: Request,
    user_data: Optional[dict] = Depends(get_optional_user),
    profile_service: ProfileService = Depends(get_profile_service),
) -> Optional[RequestContext]:
    if user_data is None:
        return None
    cache = _get_request_cache(request)
    if "context" in cache:
        return cache["context"]
    profile = profile_service.ensure_profile(user_data)
    context = RequestContext(
        user=user_data,
        profile=profile,
        permissions=get_user_permissions(profile),
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    cache["context"] = context
    return context


def get_user_supabase(context: RequestContext = Depends(get_request_context)) -> Iterator[SyncPostgrestClient]:
    """PostgREST client acting as the caller (for RPCs that read auth.uid()), closed after the request."""
    with SupabaseClient.get_user_client(context.token) as client:
        yield client


def check_access(
    context: RequestContext,
    roles: Optional[Sequence[str]] = None,
    permissions: Optional[Sequence[str]] = None,
    allow_inactive: bool = False,
) -> RequestContext:
    """Allow/deny for (caller, required roles, required permissions). Raises 403 on deny."""
    if not allow_inactive and not is_active(context.profile):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is {effective_status(context.profile)}"
        )
    decision = authorize(context.profile, roles or (), permissions or (), context.permissions)
    if not decision.allowed:
        if decision.reason == "role":
            detail = f"Insufficient role. Required: {', '.join(roles)}"
        else:
            detail = f"Insufficient permissions. Required: {', '.join(permissions)}"
        logger.info(f"Denied {context.user_id} ({context.role}): {detail}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    return context


def require_access(
    roles: Optional[List[str]] = None,
    permissions: Optional[List[str]] = None,
    allow_inactive: bool = False,
):
    """Factory function to create an access check dependency"""
    def dependency(context: RequestContext = Depends(get_request_context)) -> RequestContext:
        return check_access(context, roles, permissions, allow_inactive)
    return dependency


def require_permission(required_permission: str):
    return require_access(permissions=[required_permission])


require_active = require_access()
require_admin = require_access(roles=[Role.ADMIN.value])
require_moderator = require_access(roles=[Role.ADMIN.value, Role.MODERATOR.value])
