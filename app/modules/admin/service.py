import csv
import io
import json
import logging
from datetime import datetime, timezone
from supabase import Client
from postgrest import SyncPostgrestClient
from postgrest.exceptions import APIError
from supabase_auth.errors import AuthError
from fastapi import HTTPException
from typing import Any, Dict, List, Optional, Tuple
from app.config.access_config import PROFILE_UPDATE_FIELDS, ProfileStatus, Role
from app.core.access import is_active, is_admin as profile_is_admin, validate_profile_change
from app.core.context import RequestContext
from app.core.errors import describe_auth_error, retry_operation, supabase_http_error
from app.modules.admin.schemas import AdminLog, NewUserRequest, UserStatistics
from app.modules.profiles.schemas import Profile
from app.modules.profiles.service import PROFILES_TABLE, ProfileService, clean_search_term

logger = logging.getLogger(__name__)

ADMIN_LOGS_TABLE = "admin_logs"
EXPORT_PAGE_SIZE = 1000
EXPORT_HEADERS = ["ID", "Email", "Full Name", "Role", "Status", "Created At", "Last Login", "Login Count"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _page_range(page: int, limit: int) -> Tuple[int, int]:
    offset = (page - 1) * limit
    return offset, offset + limit - 1


class AdminService:
    def __init__(self, supabase: Client, service_role: bool = True):
        self.supabase = supabase
        self.service_role = service_role
        self.profiles = ProfileService(supabase)

    def _require_service_role(self):
        if not self.service_role:
            raise HTTPException(
                status_code=500,
                detail="Service role key not configured. Cannot manage auth users."
            )

    def _guard_self(self, actor: RequestContext, user_id: str, message: str):
        if actor.user_id == user_id:
            raise HTTPException(status_code=400, detail=message)

    # Admin status

    def is_admin(self, profile: Optional[Profile], user_client: Optional[SyncPostgrestClient] = None) -> bool:
        """is_admin RPC (as the caller) OR an active admin profile"""
        rpc_result = False
        if user_client is not None:
            try:
                result = user_client.rpc("is_admin", {}).execute()
                rpc_result = bool(result.data)
            except Exception as e:
                logger.info(f"is_admin RPC failed, using profile check: {e}")
        by_role = profile is not None and profile_is_admin(profile) and is_active(profile)
        return rpc_result or by_role

    def resolve_admin_status(self, context: RequestContext, user_client: Optional[SyncPostgrestClient] = None) -> bool:
        """Admin status for the request, computed at most once"""
        if context.is_admin is None:
            context.is_admin = self.is_admin(context.profile, user_client)
        return context.is_admin

    # Audit log

    def log_admin_action(
        self,
        actor: RequestContext,
        action: str,
        target_user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append to admin_logs. Failures are logged and swallowed."""
        try:
            self.supabase.table(ADMIN_LOGS_TABLE).insert({
                "admin_id": actor.user_id,
                "action": action,
                "target_user_id": target_user_id,
                "details": details,
                "ip_address": actor.ip_address,
                "user_agent": actor.user_agent,
            }).execute()
        except Exception as e:
            logger.warning(f"Failed to log admin action {action} on {target_user_id}: {e}")

    def get_admin_logs(self, page: int = 1, limit: int = 50) -> Tuple[List[AdminLog], int]:
        start, end = _page_range(page, limit)
        try:
            result = retry_operation(lambda: self.supabase.table(ADMIN_LOGS_TABLE)
                                     .select("*", count="exact")
                                     .order("created_at", desc=True)
                                     .range(start, end)
                                     .execute())
        except APIError as e:
            raise supabase_http_error(e)
        return [AdminLog(**row) for row in result.data or []], result.count or 0

    # Reads

    def list_users(self, page: int = 1, limit: int = 20) -> Tuple[List[Profile], int]:
        """Newest first, with exact total count"""
        start, end = _page_range(page, limit)
        try:
            result = retry_operation(lambda: self.supabase.table(PROFILES_TABLE)
                                     .select("*", count="exact")
                                     .order("created_at", desc=True)
                                     .range(start, end)
                                     .execute())
        except APIError as e:
            raise supabase_http_error(e)
        return [Profile(**row) for row in result.data or []], result.count or 0

    def search_users(self, query: str, limit: int = 20) -> List[Profile]:
        """Like ProfileService.search_profiles but across every status"""
        term = clean_search_term(query)
        if not term:
            return []
        try:
            result = self.supabase.table(PROFILES_TABLE)\
                .select("*")\
                .or_(f"full_name.ilike.%{term}%,email.ilike.%{term}%")\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
        except APIError as e:
            raise supabase_http_error(e)
        return [Profile(**row) for row in result.data or []]

    def get_user(self, user_id: str) -> Profile:
        return self.profiles.get_profile(user_id)

    def get_user_statistics(self) -> List[UserStatistics]:
        try:
            result = retry_operation(lambda: self.supabase.rpc("get_user_statistics").execute())
        except APIError as e:
            raise supabase_http_error(e)
        return [UserStatistics(**row) for row in result.data or []]

    def get_overview(self) -> Dict[str, Any]:
        """Users, logs and stats the admin dashboard loads together"""
        users, total = self.list_users(1, 50)
        logs, _ = self.get_admin_logs(1, 50)
        return {
            "users": users,
            "total_users": total,
            "admin_logs": logs,
            "user_stats": self.get_user_statistics(),
        }

    def _all_users(self) -> List[Profile]:
        """Every profile, newest first, fetched page by page until the exact count is reached"""
        users: List[Profile] = []
        total = None
        while total is None or len(users) < total:
            start = len(users)
            try:
                result = retry_operation(lambda: self.supabase.table(PROFILES_TABLE)
                                         .select("*", count="exact")
                                         .order("created_at", desc=True)
                                         .range(start, start + EXPORT_PAGE_SIZE - 1)
                                         .execute())
            except APIError as e:
                raise supabase_http_error(e)
            rows = result.data or []
            if not rows:
                break
            users.extend(Profile(**row) for row in rows)
            total = result.count or 0
        return users

    def export_users(self, export_format: str = "csv") -> str:
        if export_format not in ("csv", "json"):
            raise HTTPException(status_code=400, detail=f"Unsupported export format: {export_format}")
        users = self._all_users()
        if export_format == "json":
            return json.dumps([u.model_dump(mode="json") for u in users], indent=2)

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(EXPORT_HEADERS)
        for user in users:
            writer.writerow([
                user.user_id,
                user.email,
                user.full_name or "",
                user.role,
                user.status,
                user.created_at.isoformat() if user.created_at else "",
                user.last_login_at.isoformat() if user.last_login_at else "",
                user.login_count,
            ])
        return buffer.getvalue().rstrip("\n")

    # Mutations

    def create_user(self, actor: RequestContext, user_data: NewUserRequest) -> Profile:
        """Create auth user + profile with the service-role client"""
        self._require_service_role()
        role = getattr(user_data.role, "value", user_data.role)

        if self.profiles.find_profile_by_email(user_data.email) is not None:
            raise HTTPException(status_code=409, detail="This email is already in use. Please use a different email.")

        try:
            auth_response = self.supabase.auth.admin.create_user({
                "email": user_data.email,
                "password": user_data.password,
                "email_confirm": True,
                "user_metadata": {"full_name": user_data.full_name},
            })
        except AuthError as e:
            message = str(e).lower()
            if getattr(e, "code", None) in ("email_exists", "user_already_exists") or "already" in message:
                raise HTTPException(status_code=409, detail="This email is already in use. Please use a different email.")
            raise HTTPException(status_code=400, detail=f"Unable to create user: {describe_auth_error(e)}")

        if not auth_response or not auth_response.user:
            raise HTTPException(status_code=400, detail="Unable to create user: Unknown error")
        new_user_id = auth_response.user.id

        try:
            # The signup trigger may already have inserted the row
            result = self.supabase.table(PROFILES_TABLE).upsert({
                "user_id": new_user_id,
                "email": user_data.email,
                "full_name": user_data.full_name,
                "role": role,
                "status": ProfileStatus.ACTIVE.value,
                "created_by": actor.user_id,
            }, on_conflict="user_id").execute()
            if not result.data:
                raise RuntimeError("profile upsert returned no rows")
            profile = Profile(**result.data[0])
        except Exception as e:
            logger.error(f"Profile creation failed for {new_user_id}, removing auth user: {e}")
            try:
                self.supabase.auth.admin.delete_user(new_user_id)
            except Exception as cleanup_error:
                logger.error(f"Failed to remove auth user {new_user_id}: {cleanup_error}")
            raise HTTPException(status_code=500, detail="Unable to create user profile.")

        logger.info(f"Admin {actor.user_id} created user {new_user_id} with role {role}")
        self.log_admin_action(actor, "create_user", new_user_id, {
            "email": user_data.email,
            "role": role,
            "full_name": user_data.full_name,
        })
        return profile

    def update_user(self, actor: RequestContext, user_id: str, updates: Dict[str, Any]) -> Profile:
        """Generic admin update restricted to PROFILE_UPDATE_FIELDS"""
        target = self.profiles.get_profile(user_id)

        sanitized = {k: v for k, v in updates.items() if k in PROFILE_UPDATE_FIELDS}
        if not sanitized:
            raise HTTPException(status_code=400, detail="No valid fields to update")
        if "role" in sanitized or "status" in sanitized:
            self._guard_self(actor, user_id, "You cannot change your own role or status")
        validate_profile_change(target, role=sanitized.get("role"), status=sanitized.get("status"))

        changes = dict(sanitized)
        if sanitized.get("status") == ProfileStatus.ACTIVE.value and target.status == ProfileStatus.SUSPENDED.value:
            changes["suspended_until"] = None
            changes["suspension_reason"] = None
        changes["updated_by"] = actor.user_id
        changes["updated_at"] = _now_iso()

        profile = self.profiles.update_fields(user_id, changes)
        self.log_admin_action(actor, "update_user_profile", user_id, {
            "target_email": target.email,
            "updated_fields": list(sanitized.keys()),
            "changes": sanitized,
        })
        return profile

    def update_user_role(self, actor: RequestContext, user_id: str, role: str) -> Profile:
        role = getattr(role, "value", role)
        self._guard_self(actor, user_id, "You cannot change your own role")
        previous = self.profiles.get_profile(user_id)
        profile = self.profiles.update_role(user_id, role, actor.user_id)
        self.log_admin_action(actor, "update_user_role", user_id, {
            "new_role": role,
            "previous_role": previous.role,
        })
        return profile

    def suspend_user(self, actor: RequestContext, user_id: str, suspend_until: datetime, reason: str) -> Profile:
        self._guard_self(actor, user_id, "You cannot suspend your own account")
        until = suspend_until if suspend_until.tzinfo else suspend_until.replace(tzinfo=timezone.utc)
        if until <= datetime.now(timezone.utc):
            raise HTTPException(status_code=400, detail="Suspension end must be in the future")
        profile = self.profiles.suspend_profile(user_id, until, reason, actor.user_id)
        self.log_admin_action(actor, "suspend_user", user_id, {
            "suspend_until": until.isoformat(),
            "reason": reason,
        })
        return profile

    def unsuspend_user(self, actor: RequestContext, user_id: str) -> Profile:
        profile = self.profiles.unsuspend_profile(user_id, actor.user_id)
        self.log_admin_action(actor, "unsuspend_user", user_id)
        return profile

    def ban_user(self, actor: RequestContext, user_id: str, reason: str) -> Profile:
        self._guard_self(actor, user_id, "You cannot ban your own account")
        profile = self.profiles.ban_profile(user_id, reason, actor.user_id)
        self.log_admin_action(actor, "ban_user", user_id, {"reason": reason})
        return profile

    def _deletable_target(self, actor: RequestContext, user_id: str) -> Profile:
        self._guard_self(actor, user_id, "You cannot delete your own account.")
        target = self.profiles.find_profile(user_id)
        if target is None:
            raise HTTPException(status_code=404, detail="User not found.")
        if target.role == Role.ADMIN.value:
            raise HTTPException(status_code=400, detail="Cannot delete admin users. Change role first.")
        return target

    def delete_user(self, actor: RequestContext, user_id: str) -> None:
        """Delete the auth user; the profile goes with it via cascade"""
        self._require_service_role()
        target = self._deletable_target(actor, user_id)

        # Logged first: the cascade removes the rows the log refers to
        self.log_admin_action(actor, "delete_user", user_id, {
            "target_email": target.email,
            "target_name": target.full_name,
            "target_role": target.role,
        })
        try:
            self.supabase.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(f"Failed to delete auth user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=f"Unable to delete user: {str(e)}")
        logger.info(f"Admin {actor.user_id} deleted user {user_id}")

    def delete_user_profile(self, actor: RequestContext, user_id: str) -> None:
        """Delete only the profile row, leaving the auth user"""
        target = self._deletable_target(actor, user_id)
        try:
            self.supabase.table(PROFILES_TABLE)\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
        except APIError as e:
            raise HTTPException(status_code=500, detail=f"Unable to delete user: {e.message}")
        self.log_admin_action(actor, "delete_user_profile", user_id, {
            "target_email": target.email,
            "target_name": target.full_name,
            "target_role": target.role,
            "deletion_type": "profile_delete",
        })
