import logging
import re
import secrets
from datetime import datetime, timezone
from supabase import Client
from postgrest.exceptions import APIError
from fastapi import HTTPException
from typing import Any, Dict, List, Optional
from app.config.access_config import SELF_UPDATE_FIELDS, ProfileStatus, Role
from app.config.settings import settings
from app.core.access import validate_profile_change
from app.core.errors import supabase_http_error
from app.modules.profiles.schemas import Profile, ProfileUpdate

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
ALLOWED_AVATAR_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}

# Characters with meaning inside a PostgREST or=(...) filter
_FILTER_CHARS = re.compile(r"[,()%*\\:\"]")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def clean_search_term(query: Optional[str]) -> str:
    return _FILTER_CHARS.sub("", query or "").strip()


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _table(self):
        return self.supabase.table(PROFILES_TABLE)

    def find_profile(self, user_id: str) -> Optional[Profile]:
        try:
            result = self._table()\
                .select("*")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
        except APIError as e:
            raise supabase_http_error(e)
        if not result.data:
            return None
        return Profile(**result.data[0])

    def find_profile_by_email(self, email: str) -> Optional[Profile]:
        try:
            result = self._table()\
                .select("*")\
                .eq("email", email)\
                .limit(1)\
                .execute()
        except APIError as e:
            raise supabase_http_error(e)
        if not result.data:
            return None
        return Profile(**result.data[0])

    def get_profile(self, user_id: str) -> Profile:
        """Get profile by auth user ID"""
        profile = self.find_profile(user_id)
        if profile is None:
            raise HTTPException(status_code=404, detail="User not found")
        return profile

    def create_profile(self, user_id: str, email: str, **overrides: Any) -> Profile:
        """Insert a profile with default role/status; overrides win."""
        new_profile = {
            "user_id": user_id,
            "email": email,
            "preferred_language": "en",
            "role": Role.USER.value,
            "status": ProfileStatus.ACTIVE.value,
            "login_count": 0,
            **overrides,
        }
        try:
            result = self._table().insert(new_profile).execute()
        except APIError as e:
            raise supabase_http_error(e)
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create user profile")
        return Profile(**result.data[0])

    def ensure_profile(self, user: Dict[str, Any]) -> Profile:
        """Return the caller's profile, creating it on first use."""
        profile = self.find_profile(user["id"])
        if profile is not None:
            return profile

        logger.info(f"Creating profile for user {user['id']}")
        metadata = user.get("user_metadata") or {}
        overrides = {}
        if metadata.get("full_name"):
            overrides["full_name"] = metadata["full_name"]
        try:
            return self.create_profile(user["id"], user.get("email") or "", **overrides)
        except HTTPException as e:
            # Lost a race with a concurrent request or the signup trigger
            if e.status_code == 409:
                profile = self.find_profile(user["id"])
                if profile is not None:
                    return profile
            raise

    def update_fields(self, user_id: str, update_data: Dict[str, Any]) -> Profile:
        try:
            result = self._table()\
                .update(update_data)\
                .eq("user_id", user_id)\
                .execute()
        except APIError as e:
            raise supabase_http_error(e)
        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        return Profile(**result.data[0])

    def update_profile(self, user_id: str, updates: ProfileUpdate, updated_by: Optional[str] = None) -> Profile:
        """Self-service update; updated_at is handled by the database trigger"""
        update_data = {
            k: v for k, v in updates.model_dump(mode="json", exclude_unset=True).items()
            if k in SELF_UPDATE_FIELDS
        }
        if not update_data:
            raise HTTPException(status_code=400, detail="No fields to update")
        update_data["updated_by"] = updated_by
        return self.update_fields(user_id, update_data)

    def upload_avatar(self, user_id: str, filename: str, content: bytes, content_type: Optional[str]) -> str:
        """Store an avatar image and return its public URL"""
        if content_type not in ALLOWED_AVATAR_TYPES:
            raise HTTPException(status_code=400, detail="Avatar must be a PNG, JPEG, GIF or WebP image")
        if not content:
            raise HTTPException(status_code=400, detail="Avatar file is empty")
        if len(content) > settings.max_avatar_bytes:
            raise HTTPException(status_code=413, detail="Avatar file is too large")

        ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else content_type.split("/")[-1]
        file_path = f"avatars/{user_id}-{secrets.token_hex(8)}.{ext}"
        bucket = self.supabase.storage.from_(settings.avatar_bucket)
        try:
            bucket.upload(file_path, content, {"content-type": content_type})
        except Exception as e:
            logger.error(f"Avatar upload failed for {user_id}: {e}")
            raise HTTPException(status_code=502, detail="Failed to upload avatar")
        return bucket.get_public_url(file_path)

    def delete_avatar(self, avatar_url: str) -> bool:
        """Remove an avatar file given its public URL"""
        file_name = avatar_url.rstrip("/").split("/")[-1].split("?")[0]
        if not file_name:
            return False
        try:
            self.supabase.storage.from_(settings.avatar_bucket).remove([f"avatars/{file_name}"])
            return True
        except Exception as e:
            logger.warning(f"Failed to delete avatar {file_name}: {e}")
            return False

    def replace_avatar(self, user_id: str, filename: str, content: bytes, content_type: Optional[str]) -> Profile:
        """Upload a new avatar, point the profile at it and drop the old file"""
        previous = self.get_profile(user_id)
        url = self.upload_avatar(user_id, filename, content, content_type)
        profile = self.update_fields(user_id, {"avatar_url": url, "updated_by": user_id})
        if previous.avatar_url:
            self.delete_avatar(previous.avatar_url)
        return profile

    def remove_avatar(self, user_id: str) -> Profile:
        profile = self.get_profile(user_id)
        if not profile.avatar_url:
            return profile
        self.delete_avatar(profile.avatar_url)
        return self.update_fields(user_id, {"avatar_url": None, "updated_by": user_id})

    def search_profiles(self, query: str, limit: int = 10) -> List[Profile]:
        """Search active profiles by name or email"""
        term = clean_search_term(query)
        if not term:
            return []
        try:
            result = self._table()\
                .select("*")\
                .or_(f"full_name.ilike.%{term}%,email.ilike.%{term}%")\
                .eq("status", ProfileStatus.ACTIVE.value)\
                .limit(limit)\
                .execute()
        except APIError as e:
            raise supabase_http_error(e)
        return [Profile(**row) for row in result.data or []]

    def update_login_stats(self, user_id: str) -> None:
        """Bump login_count and last_login_at; never raises"""
        try:
            self.supabase.rpc("update_login_stats", {"target_user_id": user_id}).execute()
            return
        except Exception as e:
            logger.info(f"update_login_stats RPC unavailable, updating row directly: {e}")
        try:
            profile = self.find_profile(user_id)
            current_count = profile.login_count if profile else 0
            self._table()\
                .update({"last_login_at": _now_iso(), "login_count": current_count + 1})\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating login stats for {user_id}: {e}")

    def _change(
        self,
        user_id: str,
        changes: Dict[str, Any],
        updated_by: str,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Profile:
        profile = self.get_profile(user_id)
        validate_profile_change(profile, role=role, status=status)
        return self.update_fields(user_id, {**changes, "updated_by": updated_by})

    def suspend_profile(self, user_id: str, suspended_until: datetime, reason: str, suspended_by: str) -> Profile:
        return self._change(
            user_id,
            {
                "status": ProfileStatus.SUSPENDED.value,
                "suspended_until": suspended_until.isoformat(),
                "suspension_reason": reason,
            },
            suspended_by,
            status=ProfileStatus.SUSPENDED.value,
        )

    def unsuspend_profile(self, user_id: str, unsuspended_by: str) -> Profile:
        return self._change(
            user_id,
            {
                "status": ProfileStatus.ACTIVE.value,
                "suspended_until": None,
                "suspension_reason": None,
            },
            unsuspended_by,
            status=ProfileStatus.ACTIVE.value,
        )

    def ban_profile(self, user_id: str, reason: str, banned_by: str) -> Profile:
        return self._change(
            user_id,
            {
                "status": ProfileStatus.BANNED.value,
                "suspended_until": None,
                "suspension_reason": reason,
            },
            banned_by,
            status=ProfileStatus.BANNED.value,
        )

    def update_role(self, user_id: str, role: str, updated_by: str) -> Profile:
        role = getattr(role, "value", role)
        return self._change(user_id, {"role": role}, updated_by, role=role)
