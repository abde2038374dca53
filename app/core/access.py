"""
Role and permission resolution.

Pure functions over a caller's profile. Every check treats a missing
profile as "no": no roles, no permissions, no access.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
from urllib.parse import quote

from app.config.access_config import (
    ACCOUNT_SUSPENDED_PATH,
    DEFAULT_ROLE,
    LOGIN_PATH,
    PRIVILEGED_ROLES,
    PROFILE_SETUP_PATH,
    PUBLIC_ROUTES,
    ROLE_PERMISSIONS,
    ROUTE_PERMISSIONS,
    STATUS_TRANSITIONS,
    UNAUTHORIZED_PATH,
    ProfileStatus,
    Role,
)
from app.core.errors import InvalidProfileChange


@dataclass
class AccessDecision:
    allowed: bool
    reason: Optional[str] = None  # unauthenticated | role | permission


@dataclass
class RouteDecision:
    allowed: bool
    redirect_to: Optional[str] = None
    required_roles: Optional[List[str]] = None
    required_permissions: Optional[List[str]] = None


def _value(v: Any) -> Optional[str]:
    return getattr(v, "value", v)


def _role_of(profile) -> Optional[str]:
    if profile is None:
        return None
    return _value(profile.role)


def get_user_permissions(profile) -> List[str]:
    """Permissions granted by the profile's role; unknown roles get the user set."""
    if profile is None:
        return []
    role = _role_of(profile)
    return list(ROLE_PERMISSIONS.get(role, ROLE_PERMISSIONS[DEFAULT_ROLE]))


def has_role(profile, required_role: Union[str, Sequence[str]]) -> bool:
    if profile is None:
        return False
    roles = [required_role] if isinstance(required_role, str) else list(required_role)
    return _role_of(profile) in [_value(r) for r in roles]


def has_any_role(profile, roles: Sequence[str]) -> bool:
    return has_role(profile, list(roles))


def is_admin(profile) -> bool:
    return has_role(profile, Role.ADMIN.value)


def is_moderator(profile) -> bool:
    """Moderator or admin."""
    return has_any_role(profile, [Role.ADMIN.value, Role.MODERATOR.value])


def has_permission(profile, permission: str) -> bool:
    return permission in get_user_permissions(profile)


def authorize(
    profile,
    required_roles: Iterable[str] = (),
    required_permissions: Iterable[str] = (),
    permissions: Optional[Sequence[str]] = None,
) -> AccessDecision:
    """Role guard.

    Roles: the profile's role must be one of required_roles.
    Permissions: the profile must hold at least one of required_permissions.
    An empty requirement list is not checked.
    """
    required_roles = [_value(r) for r in required_roles]
    required_permissions = list(required_permissions)

    if profile is None:
        return AccessDecision(allowed=False, reason="unauthenticated")

    if required_roles and _role_of(profile) not in required_roles:
        return AccessDecision(allowed=False, reason="role")

    if required_permissions:
        held = get_user_permissions(profile) if permissions is None else permissions
        if not any(p in held for p in required_permissions):
            return AccessDecision(allowed=False, reason="permission")

    return AccessDecision(allowed=True)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def effective_status(profile, now: Optional[datetime] = None) -> Optional[str]:
    """Stored status, except that a suspension whose end date has passed counts as active."""
    if profile is None:
        return None
    current = _value(profile.status)
    until = getattr(profile, "suspended_until", None)
    if current == ProfileStatus.SUSPENDED.value and until is not None:
        now = now or datetime.now(timezone.utc)
        if isinstance(until, str):
            until = datetime.fromisoformat(until.replace("Z", "+00:00"))
        if _as_utc(until) <= _as_utc(now):
            return ProfileStatus.ACTIVE.value
    return current


def is_active(profile, now: Optional[datetime] = None) -> bool:
    return effective_status(profile, now) == ProfileStatus.ACTIVE.value


def _normalize_path(path: str) -> str:
    path = (path or "/").split("?", 1)[0].split("#", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def _matches_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def match_route(path: str) -> Optional[Dict[str, List[str]]]:
    """Route table entry for path, longest matching prefix first."""
    path = _normalize_path(path)
    matches = [prefix for prefix in ROUTE_PERMISSIONS if _matches_prefix(path, prefix)]
    if not matches:
        return None
    return ROUTE_PERMISSIONS[max(matches, key=len)]


def requires_auth(path: str) -> bool:
    path = _normalize_path(path)
    return not any(_matches_prefix(path, route) for route in PUBLIC_ROUTES)


def requires_role(path: str) -> Optional[List[str]]:
    config = match_route(path)
    if not config:
        return None
    return config.get("roles") or None


def evaluate_route(
    path: str,
    user: Optional[Dict[str, Any]],
    profile,
    now: Optional[datetime] = None,
) -> RouteDecision:
    """Route guard: decide whether the caller may open a dashboard page."""
    config = match_route(path)
    if config is None:
        return RouteDecision(allowed=True)

    roles = config.get("roles") or []
    permissions = config.get("permissions") or []

    def deny(target: str) -> RouteDecision:
        return RouteDecision(
            allowed=False,
            redirect_to=target,
            required_roles=roles or None,
            required_permissions=permissions or None,
        )

    if not user:
        return deny(f"{LOGIN_PATH}?redirectTo={quote(_normalize_path(path), safe='/')}")
    if profile is None:
        return deny(PROFILE_SETUP_PATH)
    if not is_active(profile, now):
        return deny(ACCOUNT_SUSPENDED_PATH)
    if not authorize(profile, roles, permissions).allowed:
        return deny(UNAUTHORIZED_PATH)
    return RouteDecision(
        allowed=True,
        required_roles=roles or None,
        required_permissions=permissions or None,
    )


def can_transition(current: str, target: str) -> bool:
    current, target = _value(current), _value(target)
    if current == target:
        return True
    return target in STATUS_TRANSITIONS.get(current, set())


def validate_profile_change(profile, role: Optional[str] = None, status: Optional[str] = None) -> None:
    """Reject unknown values, disallowed status transitions and banned privileged accounts."""
    role, status = _value(role), _value(status)

    if role is not None and role not in {r.value for r in Role}:
        raise InvalidProfileChange(f"Unknown role: {role}")
    if status is not None and status not in {s.value for s in ProfileStatus}:
        raise InvalidProfileChange(f"Unknown status: {status}")

    current_status = _value(profile.status)
    if status is not None and not can_transition(current_status, status):
        raise InvalidProfileChange(f"Cannot change status from {current_status} to {status}")

    final_role = role if role is not None else _role_of(profile)
    final_status = status if status is not None else current_status
    if final_status == ProfileStatus.BANNED.value and final_role in PRIVILEGED_ROLES:
        raise InvalidProfileChange(
            "Banned accounts cannot hold the admin or moderator role. Change role first."
        )


def filter_menu(
    items: List[Dict[str, Any]],
    role: Optional[str],
    permissions: Sequence[str] = (),
) -> List[Dict[str, Any]]:
    """Menu items visible to role/permissions; parents left without children are dropped."""
    role = _value(role)
    visible = []
    for item in items:
        required_roles = item.get("required_roles")
        required_permissions = item.get("required_permissions")

        if required_roles and role not in required_roles:
            continue
        if required_permissions and not any(p in permissions for p in required_permissions):
            continue

        entry = {k: v for k, v in item.items() if k != "children"}
        if item.get("children") is not None:
            children = filter_menu(item["children"], role, permissions)
            if not children:
                continue
            entry["children"] = children
        visible.append(entry)
    return visible
