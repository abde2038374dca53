"""
Access Control Configuration
Static role/permission matrix, route guard table and the profile status
transition table. Everything here is plain data; the evaluation logic lives
in app.core.access.
"""

from enum import Enum


class Role(str, Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class ProfileStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"
    PENDING = "pending"


# Roles that must never be held by a banned account
PRIVILEGED_ROLES = {Role.ADMIN.value, Role.MODERATOR.value}

# Permissions granted per role. Unknown roles fall back to "user".
ROLE_PERMISSIONS = {
    Role.ADMIN.value: [
        "user.create",
        "user.read",
        "user.update",
        "user.delete",
        "admin.access",
        "system.manage",
        "reports.view",
        "analytics.view",
    ],
    Role.MODERATOR.value: [
        "user.read",
        "user.update",
        "reports.view",
        "analytics.view",
    ],
    Role.USER.value: [
        "profile.read",
        "profile.update",
    ],
}

DEFAULT_ROLE = Role.USER.value

# Route guard table: path prefix -> required roles / permissions.
# Matching is on segment boundaries and the longest prefix wins.
ROUTE_PERMISSIONS = {
    "/admin": {"roles": ["admin"]},
    "/admin/users": {"roles": ["admin"], "permissions": ["user.read"]},
    "/admin/settings": {"roles": ["admin"], "permissions": ["system.manage"]},
    "/admin/logs": {"roles": ["admin"]},
    "/moderation": {"roles": ["admin", "moderator"]},
    "/moderation/content": {"roles": ["admin", "moderator"]},
    "/moderation/reports": {"roles": ["admin", "moderator"]},
    "/dashboard/analytics": {"roles": ["admin", "moderator"], "permissions": ["analytics.view"]},
    "/dashboard/reports": {"roles": ["admin", "moderator"], "permissions": ["reports.view"]},
}

PUBLIC_ROUTES = ["/login", "/signup", "/forgot-password", "/reset-password"]

# Where the route guard sends a caller that fails a check
LOGIN_PATH = "/login"
PROFILE_SETUP_PATH = "/profile"
ACCOUNT_SUSPENDED_PATH = "/account-suspended"
UNAUTHORIZED_PATH = "/unauthorized"

# Allowed profile status transitions. Same-status writes are always allowed.
# banned is terminal.
STATUS_TRANSITIONS = {
    ProfileStatus.PENDING.value: {ProfileStatus.ACTIVE.value, ProfileStatus.BANNED.value},
    ProfileStatus.ACTIVE.value: {ProfileStatus.SUSPENDED.value, ProfileStatus.BANNED.value},
    ProfileStatus.SUSPENDED.value: {ProfileStatus.ACTIVE.value, ProfileStatus.BANNED.value},
    ProfileStatus.BANNED.value: set(),
}

# Fields an admin may change through the generic user update API
PROFILE_UPDATE_FIELDS = [
    "full_name",
    "bio",
    "website",
    "location",
    "phone",
    "date_of_birth",
    "preferred_language",
    "role",
    "status",
]

# Fields a user may change on their own profile
SELF_UPDATE_FIELDS = [
    "full_name",
    "avatar_url",
    "bio",
    "website",
    "location",
    "phone",
    "date_of_birth",
    "preferred_language",
]

SUPPORTED_LANGUAGES = ["en", "th"]
