from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from app.modules.profiles.schemas import Profile


@dataclass
class RequestContext:
    """Who is calling, resolved once per request and passed down to services."""

    user: Dict[str, Any]
    profile: Profile
    permissions: List[str] = field(default_factory=list)
    token: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    is_admin: Optional[bool] = None  # filled by resolve_admin_status

    @property
    def user_id(self) -> str:
        return self.user["id"]

    @property
    def role(self) -> str:
        return self.profile.role
