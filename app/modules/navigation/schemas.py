from pydantic import BaseModel
from typing import List, Optional


class MenuBadge(BaseModel):
    text: str
    variant: str = "default"


class MenuItem(BaseModel):
    id: str
    name: str
    href: str
    icon_name: Optional[str] = None
    description: Optional[str] = None
    badge: Optional[MenuBadge] = None
    required_roles: Optional[List[str]] = None
    required_permissions: Optional[List[str]] = None
    children: Optional[List["MenuItem"]] = None


class MenuResponse(BaseModel):
    role: str
    items: List[MenuItem]
