from fastapi import APIRouter, Depends
from app.config.menu_config import MENU_CONFIG
from app.core.access import filter_menu
from app.core.context import RequestContext
from app.core.dependencies import require_active
from app.modules.navigation.schemas import MenuResponse

router = APIRouter(prefix="/navigation", tags=["navigation"])


@router.get("/menu", response_model=MenuResponse)
async def get_menu(
    context: RequestContext = Depends(require_active),
):
    """Sidebar menu filtered by the caller's role and permissions"""
    return MenuResponse(
        role=context.role,
        items=filter_menu(MENU_CONFIG, context.role, context.permissions),
    )
