from fastapi import APIRouter, Depends, File, Query, UploadFile
from app.core.context import RequestContext
from app.core.dependencies import get_profile_service, require_access, require_active
from app.modules.profiles.schemas import Profile, ProfileUpdate
from app.modules.profiles.service import ProfileService
from typing import List

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=Profile)
async def get_my_profile(
    context: RequestContext = Depends(require_access(allow_inactive=True)),
):
    """Own profile; readable even while suspended so the UI can show why"""
    return context.profile


@router.put("/me", response_model=Profile)
async def update_my_profile(
    updates: ProfileUpdate,
    context: RequestContext = Depends(require_active),
    service: ProfileService = Depends(get_profile_service)
):
    """Update own profile fields"""
    return service.update_profile(context.user_id, updates, updated_by=context.user_id)


@router.post("/me/avatar", response_model=Profile)
async def upload_my_avatar(
    file: UploadFile = File(...),
    context: RequestContext = Depends(require_active),
    service: ProfileService = Depends(get_profile_service)
):
    """Upload a new avatar image"""
    content = await file.read()
    return service.replace_avatar(context.user_id, file.filename, content, file.content_type)


@router.delete("/me/avatar", response_model=Profile)
async def delete_my_avatar(
    context: RequestContext = Depends(require_active),
    service: ProfileService = Depends(get_profile_service)
):
    """Remove the current avatar"""
    return service.remove_avatar(context.user_id)


@router.get("/search", response_model=List[Profile])
async def search_profiles(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    context: RequestContext = Depends(require_active),
    service: ProfileService = Depends(get_profile_service)
):
    """Search active profiles by name or email"""
    return service.search_profiles(q, limit)
