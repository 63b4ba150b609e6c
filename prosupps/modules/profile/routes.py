from fastapi import APIRouter, Depends, File, Form, UploadFile
from prosupps.core.dependencies import get_current_profile, get_profile_service
from prosupps.modules.profile.schemas import ProfileResponse, ProfileUpdateResponse
from prosupps.modules.profile.service import ProfileService, require_name_or_avatar
from typing import Optional

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(profile: ProfileResponse = Depends(get_current_profile)):
    """Profile of the signed-in user"""
    return profile


@router.put("", response_model=ProfileUpdateResponse)
async def update_profile(
    full_name: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Update display name and/or avatar"""
    require_name_or_avatar(full_name, avatar)
    updated = await service.update_profile(profile.id, full_name, avatar)
    return ProfileUpdateResponse(profile=updated, message="Profile updated successfully")
