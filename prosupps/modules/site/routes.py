from fastapi import APIRouter, Depends
from prosupps.core.dependencies import get_optional_user, get_profile_service
from prosupps.modules.profile.service import ProfileService
from prosupps.modules.site.schemas import AboutResponse, ContactResponse, HomeResponse, NavResponse
from prosupps.modules.site.service import SiteService
from typing import Dict, Optional

router = APIRouter(tags=["site"])


def get_site_service(profiles: ProfileService = Depends(get_profile_service)) -> SiteService:
    return SiteService(profiles)


@router.get("/nav", response_model=NavResponse)
async def get_nav(
    user: Optional[Dict] = Depends(get_optional_user),
    service: SiteService = Depends(get_site_service)
):
    """Navigation menu for the current visitor; the Admin link only shows for admins"""
    return service.nav_for(user)


@router.get("/site/home", response_model=HomeResponse)
async def home():
    return SiteService.home()


@router.get("/site/about", response_model=AboutResponse)
async def about():
    return SiteService.about()


@router.get("/site/contact", response_model=ContactResponse)
async def contact():
    return SiteService.contact()
