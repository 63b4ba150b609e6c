import logging
from typing import Dict, Optional

from prosupps.config import settings
from prosupps.core.errors import BackendError
from prosupps.modules.profile.models import ROLE_ADMIN
from prosupps.modules.profile.schemas import ProfileResponse
from prosupps.modules.profile.service import ProfileService
from prosupps.modules.site import content
from prosupps.modules.site.schemas import (
    AboutResponse, Avatar, ContactResponse, HomeResponse, NavLink, NavResponse, SiteInfo
)

logger = logging.getLogger(__name__)

PUBLIC_LINKS = [
    NavLink(label="Home", href="/"),
    NavLink(label="Products", href="/products"),
    NavLink(label="About", href="/about"),
    NavLink(label="Contact", href="/contact"),
]


def site_info() -> SiteInfo:
    return SiteInfo(
        name=settings.site_name,
        description=settings.site_description,
        url=settings.site_url,
        contact_link=settings.contact_link,
    )


def initials(full_name: Optional[str]) -> Optional[str]:
    """'jane van doe' -> 'JV'"""
    if not full_name or not full_name.strip():
        return None
    return "".join(part[0] for part in full_name.split())[:2].upper()


def build_nav(profile: Optional[ProfileResponse], signed_in: bool) -> NavResponse:
    if not signed_in:
        return NavResponse(
            links=list(PUBLIC_LINKS),
            account=[NavLink(label="Login", href="/login"), NavLink(label="Sign Up", href="/signup")],
            signed_in=False,
            is_admin=False,
        )
    is_admin = profile is not None and profile.role == ROLE_ADMIN
    account = [NavLink(label="Profile", href="/profile")]
    if is_admin:
        account.insert(0, NavLink(label="Admin", href="/admin"))
    avatar = None
    if profile is not None and (profile.avatar_url or profile.full_name):
        avatar = Avatar(url=profile.avatar_url or None, initials=initials(profile.full_name))
    return NavResponse(
        links=list(PUBLIC_LINKS),
        account=account,
        signed_in=True,
        is_admin=is_admin,
        avatar=avatar,
        display_name=profile.full_name if profile else None,
        actions=[{"label": "Sign Out", "method": "POST", "href": "/api/v1/auth/logout"}],
    )


class SiteService:
    def __init__(self, profiles: ProfileService):
        self.profiles = profiles

    def nav_for(self, user: Optional[Dict]) -> NavResponse:
        if user is None:
            return build_nav(None, signed_in=False)
        try:
            profile = self.profiles.get_profile(user["id"])
        except BackendError as e:
            # the bar still renders for a signed-in user, just without profile details
            logger.error(f"Error fetching profile for nav: {e.message}")
            profile = None
        return build_nav(profile, signed_in=True)

    @staticmethod
    def home() -> HomeResponse:
        return HomeResponse(
            site=site_info(),
            hero_image=settings.placeholder_image,
            features=content.FEATURES,
            benefits=content.BENEFITS,
            testimonials=content.TESTIMONIALS,
        )

    @staticmethod
    def about() -> AboutResponse:
        return AboutResponse(site=site_info(), values=content.ABOUT_VALUES, story=content.ABOUT_STORY)

    @staticmethod
    def contact() -> ContactResponse:
        return ContactResponse(
            site=site_info(),
            heading="Connect with Us on Telegram",
            contact_link=settings.contact_link,
        )
