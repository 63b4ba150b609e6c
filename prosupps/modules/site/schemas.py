from pydantic import BaseModel
from typing import Optional, List, Dict


class SiteInfo(BaseModel):
    name: str
    description: str
    url: Optional[str] = None
    contact_link: str


class Section(BaseModel):
    title: str
    description: str


class Testimonial(BaseModel):
    text: str
    name: str
    title: str


class HomeResponse(BaseModel):
    site: SiteInfo
    hero_image: str
    features: List[Section]
    benefits: List[Section]
    testimonials: List[Testimonial]


class AboutResponse(BaseModel):
    site: SiteInfo
    values: List[Section]
    story: List[str]


class ContactResponse(BaseModel):
    site: SiteInfo
    heading: str
    contact_link: str


class NavLink(BaseModel):
    label: str
    href: str


class Avatar(BaseModel):
    url: Optional[str] = None
    initials: Optional[str] = None


class NavResponse(BaseModel):
    links: List[NavLink]
    account: List[NavLink]
    signed_in: bool
    is_admin: bool
    avatar: Optional[Avatar] = None
    display_name: Optional[str] = None
    actions: List[Dict[str, str]] = []
