"""
Parichay - Brand & Branch models

A Brand is the tenant. Each Branch carries its own contact channels,
business hours and microsite configuration blob.
"""

from typing import Annotated, Optional, Dict, Any
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictBool, field_validator

from parichay.config import is_valid_email


HEX_COLOR = r'^#[0-9A-Fa-f]{6}$'


class ColorTheme(BaseModel):
    primary: str = Field(pattern=HEX_COLOR)
    secondary: str = Field(pattern=HEX_COLOR)
    accent: str = Field(pattern=HEX_COLOR)


class Address(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = Field(min_length=1)


class Contact(BaseModel):
    phone: str = Field(min_length=1)
    whatsapp: Optional[str] = None
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if not is_valid_email(v):
            raise ValueError("Invalid email address")
        return v


class SocialMedia(BaseModel):
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None

    @field_validator("facebook", "instagram", "linkedin", "twitter")
    @classmethod
    def validate_url(cls, v):
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Invalid URL")
        return v


class DayHours(BaseModel):
    open: str = ""
    close: str = ""
    closed: bool = False


def _validate_logo(v):
    # URLs, relative paths (/uploads/...) and data URLs; empty means no logo
    if not v:
        return None
    if v.startswith(("http://", "https://", "/", "data:")):
        return v
    raise ValueError("Invalid logo")


Logo = Annotated[Optional[str], AfterValidator(_validate_logo)]


# ==================== BRAND ====================

class InitialBranch(BaseModel):
    name: str = Field(min_length=1)
    email: str
    phone: str = Field(min_length=1)
    address: Address


class BrandCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    tagline: Optional[str] = Field(None, max_length=200)
    logo: Logo = None
    custom_domain: Optional[str] = None
    color_theme: Optional[ColorTheme] = None
    initial_branch: Optional[InitialBranch] = None


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    tagline: Optional[str] = Field(None, max_length=200)
    logo: Logo = None
    custom_domain: Optional[str] = None
    color_theme: Optional[ColorTheme] = None
    is_active: Optional[bool] = None


# ==================== BRANCH ====================

class BranchCreate(BaseModel):
    brand_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    slug: Optional[str] = None
    address: Address
    contact: Contact
    social_media: Optional[SocialMedia] = None
    business_hours: Optional[Dict[str, DayHours]] = None
    microsite_config: Optional[Dict[str, Any]] = None


class BranchUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1)
    address: Optional[Address] = None
    contact: Optional[Contact] = None
    social_media: Optional[SocialMedia] = None
    business_hours: Optional[Dict[str, DayHours]] = None
    microsite_config: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class NotificationPreferences(BaseModel):
    """Lead routing channels of a branch (all three flags required)"""
    model_config = ConfigDict(populate_by_name=True)

    email: StrictBool
    whatsapp: StrictBool
    in_app: StrictBool = Field(alias="inApp")


DEFAULT_NOTIFICATION_PREFERENCES = {"email": True, "whatsapp": False, "in_app": True}
