"""
Parichay - Models package

Exports every request model for easy import:
from parichay.models import LeadSubmit, BranchCreate, ...
"""

from .auth import (
    VALID_ROLES,
    UserLogin,
    UserRegister,
    ChangePassword,
    UserCreate,
    UserUpdate,
)

from .brand import (
    ColorTheme,
    Address,
    Contact,
    SocialMedia,
    DayHours,
    InitialBranch,
    BrandCreate,
    BrandUpdate,
    BranchCreate,
    BranchUpdate,
    NotificationPreferences,
    DEFAULT_NOTIFICATION_PREFERENCES,
)

from .lead import (
    LeadStatus,
    LeadPriority,
    VALID_LEAD_STATUSES,
    DEFAULT_LEAD_SOURCE,
    LeadSubmit,
    LeadUpdate,
)

from .review import ReviewCreate, ReviewModerate

from .short_link import ShortLinkCreate

from .imports import GoogleBusinessImport

__all__ = [
    # Auth
    "VALID_ROLES",
    "UserLogin",
    "UserRegister",
    "ChangePassword",
    "UserCreate",
    "UserUpdate",
    # Brand / Branch
    "ColorTheme",
    "Address",
    "Contact",
    "SocialMedia",
    "DayHours",
    "InitialBranch",
    "BrandCreate",
    "BrandUpdate",
    "BranchCreate",
    "BranchUpdate",
    "NotificationPreferences",
    "DEFAULT_NOTIFICATION_PREFERENCES",
    # Lead
    "LeadStatus",
    "LeadPriority",
    "VALID_LEAD_STATUSES",
    "DEFAULT_LEAD_SOURCE",
    "LeadSubmit",
    "LeadUpdate",
    # Review
    "ReviewCreate",
    "ReviewModerate",
    # Short link
    "ShortLinkCreate",
    # Import
    "GoogleBusinessImport",
]
