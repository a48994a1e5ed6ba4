"""
Parichay - Lead model

RULES:
1. A lead is inserted once branch_id and name are valid
2. Notification fan-out never fails the submission
3. Any extra submitted field lands in metadata, except the keys the
   dashboard and the reminder job own (RESERVED_METADATA_KEYS)
"""

from enum import Enum
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    LOST = "lost"


class LeadPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


VALID_LEAD_STATUSES = [s.value for s in LeadStatus]

DEFAULT_LEAD_SOURCE = "microsite_form"

RESERVED_METADATA_KEYS = {
    "tags",
    "next_follow_up_at",
    "reminder_sent",
    "reminder_sent_at",
    "overdue_notified",
    "overdue_notified_at",
    "submitted_at",
    "user_agent",
}


class LeadSubmit(BaseModel):
    """
    Lead submitted from a public microsite form.
    branch_id and name are checked in the route so that the error
    messages stay stable for the form widgets.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    branch_id: Optional[str] = Field(None, alias="branchId")
    brand_id: Optional[str] = Field(None, alias="brandId")
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    source: Optional[str] = None
    # Overrides branch.contact for routing (preview/testing from the editor)
    branch_contact: Optional[Dict[str, Any]] = Field(None, alias="branchContact")

    def extra_fields(self) -> Dict[str, Any]:
        return {
            key: value for key, value in (self.model_extra or {}).items()
            if key not in RESERVED_METADATA_KEYS
        }


class LeadUpdate(BaseModel):
    """Lead changes made from the dashboard"""
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    next_follow_up_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    conversion_value: Optional[float] = None
