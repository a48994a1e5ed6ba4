from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator


class ShortLinkCreate(BaseModel):
    target_url: str
    brand_id: Optional[str] = None
    branch_id: Optional[str] = None
    expires_at: Optional[datetime] = None

    @field_validator("target_url")
    @classmethod
    def validate_target_url(cls, v):
        if not v.startswith(("http://", "https://")) or "." not in v.split("//", 1)[1]:
            raise ValueError("target_url must be an absolute http(s) URL")
        return v
