from typing import Optional
from pydantic import BaseModel, Field, field_validator

from parichay.config import is_valid_email


class ReviewCreate(BaseModel):
    """Public review, stored unpublished until moderated"""
    branch_id: str
    author_name: str = Field(min_length=2, max_length=100)
    author_email: Optional[str] = None
    author_company: Optional[str] = None
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    content: str = Field(min_length=10, max_length=2000)

    @field_validator("author_email")
    @classmethod
    def validate_email(cls, v):
        if v is not None and not is_valid_email(v):
            raise ValueError("Invalid email address")
        return v


class ReviewModerate(BaseModel):
    is_published: bool
