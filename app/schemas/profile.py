# app/schemas/profile.py
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.base import CamelModel


class Profile(CamelModel):
    id: str
    display_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    newsletter_subscribed: bool = False
    is_admin: bool
    deleted_at: Optional[datetime] = None


class PublicProfile(CamelModel):
    """What anyone may see about an account."""
    id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None


class ProfileUpdate(CamelModel):
    # Only fields present in the request are written; null clears a value
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    bio: Optional[str] = Field(None, max_length=500)
    avatar_url: Optional[str] = Field(None, max_length=500)
    newsletter_subscribed: Optional[bool] = None

    @field_validator("newsletter_subscribed")
    @classmethod
    def newsletter_not_null(cls, v):
        if v is None:
            raise ValueError("newsletterSubscribed must be true or false")
        return v


class ProfileDeleteRequest(CamelModel):
    # "DELETE" or the account email, case-insensitive
    confirmation: str = Field(..., min_length=1)


class ProfileDeleteResult(CamelModel):
    id: str
    deleted_at: datetime


class ProfileConsistency(CamelModel):
    profile_id: str
    deleted_locally: bool
    banned_remotely: bool
    consistent: bool
