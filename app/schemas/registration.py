# app/schemas/registration.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import EmailStr, Field

from app.schemas.base import CamelModel


class RegistrationStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    failed = "failed"
    refunded = "refunded"
    cancelled = "cancelled"


class RegistrationCreate(CamelModel):
    """
    Registration request. The amount is never taken from the client;
    any extra field such as `amount` is ignored.
    """
    event_id: str
    attendee_name: str = Field(..., min_length=1, max_length=200)
    attendee_email: EmailStr
    attendee_phone: Optional[str] = Field(None, max_length=40)


class FreeRegistrationResult(CamelModel):
    type: Literal["free"] = "free"
    registration_id: str
    status: RegistrationStatus


class PaidRegistrationResult(CamelModel):
    type: Literal["paid"] = "paid"
    registration_id: str
    client_secret: str
    amount: Decimal
    amount_in_cents: int
    currency: str


RegistrationResult = Annotated[
    Union[FreeRegistrationResult, PaidRegistrationResult],
    Field(discriminator="type"),
]


class Registration(CamelModel):
    id: str
    event_id: str
    user_id: str
    status: RegistrationStatus
    amount: Decimal
    attendee_name: str
    attendee_email: str
    attendee_phone: Optional[str] = None
    payment_reference: Optional[str] = None
    payment_attempts: int
    created_at: datetime
    confirmed_at: Optional[datetime] = None


class RegistrationCheck(CamelModel):
    is_registered: bool
    status: Optional[RegistrationStatus] = None
    registration_id: Optional[str] = None
    confirmed_at: Optional[datetime] = None


class RegistrationCount(CamelModel):
    event_id: str
    count: int


class RegisteredEvent(CamelModel):
    id: str
    slug: str
    type: str
    starts_at: datetime
    ends_at: Optional[datetime] = None
    location: Optional[str] = None
    banner_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    lang: Optional[str] = None
    is_fallback: bool = False


class MyRegistration(CamelModel):
    id: str
    status: RegistrationStatus
    amount: Decimal
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    event: RegisteredEvent


class UnattachedRegistrationList(CamelModel):
    older_than_minutes: int
    data: List[Registration]
