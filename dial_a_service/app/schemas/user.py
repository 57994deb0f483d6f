"""
Pydantic models for accounts and authentication.

Defines the payloads for registering, signing in (password or magic
link), reading the current account and completing the account profile
that decides whether a user is a customer or a provider.
"""

import re
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator


PHONE_PATTERN = re.compile(r"^[0-9]{10,15}$")


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("Please enter a valid email address")
    return value


Email = Annotated[str, AfterValidator(_check_email)]


class UserRegister(BaseModel):
    email: Email = Field(..., example="jane@example.com")
    password: str = Field(..., min_length=6, example="strongpassword")
    full_name: Optional[str] = Field(None, example="Jane Banda")


class UserLogin(BaseModel):
    email: Email
    password: str


class MagicLinkRequest(BaseModel):
    email: Email = Field(..., example="jane@example.com")


class MagicLinkVerify(BaseModel):
    token: str = Field(..., min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRead(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    role: Optional[str] = None
    disabled: bool = False

    model_config = {
        "from_attributes": True,
    }


class SessionRead(BaseModel):
    """The signed-in user and the route the front end should show them."""

    user: UserRead
    redirect_to: str


class AccountProfileUpdate(BaseModel):
    """Schema for completing the account profile after the first sign in.

    Choosing ``provider`` also creates the provider record that the
    onboarding wizard fills in.
    """

    full_name: str = Field(..., example="Jane Banda")
    phone_number: str = Field(..., example="0977123456")
    city: str = Field(..., example="Lusaka")
    role: Literal["customer", "provider"] = "customer"

    @field_validator("full_name", "city")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("This field is required")
        return v

    @field_validator("phone_number")
    @classmethod
    def valid_phone(cls, v: str) -> str:
        v = v.strip()
        if not PHONE_PATTERN.match(v):
            raise ValueError("Phone number must be 10 to 15 digits")
        return v


class AccountProfileResult(BaseModel):
    user: UserRead
    redirect_to: str
