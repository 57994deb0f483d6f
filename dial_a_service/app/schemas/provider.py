"""
Pydantic models for service providers.

Covers the onboarding forms (basic information and skills), the
editable provider profile, the verification workflow and the
provider dashboard.  The skill catalogue doubles as the list of job
categories customers can post under.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .job import JobRead


SKILLS = [
    {"name": "Plumbing", "description": "Installation and repair of water systems"},
    {"name": "Electrical", "description": "Wiring, repairs, and installations"},
    {"name": "Cleaning", "description": "House cleaning and maintenance"},
    {"name": "Gardening", "description": "Landscaping and lawn care"},
    {"name": "Painting", "description": "Interior and exterior painting"},
    {"name": "Handyman", "description": "General repairs and maintenance"},
    {"name": "Carpentry", "description": "Woodwork, fittings and furniture repair"},
]
SKILL_NAMES = [skill["name"] for skill in SKILLS]

VerificationStatus = Literal["pending", "approved", "rejected"]


class Skill(BaseModel):
    name: str
    description: str


class BasicInfoUpdate(BaseModel):
    """First onboarding step."""

    years_experience: int = Field(0, ge=0, le=50, example=5)
    business_name: str = Field(..., example="Banda Plumbing")
    business_email: str = Field(..., example="office@bandaplumbing.co.zm")

    @field_validator("business_name")
    @classmethod
    def business_name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter your business name")
        return v

    @field_validator("business_email")
    @classmethod
    def business_email_valid(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError("Please enter a valid business email")
        return v


class SkillsUpdate(BaseModel):
    """Second onboarding step; also used by the skills management page."""

    skills: List[str] = Field(..., example=["Plumbing", "Handyman"])

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: List[str]) -> List[str]:
        # Drop duplicates, keep the order the provider picked them in.
        unique: List[str] = []
        for skill in v:
            if skill not in SKILL_NAMES:
                raise ValueError(f"Unknown skill: {skill}")
            if skill not in unique:
                unique.append(skill)
        if not unique:
            raise ValueError("Please select at least one skill")
        return unique


class ProviderProfileUpdate(BaseModel):
    full_name: str
    phone: Optional[str] = None
    business_name: Optional[str] = None
    business_email: Optional[str] = None
    years_experience: int = Field(0, ge=0, le=50)
    bio: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def full_name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter your full name")
        return v

    @field_validator("business_email")
    @classmethod
    def business_email_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        if "@" not in v:
            raise ValueError("Please enter a valid business email")
        return v.strip()


class ProviderRead(BaseModel):
    id: int
    full_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    business_name: Optional[str] = None
    business_email: Optional[str] = None
    years_experience: int = 0
    bio: Optional[str] = None
    skills: List[str] = []
    verified: bool = False
    verification_status: VerificationStatus = "pending"
    verification_requested_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    id_url: Optional[str] = None
    profile_picture_url: Optional[str] = None
    onboarding_step: int = 0
    onboarding_completed_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class ProviderProfileResult(BaseModel):
    provider: ProviderRead
    redirect_to: str


class VerificationStatusRead(BaseModel):
    status: VerificationStatus
    verified: bool
    rejection_reason: Optional[str] = None
    verification_requested_at: Optional[datetime] = None
    redirect_to: str


class VerificationDecision(BaseModel):
    """Admin decision on a pending provider."""

    status: Literal["approved", "rejected"]
    reason: Optional[str] = Field(None, example="Incomplete information")


class VerificationResult(BaseModel):
    provider: ProviderRead
    email_sent: bool
    message: str


class ProviderStats(BaseModel):
    total_jobs: int = 0
    completed_jobs: int = 0
    total_earnings: float = 0.0
    average_rating: float = 0.0


class ProviderDashboard(BaseModel):
    stats: ProviderStats
    jobs: List[JobRead]
