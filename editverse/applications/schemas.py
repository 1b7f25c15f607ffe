"""Pydantic schemas for membership applications."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from editverse.applications.models import Application, ExperienceLevel


MIN_MOTIVATION_LENGTH = 20


class SubmitApplicationRequest(BaseModel):
    """Application form submitted during onboarding."""

    full_name: str = Field(..., min_length=1, max_length=200)
    age: int = Field(..., gt=0, lt=150)
    experience_level: ExperienceLevel
    motivation: str = Field(..., max_length=5000, description="Why the applicant wants to join")
    portfolio_url: str | None = Field(None, max_length=1000)
    social_links: dict[str, str] = Field(default_factory=dict)

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Reject blank names."""
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("motivation")
    @classmethod
    def validate_motivation(cls, v: str) -> str:
        """Require a short paragraph, not a word."""
        v = v.strip()
        if len(v) < MIN_MOTIVATION_LENGTH:
            raise ValueError(
                f"Motivation must be at least {MIN_MOTIVATION_LENGTH} characters"
            )
        return v

    @field_validator("portfolio_url")
    @classmethod
    def blank_url_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("social_links")
    @classmethod
    def drop_empty_links(cls, v: dict[str, str]) -> dict[str, str]:
        return {network: handle.strip() for network, handle in v.items() if handle.strip()}


class ApplicationResponse(BaseModel):
    """Application as shown in the admin list."""

    id: UUID
    user_id: UUID
    full_name: str
    age: int
    experience_level: str
    motivation: str
    portfolio_url: str | None = None
    social_links: dict[str, str] = Field(default_factory=dict)
    status: str
    rejection_reason: str | None = None
    submitted_at: datetime
    reviewed_at: datetime | None = None
    reviewed_by: UUID | None = None

    @classmethod
    def from_entity(cls, application: Application) -> "ApplicationResponse":
        return cls(**application.to_dict())


class ApplicationStats(BaseModel):
    """Counts per review status."""

    pending: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0
