"""Database models for membership applications.

Applications form an append-only log reviewed by an administrator. A user
may submit more than once; each submission is its own row.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict

from editverse.core.rows import ensure_utc_aware, parse_row


class ApplicationStatus(str, Enum):
    """Review status of an application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ExperienceLevel(str, Enum):
    """Self-reported editing experience."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    PROFESSIONAL = "professional"


APPLICATIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.applications (
    id UUID PRIMARY KEY,
    user_id UUID,
    full_name TEXT,
    age INT,
    experience_level TEXT,
    motivation TEXT,
    portfolio_url TEXT,
    social_links MAP<TEXT, TEXT>,
    status TEXT,
    rejection_reason TEXT,
    submitted_at TIMESTAMP,
    reviewed_at TIMESTAMP,
    reviewed_by UUID
)
"""

APPLICATIONS_STATUS_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS applications_status_idx
ON {keyspace}.applications (status)
"""

APPLICATIONS_TABLES_CQL = [
    APPLICATIONS_TABLE_CQL,
    APPLICATIONS_STATUS_INDEX_CQL,
]


class ApplicationRow(BaseModel):
    """Validated shape of a stored application row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    full_name: str
    age: int
    experience_level: ExperienceLevel
    motivation: str
    portfolio_url: str | None = None
    social_links: dict[str, str] | None = None
    status: ApplicationStatus = ApplicationStatus.PENDING
    rejection_reason: str | None = None
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: UUID | None = None


class Application:
    """Membership application entity.

    Attributes:
        id: Application UUID
        user_id: Applicant UUID
        full_name: Applicant's name
        age: Applicant's age
        experience_level: Self-reported experience
        motivation: Why the applicant wants to join
        portfolio_url: Optional portfolio link
        social_links: Optional social handles keyed by network
        status: pending, approved or rejected
        rejection_reason: Set only when rejected
        submitted_at: Submission timestamp
        reviewed_at: Review timestamp
        reviewed_by: Reviewing administrator UUID
    """

    def __init__(
        self,
        user_id: UUID,
        full_name: str,
        age: int,
        experience_level: str,
        motivation: str,
        id: UUID | None = None,
        portfolio_url: str | None = None,
        social_links: dict[str, str] | None = None,
        status: str = ApplicationStatus.PENDING.value,
        rejection_reason: str | None = None,
        submitted_at: datetime | None = None,
        reviewed_at: datetime | None = None,
        reviewed_by: UUID | None = None,
    ):
        self.id = id or uuid4()
        self.user_id = user_id
        self.full_name = full_name
        self.age = age
        self.experience_level = experience_level
        self.motivation = motivation
        self.portfolio_url = portfolio_url
        self.social_links = dict(social_links or {})
        self.status = status
        self.rejection_reason = rejection_reason
        self.submitted_at = ensure_utc_aware(submitted_at) or datetime.now(UTC)
        self.reviewed_at = ensure_utc_aware(reviewed_at)
        self.reviewed_by = reviewed_by

    @property
    def is_pending(self) -> bool:
        """Check if the application still awaits review."""
        return self.status == ApplicationStatus.PENDING.value

    @classmethod
    def from_row(cls, row: Any) -> "Application":
        """Create Application instance from a storage row."""
        data = parse_row(ApplicationRow, row)
        return cls(
            id=data.id,
            user_id=data.user_id,
            full_name=data.full_name,
            age=data.age,
            experience_level=data.experience_level.value,
            motivation=data.motivation,
            portfolio_url=data.portfolio_url,
            social_links=data.social_links,
            status=data.status.value,
            rejection_reason=data.rejection_reason,
            submitted_at=data.submitted_at,
            reviewed_at=data.reviewed_at,
            reviewed_by=data.reviewed_by,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "full_name": self.full_name,
            "age": self.age,
            "experience_level": self.experience_level,
            "motivation": self.motivation,
            "portfolio_url": self.portfolio_url,
            "social_links": dict(self.social_links),
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "submitted_at": self.submitted_at,
            "reviewed_at": self.reviewed_at,
            "reviewed_by": self.reviewed_by,
        }

    def __repr__(self) -> str:
        return f"<Application {self.id} {self.full_name!r} {self.status}>"
