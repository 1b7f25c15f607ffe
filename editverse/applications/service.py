"""Membership application service layer.

Business logic for:
- Submitting an application
- Listing applications for review
- Approving and rejecting
- Status statistics
"""

from collections import Counter
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from editverse.applications.models import Application, ApplicationStatus
from editverse.applications.schemas import ApplicationStats, SubmitApplicationRequest
from editverse.core.exceptions import ApplicationNotFoundError, EditverseError


if TYPE_CHECKING:
    from editverse.storage.base import ApplicationStore

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class RejectionReasonRequiredError(EditverseError):
    """A rejection must say why."""

    def __init__(self, message: str = "A rejection reason is required"):
        super().__init__(message, "rejection_reason_required")


class ApplicationAlreadyReviewedError(EditverseError):
    """Only pending applications can be reviewed."""

    def __init__(self, message: str = "Application was already reviewed"):
        super().__init__(message, "application_already_reviewed")


# ==============================================================================
# Application Service
# ==============================================================================


class ApplicationService:
    """Service for the membership application workflow."""

    def __init__(self, store: "ApplicationStore"):
        self.store = store

    def _require_pending(self, application_id: UUID) -> Application:
        application = self.store.fetch_application(application_id)
        if application is None:
            raise ApplicationNotFoundError
        if not application.is_pending:
            raise ApplicationAlreadyReviewedError(
                f"Application {application_id} is already {application.status}"
            )
        return application

    def submit(
        self,
        user_id: UUID,
        data: SubmitApplicationRequest,
        now: datetime | None = None,
    ) -> Application:
        """Store a new pending application."""
        application = self.store.insert_application(
            Application(
                user_id=user_id,
                full_name=data.full_name,
                age=data.age,
                experience_level=data.experience_level.value,
                motivation=data.motivation,
                portfolio_url=data.portfolio_url,
                social_links=data.social_links,
                submitted_at=now or datetime.now(UTC),
            )
        )
        logger.info(
            "application_submitted",
            application_id=str(application.id),
            user_id=str(user_id),
        )
        return application

    def list_applications(
        self, status: ApplicationStatus | None = None
    ) -> list[Application]:
        """Applications, newest first, optionally filtered by status."""
        applications = self.store.fetch_applications(status.value if status else None)
        return sorted(applications, key=lambda a: a.submitted_at, reverse=True)

    def approve(
        self,
        application_id: UUID,
        reviewer_id: UUID,
        now: datetime | None = None,
    ) -> Application:
        """Approve a pending application.

        Raises:
            ApplicationNotFoundError: If the application does not exist
            ApplicationAlreadyReviewedError: If it is not pending
        """
        self._require_pending(application_id)
        application = self.store.update_application(
            application_id,
            {
                "status": ApplicationStatus.APPROVED.value,
                "reviewed_at": now or datetime.now(UTC),
                "reviewed_by": reviewer_id,
            },
        )
        logger.info(
            "application_approved",
            application_id=str(application_id),
            reviewer_id=str(reviewer_id),
        )
        return application

    def reject(
        self,
        application_id: UUID,
        reviewer_id: UUID,
        reason: str | None,
        now: datetime | None = None,
    ) -> Application:
        """Reject a pending application with a reason.

        Raises:
            RejectionReasonRequiredError: If the reason is blank
            ApplicationNotFoundError: If the application does not exist
            ApplicationAlreadyReviewedError: If it is not pending
        """
        reason = (reason or "").strip()
        if not reason:
            raise RejectionReasonRequiredError

        self._require_pending(application_id)
        application = self.store.update_application(
            application_id,
            {
                "status": ApplicationStatus.REJECTED.value,
                "rejection_reason": reason,
                "reviewed_at": now or datetime.now(UTC),
                "reviewed_by": reviewer_id,
            },
        )
        logger.info(
            "application_rejected",
            application_id=str(application_id),
            reviewer_id=str(reviewer_id),
        )
        return application

    def stats(self) -> ApplicationStats:
        """Number of applications per status."""
        counts = Counter(a.status for a in self.store.fetch_applications())
        return ApplicationStats(
            pending=counts[ApplicationStatus.PENDING.value],
            approved=counts[ApplicationStatus.APPROVED.value],
            rejected=counts[ApplicationStatus.REJECTED.value],
            total=sum(counts.values()),
        )
