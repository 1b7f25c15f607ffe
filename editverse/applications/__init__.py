"""Membership applications submitted during onboarding and reviewed by admins."""

from .models import APPLICATIONS_TABLES_CQL, Application, ApplicationStatus, ExperienceLevel


__all__ = [
    "APPLICATIONS_TABLES_CQL",
    "Application",
    "ApplicationStatus",
    "ExperienceLevel",
]
