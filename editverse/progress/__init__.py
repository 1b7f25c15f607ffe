"""Learner progress tracking module.

Provides:
- One progress record per (user, course) with percentage and resume bookmark
- Lesson completion toggling as single (user, lesson) rows
- Enrollment state derived from the progress record
"""

from .models import (
    PROGRESS_TABLES_CQL,
    CompletionRecord,
    ProgressRecord,
    ProgressState,
)


__all__ = [
    "PROGRESS_TABLES_CQL",
    "CompletionRecord",
    "ProgressRecord",
    "ProgressState",
]
