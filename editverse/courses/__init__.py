"""Course content module.

Provides:
- Courses, chapters and lessons
- Canonical lesson order and chapter grouping
- Content administration (CRUD, reordering, statistics)
"""

from .models import COURSES_TABLES_CQL, Chapter, Course, Difficulty, Lesson


__all__ = [
    "COURSES_TABLES_CQL",
    "Chapter",
    "Course",
    "Difficulty",
    "Lesson",
]
