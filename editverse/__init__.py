"""Editverse course progress library.

Provides:
- Course content ordering, chapter grouping and navigation
- Lesson completion sets and derived course percentage
- Per-course progress records with resume bookmark
- Membership application review
"""

__version__ = "0.1.0"
