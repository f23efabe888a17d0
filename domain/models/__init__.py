"""Models package - SQLAlchemy ORM models.

- `questions`: the published DSA questions
- `admins`: identities allowed into the admin panel
- `sessions`: server-side browser sessions
"""

from .core import (
    Admin,
    Difficulty,
    Language,
    Question,
    utcnow,
)
from .session import SessionRecord

__all__ = [
    "Admin",
    "Difficulty",
    "Language",
    "Question",
    "SessionRecord",
    "utcnow",
]
