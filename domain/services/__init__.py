"""Stores backing the site and the admin panel."""

from .admin_store import AdminStore, get_password_hash, verify_password
from .question_store import QuestionStore
from .sidebar import group_by_chapter, load_sidebar

__all__ = [
    "AdminStore",
    "QuestionStore",
    "get_password_hash",
    "verify_password",
    "group_by_chapter",
    "load_sidebar",
]
