"""Sidebar aggregation: chapter -> questions, recomputed for every rendered page."""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List

from domain.errors import StoreUnavailable
from domain.models import Question
from .question_store import QuestionStore

logger = logging.getLogger(__name__)


def group_by_chapter(questions: Iterable[Question]) -> "OrderedDict[str, List[Question]]":
    """Group questions by chapter, keeping the order they come in (callers pass (chapter, title) order)."""
    chapters: "OrderedDict[str, List[Question]]" = OrderedDict()
    for q in questions:
        chapters.setdefault(q.chapter, []).append(q)
    return chapters


def load_sidebar(store: QuestionStore) -> Dict[str, List[dict]]:
    """Sidebar context for a view. A database outage yields an empty sidebar, not a failed page."""
    try:
        grouped = group_by_chapter(store.list_ordered())
    except StoreUnavailable:
        logger.error("Sidebar Error: question store unavailable, rendering without navigation")
        return {}
    return {
        chapter: [{"id": q.id, "title": q.title, "difficulty": q.difficulty} for q in items]
        for chapter, items in grouped.items()
    }
