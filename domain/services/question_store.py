"""Record store for Question documents.

Every write commits before returning; reads and writes that hit an
unreachable database raise StoreUnavailable.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import func

from domain.errors import NotFound
from domain.models import Question
from domain.schemas import ImportItem, QuestionCreate, QuestionUpdate
from .base import BaseStore

logger = logging.getLogger(__name__)


class QuestionStore(BaseStore):

    # ---------- reads ----------

    def list_ordered(self) -> List[Question]:
        """All questions in (chapter, title) order, as the sidebar and search expect."""
        with self.guard():
            return (
                self.db.query(Question)
                .order_by(Question.chapter.asc(), Question.title.asc(), Question.id.asc())
                .all()
            )

    def list_newest(self) -> List[Question]:
        with self.guard():
            return self.db.query(Question).order_by(Question.created_at.desc(), Question.id.desc()).all()

    def get(self, question_id: Optional[int]) -> Optional[Question]:
        if question_id is None:
            return None
        with self.guard():
            return self.db.query(Question).filter(Question.id == question_id).first()

    def require(self, question_id: Optional[int]) -> Question:
        question = self.get(question_id)
        if question is None:
            raise NotFound()
        return question

    def count(self) -> int:
        with self.guard():
            return self.db.query(func.count(Question.id)).scalar() or 0

    def search_first(self, query: str) -> Optional[Question]:
        """First question (chapter, title order) whose title contains `query`, case-insensitively."""
        needle = (query or "").strip().lower()
        if not needle:
            return None
        with self.guard():
            return (
                self.db.query(Question)
                .filter(Question.title.icontains(needle, autoescape=True))
                .order_by(Question.chapter.asc(), Question.title.asc(), Question.id.asc())
                .first()
            )

    # ---------- writes ----------

    def add(self, fields: QuestionCreate) -> int:
        data = fields.model_dump()
        data["difficulty"] = fields.difficulty.value
        data["language"] = fields.language.value
        question = Question(**data)
        with self.guard():
            self.db.add(question)
            self.db.commit()
            self.db.refresh(question)
        logger.info(f"Question {question.id} added: [{question.chapter}] {question.title}")
        return question.id

    def edit(self, question_id: Optional[int], patch: QuestionUpdate) -> Question:
        question = self.require(question_id)
        changes = patch.changes()
        for key in ("difficulty", "language"):
            if key in changes:
                changes[key] = changes[key].value
        with self.guard():
            for key, value in changes.items():
                setattr(question, key, value)
            self.db.commit()
            self.db.refresh(question)
        logger.info(f"Question {question.id} updated ({', '.join(sorted(changes)) or 'no changes'})")
        return question

    def delete(self, question_id: Optional[int]) -> None:
        question = self.require(question_id)
        with self.guard():
            self.db.delete(question)
            self.db.commit()
        logger.info(f"Question {question_id} deleted")

    def delete_selected(self, ids: Iterable[int]) -> int:
        """Delete every question whose id is in `ids`; returns how many rows actually went away."""
        id_set: Set[int] = set(ids)
        if not id_set:
            return 0
        with self.guard():
            removed = (
                self.db.query(Question)
                .filter(Question.id.in_(id_set))
                .delete(synchronize_session=False)
            )
            self.db.commit()
        logger.info(f"Bulk delete: {removed} of {len(id_set)} requested questions removed")
        return removed

    def delete_all(self) -> int:
        with self.guard():
            removed = self.db.query(Question).delete(synchronize_session=False)
            self.db.commit()
        logger.warning(f"All questions deleted ({removed} rows)")
        return removed

    def import_chapters(self, chapters: Dict[str, List[ImportItem]]) -> int:
        """Insert questions that are not yet stored, using (chapter, title) as the duplicate key."""
        with self.guard():
            existing = {(c, t) for c, t in self.db.query(Question.chapter, Question.title).all()}
        created = 0
        with self.guard():
            for chapter, items in chapters.items():
                chapter = chapter.strip()
                if not chapter:
                    continue
                logger.info(f"Processing chapter: {chapter} ({len(items)} questions)")
                for item in items:
                    key = (chapter, item.title)
                    if key in existing:
                        continue
                    self.db.add(Question(
                        chapter=chapter,
                        title=item.title,
                        code=item.code,
                        output=item.output,
                        difficulty=item.difficulty.value,
                        language=item.language.value,
                        explanation=item.explanation,
                        tags=item.tags,
                    ))
                    existing.add(key)
                    created += 1
            self.db.commit()
        logger.info(f"Imported {created} new questions")
        return created
