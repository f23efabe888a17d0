"""Site Router - public read path.

Endpoints:
- GET / - Welcome page
- GET /question/{id} - Question detail
- GET /search?q= - Jump to the first question whose title matches
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from app.views import View, get_view
from domain.errors import StoreUnavailable
from domain.schemas import parse_id
from domain.services import QuestionStore

router = APIRouter(tags=["site"])

logger = logging.getLogger(__name__)


@router.get("/")
def home(view: View = Depends(get_view)):
	return view.render("index", welcome=True, currentQuestion=None)


@router.get("/question/{question_id}")
def question_detail(question_id: str, view: View = Depends(get_view)):
	try:
		question = QuestionStore(view.db).get(parse_id(question_id))
	except StoreUnavailable:
		logger.error(f"Error fetching question {question_id}")
		return view.redirect("/")

	if question is None:
		return view.redirect("/")

	return view.render("index", welcome=False, currentQuestion=question.to_dict())


@router.get("/search")
def search(q: Optional[str] = None, view: View = Depends(get_view)):
	if not q or not q.strip():
		return view.redirect("/")

	try:
		match = QuestionStore(view.db).search_first(q)
	except StoreUnavailable:
		return view.redirect("/")

	if match is None:
		return view.redirect("/", error=f"No question found matching '{q.strip()}'")
	return view.redirect(f"/question/{match.id}")
