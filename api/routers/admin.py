"""Admin Router - Admin-only question management.

Features:
- Dashboard listing every question
- Question CRUD (add, edit, delete one)
- Bulk operations (delete selected, delete all with confirmation, import by chapter)

Every route goes through `require_admin`; failures come back to the browser
as a flash notice plus a redirect, never as an error body.
"""

import logging

from fastapi import APIRouter, Depends, Request

from app.auth import require_admin
from app.sessions import ServerSession
from app.views import View, get_view, read_payload
from domain.errors import DsaNotesError, NotFound, StoreUnavailable
from domain.schemas import (
	DeleteAllForm,
	DeleteSelectedForm,
	ImportPayload,
	QuestionCreate,
	QuestionUpdate,
	parse_id,
	parse_input,
)
from domain.services import QuestionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

DASHBOARD_URL = "/admin/dashboard"

# Literal the delete-all form must echo back before anything is removed.
DELETE_ALL_CONFIRMATION = "DELETE"


# ==================== Dashboard ====================

@router.get("/dashboard")
def dashboard(
	session: ServerSession = Depends(require_admin),
	view: View = Depends(get_view),
):
	"""List all questions, newest first"""
	try:
		questions = QuestionStore(view.db).list_newest()
	except StoreUnavailable as e:
		return view.redirect("/", error=e.message)

	return view.render(
		"admin/dashboard",
		title="Admin Dashboard",
		questions=[q.to_dict() for q in questions],
	)


# ==================== Question CRUD ====================

@router.get("/add")
def add_question_page(
	session: ServerSession = Depends(require_admin),
	view: View = Depends(get_view),
):
	return view.render("admin/form", title="Add New Question", action="/admin/add", question={})


@router.post("/add")
async def add_question(
	request: Request,
	session: ServerSession = Depends(require_admin),
	view: View = Depends(get_view),
):
	"""Create a question; difficulty falls back to Medium"""
	payload = await read_payload(request)
	try:
		fields = parse_input(QuestionCreate, payload)
		question_id = QuestionStore(view.db).add(fields)
	except DsaNotesError as e:
		return view.redirect("/admin/add", error=f"Error adding question: {e.message}")

	logger.info(f"Admin {session.admin_id} added question {question_id}")
	return view.redirect(DASHBOARD_URL, success="Question added successfully")


@router.get("/edit/{question_id}")
def edit_question_page(
	question_id: str,
	session: ServerSession = Depends(require_admin),
	view: View = Depends(get_view),
):
	try:
		question = QuestionStore(view.db).require(parse_id(question_id))
	except DsaNotesError as e:
		return view.redirect(DASHBOARD_URL, error=e.message)

	return view.render(
		"admin/form",
		title="Edit Question",
		action=f"/admin/edit/{question.id}?_method=PUT",
		question=question.to_dict(),
	)


@router.put("/edit/{question_id}")
async def update_question(
	question_id: str,
	request: Request,
	session: ServerSession = Depends(require_admin),
	view: View = Depends(get_view),
):
	"""Overwrite only the fields present in the body"""
	payload = await read_payload(request)
	try:
		patch = parse_input(QuestionUpdate, payload)
	except DsaNotesError as e:
		return view.redirect(f"/admin/edit/{question_id}", error=f"Error updating question: {e.message}")

	try:
		QuestionStore(view.db).edit(parse_id(question_id), patch)
	except NotFound as e:
		return view.redirect(DASHBOARD_URL, error=e.message)
	except DsaNotesError as e:
		return view.redirect(f"/admin/edit/{question_id}", error=f"Error updating question: {e.message}")

	return view.redirect(DASHBOARD_URL, success="Question updated successfully")


@router.delete("/delete/{question_id}")
def delete_question(
	question_id: str,
	session: ServerSession = Depends(require_admin),
	view: View = Depends(get_view),
):
	try:
		QuestionStore(view.db).delete(parse_id(question_id))
	except NotFound:
		# Already gone: report it, but it is not a failure of the panel.
		return view.redirect(DASHBOARD_URL, error="Question not found (it may already have been deleted)")
	except DsaNotesError as e:
		return view.redirect(DASHBOARD_URL, error=f"Error deleting question: {e.message}")

	return view.redirect(DASHBOARD_URL, success="Question deleted successfully")


# ==================== Bulk operations ====================

@router.post("/delete-selected")
async def delete_selected(
	request: Request,
	session: ServerSession = Depends(require_admin),
	view: View = Depends(get_view),
):
	"""Delete a single id or a list of ids; reports how many were actually removed"""
	payload = await read_payload(request)
	try:
		ids = parse_input(DeleteSelectedForm, payload).id_set()
	except DsaNotesError as e:
		return view.redirect(DASHBOARD_URL, error=e.message)

	if not ids:
		return view.redirect(DASHBOARD_URL, error="Please select at least one question to delete.")

	try:
		removed = QuestionStore(view.db).delete_selected(ids)
	except DsaNotesError as e:
		return view.redirect(DASHBOARD_URL, error=f"Error deleting questions: {e.message}")

	logger.info(f"Admin {session.admin_id} deleted {removed} selected questions")
	return view.redirect(DASHBOARD_URL, success=f"{removed} question(s) deleted successfully")


@router.post("/delete-all")
async def delete_all(
	request: Request,
	session: ServerSession = Depends(require_admin),
	view: View = Depends(get_view),
):
	"""Wipe every question. Without `confirm=DELETE` this is a dry run reporting the count."""
	payload = await read_payload(request)
	store = QuestionStore(view.db)
	try:
		form = parse_input(DeleteAllForm, payload)
		if (form.confirm or "").strip() != DELETE_ALL_CONFIRMATION:
			pending = store.count()
			return view.redirect(
				DASHBOARD_URL,
				error=(
					f"Confirmation required: {pending} question(s) would be deleted. "
					f"Submit confirm={DELETE_ALL_CONFIRMATION} to proceed."
				),
			)
		removed = store.delete_all()
	except DsaNotesError as e:
		return view.redirect(DASHBOARD_URL, error=f"Error deleting questions: {e.message}")

	logger.warning(f"Admin {session.admin_id} deleted all questions ({removed})")
	return view.redirect(DASHBOARD_URL, success=f"All questions deleted ({removed} removed)")


@router.post("/import")
async def import_questions(
	request: Request,
	session: ServerSession = Depends(require_admin),
	view: View = Depends(get_view),
):
	"""Import {chapter: [question, ...]}, skipping (chapter, title) pairs already stored"""
	payload = await read_payload(request)
	try:
		chapters = parse_input(ImportPayload, payload).root
		created = QuestionStore(view.db).import_chapters(chapters)
	except DsaNotesError as e:
		return view.redirect(DASHBOARD_URL, error=f"Import failed: {e.message}")

	return view.redirect(DASHBOARD_URL, success=f"Successfully imported {created} new questions.")
