"""View helpers shared by the routers.

HTML templates are rendered elsewhere; a "view" here is a JSON document
naming the template plus the context it would receive: sidebar, flash
notices, admin flag and current path, merged with the route's own data.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from domain.errors import StoreUnavailable
from domain.services import QuestionStore, load_sidebar
from .db import get_db
from .sessions import ServerSession, SessionManager, get_session, get_session_manager

logger = logging.getLogger(__name__)


def redirect(url: str) -> RedirectResponse:
    # 303 so PUT/DELETE/POST handlers land on a GET.
    return RedirectResponse(url=url, status_code=303)


async def read_payload(request: Request) -> Dict[str, Any]:
    """Request body as a dict, from JSON or from an urlencoded/multipart form.

    Repeated form keys (e.g. several `ids` checkboxes) become lists.
    """
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = await request.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    if "form" in content_type:
        form = await request.form()
        payload: Dict[str, Any] = {}
        for key in form.keys():
            values = form.getlist(key)
            payload[key] = values if len(values) > 1 else values[0]
        return payload
    return {}


class View:
    """Per-request rendering context: flashes, sidebar and redirects."""

    def __init__(self, request: Request, db: Session, manager: SessionManager, session: ServerSession):
        self.request = request
        self.db = db
        self.manager = manager
        self.session = session

    def flash(self, category: str, message: str) -> None:
        self.manager.flash(self.session, category, message)

    def redirect(self, url: str, *, success: Optional[str] = None, error: Optional[str] = None) -> RedirectResponse:
        try:
            if success:
                self.flash("success", success)
            if error:
                self.flash("error", error)
        except StoreUnavailable:
            # The redirect still goes out; only the notice is lost.
            logger.error(f"Could not store notice for {url}: session store unavailable")
        return redirect(url)

    def render(self, view: str, status_code: int = 200, **context: Any) -> JSONResponse:
        flashes = self.manager.pop_flashes(self.session)
        body = {
            "view": view,
            "sidebarChapters": load_sidebar(QuestionStore(self.db)),
            "currentPath": self.request.url.path,
            "isAdmin": self.session.is_admin,
            "success": flashes.get("success", []),
            "error": flashes.get("error", []),
        }
        body.update(context)
        return JSONResponse(content=jsonable_encoder(body), status_code=status_code)


def get_view(
    request: Request,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
    session: ServerSession = Depends(get_session),
) -> View:
    return View(request, db, manager, session)


__all__ = ["View", "get_view", "read_payload", "redirect"]
