import logging
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import (
    admin_router,
    site_router,
    system_router,
)
from domain.errors import AuthRequired, StoreUnavailable
from .db import SessionLocal, init_db
from .sessions import SessionManager
from .settings import (
    APP_DESCRIPTION,
    APP_TITLE,
    APP_VERSION,
    CORS_ALLOW_ORIGINS,
    ENVIRONMENT,
    SESSION_COOKIE_NAME,
    SESSION_COOKIE_SAMESITE,
    SESSION_COOKIE_SECURE,
    SESSION_TTL_SECONDS,
)
from .auth import router as auth_router
from .views import redirect

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
)


def credentialed_origins(origins: List[str]) -> List[str]:
    """Origins allowed to call the API with the session cookie; a wildcard is dropped."""
    allowed = [origin for origin in origins if origin != "*"]
    if len(allowed) != len(origins):
        logger.warning("Ignoring '*' in CORS_ALLOW_ORIGINS: credentialed CORS needs explicit origins")
    return allowed


cors_origins = credentialed_origins(CORS_ALLOW_ORIGINS)
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

OVERRIDABLE_METHODS = {"PUT", "PATCH", "DELETE"}


@app.middleware("http")
async def session_cookie_middleware(request: Request, call_next):
    """Write or clear the session cookie once the route has decided what the session is."""
    response = await call_next(request)
    session = getattr(request.state, "session", None)
    if session is None:
        return response
    if session.issue_cookie:
        response.set_cookie(
            SESSION_COOKIE_NAME,
            SessionManager.encode_cookie(session),
            max_age=SESSION_TTL_SECONDS,
            httponly=True,
            secure=SESSION_COOKIE_SECURE,
            samesite=SESSION_COOKIE_SAMESITE,
        )
    elif session.clear_cookie:
        response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@app.middleware("http")
async def method_override_middleware(request: Request, call_next):
    """HTML forms only POST; `?_method=PUT|DELETE` turns such a POST into the real verb."""
    if request.method == "POST":
        override = request.query_params.get("_method", "").upper()
        if override in OVERRIDABLE_METHODS:
            request.scope["method"] = override
    return await call_next(request)


@app.exception_handler(AuthRequired)
async def auth_required_handler(request: Request, exc: AuthRequired):
    # The gate already stored the flash; the browser just goes to the login page.
    return redirect("/admin/login")


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=503, content={"view": "error", "error": [exc.message]})


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {APP_TITLE} v{APP_VERSION} ({ENVIRONMENT})...")
    init_db()

    db = SessionLocal()
    try:
        purged = SessionManager(db).purge_expired()
        if purged:
            logger.info(f"Purged {purged} expired sessions")
    except StoreUnavailable:
        logger.warning("Could not purge expired sessions: database unavailable")
    finally:
        db.close()

    logger.info("Startup complete")


app.include_router(site_router)
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(system_router)


__all__ = ["app"]
