"""Auth Router - admin login/logout, first-run signup and password recovery."""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Request

from domain.errors import (
    AuthRequired,
    DsaNotesError,
    DuplicateIdentity,
    StoreUnavailable,
    TokenInvalidOrExpired,
    ValidationError,
)
from domain.schemas import (
    AdminCreate,
    ForgotPasswordForm,
    LoginForm,
    ResetPasswordForm,
    SignupForm,
    parse_input,
)
from domain.services import AdminStore
from infra.services import MailDeliveryError, MailSender, get_mail_sender
from infra.services.mailer import reset_password_email
from .settings import PUBLIC_BASE_URL, SIGNUP_SECRET_KEY
from .sessions import ServerSession, SessionManager, get_session, get_session_manager
from .views import View, get_view, read_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["auth"])

LOGIN_URL = "/admin/login"
DASHBOARD_URL = "/admin/dashboard"
FORGOT_URL = "/admin/forgot-password"
SIGNUP_URL = "/admin/signup"

INVALID_LOGIN = "Invalid username or password"
SERVER_ERROR = "Server error"
ADMIN_EXISTS = "Admin already exists."
RESET_LINK_SENT = "If an account with that email exists, a password reset link has been sent."


def require_admin(
    session: ServerSession = Depends(get_session),
    manager: SessionManager = Depends(get_session_manager),
) -> ServerSession:
    """Admin gate: the flash is stored here, the app-level handler turns AuthRequired into a redirect."""
    if not session.is_admin:
        try:
            manager.flash(session, "error", AuthRequired.default_message)
        except StoreUnavailable:
            logger.error("Could not store login notice: session store unavailable")
        raise AuthRequired()
    return session


def _reset_link(request: Request, token: str) -> str:
    base = PUBLIC_BASE_URL or str(request.base_url).rstrip("/")
    return f"{base}/admin/reset-password/{token}"


# ==================== Login / Logout ====================

@router.get("/login")
def login_page(view: View = Depends(get_view)):
    if view.session.is_admin:
        return view.redirect(DASHBOARD_URL)
    return view.render("admin/login", title="Admin Login")


@router.post("/login")
async def login(request: Request, view: View = Depends(get_view)):
    payload = await read_payload(request)
    try:
        form = parse_input(LoginForm, payload)
    except ValidationError:
        return view.redirect(LOGIN_URL, error=INVALID_LOGIN)

    try:
        admin = AdminStore(view.db).verify_credentials(form.username, form.password)
    except StoreUnavailable:
        return view.redirect(LOGIN_URL, error=SERVER_ERROR)

    if admin is None:
        logger.warning(f"Failed admin login for '{form.username}'")
        return view.redirect(LOGIN_URL, error=INVALID_LOGIN)

    try:
        # Committed before the redirect goes out, so the next request sees the admin session.
        view.manager.elevate(view.session, admin.id)
    except StoreUnavailable:
        logger.error("Session Save Error during login")
        return view.redirect(LOGIN_URL, error="Session error. Please try again.")

    logger.info(f"Admin {admin.username} logged in")
    return view.redirect(DASHBOARD_URL)


@router.get("/logout")
def logout(view: View = Depends(get_view)):
    try:
        view.manager.destroy(view.session)
    except StoreUnavailable:
        logger.error("Logout Error: could not delete session row")
    return view.redirect(LOGIN_URL)


# ==================== First-run signup ====================

def _secret_matches(supplied: str, expected: str) -> bool:
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


@router.get("/signup")
def signup_page(view: View = Depends(get_view)):
    try:
        initialized = AdminStore(view.db).count() > 0
    except StoreUnavailable:
        return view.redirect(LOGIN_URL, error=SERVER_ERROR)
    if initialized:
        return view.redirect(LOGIN_URL, error="Admin initialization already complete. Please log in.")
    return view.render("admin/signup", title="First Admin Signup", requiresSecretKey=bool(SIGNUP_SECRET_KEY))


@router.post("/signup")
async def signup(request: Request, view: View = Depends(get_view)):
    store = AdminStore(view.db)
    try:
        # Live count on every call: once any admin exists this endpoint is closed for good.
        initialized = store.count() > 0
    except StoreUnavailable:
        return view.redirect(SIGNUP_URL, error=SERVER_ERROR)
    if initialized:
        return view.redirect(LOGIN_URL, error=ADMIN_EXISTS)

    payload = await read_payload(request)
    if SIGNUP_SECRET_KEY:
        supplied = str(payload.get("secret_key") or "")
        if not _secret_matches(supplied, SIGNUP_SECRET_KEY):
            logger.warning("First-run signup rejected: wrong secret key")
            return view.redirect(SIGNUP_URL, error="Invalid Secret Key! Access Denied.")

    try:
        form = parse_input(SignupForm, payload)
        # The count above is only a fast path; create_first re-checks inside the insert.
        admin = store.create_first(AdminCreate(**form.model_dump(exclude={"secret_key"})))
    except DsaNotesError as e:
        return view.redirect(SIGNUP_URL, error=f"Error creating admin: {e.message}")
    if admin is None:
        return view.redirect(LOGIN_URL, error=ADMIN_EXISTS)

    return view.redirect(LOGIN_URL, success="Admin account created successfully! Please log in.")


# ==================== Admin management ====================

@router.get("/create-admin")
def create_admin_page(session: ServerSession = Depends(require_admin), view: View = Depends(get_view)):
    return view.render("admin/create-admin", title="Create New Admin")


@router.post("/create-admin")
async def create_admin(
    request: Request,
    session: ServerSession = Depends(require_admin),
    view: View = Depends(get_view),
):
    payload = await read_payload(request)
    try:
        store = AdminStore(view.db)
        store.create(parse_input(AdminCreate, payload))
    except DuplicateIdentity as e:
        return view.redirect("/admin/create-admin", error=e.message)
    except DsaNotesError as e:
        return view.redirect("/admin/create-admin", error=f"Error creating admin: {e.message}")

    return view.redirect(DASHBOARD_URL, success="New admin added successfully!")


# ==================== Password recovery ====================

@router.get("/forgot-password")
def forgot_password_page(view: View = Depends(get_view)):
    return view.render("admin/forgot-password", title="Forgot Password")


@router.post("/forgot-password")
async def forgot_password(
    request: Request,
    view: View = Depends(get_view),
    mailer: MailSender = Depends(get_mail_sender),
):
    payload = await read_payload(request)
    try:
        form = parse_input(ForgotPasswordForm, payload)
    except ValidationError:
        return view.redirect(FORGOT_URL, error="Please enter a valid email address.")

    try:
        token: Optional[str] = AdminStore(view.db).issue_reset_token(form.email)
    except StoreUnavailable as e:
        return view.redirect(FORGOT_URL, error=e.message)

    if token:
        link = _reset_link(request, token)
        try:
            await mailer.send(form.email, "Admin Password Reset", reset_password_email(link))
        except MailDeliveryError:
            # The token stays issued; the admin can simply ask again.
            return view.redirect(FORGOT_URL, error="Could not send the reset email. Please try again later.")

    return view.redirect(FORGOT_URL, success=RESET_LINK_SENT)


@router.get("/reset-password/{token}")
def reset_password_page(token: str, view: View = Depends(get_view)):
    try:
        admin = AdminStore(view.db).find_by_reset_token(token)
    except StoreUnavailable as e:
        return view.redirect(FORGOT_URL, error=e.message)
    if admin is None:
        return view.redirect(FORGOT_URL, error=TokenInvalidOrExpired.default_message)
    return view.render("admin/reset-password", title="Reset Password", token=token)


@router.post("/reset-password/{token}")
async def reset_password(token: str, request: Request, view: View = Depends(get_view)):
    reset_url = f"/admin/reset-password/{token}"
    payload = await read_payload(request)
    try:
        form = parse_input(ResetPasswordForm, payload)
    except ValidationError as e:
        return view.redirect(reset_url, error=e.message)
    if not form.passwords_match():
        return view.redirect(reset_url, error="Passwords do not match.")

    try:
        admin_id = AdminStore(view.db).consume_reset_token(token, form.password)
    except TokenInvalidOrExpired as e:
        return view.redirect(FORGOT_URL, error=e.message)
    except StoreUnavailable as e:
        return view.redirect(reset_url, error=e.message)

    # Old sessions of this admin must log in again with the new password.
    try:
        view.manager.revoke_admin(admin_id)
        if view.session.admin_id == admin_id:
            view.manager.destroy(view.session)
    except StoreUnavailable:
        # The password is already changed; only the session cleanup failed.
        logger.error(f"Could not revoke sessions of admin {admin_id} after password reset")
        if view.session.admin_id == admin_id:
            view.session.is_admin = False
            view.session.admin_id = None

    return view.redirect(LOGIN_URL, success="Success! Your password has been changed. Please log in.")


__all__ = [
    "router",
    "require_admin",
]
