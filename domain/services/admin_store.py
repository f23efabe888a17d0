"""Admin identity store: accounts, password hashing and the reset-token lifecycle."""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import func, insert, literal, or_, select
from sqlalchemy.exc import IntegrityError

from app.settings import RESET_TOKEN_TTL_SECONDS
from domain.errors import DuplicateIdentity, TokenInvalidOrExpired
from domain.models import Admin, utcnow
from domain.schemas import AdminCreate
from .base import BaseStore

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


class AdminStore(BaseStore):

    def count(self) -> int:
        """Live count, never cached: the first-run signup gate depends on it."""
        with self.guard():
            return self.db.query(func.count(Admin.id)).scalar() or 0

    def get(self, admin_id: Optional[int]) -> Optional[Admin]:
        if admin_id is None:
            return None
        with self.guard():
            return self.db.query(Admin).filter(Admin.id == admin_id).first()

    def create(self, fields: AdminCreate) -> Admin:
        with self.guard():
            existing = (
                self.db.query(Admin)
                .filter(or_(Admin.username == fields.username, Admin.email == fields.email))
                .first()
            )
        if existing:
            raise DuplicateIdentity()

        admin = Admin(
            full_name=fields.full_name,
            email=fields.email,
            username=fields.username,
            password_hash=get_password_hash(fields.password),
        )
        with self.guard():
            self.db.add(admin)
            try:
                self.db.commit()
            except IntegrityError as e:
                # Lost a race with a concurrent create for the same username/email.
                self.db.rollback()
                raise DuplicateIdentity() from e
            self.db.refresh(admin)
        logger.info(f"Admin created: {admin.username} <{admin.email}>")
        return admin

    def create_first(self, fields: AdminCreate) -> Optional[Admin]:
        """Create the very first admin, or return None when any admin already exists.

        The emptiness check and the insert are one statement
        (INSERT ... SELECT ... WHERE NOT EXISTS), so two concurrent signups
        cannot both pass it.
        """
        table = Admin.__table__
        row = select(
            literal(fields.full_name, table.c.full_name.type),
            literal(fields.email, table.c.email.type),
            literal(fields.username, table.c.username.type),
            literal(get_password_hash(fields.password), table.c.password_hash.type),
            literal(utcnow(), table.c.created_at.type),
        ).where(~select(table.c.id).correlate(None).exists())
        stmt = insert(table).from_select(
            ["full_name", "email", "username", "password_hash", "created_at"],
            row,
        )
        with self.guard():
            try:
                inserted = self.db.execute(stmt).rowcount
                if inserted == 1 and self.count() != 1:
                    inserted = 0
            except IntegrityError as e:
                self.db.rollback()
                raise DuplicateIdentity() from e
            if inserted != 1:
                self.db.rollback()
                logger.warning("First-run signup refused: an admin already exists")
                return None
            self.db.commit()
            admin = self.db.query(Admin).filter(Admin.username == fields.username).one()
        logger.info(f"First admin created: {admin.username} <{admin.email}>")
        return admin

    def verify_credentials(self, identifier: str, password: str) -> Optional[Admin]:
        """Return the admin when `identifier` (username or email) and `password` match, else None."""
        identifier = (identifier or "").strip()
        if not identifier or not password:
            return None
        with self.guard():
            admin = (
                self.db.query(Admin)
                .filter(or_(Admin.username == identifier, Admin.email == identifier.lower()))
                .first()
            )
        if admin is None:
            return None
        if not verify_password(password, admin.password_hash):
            return None
        return admin

    def issue_reset_token(self, email: str) -> Optional[str]:
        """Store a fresh single-use token valid for one hour. None when no account has this email."""
        with self.guard():
            admin = self.db.query(Admin).filter(Admin.email == (email or "").strip().lower()).first()
            if admin is None:
                return None
            token = secrets.token_hex(20)
            admin.reset_password_token = token
            admin.reset_password_expires = utcnow() + timedelta(seconds=RESET_TOKEN_TTL_SECONDS)
            self.db.commit()
        logger.info(f"Password reset token issued for admin {admin.id}")
        return token

    def find_by_reset_token(self, token: str) -> Optional[Admin]:
        if not token:
            return None
        with self.guard():
            return (
                self.db.query(Admin)
                .filter(
                    Admin.reset_password_token == token,
                    Admin.reset_password_expires > utcnow(),
                )
                .first()
            )

    def consume_reset_token(self, token: str, new_password: str) -> int:
        """Set a new password and clear the token in one conditional UPDATE.

        Returns the admin id. Raises TokenInvalidOrExpired for unknown, expired
        or already consumed tokens alike.
        """
        admin = self.find_by_reset_token(token)
        if admin is None:
            raise TokenInvalidOrExpired()
        admin_id = admin.id
        new_hash = get_password_hash(new_password)
        with self.guard():
            updated = (
                self.db.query(Admin)
                .filter(
                    Admin.id == admin_id,
                    Admin.reset_password_token == token,
                    Admin.reset_password_expires > utcnow(),
                )
                .update(
                    {
                        Admin.password_hash: new_hash,
                        Admin.reset_password_token: None,
                        Admin.reset_password_expires: None,
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
        if updated != 1:
            raise TokenInvalidOrExpired()
        logger.info(f"Password reset completed for admin {admin_id}")
        return admin_id
