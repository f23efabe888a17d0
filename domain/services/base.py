"""Shared plumbing for the SQLAlchemy-backed stores."""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from domain.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class BaseStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def guard(self):
        """Translate a lost/unreachable database into StoreUnavailable."""
        try:
            yield
        except OperationalError as e:
            self.db.rollback()
            logger.error(f"Database unavailable: {e}")
            raise StoreUnavailable() from e
