"""System/utility endpoints
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.db import get_db
from app.settings import APP_TITLE, APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    database: str


@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    database = "connected"
    try:
        db.execute(text("SELECT 1"))
    except OperationalError as e:
        logger.warning(f"Health check: database unreachable: {e}")
        database = "unavailable"
    status = "healthy" if database == "connected" else "degraded"
    return {"status": status, "service": APP_TITLE, "version": APP_VERSION, "database": database}
