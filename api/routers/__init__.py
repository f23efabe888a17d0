"""API routers (preferred import path).

The auth router lives in `app.auth` next to the admin gate; everything
else is re-exported from here.
"""

from .site import router as site_router
from .admin import router as admin_router
from .system import router as system_router

__all__ = [
    "site_router",
    "admin_router",
    "system_router",
]
