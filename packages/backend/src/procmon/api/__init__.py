"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects every process route without
modifying individual handlers. Auth routes are open (login has to be),
and /health lives outside /api entirely.
"""

from fastapi import APIRouter, Depends

from procmon.api.auth import router as auth_router
from procmon.api.health import router as health_router
from procmon.api.processes import router as processes_router
from procmon.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid JWT
api_router.include_router(processes_router, tags=["processes"], dependencies=_auth)

__all__ = ["api_router", "health_router"]
