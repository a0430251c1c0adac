"""Admin API middleware for aiohttp - validates the session token."""
import logging
from typing import Callable, Optional

from aiohttp import web

from core.exceptions import NotAuthenticatedError
from console.keys import SESSION_STORE
from services.auth import SessionStore

logger = logging.getLogger(__name__)

PUBLIC_API_PATHS = frozenset({"/api/auth/login"})


def extract_token(request: web.Request) -> Optional[str]:
    """Session token from ``Authorization: Bearer`` or ``X-Session-Token``."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    token = request.headers.get("X-Session-Token", "").strip()
    return token or None


@web.middleware
async def admin_auth_middleware(request: web.Request, handler: Callable):
    """Middleware to protect /api/* endpoints.

    Attaches the ``AdminSession`` to ``request['admin_session']``.
    """
    if not request.path.startswith("/api/") or request.path in PUBLIC_API_PATHS:
        return await handler(request)

    store: SessionStore = request.app[SESSION_STORE]
    session = store.get(extract_token(request))
    if session is None:
        logger.warning(f"Admin API access without valid session: {request.method} {request.path}")
        raise NotAuthenticatedError()

    request["admin_session"] = session
    return await handler(request)
