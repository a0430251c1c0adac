"""CORS middleware for the browser shell served from another origin."""
from typing import Callable, MutableMapping

from aiohttp import web

from console.keys import SETTINGS

ALLOWED_HEADERS = "Content-Type, Authorization, X-Session-Token, X-Request-ID"
ALLOWED_METHODS = "GET, POST, DELETE, OPTIONS"


def _allowed_origin(request: web.Request) -> str | None:
    origin = request.headers.get("Origin")
    if not origin:
        return None
    origins = request.app[SETTINGS].cors_origins
    if "*" in origins or origin in origins:
        return origin
    return None


def _add_cors_headers(headers: MutableMapping[str, str], origin: str) -> None:
    headers["Access-Control-Allow-Origin"] = origin
    headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
    headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
    headers["Access-Control-Max-Age"] = "600"
    headers["Vary"] = "Origin"


@web.middleware
async def cors_middleware(request: web.Request, handler: Callable):
    """Answer preflight requests and tag responses for configured origins."""
    origin = _allowed_origin(request)

    if request.method == "OPTIONS" and request.headers.get("Access-Control-Request-Method"):
        response = web.Response(status=204 if origin else 403)
    else:
        try:
            response = await handler(request)
        except web.HTTPException as e:
            # Router errors (404, 405) are raised, not returned
            if origin:
                _add_cors_headers(e.headers, origin)
            raise

    if origin:
        _add_cors_headers(response.headers, origin)
    return response
