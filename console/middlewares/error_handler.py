"""
Error handler middleware for centralized exception handling.

Turns application errors into ``{"error": message}`` JSON responses.
"""

import logging
from typing import Callable

from aiohttp import web
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import DentalAdminError, QueryError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Внутренняя ошибка сервера. Попробуйте позже."


def error_response(message: str, status: int, **extra) -> web.Response:
    return web.json_response({"error": message, **extra}, status=status)


def _validation_details(error: PydanticValidationError) -> list[dict]:
    return [
        {"field": ".".join(str(p) for p in e["loc"]), "error": e["msg"]}
        for e in error.errors()
    ]


@web.middleware
async def error_middleware(request: web.Request, handler: Callable):
    """Catch application exceptions and answer with their message and status."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except DentalAdminError as e:
        log = logger.error if e.status_code >= 500 else logger.warning
        log(
            f"{type(e).__name__} on {request.method} {request.path}: {e.message}",
            extra={"method": request.method, "path": request.path, "status": e.status_code},
        )
        return error_response(e.message, e.status_code)
    except PydanticValidationError as e:
        details = _validation_details(e)
        logger.warning(f"Validation failed on {request.path}: {details}")
        first = details[0] if details else {"field": "", "error": ""}
        return error_response(
            f"Ошибка в поле '{first['field']}': {first['error']}",
            400,
            details=details,
        )
    except SQLAlchemyError as e:
        logger.error(f"Query failed on {request.method} {request.path}: {e}", exc_info=True)
        return error_response(QueryError.message, QueryError.status_code)
    except Exception as e:
        logger.error(
            f"Unhandled error on {request.method} {request.path}: {e}",
            exc_info=True,
            extra={"method": request.method, "path": request.path, "status": 500},
        )
        return error_response(INTERNAL_ERROR_MESSAGE, 500)
