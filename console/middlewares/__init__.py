"""
Middlewares package initialization.

This package contains all middleware components:
- logging.py: Request/response logging
- error_handler.py: Centralized error handling
- auth.py: Admin session check for /api/*
- cors.py: CORS headers for configured origins
"""

from aiohttp import web


def setup_middlewares(app: web.Application):
    """
    Setup all middlewares in the correct order.

    Order matters! The first middleware wraps all the others.

    Args:
        app: aiohttp Application instance
    """
    from .logging import logging_middleware
    from .error_handler import error_middleware
    from .auth import admin_auth_middleware
    from .cors import cors_middleware

    # CORS outermost so error responses carry the headers too
    app.middlewares.append(cors_middleware)

    # Logging next to capture every request, including rejected ones
    app.middlewares.append(logging_middleware)

    # Error handler turns exceptions from auth and handlers into JSON
    app.middlewares.append(error_middleware)

    # Auth check last, right before the handler
    app.middlewares.append(admin_auth_middleware)


__all__ = ['setup_middlewares']
