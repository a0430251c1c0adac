"""
Handlers package initialization.

- api.py: REST API endpoints (aiohttp)
"""

from console.handlers.api import setup_routes

__all__ = ['setup_routes']
