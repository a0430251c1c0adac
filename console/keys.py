"""Typed application keys shared by handlers and middlewares."""
from aiohttp import web
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from console.config import Settings
from services.auth import SessionStore
from services.invalidation import ChangeWatcher, InvalidationRegistry

SETTINGS = web.AppKey("settings", Settings)
SESSION_MAKER = web.AppKey("session_maker", async_sessionmaker[AsyncSession])
SESSION_STORE = web.AppKey("session_store", SessionStore)
REGISTRY = web.AppKey("registry", InvalidationRegistry)
CHANGE_WATCHER = web.AppKey("change_watcher", ChangeWatcher)
