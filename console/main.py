"""Admin console entry point: ``python -m console.main``."""
import asyncio
import contextlib
import logging
from typing import Optional

from aiohttp import web
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from console.config import Settings, settings as default_settings
from console.handlers import setup_routes
from console.keys import CHANGE_WATCHER, REGISTRY, SESSION_MAKER, SESSION_STORE, SETTINGS
from console.logging_config import setup_logging
from console.middlewares import setup_middlewares
from services.auth import SessionStore, validate_admin_credentials
from services.invalidation import ChangeWatcher, InvalidationRegistry

logger = logging.getLogger(__name__)


def build_app(
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    settings: Optional[Settings] = None,
) -> web.Application:
    """
    Assemble the aiohttp application.

    Args:
        session_maker: Session factory (defaults to the configured engine's)
        settings: Settings instance (defaults to the global one)
    """
    settings = settings or default_settings
    if session_maker is None:
        from database import async_session_maker
        session_maker = async_session_maker

    app = web.Application()
    registry = InvalidationRegistry()
    app[SETTINGS] = settings
    app[SESSION_MAKER] = session_maker
    app[SESSION_STORE] = SessionStore(ttl_hours=settings.session_ttl_hours)
    app[REGISTRY] = registry
    app[CHANGE_WATCHER] = ChangeWatcher(registry)

    setup_middlewares(app)
    setup_routes(app)
    return app


async def _poll_changes(app: web.Application, interval: float):
    while True:
        try:
            async with app[SESSION_MAKER]() as session:
                await app[CHANGE_WATCHER].poll(session)
        except SQLAlchemyError as e:
            logger.error(f"Change poll failed: {e}", exc_info=True)
        await asyncio.sleep(interval)


async def watch_changes(app: web.Application):
    """Cleanup context running the change poll in the background."""
    interval = app[SETTINGS].change_poll_seconds
    task = asyncio.create_task(_poll_changes(app, interval)) if interval > 0 else None
    yield
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


async def _dispose_engine(app: web.Application):
    from database import close_db
    await close_db()
    logger.info("Database connections closed")


async def main():
    setup_logging()
    validate_admin_credentials(default_settings.admin_login, default_settings.admin_password)

    if default_settings.create_schema:
        from database import init_db
        await init_db()
        logger.info("Database schema created")

    app = build_app()
    app.cleanup_ctx.append(watch_changes)
    app.on_cleanup.append(_dispose_engine)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, default_settings.host, default_settings.port)
    await site.start()
    logger.info(f"Admin console listening on http://{default_settings.host}:{default_settings.port}")

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Admin console stopped")
