"""
Application lifecycle event handlers.

Startup configures logging and creates missing tables; shutdown ends all
live message streams before the database pool is disposed.
"""

from typing import Callable

import structlog
from fastapi import FastAPI

from core.config import settings
from core.logging import configure_logging
from db.session import close_db, init_db
from services.fanout import message_fanout

logger = structlog.get_logger(__name__)


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        configure_logging()
        logger.info("app_starting", app=settings.APP_NAME, env=settings.APP_ENV)

        # Initialize database connections
        await init_db()

        logger.info("app_started", anonymous_vote_policy=settings.ANONYMOUS_VOTE_POLICY)

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("app_stopping")

        # Live streams first, they hold sessions open for re-lists
        await message_fanout.close()

        # Close database connections
        await close_db()

        logger.info("app_stopped")

    return stop_app
