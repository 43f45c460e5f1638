"""
Application Lifespan

Startup/shutdown wiring for services that serve cached fragments:
configure logging, connect the process-wide fragment cache, and close it
again on shutdown.

Usage:
    app = FastAPI(lifespan=fragment_cache_lifespan)
    app.add_middleware(FragmentScopeMiddleware)
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fragment_cache.core.config.settings import get_settings
from fragment_cache.core.logging.logger import get_logger, setup_logging
from fragment_cache.infrastructure.cache.fragment_cache import (
    close_fragment_cache,
    init_fragment_cache,
)

logger = get_logger(__name__)


@asynccontextmanager
async def fragment_cache_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Manage the fragment cache over the application lifecycle.
    """
    settings = get_settings()

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    fragments = await init_fragment_cache()
    app.state.fragments = fragments
    logger.info("Fragment cache initialized", caching_enabled=fragments.caching_enabled)

    try:
        yield
    finally:
        await close_fragment_cache()
        logger.info("Fragment cache closed")
