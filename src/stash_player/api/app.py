"""FastAPI application factory for the browse API."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis import asyncio as aioredis

from stash_player.api.middleware import setup_cors
from stash_player.api.routes import router
from stash_player.config import Settings, get_settings
from stash_player.filtering.descriptors import DescriptorRegistry, default_registry
from stash_player.filtering.state import FilterStore
from stash_player.stash.client import StashClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize and cleanup application resources."""
    redis_url: str | None = app.state.redis_url
    redis_client: aioredis.Redis | None = None

    if redis_url:
        try:
            redis_client = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)
            await redis_client.ping()
            app.state.redis = redis_client
        except Exception as exc:  # pragma: no cover - depends on external redis
            logger.warning("redis unavailable at startup (%s), running without query cache: %s", redis_url, exc)
            app.state.redis = None
    else:
        app.state.redis = None

    try:
        yield
    finally:
        if redis_client is not None:
            await redis_client.aclose()


def create_app(
    settings: Settings | None = None,
    *,
    redis_url: str | None = "auto",
    registry: DescriptorRegistry | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    if redis_url == "auto":
        redis_url = settings.redis_url or None

    app = FastAPI(title="Stash Player", lifespan=lifespan)
    app.state.redis_url = redis_url
    app.state.redis = None
    app.state.cache_ttl = settings.query_cache_ttl_seconds
    app.state.store = FilterStore(
        registry or default_registry(),
        default_per_page=settings.default_per_page,
        max_per_page=settings.max_per_page,
    )
    app.state.stash = StashClient(
        settings.stash_url,
        settings.stash_api_key,
        timeout=settings.stash_timeout_seconds,
    )
    setup_cors(app)
    app.include_router(router)
    return app


def main() -> None:
    """Entry point for ``python -m stash_player.api.app``."""
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
