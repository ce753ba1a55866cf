#!/usr/bin/env python3
"""Run the default query for every entity list against the configured Stash server."""

import asyncio
import logging

from stash_player.config import get_settings
from stash_player.filtering.descriptors import default_registry
from stash_player.filtering.query import build_query
from stash_player.filtering.state import FilterStore
from stash_player.shared.exceptions import StashError
from stash_player.stash.client import StashClient
from stash_player.stash.serializer import to_variables

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("check_stash")


async def main() -> None:
    settings = get_settings()
    registry = default_registry()
    store = FilterStore(registry, default_per_page=1)
    client = StashClient(settings.stash_url, settings.stash_api_key, timeout=settings.stash_timeout_seconds)

    logger.info("Checking Stash at: %s", settings.graphql_url)
    for entity_type in registry.entity_types:
        variables = to_variables(build_query(store.init(entity_type), registry))
        try:
            result = await client.find(entity_type, variables)
        except StashError as exc:
            logger.error("%s: %s", entity_type.value, exc)
            continue
        logger.info("%s: %d total", entity_type.value, result.count)


if __name__ == "__main__":
    asyncio.run(main())
