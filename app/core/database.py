"""
Persistence client bootstrap.

The Supabase client is created exactly once at process start (FastAPI
lifespan or a script's main) and handed to every repository, subscription
and the attachment service. Nothing below app.features looks it up globally.
"""

import logging

from supabase import AsyncClient, acreate_client

from app.core.config import Config, settings as default_settings
from app.shared.errors import ConfigurationError

logger = logging.getLogger("RenoDesk.Core.Database")


async def create_persistence_client(settings: Config = default_settings) -> AsyncClient:
    """Create the process-wide Supabase client."""
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set")

    client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    logger.info(f"Supabase client initialized for {settings.SUPABASE_URL}")
    return client


async def close_persistence_client(client: AsyncClient) -> None:
    """Drop realtime channels and close the socket held by the client."""
    try:
        await client.remove_all_channels()
    except Exception as e:
        logger.warning(f"Error closing realtime channels: {e}")
