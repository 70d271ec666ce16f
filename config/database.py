"""
Database connection management.

One cached Supabase client shared by the reception reader, the partition
repository and the pallet lookup sources.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class ConnectionError(Exception):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Call get_supabase_client.cache_clear() to reconnect.

    Raises:
        ConnectionError: If the client cannot be created
    """
    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )
        client = create_client(settings.supabase_url, settings.supabase_key)
        logger.info("supabase_connected", status="success")
        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise ConnectionError(f"Failed to connect to Supabase: {e}") from e


def check_connection() -> dict:
    """
    Health probe: counts receptions and saved partitions.

    Returns:
        dict: status plus counts, or status and error
    """
    try:
        client = get_supabase_client()

        receptions = client.table(settings.receptions_table).select("id", count="exact").execute()
        partitions = client.table(settings.pallet_collections_table).select("id", count="exact").execute()

        return {
            "status": "healthy",
            "receptions_count": receptions.count,
            "partitions_count": partitions.count
        }

    except Exception as e:
        logger.warning("database_health_check_failed", error=str(e))
        return {
            "status": "unhealthy",
            "error": str(e)
        }
