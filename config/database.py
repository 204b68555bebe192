"""
Supabase client for the "supabase" storage backend.

The recipe store and the import log share one cached client. With the
"memory" backend nothing here connects.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

CHECK_TABLE = "recipes"
STATUS_TABLES = ("recipes", "import_logs")


@lru_cache()
def get_supabase_client() -> Client:
    """
    Create the Supabase client once and check that the recipes table answers.

    get_supabase_client.cache_clear() (or reset_connection()) forces a
    reconnect.

    Raises:
        DatabaseError: If credentials are missing or the check query fails
    """
    if not settings.supabase_configured:
        raise DatabaseError("connect", "SUPABASE_URL and SUPABASE_KEY are not set")

    logger.info("connecting_to_supabase", url=settings.supabase_url[:30] + "...")
    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
        client.table(CHECK_TABLE).select("id").limit(1).execute()
    except Exception as e:
        logger.error("supabase_connection_failed", error=str(e), error_type=type(e).__name__)
        raise DatabaseError("connect", str(e)) from e

    logger.info("supabase_connected")
    return client


def check_connection() -> dict:
    """
    Storage health for /health.

    Returns:
        dict with "status" ("healthy" or "unhealthy"), "backend" and, for
        Supabase, row counts per table or the connection error
    """
    if settings.storage_backend == "memory":
        return {"status": "healthy", "backend": "memory"}

    try:
        client = get_supabase_client()
        counts = {
            f"{table}_count": client.table(table).select("id", count="exact").execute().count
            for table in STATUS_TABLES
        }
    except Exception as e:
        return {"status": "unhealthy", "backend": "supabase", "error": str(e)}

    return {"status": "healthy", "backend": "supabase", **counts}


def reset_connection():
    """Drop the cached client; the next call reconnects."""
    get_supabase_client.cache_clear()
    logger.info("database_connection_reset")
