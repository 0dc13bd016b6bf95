"""
Supabase client handling.

One client per worker thread, authenticated with the secret key. The secret
key bypasses row-level security, which activation and fulfillment need to
create users, profiles and cards on behalf of anonymous callers.

Schema is managed via Supabase migrations, not here.
"""
import logging
import threading

from supabase import Client, create_client

from app.core.config import settings

logger = logging.getLogger(__name__)

# Tables the API cannot serve without
REQUIRED_TABLES = ("cards", "orders", "profiles", "subscriptions")

_thread_local = threading.local()


def get_supabase_client() -> Client:
    """Get this thread's Supabase client, creating it on first use.

    Sync FastAPI endpoints run in a threadpool; a client per thread keeps
    pooled HTTP/2 connections from being shared across threads.
    """
    if not settings.supabase_url or not settings.supabase_secret_key:
        raise RuntimeError(
            "Supabase credentials not configured. "
            "Set SUPABASE_URL and SUPABASE_SECRET_KEY environment variables."
        )

    client = getattr(_thread_local, "client", None)
    if client is None:
        client = create_client(settings.supabase_url, settings.supabase_secret_key)
        _thread_local.client = client
    return client


def init_db() -> bool:
    """Check at startup that Supabase is reachable and migrated.

    Returns:
        True if every required table answered a query
    """
    if not settings.supabase_url or not settings.supabase_secret_key:
        logger.warning("Supabase credentials not configured. Database features disabled.")
        return False

    try:
        client = get_supabase_client()
    except Exception as e:
        logger.warning(f"Could not create Supabase client: {e}")
        return False

    missing = []
    for table in REQUIRED_TABLES:
        try:
            client.table(table).select("id").limit(1).execute()
        except Exception as e:
            logger.warning(f"Supabase check failed for table '{table}': {e}")
            missing.append(table)

    if missing:
        logger.warning("Make sure migrations have been run and credentials are correct.")
        return False

    logger.info("Supabase connection verified")
    return True


def get_db() -> Client:
    """FastAPI dependency returning the Supabase client for this worker thread."""
    return get_supabase_client()
