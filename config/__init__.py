"""
Configuration module.

Exports:
    settings: Settings instance loaded at import time
    get_settings: Cached settings accessor
    get_supabase_client: Cached Supabase client (supabase backend only)
    check_connection: Storage health for /health
"""

from config.settings import settings, get_settings, Settings
from config.database import get_supabase_client, check_connection, reset_connection

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "get_supabase_client",
    "check_connection",
    "reset_connection",
]
