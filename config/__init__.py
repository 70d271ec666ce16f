"""
Configuration: settings and the Supabase client.

Exports:
    settings: Application settings instance
    get_settings: Cached settings loader
    get_supabase_client: Cached Supabase client
    check_connection: Database health probe
"""

from config.settings import settings, get_settings, Settings
from config.database import (
    get_supabase_client,
    check_connection,
    ConnectionError
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Database
    "get_supabase_client",
    "check_connection",
    "ConnectionError",
]
