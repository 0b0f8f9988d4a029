"""
Supabase-backed key/value blob store.

The dashboard persists two JSON documents (configuration and user roles)
in a single ``dashboard_store`` table keyed by name. Writes replace the
whole document; there is no per-field update and no version check.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional
from supabase import Client, create_client

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Client for interacting with Supabase storage."""

    table_name = "dashboard_store"

    def __init__(self, supabase_url: str, supabase_key: str):
        """
        Initialize Supabase client.
        
        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key (service role key for server-side writes)
        """
        self.client: Client = create_client(supabase_url, supabase_key)
        logger.info(f"Initialized SupabaseClient for {supabase_url}")
    
    def get_json(self, key: str) -> Optional[Any]:
        """
        Read a stored JSON document.
        
        Args:
            key: Document key (e.g., "dashboard-config")
        
        Returns:
            The stored value, or None if the key has never been written
        """
        try:
            result = self.client.table(self.table_name).select("value").eq(
                "key", key
            ).limit(1).execute()
        except Exception as e:
            logger.error(f"Failed to read '{key}' from store: {e}")
            raise
        
        if not result.data:
            logger.debug(f"Key '{key}' not found in store")
            return None
        return result.data[0]["value"]
    
    def set_json(self, key: str, value: Any) -> None:
        """
        Write (insert or replace) a JSON document.
        
        Args:
            key: Document key
            value: JSON-serializable value
        """
        record = {
            "key": key,
            "value": value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.client.table(self.table_name).upsert(
                record,
                on_conflict="key"
            ).execute()
            logger.debug(f"Stored '{key}'")
        except Exception as e:
            logger.error(f"Failed to write '{key}' to store: {e}")
            raise
    
    def delete(self, key: str) -> None:
        try:
            self.client.table(self.table_name).delete().eq("key", key).execute()
            logger.debug(f"Deleted '{key}'")
        except Exception as e:
            logger.error(f"Failed to delete '{key}' from store: {e}")
            raise
