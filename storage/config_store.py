"""Dashboard configuration persistence."""

import logging
from typing import Any

from models.data_models import DashboardConfig

logger = logging.getLogger(__name__)

CONFIG_KEY = "dashboard-config"


class ConfigStore:
    """Read and replace the single DashboardConfig document."""

    def __init__(self, blob_store: Any):
        """
        Args:
            blob_store: Object with ``get_json(key)``/``set_json(key, value)``
                        (normally a SupabaseClient)
        """
        self.blob_store = blob_store

    def get_config(self) -> DashboardConfig:
        """
        Return the stored configuration, creating defaults on first access.

        Documents written by older versions (e.g. without ``maxDaysOpen``,
        or repositories without ``enabled``) are back-filled with defaults.
        """
        stored = self.blob_store.get_json(CONFIG_KEY)
        if stored is None:
            config = DashboardConfig()
            logger.info("No dashboard configuration stored, saving defaults")
            self.blob_store.set_json(CONFIG_KEY, config.to_json())
            return config
        stored = dict(stored)
        stored["repositories"] = [
            {"enabled": True, **repo} if isinstance(repo, dict) else repo
            for repo in stored.get("repositories") or []
        ]
        return DashboardConfig.model_validate(stored)

    def save_config(self, config: DashboardConfig) -> DashboardConfig:
        """Replace the whole configuration document."""
        self.blob_store.set_json(CONFIG_KEY, config.to_json())
        logger.info(
            f"Saved dashboard configuration ({len(config.repositories)} repositories, "
            f"limit {config.assignment_time_limit}h, max {config.max_days_open}d)"
        )
        return config
