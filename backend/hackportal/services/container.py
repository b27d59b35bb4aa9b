"""
Service container

Builds the configured store and every service on top of it, once per
application. The HTTP layer reaches the instance through app.state.portal.
"""

import time
from typing import Optional

from hackportal.core.config import Settings, settings as default_settings
from hackportal.core.logging_config import logger
from hackportal.services.allocation_engine import AllocationEngine
from hackportal.services.broadcaster import LiveUpdateBroadcaster
from hackportal.services.catalog_service import CatalogService
from hackportal.services.read_model import ReadModelProjector
from hackportal.services.team_directory import TeamDirectory
from hackportal.store import PortalStore, create_store


class PortalServices:
    def __init__(self, store: PortalStore, config: Optional[Settings] = None):
        self.config = config or default_settings
        timeout = self.config.STORE_TIMEOUT_SECONDS

        self.store = store
        self.engine = AllocationEngine(store, timeout_seconds=timeout)
        self.catalog = CatalogService(store, timeout_seconds=timeout)
        self.projector = ReadModelProjector(store, timeout_seconds=timeout)
        self.broadcaster = LiveUpdateBroadcaster(
            heartbeat_interval=self.config.HEARTBEAT_INTERVAL_SECONDS,
            queue_size=self.config.OBSERVER_QUEUE_SIZE,
        )
        self.teams = TeamDirectory(self.config.teams_csv_path)
        self.started_at = time.monotonic()

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "PortalServices":
        config = config or default_settings
        return cls(create_store(config), config)

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    async def startup(self, seed: bool = True) -> None:
        """Initialize the store, seed an empty catalog and load the team roster"""
        await self.store.init()
        if seed:
            await self.catalog.seed(self.config.seed_file_path, use_defaults=self.config.SEED_DEFAULTS)
        await self.teams.load()
        logger.info(f"Portal services started (store={self.store.backend_name})")

    async def shutdown(self) -> None:
        await self.broadcaster.close()
        await self.store.close()
        logger.info("Portal services stopped")
