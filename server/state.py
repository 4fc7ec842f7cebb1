"""Application state: signal store, catalog, exclusions, and the discovery engine."""

import json
import logging
from typing import Optional

from discovery import DiscoveryConfig, DiscoveryEngine
from discovery.discovery_engine import Clock
from discovery.stores import (
    ContentRepository,
    InMemoryContentRepository,
    JsonContentRepository,
    SqlExclusionProvider,
    SqlSignalStore,
    create_db_engine,
)

from .config import ServerConfig, get_config

logger = logging.getLogger(__name__)


class AppState:
    """Global application state."""

    def __init__(
        self,
        config: ServerConfig,
        repository: Optional[ContentRepository] = None,
        discovery_config: Optional[DiscoveryConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config

        self.db_engine = db_engine = create_db_engine(config.database_url, config.db_timeout_seconds)
        self.signal_store = SqlSignalStore(db_engine)
        self.exclusions = SqlExclusionProvider(db_engine)
        logger.info("[startup] Signal store: %s", db_engine.dialect.name)

        self.repository = repository if repository is not None else self._create_repository(config)
        self.discovery_config = discovery_config or self._load_discovery_config(config)

        self.engine = DiscoveryEngine(
            self.signal_store,
            self.repository,
            exclusions=self.exclusions,
            config=self.discovery_config,
            clock=clock,
        )

    def _create_repository(self, config: ServerConfig) -> ContentRepository:
        """JSON catalog when CATALOG_JSON_PATH is set, else an empty in-memory catalog."""
        if config.catalog_json_path:
            return JsonContentRepository(config.catalog_json_path)
        logger.warning("[startup] CATALOG_JSON_PATH not set, serving from an empty catalog")
        return InMemoryContentRepository()

    def _load_discovery_config(self, config: ServerConfig) -> DiscoveryConfig:
        if not config.discovery_config_path:
            return DiscoveryConfig()
        with open(config.discovery_config_path, encoding="utf-8") as f:
            loaded = DiscoveryConfig.from_dict(json.load(f))
        logger.info("[startup] Discovery config loaded from %s", config.discovery_config_path)
        return loaded

    def initialize(self) -> None:
        """Create engine-owned tables if missing."""
        self.signal_store.create_schema()


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config)
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the global state (tests, embedding callers). None resets it."""
    global _state
    _state = state
