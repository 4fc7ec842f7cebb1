"""
Content discovery and personalization engine.

- models/: DiscoveryConfig, policy constants, interaction and signal models
- stages/: recorder (write path), sourcing, ranking, orchestrator (read path)
- stores/: SQLAlchemy signal store, catalog repositories, exclusion providers
- DiscoveryEngine: single entry point binding stores, config and clock
"""

from .discovery_engine import DiscoveryEngine
from .errors import DiscoveryError, InvalidInputError, StoreUnavailableError
from .models.config import DEFAULT_CONFIG, DiscoveryConfig, resolve_config
from .models.interaction import ContentClass, InteractionEvent, InteractionKind, Surface

__all__ = [
    "ContentClass",
    "DEFAULT_CONFIG",
    "DiscoveryConfig",
    "DiscoveryEngine",
    "DiscoveryError",
    "InteractionEvent",
    "InteractionKind",
    "InvalidInputError",
    "StoreUnavailableError",
    "Surface",
    "resolve_config",
]
