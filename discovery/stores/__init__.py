"""Persistence ports and implementations for engine-owned state and the catalog."""

from .base import (
    ContentFatigueStore,
    ContentVelocityStore,
    CreatorAffinityStore,
    ExclusionProvider,
    InteractionLogStore,
    InterestProfileStore,
    SeenLedgerStore,
    SignalStore,
)
from .catalog import ContentRepository, InMemoryContentRepository, JsonContentRepository
from .exclusions import SqlExclusionProvider, StaticExclusionProvider
from .sql import SqlSignalStore, create_db_engine

__all__ = [
    "ContentFatigueStore",
    "ContentRepository",
    "ContentVelocityStore",
    "CreatorAffinityStore",
    "ExclusionProvider",
    "InMemoryContentRepository",
    "InteractionLogStore",
    "InterestProfileStore",
    "JsonContentRepository",
    "SeenLedgerStore",
    "SignalStore",
    "SqlExclusionProvider",
    "SqlSignalStore",
    "StaticExclusionProvider",
    "create_db_engine",
]
