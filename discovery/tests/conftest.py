"""
Shared fixtures for the discovery engine tests.

Every test gets a fresh in-memory SQLite database (sqlite:// on a StaticPool),
a fixed clock, and an in-memory catalog it can populate.
"""

from typing import Optional

import pytest

from discovery import DiscoveryConfig, DiscoveryEngine
from discovery.stores import (
    InMemoryContentRepository,
    SqlExclusionProvider,
    SqlSignalStore,
    create_db_engine,
)

from .factories import FixedClock


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def db_engine():
    engine = create_db_engine("sqlite://", timeout_seconds=1)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine) -> SqlSignalStore:
    signal_store = SqlSignalStore(db_engine)
    signal_store.create_schema()
    return signal_store


@pytest.fixture
def exclusions(db_engine, store) -> SqlExclusionProvider:
    return SqlExclusionProvider(db_engine)


@pytest.fixture
def repository() -> InMemoryContentRepository:
    return InMemoryContentRepository()


@pytest.fixture
def engine(store, repository, exclusions, clock) -> DiscoveryEngine:
    return DiscoveryEngine(store, repository, exclusions=exclusions, clock=clock)


@pytest.fixture
def make_engine(clock):
    """Build an engine over its own fresh database (for cross-run comparisons)."""
    engines = []

    def _make(repository: InMemoryContentRepository, config: Optional[DiscoveryConfig] = None) -> DiscoveryEngine:
        db = create_db_engine("sqlite://", timeout_seconds=1)
        engines.append(db)
        signal_store = SqlSignalStore(db)
        signal_store.create_schema()
        return DiscoveryEngine(signal_store, repository, config=config, clock=clock)

    yield _make
    for db in engines:
        db.dispose()
