"""
Signal store abstractions.

Each store owns one kind of derived state and exposes atomic upserts
("insert-or-increment") so concurrent writers never lose counts.
Implementations: SqlSignalStore (SQLAlchemy; SQLite or PostgreSQL).
Swap via DATABASE_URL for local vs production.

The engine is stateless between requests: every read goes through these
protocols and nothing is cached in process.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Set

from ..models.interaction import ContentClass, InteractionEvent, InteractionKind
from ..models.signals import (
    ContentFatigue,
    ContentVelocity,
    CreatorAffinity,
    InterestProfile,
    SeenKind,
    SeenRecord,
)


class InteractionLogStore(Protocol):
    """Append-only interaction log plus the lookups people sourcing needs."""

    def append_interaction(self, event: InteractionEvent, occurred_at: datetime) -> None:
        ...

    def liked_content_ids(self, viewer_id: str, since: datetime, limit: int) -> Set[str]:
        """Content the viewer liked since the given time (most recent first, capped)."""
        ...

    def co_likers(
        self,
        content_ids: Set[str],
        since: datetime,
        exclude_viewer_id: str,
        limit: int,
    ) -> Dict[str, int]:
        """Other viewers who liked any of content_ids, mapped to how many they share."""
        ...

    def recent_engagers(self, creator_id: str, since: datetime, limit: int) -> Set[str]:
        """Viewers who liked/saved/shared/commented on creator_id's content since the given time."""
        ...


class InterestProfileStore(Protocol):
    def apply_interest_delta(
        self,
        viewer_id: str,
        content_class: ContentClass,
        delta: int,
        watch_time_ms: int,
        completion: float,
        now: datetime,
    ) -> None:
        """Upsert: add delta to the class preference (clamped to [0,100]) and fold averages."""
        ...

    def get_interest_profile(self, viewer_id: str) -> Optional[InterestProfile]:
        ...


class CreatorAffinityStore(Protocol):
    def apply_affinity_delta(
        self,
        viewer_id: str,
        creator_id: str,
        kind: InteractionKind,
        delta: int,
        watch_time_ms: int,
        completion: float,
        now: datetime,
    ) -> None:
        """Upsert: add delta to affinity, bump the kind's counter, fold averages."""
        ...

    def get_creator_affinity(self, viewer_id: str, creator_id: str) -> Optional[CreatorAffinity]:
        ...

    def top_creator_ids(self, viewer_id: str, limit: int) -> List[str]:
        """Creators with the highest positive affinity for this viewer."""
        ...


class ContentFatigueStore(Protocol):
    def apply_fatigue(
        self,
        content_id: str,
        content_class: ContentClass,
        is_skip: bool,
        watch_time_ms: int,
        completion: float,
        now: datetime,
    ) -> None:
        """Upsert: count the impression (and skip), fold averages, step fatigue within [0,100]."""
        ...

    def get_content_fatigue(self, content_id: str) -> Optional[ContentFatigue]:
        ...

    def fatigue_scores(self, content_ids: Iterable[str]) -> Dict[str, int]:
        ...


class ContentVelocityStore(Protocol):
    def record_velocity(
        self,
        content_id: str,
        content_class: ContentClass,
        hour_bucket: int,
        kind: InteractionKind,
        now: datetime,
    ) -> None:
        """Upsert the (content, hour_bucket) row: increment the kind's counter and rescore."""
        ...

    def get_velocity_bucket(self, content_id: str, hour_bucket: int) -> Optional[ContentVelocity]:
        ...

    def current_velocities(self, content_ids: Iterable[str], since: datetime) -> Dict[str, float]:
        """Best bucket score per content item among buckets recorded since the given time."""
        ...

    def viral_content_ids(
        self,
        content_class: Optional[ContentClass],
        threshold: float,
        since: datetime,
        limit: int,
    ) -> List[str]:
        """Distinct content ids with a bucket above threshold since the given time, best first."""
        ...


class SeenLedgerStore(Protocol):
    def mark_seen(
        self,
        viewer_id: str,
        item_kind: SeenKind,
        item_ids: Iterable[str],
        now: datetime,
        expires_at: datetime,
        session_id: Optional[str] = None,
    ) -> None:
        """Upsert seen markers; re-marking refreshes seen_at and expires_at."""
        ...

    def active_seen_ids(self, viewer_id: str, item_kind: SeenKind, now: datetime) -> Set[str]:
        """Item ids whose marker has expires_at > now."""
        ...

    def get_seen_record(self, viewer_id: str, item_kind: SeenKind, item_id: str) -> Optional[SeenRecord]:
        """The marker for one item, expired or not; None when never seen."""
        ...

    def delete_expired_seen(self, now: datetime) -> int:
        """Delete markers with expires_at <= now; return how many were removed."""
        ...


class SignalStore(
    InteractionLogStore,
    InterestProfileStore,
    CreatorAffinityStore,
    ContentFatigueStore,
    ContentVelocityStore,
    SeenLedgerStore,
    Protocol,
):
    """All engine-owned state behind one handle."""


class ExclusionProvider(Protocol):
    """Extra exclusions supplied by the surrounding application (not-interested, blocks)."""

    def excluded_content_ids(self, viewer_id: str) -> Set[str]:
        ...

    def excluded_creator_ids(self, viewer_id: str) -> Set[str]:
        ...
