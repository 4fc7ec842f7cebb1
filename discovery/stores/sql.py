"""
SQLAlchemy signal store.

Implements every SignalStore protocol over one relational database. Counter
updates are single INSERT ... ON CONFLICT DO UPDATE statements whose increments
and clamps are SQL expressions, so concurrent writers never lose updates.
Supported dialects: sqlite (local, tests) and postgresql (production).

Usage:
    engine = create_db_engine("sqlite:///./discovery.db", timeout_seconds=5)
    store = SqlSignalStore(engine)
    store.create_schema()
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, TypeVar

from sqlalchemy import Float, case, cast, create_engine, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..errors import StoreUnavailableError
from ..models.interaction import ContentClass, InteractionEvent, InteractionKind
from ..models.policy import (
    FATIGUE_MAX,
    FATIGUE_MIN,
    PREFERENCE_DEFAULT,
    PREFERENCE_MAX,
    PREFERENCE_MIN,
    VELOCITY_WEIGHTS,
    fatigue_delta,
)
from ..models.signals import (
    PREFERENCE_FIELDS,
    ContentFatigue,
    ContentVelocity,
    CreatorAffinity,
    InterestProfile,
    SeenKind,
    SeenRecord,
)
from ..utils.scores import clamp, ensure_utc
from .tables import (
    Base,
    ContentFatigueRow,
    ContentVelocityRow,
    CreatorAffinityRow,
    InteractionEventRow,
    InterestProfileRow,
    SeenItemRow,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Kinds that count as "engaged with your content" for people suggestions.
ENGAGEMENT_KINDS = (
    InteractionKind.LIKE,
    InteractionKind.SAVE,
    InteractionKind.SHARE,
    InteractionKind.COMMENT,
)

_AFFINITY_COUNTERS = {
    InteractionKind.REWATCH: "total_views",
    InteractionKind.LIKE: "total_likes",
    InteractionKind.SHARE: "total_shares",
    InteractionKind.SAVE: "total_saves",
    InteractionKind.COMMENT: "total_comments",
}

_VELOCITY_COUNTERS = {
    InteractionKind.VIEW: "views",
    InteractionKind.LIKE: "likes",
    InteractionKind.SAVE: "saves",
    InteractionKind.SHARE: "shares",
    InteractionKind.COMMENT: "comments",
}

_IN_MEMORY_SQLITE = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(database_url: str, timeout_seconds: float = 5.0) -> Engine:
    """
    Create an engine whose waits are all bounded.

    pool_timeout bounds connection checkout; SQLite gets a lock timeout and
    PostgreSQL a statement_timeout. In-memory SQLite shares one connection.
    """
    if database_url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {
            "connect_args": {"timeout": timeout_seconds, "check_same_thread": False},
        }
        if database_url in _IN_MEMORY_SQLITE:
            kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_timeout"] = timeout_seconds
        return create_engine(database_url, **kwargs)

    connect_args = {}
    if database_url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={int(timeout_seconds * 1000)}"
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_timeout=timeout_seconds,
        connect_args=connect_args,
    )


def _clamped(expr, low, high):
    """SQL-side clamp of expr into [low, high]."""
    return case((expr < low, low), (expr > high, high), else_=expr)


def _folded_mean(avg_col, count_col, value):
    """SQL-side incremental mean: (avg * count + value) / (count + 1)."""
    return (avg_col * count_col + value) / cast(count_col + 1, Float)


def _row_dict(row) -> Dict[str, Any]:
    """Column values of an ORM row; datetimes normalized to UTC."""
    out = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if isinstance(value, datetime):
            value = ensure_utc(value)
        out[column.key] = value
    return out


class SqlStoreBase:
    """
    Session handling, dialect-specific upserts, and transient-error retry.

    Transient failures (connection loss, lock/pool timeouts) are retried
    MAX_RETRIES times with linear backoff; anything still failing is raised as
    StoreUnavailableError.
    """

    MAX_RETRIES = 1
    RETRY_DELAY = 0.2  # seconds, multiplied by attempt number

    def __init__(self, engine: Engine):
        dialect = engine.dialect.name
        if dialect not in ("sqlite", "postgresql"):
            raise ValueError(f"Unsupported database dialect for atomic upserts: {dialect}")
        self.engine = engine
        self._dialect = dialect
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def ping(self) -> None:
        """Round-trip to the database; raises StoreUnavailableError when unreachable."""
        self._run("ping", lambda s: s.execute(select(1)))

    def _insert(self, table):
        if self._dialect == "postgresql":
            return postgresql.insert(table)
        return sqlite.insert(table)

    def _run(self, operation: str, work: Callable[[Session], T]) -> T:
        """Run work in one transaction, retrying transient failures."""
        attempt = 0
        while True:
            try:
                with self._session_factory() as session, session.begin():
                    return work(session)
            except (OperationalError, PoolTimeoutError) as e:
                if attempt >= self.MAX_RETRIES:
                    logger.warning("[store] %s failed after %d retries: %s", operation, attempt, e)
                    raise StoreUnavailableError(operation, e) from e
                attempt += 1
                logger.info("[store] %s transient failure, retry %d: %s", operation, attempt, e)
                time.sleep(self.RETRY_DELAY * attempt)
            except SQLAlchemyError as e:
                raise StoreUnavailableError(operation, e) from e


class SqlSignalStore(SqlStoreBase):
    """All engine-owned signal tables behind one SQLAlchemy engine."""

    @classmethod
    def from_url(cls, database_url: str, timeout_seconds: float = 5.0) -> "SqlSignalStore":
        return cls(create_db_engine(database_url, timeout_seconds))

    # -------------------------------------------------------------------------
    # Interaction log
    # -------------------------------------------------------------------------

    def append_interaction(self, event: InteractionEvent, occurred_at: datetime) -> None:
        stmt = self._insert(InteractionEventRow.__table__).values(
            viewer_id=event.viewer_id,
            content_id=event.content_id,
            content_class=event.content_class.value,
            kind=event.kind.value,
            watch_time_ms=event.watch_time_ms,
            completion=event.completion,
            creator_id=event.creator_id,
            session_id=event.session_id,
            created_at=occurred_at,
        )
        self._run("append_interaction", lambda s: s.execute(stmt))

    def liked_content_ids(self, viewer_id: str, since: datetime, limit: int) -> Set[str]:
        t = InteractionEventRow.__table__
        latest = func.max(t.c.created_at)
        stmt = (
            select(t.c.content_id)
            .where(
                t.c.viewer_id == viewer_id,
                t.c.kind == InteractionKind.LIKE.value,
                t.c.created_at >= since,
            )
            .group_by(t.c.content_id)
            .order_by(latest.desc())
            .limit(limit)
        )
        return self._run("liked_content_ids", lambda s: set(s.scalars(stmt).all()))

    def co_likers(
        self,
        content_ids: Set[str],
        since: datetime,
        exclude_viewer_id: str,
        limit: int,
    ) -> Dict[str, int]:
        if not content_ids:
            return {}
        t = InteractionEventRow.__table__
        shared = func.count(func.distinct(t.c.content_id)).label("shared")
        stmt = (
            select(t.c.viewer_id, shared)
            .where(
                t.c.content_id.in_(sorted(content_ids)),
                t.c.kind == InteractionKind.LIKE.value,
                t.c.created_at >= since,
                t.c.viewer_id != exclude_viewer_id,
            )
            .group_by(t.c.viewer_id)
            .order_by(shared.desc(), t.c.viewer_id)
            .limit(limit)
        )
        return self._run(
            "co_likers",
            lambda s: {viewer: int(count) for viewer, count in s.execute(stmt).all()},
        )

    def recent_engagers(self, creator_id: str, since: datetime, limit: int) -> Set[str]:
        t = InteractionEventRow.__table__
        stmt = (
            select(t.c.viewer_id)
            .where(
                t.c.creator_id == creator_id,
                t.c.kind.in_([k.value for k in ENGAGEMENT_KINDS]),
                t.c.created_at >= since,
                t.c.viewer_id != creator_id,
            )
            .group_by(t.c.viewer_id)
            .order_by(func.max(t.c.created_at).desc())
            .limit(limit)
        )
        return self._run("recent_engagers", lambda s: set(s.scalars(stmt).all()))

    # -------------------------------------------------------------------------
    # Interest profile
    # -------------------------------------------------------------------------

    def apply_interest_delta(
        self,
        viewer_id: str,
        content_class: ContentClass,
        delta: int,
        watch_time_ms: int,
        completion: float,
        now: datetime,
    ) -> None:
        t = InterestProfileRow.__table__
        column = PREFERENCE_FIELDS[content_class]
        seed = {name: PREFERENCE_DEFAULT for name in PREFERENCE_FIELDS.values()}
        seed[column] = int(clamp(PREFERENCE_DEFAULT + delta, PREFERENCE_MIN, PREFERENCE_MAX))

        count = t.c.total_interactions
        stmt = self._insert(t).values(
            viewer_id=viewer_id,
            avg_watch_time_ms=float(watch_time_ms),
            avg_completion=float(completion),
            total_interactions=1,
            updated_at=now,
            **seed,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[t.c.viewer_id],
            set_={
                column: _clamped(t.c[column] + delta, PREFERENCE_MIN, PREFERENCE_MAX),
                "avg_watch_time_ms": _folded_mean(t.c.avg_watch_time_ms, count, float(watch_time_ms)),
                "avg_completion": _folded_mean(t.c.avg_completion, count, float(completion)),
                "total_interactions": count + 1,
                "updated_at": now,
            },
        )
        self._run("apply_interest_delta", lambda s: s.execute(stmt))

    def get_interest_profile(self, viewer_id: str) -> Optional[InterestProfile]:
        def work(session: Session) -> Optional[InterestProfile]:
            row = session.get(InterestProfileRow, viewer_id)
            return InterestProfile(**_row_dict(row)) if row is not None else None

        return self._run("get_interest_profile", work)

    # -------------------------------------------------------------------------
    # Creator affinity
    # -------------------------------------------------------------------------

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
        t = CreatorAffinityRow.__table__
        counter = _AFFINITY_COUNTERS.get(kind)
        count = t.c.interaction_count

        values = {
            "viewer_id": viewer_id,
            "creator_id": creator_id,
            "affinity_score": delta,
            "interaction_count": 1,
            "avg_watch_time_ms": float(watch_time_ms),
            "avg_completion": float(completion),
            "last_interacted_at": now,
        }
        updates = {
            "affinity_score": t.c.affinity_score + delta,
            "interaction_count": count + 1,
            "avg_watch_time_ms": _folded_mean(t.c.avg_watch_time_ms, count, float(watch_time_ms)),
            "avg_completion": _folded_mean(t.c.avg_completion, count, float(completion)),
            "last_interacted_at": now,
        }
        if counter is not None:
            values[counter] = 1
            updates[counter] = t.c[counter] + 1

        stmt = self._insert(t).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[t.c.viewer_id, t.c.creator_id],
            set_=updates,
        )
        self._run("apply_affinity_delta", lambda s: s.execute(stmt))

    def get_creator_affinity(self, viewer_id: str, creator_id: str) -> Optional[CreatorAffinity]:
        def work(session: Session) -> Optional[CreatorAffinity]:
            row = session.get(CreatorAffinityRow, (viewer_id, creator_id))
            return CreatorAffinity(**_row_dict(row)) if row is not None else None

        return self._run("get_creator_affinity", work)

    def top_creator_ids(self, viewer_id: str, limit: int) -> List[str]:
        t = CreatorAffinityRow.__table__
        stmt = (
            select(t.c.creator_id)
            .where(t.c.viewer_id == viewer_id, t.c.affinity_score > 0)
            .order_by(t.c.affinity_score.desc(), t.c.creator_id)
            .limit(limit)
        )
        return self._run("top_creator_ids", lambda s: list(s.scalars(stmt).all()))

    # -------------------------------------------------------------------------
    # Content fatigue
    # -------------------------------------------------------------------------

    def apply_fatigue(
        self,
        content_id: str,
        content_class: ContentClass,
        is_skip: bool,
        watch_time_ms: int,
        completion: float,
        now: datetime,
    ) -> None:
        t = ContentFatigueRow.__table__
        step = fatigue_delta(is_skip)
        skip = 1 if is_skip else 0
        impressions = t.c.total_impressions

        stmt = self._insert(t).values(
            content_id=content_id,
            content_class=content_class.value,
            total_impressions=1,
            total_skips=skip,
            skip_rate=float(skip),
            avg_watch_time_ms=float(watch_time_ms),
            avg_completion=float(completion),
            fatigue_score=int(clamp(step, FATIGUE_MIN, FATIGUE_MAX)),
            last_shown_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[t.c.content_id],
            set_={
                "total_impressions": impressions + 1,
                "total_skips": t.c.total_skips + skip,
                "skip_rate": cast(t.c.total_skips + skip, Float) / cast(impressions + 1, Float),
                "avg_watch_time_ms": _folded_mean(t.c.avg_watch_time_ms, impressions, float(watch_time_ms)),
                "avg_completion": _folded_mean(t.c.avg_completion, impressions, float(completion)),
                "fatigue_score": _clamped(t.c.fatigue_score + step, FATIGUE_MIN, FATIGUE_MAX),
                "last_shown_at": now,
            },
        )
        self._run("apply_fatigue", lambda s: s.execute(stmt))

    def get_content_fatigue(self, content_id: str) -> Optional[ContentFatigue]:
        def work(session: Session) -> Optional[ContentFatigue]:
            row = session.get(ContentFatigueRow, content_id)
            return ContentFatigue(**_row_dict(row)) if row is not None else None

        return self._run("get_content_fatigue", work)

    def fatigue_scores(self, content_ids: Iterable[str]) -> Dict[str, int]:
        ids = sorted(set(content_ids))
        if not ids:
            return {}
        t = ContentFatigueRow.__table__
        stmt = select(t.c.content_id, t.c.fatigue_score).where(t.c.content_id.in_(ids))
        return self._run(
            "fatigue_scores",
            lambda s: {cid: int(score) for cid, score in s.execute(stmt).all()},
        )

    # -------------------------------------------------------------------------
    # Content velocity
    # -------------------------------------------------------------------------

    def record_velocity(
        self,
        content_id: str,
        content_class: ContentClass,
        hour_bucket: int,
        kind: InteractionKind,
        now: datetime,
    ) -> None:
        counter = _VELOCITY_COUNTERS.get(kind)
        if counter is None:
            return
        t = ContentVelocityRow.__table__
        divisor = float(max(1, hour_bucket + 1))

        # Weighted sum over the counters as they will be after this increment
        weighted = None
        for counter_kind, column in _VELOCITY_COUNTERS.items():
            bump = 1 if column == counter else 0
            term = cast(t.c[column] + bump, Float) * VELOCITY_WEIGHTS[counter_kind]
            weighted = term if weighted is None else weighted + term

        stmt = self._insert(t).values(
            content_id=content_id,
            hour_bucket=hour_bucket,
            content_class=content_class.value,
            recorded_at=now,
            velocity_score=VELOCITY_WEIGHTS[kind] / divisor,
            **{counter: 1},
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[t.c.content_id, t.c.hour_bucket],
            set_={
                counter: t.c[counter] + 1,
                "velocity_score": weighted / divisor,
                "recorded_at": now,
            },
        )
        self._run("record_velocity", lambda s: s.execute(stmt))

    def get_velocity_bucket(self, content_id: str, hour_bucket: int) -> Optional[ContentVelocity]:
        def work(session: Session) -> Optional[ContentVelocity]:
            row = session.get(ContentVelocityRow, (content_id, hour_bucket))
            return ContentVelocity(**_row_dict(row)) if row is not None else None

        return self._run("get_velocity_bucket", work)

    def current_velocities(self, content_ids: Iterable[str], since: datetime) -> Dict[str, float]:
        ids = sorted(set(content_ids))
        if not ids:
            return {}
        t = ContentVelocityRow.__table__
        stmt = (
            select(t.c.content_id, func.max(t.c.velocity_score))
            .where(t.c.content_id.in_(ids), t.c.recorded_at >= since)
            .group_by(t.c.content_id)
        )
        return self._run(
            "current_velocities",
            lambda s: {cid: float(score) for cid, score in s.execute(stmt).all()},
        )

    def viral_content_ids(
        self,
        content_class: Optional[ContentClass],
        threshold: float,
        since: datetime,
        limit: int,
    ) -> List[str]:
        t = ContentVelocityRow.__table__
        best = func.max(t.c.velocity_score).label("best")
        stmt = select(t.c.content_id, best).where(
            t.c.velocity_score > threshold,
            t.c.recorded_at >= since,
        )
        if content_class is not None:
            stmt = stmt.where(t.c.content_class == content_class.value)
        stmt = stmt.group_by(t.c.content_id).order_by(best.desc(), t.c.content_id).limit(limit)
        return self._run("viral_content_ids", lambda s: [cid for cid, _ in s.execute(stmt).all()])

    # -------------------------------------------------------------------------
    # Seen-item ledger
    # -------------------------------------------------------------------------

    def mark_seen(
        self,
        viewer_id: str,
        item_kind: SeenKind,
        item_ids: Iterable[str],
        now: datetime,
        expires_at: datetime,
        session_id: Optional[str] = None,
    ) -> None:
        # One row per item; a repeated id would hit the same conflict target twice
        rows = [
            {
                "viewer_id": viewer_id,
                "item_kind": item_kind.value,
                "item_id": item_id,
                "seen_at": now,
                "expires_at": expires_at,
                "session_id": session_id,
            }
            for item_id in dict.fromkeys(item_ids)
        ]
        if not rows:
            return
        t = SeenItemRow.__table__
        stmt = self._insert(t).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[t.c.viewer_id, t.c.item_kind, t.c.item_id],
            set_={
                "seen_at": stmt.excluded.seen_at,
                "expires_at": stmt.excluded.expires_at,
                "session_id": stmt.excluded.session_id,
            },
        )
        self._run("mark_seen", lambda s: s.execute(stmt))

    def active_seen_ids(self, viewer_id: str, item_kind: SeenKind, now: datetime) -> Set[str]:
        t = SeenItemRow.__table__
        stmt = select(t.c.item_id).where(
            t.c.viewer_id == viewer_id,
            t.c.item_kind == item_kind.value,
            t.c.expires_at > now,
        )
        return self._run("active_seen_ids", lambda s: set(s.scalars(stmt).all()))

    def get_seen_record(self, viewer_id: str, item_kind: SeenKind, item_id: str) -> Optional[SeenRecord]:
        def work(session: Session) -> Optional[SeenRecord]:
            row = session.get(SeenItemRow, (viewer_id, item_kind.value, item_id))
            return SeenRecord(**_row_dict(row)) if row is not None else None

        return self._run("get_seen_record", work)

    def delete_expired_seen(self, now: datetime) -> int:
        t = SeenItemRow.__table__
        stmt = delete(t).where(t.c.expires_at <= now)
        return self._run("delete_expired_seen", lambda s: s.execute(stmt).rowcount or 0)
