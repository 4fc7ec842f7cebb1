"""SQLAlchemy ORM tables for the state owned by the discovery engine."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all discovery ORM models."""

    pass


# =============================================================================
# Audit log
# =============================================================================


class InteractionEventRow(Base):
    """Append-only interaction log (analytics, like-overlap and engager lookups)."""

    __tablename__ = "interaction_events"
    __table_args__ = (
        Index("ix_interaction_events_viewer_kind", "viewer_id", "kind", "created_at"),
        Index("ix_interaction_events_content_kind", "content_id", "kind"),
        Index("ix_interaction_events_creator", "creator_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    viewer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content_class: Mapped[str] = mapped_column(String(16), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    watch_time_ms: Mapped[int] = mapped_column(Integer, default=0)
    completion: Mapped[float] = mapped_column(Float, default=0.0)
    creator_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# =============================================================================
# Signal stores
# =============================================================================


class InterestProfileRow(Base):
    __tablename__ = "interest_profiles"

    viewer_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    video_preference: Mapped[int] = mapped_column(Integer, default=50)
    voice_preference: Mapped[int] = mapped_column(Integer, default=50)
    photo_preference: Mapped[int] = mapped_column(Integer, default=50)
    text_preference: Mapped[int] = mapped_column(Integer, default=50)
    avg_watch_time_ms: Mapped[float] = mapped_column(Float, default=0.0)
    avg_completion: Mapped[float] = mapped_column(Float, default=0.0)
    total_interactions: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class CreatorAffinityRow(Base):
    __tablename__ = "creator_affinities"
    __table_args__ = (Index("ix_creator_affinities_viewer_score", "viewer_id", "affinity_score"),)

    viewer_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    creator_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    affinity_score: Mapped[int] = mapped_column(Integer, default=0)
    total_views: Mapped[int] = mapped_column(Integer, default=0)
    total_likes: Mapped[int] = mapped_column(Integer, default=0)
    total_shares: Mapped[int] = mapped_column(Integer, default=0)
    total_saves: Mapped[int] = mapped_column(Integer, default=0)
    total_comments: Mapped[int] = mapped_column(Integer, default=0)
    interaction_count: Mapped[int] = mapped_column(Integer, default=0)
    avg_watch_time_ms: Mapped[float] = mapped_column(Float, default=0.0)
    avg_completion: Mapped[float] = mapped_column(Float, default=0.0)
    last_interacted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class ContentFatigueRow(Base):
    __tablename__ = "content_fatigue"

    content_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    content_class: Mapped[str] = mapped_column(String(16), nullable=False)
    total_impressions: Mapped[int] = mapped_column(Integer, default=0)
    total_skips: Mapped[int] = mapped_column(Integer, default=0)
    skip_rate: Mapped[float] = mapped_column(Float, default=0.0)
    avg_watch_time_ms: Mapped[float] = mapped_column(Float, default=0.0)
    avg_completion: Mapped[float] = mapped_column(Float, default=0.0)
    fatigue_score: Mapped[int] = mapped_column(Integer, default=0)
    last_shown_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class ContentVelocityRow(Base):
    __tablename__ = "content_velocity"
    __table_args__ = (
        Index("ix_content_velocity_recent", "recorded_at", "velocity_score"),
    )

    content_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    hour_bucket: Mapped[int] = mapped_column(Integer, primary_key=True)
    content_class: Mapped[str] = mapped_column(String(16), nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0)
    likes: Mapped[int] = mapped_column(Integer, default=0)
    saves: Mapped[int] = mapped_column(Integer, default=0)
    shares: Mapped[int] = mapped_column(Integer, default=0)
    comments: Mapped[int] = mapped_column(Integer, default=0)
    velocity_score: Mapped[float] = mapped_column(Float, default=0.0)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# =============================================================================
# Exclusions
# =============================================================================


class SeenItemRow(Base):
    __tablename__ = "seen_items"
    __table_args__ = (Index("ix_seen_items_expires", "expires_at"),)

    viewer_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    item_kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    item_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    session_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)


class NotInterestedRow(Base):
    __tablename__ = "not_interested"

    viewer_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    target_type: Mapped[str] = mapped_column(String(16), primary_key=True)
    target_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
