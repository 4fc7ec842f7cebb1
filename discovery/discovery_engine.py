"""
Discovery engine facade.

Binds the signal store, catalog repository, exclusion provider, config and
clock, validates caller input, and delegates to the stages:
- record_interaction: recorder (write path)
- get_personalized_feed / get_surface_feed: content orchestrator
- get_suggested_people: people orchestrator
- get_viral_content, sweep_expired_seen: velocity and seen-ledger helpers
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from .errors import InvalidInputError
from .models.config import DiscoveryConfig, resolve_config
from .models.interaction import ContentClass, InteractionEvent, Surface
from .models.scoring import RankedItem, RankedProfile, RecordResult
from .stages.orchestrator import build_personalized_feed, build_suggested_people
from .stages.recorder import record_interaction
from .stages.seen import sweep_expired
from .stages.velocity import get_viral_content
from .stores.base import ExclusionProvider, SignalStore
from .stores.catalog import ContentRepository
from .utils.scores import ensure_utc, utc_now

Clock = Callable[[], datetime]


def _coerce_event(event: Union[InteractionEvent, Dict[str, Any]]) -> InteractionEvent:
    if isinstance(event, InteractionEvent):
        return event
    if not isinstance(event, dict):
        raise InvalidInputError(f"Interaction must be an object, got {type(event).__name__}")
    try:
        return InteractionEvent.model_validate(event)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid interaction: {e.errors(include_url=False)}") from e


def _coerce_content_class(content_class: Union[ContentClass, str, None]) -> Optional[ContentClass]:
    if content_class is None or isinstance(content_class, ContentClass):
        return content_class
    try:
        return ContentClass(str(content_class).strip().upper())
    except ValueError as e:
        raise InvalidInputError(f"Unknown content class: {content_class}") from e


def _require_id(name: str, value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{name} is required")
    return str(value).strip()


class DiscoveryEngine:
    """Content feeds, people suggestions and interaction recording for one deployment."""

    def __init__(
        self,
        signal_store: SignalStore,
        repository: ContentRepository,
        exclusions: Optional[ExclusionProvider] = None,
        config: Optional[DiscoveryConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.signal_store = signal_store
        self.repository = repository
        self.exclusions = exclusions
        self.config = resolve_config(config)
        self._clock = clock or utc_now

    def now(self) -> datetime:
        return ensure_utc(self._clock())

    def _check_page_size(self, name: str, value: int) -> int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidInputError(f"{name} must be an integer")
        if value <= 0 or value > self.config.max_page_size:
            raise InvalidInputError(f"{name} must be within [1, {self.config.max_page_size}], got {value}")
        return value

    # -------------------------------------------------------------------------
    # Write path
    # -------------------------------------------------------------------------

    def record_interaction(self, event: Union[InteractionEvent, Dict[str, Any]]) -> RecordResult:
        """
        Record one interaction across every signal store.

        Raises InvalidInputError before any side effect for malformed events;
        store failures are reported per step in the result, never raised.
        """
        event = _coerce_event(event)
        return record_interaction(event, self.signal_store, self.repository, self.config, self.now())

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    def get_personalized_feed(
        self,
        viewer_id: str,
        content_class: Union[ContentClass, str, None] = None,
        page_size: int = 20,
        session_id: Optional[str] = None,
        extra_exclusions: Optional[Iterable[str]] = None,
    ) -> List[RankedItem]:
        """Ranked content page; content_class=None serves every class (explore)."""
        viewer_id = _require_id("viewer_id", viewer_id)
        content_class = _coerce_content_class(content_class)
        page_size = self._check_page_size("page_size", page_size)
        return build_personalized_feed(
            viewer_id,
            content_class,
            page_size,
            session_id,
            self.signal_store,
            self.repository,
            self.exclusions,
            self.config,
            self.now(),
            extra_exclusions=set(extra_exclusions or ()),
            interleave=content_class is None and self.config.explore_interleave,
        )

    def get_surface_feed(
        self,
        surface: Union[Surface, str],
        viewer_id: str,
        page_size: int = 20,
        session_id: Optional[str] = None,
        extra_exclusions: Optional[Iterable[str]] = None,
    ) -> List[RankedItem]:
        """Feed for a named content surface (reels, voice, explore)."""
        try:
            surface = Surface(surface)
        except ValueError as e:
            raise InvalidInputError(f"Unknown surface: {surface}") from e
        if surface == Surface.PEOPLE:
            raise InvalidInputError("The people surface is served by get_suggested_people")
        return self.get_personalized_feed(
            viewer_id, surface.content_class, page_size, session_id, extra_exclusions
        )

    def get_suggested_people(
        self,
        viewer_id: str,
        limit: int = 20,
        session_id: Optional[str] = None,
        extra_exclusions: Optional[Iterable[str]] = None,
    ) -> List[RankedProfile]:
        viewer_id = _require_id("viewer_id", viewer_id)
        limit = self._check_page_size("limit", limit)
        return build_suggested_people(
            viewer_id,
            limit,
            session_id,
            self.signal_store,
            self.repository,
            self.exclusions,
            self.config,
            self.now(),
            extra_exclusions=set(extra_exclusions or ()),
        )

    def get_viral_content(
        self,
        content_class: Union[ContentClass, str, None] = None,
        limit: int = 20,
    ) -> List[str]:
        """Content ids above the viral threshold in the trailing window, fastest first."""
        content_class = _coerce_content_class(content_class)
        limit = self._check_page_size("limit", limit)
        return get_viral_content(self.signal_store, content_class, limit, self.now(), self.config)

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def sweep_expired_seen(self) -> int:
        return sweep_expired(self.signal_store, self.now())

