"""
Interaction recorder — fans one event out to every signal store.

Order: interaction log, creator affinity, interest profile, seen ledger,
content fatigue, content velocity. Each step is best-effort: a store that is
still failing after its retry is logged and skipped, and the remaining steps
run anyway. Missing a fatigue update is staleness, not a correctness problem.
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Tuple

from ..errors import StoreUnavailableError
from ..models.config import DiscoveryConfig
from ..models.interaction import InteractionEvent
from ..models.scoring import RecordResult
from ..models.signals import SeenKind
from ..stores.base import SignalStore
from ..stores.catalog import ContentRepository
from .fatigue import update_fatigue
from .interest import update_creator_affinity, update_interest_profile
from .seen import mark_seen
from .velocity import record_velocity

logger = logging.getLogger(__name__)

STEP_OK = "ok"
STEP_SKIPPED = "skipped"
STEP_FAILED = "failed"


def _steps(
    event: InteractionEvent,
    store: SignalStore,
    repository: ContentRepository,
    config: DiscoveryConfig,
    now: datetime,
) -> List[Tuple[str, Callable[[], Any]]]:
    """(name, step) pairs in execution order. A step returning False had nothing to do."""
    occurred_at = event.occurred_at or now
    return [
        ("log", lambda: store.append_interaction(event, occurred_at)),
        ("affinity", lambda: update_creator_affinity(store, event, now)),
        ("profile", lambda: update_interest_profile(store, event, now)),
        (
            "seen",
            lambda: mark_seen(
                store, event.viewer_id, SeenKind.CONTENT, [event.content_id], now, config, event.session_id
            ),
        ),
        ("fatigue", lambda: update_fatigue(store, event, now)),
        ("velocity", lambda: record_velocity(store, repository, event, now)),
    ]


def record_interaction(
    event: InteractionEvent,
    store: SignalStore,
    repository: ContentRepository,
    config: DiscoveryConfig,
    now: datetime,
) -> RecordResult:
    """
    Record one interaction across all stores.

    Never raises for store or repository failures; the returned RecordResult says which
    steps ran ("ok"), had nothing to do ("skipped") or failed ("failed").
    """
    result = RecordResult(viewer_id=event.viewer_id, content_id=event.content_id)
    for name, step in _steps(event, store, repository, config, now):
        try:
            applied = step()
        except StoreUnavailableError as e:
            logger.warning(
                "[recorder] %s update skipped viewer=%s content=%s kind=%s: %s",
                name, event.viewer_id, event.content_id, event.kind.value, e,
            )
            result.steps[name] = STEP_FAILED
            continue
        except Exception:
            # Catalog lookups run caller-supplied repository code
            logger.exception(
                "[recorder] %s update raised viewer=%s content=%s kind=%s",
                name, event.viewer_id, event.content_id, event.kind.value,
            )
            result.steps[name] = STEP_FAILED
            continue
        result.steps[name] = STEP_SKIPPED if applied is False else STEP_OK

    failed = result.failed_steps
    if failed:
        logger.warning("[recorder] Recorded with failures steps=%s content=%s", failed, event.content_id)
    else:
        logger.debug("[recorder] Recorded %s viewer=%s content=%s", event.kind.value, event.viewer_id, event.content_id)
    return result
