"""
Seen-item ledger.

Marks what a viewer was shown so the next request skips it: content for 24h,
profile suggestions for 6h (configurable). Exclusion always filters on
expires_at > now, so cleanup of expired rows is optional and advisory.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional, Set

from ..models.config import DiscoveryConfig
from ..models.signals import SeenKind
from ..stores.base import SeenLedgerStore

logger = logging.getLogger(__name__)


def seen_ttl(item_kind: SeenKind, config: DiscoveryConfig) -> timedelta:
    if item_kind == SeenKind.PROFILE:
        return timedelta(hours=config.profile_seen_ttl_hours)
    return timedelta(hours=config.content_seen_ttl_hours)


def mark_seen(
    store: SeenLedgerStore,
    viewer_id: str,
    item_kind: SeenKind,
    item_ids: Iterable[str],
    now: datetime,
    config: DiscoveryConfig,
    session_id: Optional[str] = None,
) -> None:
    store.mark_seen(viewer_id, item_kind, item_ids, now, now + seen_ttl(item_kind, config), session_id)


def active_seen_ids(store: SeenLedgerStore, viewer_id: str, item_kind: SeenKind, now: datetime) -> Set[str]:
    return store.active_seen_ids(viewer_id, item_kind, now)


def sweep_expired(store: SeenLedgerStore, now: datetime) -> int:
    """Delete expired markers. Safe to run on any cadence."""
    removed = store.delete_expired_seen(now)
    logger.info("[seen] Swept %d expired seen records", removed)
    return removed
