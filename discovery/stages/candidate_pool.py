"""
Candidate sourcing for content surfaces (reels, voice, explore).

Pulls an oversized pool (page_size * overfetch_factor) from the repository with
cheap filters: public visibility, content class, and exclusions (seen items,
not-interested marks, caller extras, the viewer's own content). Every
repository result is re-checked against the same filter locally.

The public entry point is source_content_candidates.
"""

import logging
from typing import Iterable, List, Optional, Set

from ..models.catalog import CandidateFilter, CandidateKind, ContentItem, Visibility
from ..models.config import DiscoveryConfig
from ..models.interaction import ContentClass
from ..stores.catalog import ContentRepository

logger = logging.getLogger(__name__)


def merge_exclusions(*id_sets: Optional[Iterable[str]]) -> Set[str]:
    merged: Set[str] = set()
    for ids in id_sets:
        if ids:
            merged.update(ids)
    return merged


def _is_eligible(
    item: ContentItem,
    viewer_id: str,
    content_class: Optional[ContentClass],
    excluded_ids: Set[str],
    excluded_creator_ids: Set[str],
) -> bool:
    """True if the item is public, of the requested class, not excluded, and not the viewer's own."""
    if item.visibility != Visibility.PUBLIC:
        return False
    if content_class is not None and item.content_class != content_class:
        return False
    if item.id in excluded_ids:
        return False
    if item.creator_id == viewer_id or item.creator_id in excluded_creator_ids:
        return False
    return True


def _filter_eligible_candidates(
    items: List,
    viewer_id: str,
    content_class: Optional[ContentClass],
    excluded_ids: Set[str],
    excluded_creator_ids: Set[str],
) -> List[ContentItem]:
    candidates = []
    for item in items:
        if not isinstance(item, ContentItem):
            continue
        if not _is_eligible(item, viewer_id, content_class, excluded_ids, excluded_creator_ids):
            continue
        candidates.append(item)
    return candidates


def source_content_candidates(
    repository: ContentRepository,
    viewer_id: str,
    content_class: Optional[ContentClass],
    page_size: int,
    excluded_ids: Set[str],
    excluded_creator_ids: Set[str],
    config: DiscoveryConfig,
) -> List[ContentItem]:
    """
    Return up to page_size * overfetch_factor eligible candidates, newest first.

    Pages through the repository (at most max_source_pages) while local
    filtering leaves the pool short.
    """
    target = page_size * config.overfetch_factor
    candidate_filter = CandidateFilter(
        kind=CandidateKind.CONTENT,
        content_class=content_class,
        exclude_ids=frozenset(excluded_ids),
        exclude_creator_ids=frozenset(excluded_creator_ids | {viewer_id}),
    )

    pool: List[ContentItem] = []
    pooled_ids: Set[str] = set()
    offset = 0
    for _ in range(config.max_source_pages):
        batch = repository.list_candidates(candidate_filter, limit=target, offset=offset)
        offset += len(batch)
        eligible = _filter_eligible_candidates(
            batch, viewer_id, content_class, excluded_ids, excluded_creator_ids
        )
        for item in eligible:
            if item.id not in pooled_ids:
                pooled_ids.add(item.id)
                pool.append(item)
        if len(batch) < target or len(pool) >= target:
            break

    if not pool:
        logger.debug("[sourcing] Empty pool viewer=%s class=%s", viewer_id, content_class)
    return pool[:target]
