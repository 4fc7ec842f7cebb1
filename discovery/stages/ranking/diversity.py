"""
Diversity — in-processing selection loop with per-creator caps and spacing.

Steps, in order:
1. Sort by score (desc), ties by item id so the order is total.
2. Optional score weighting: effective = score * penalty ** (earlier items from creator).
3. Seeded shuffle within tiers of tier_size.
4. Greedy slot filling: each slot takes the first remaining candidate that respects
   the creator cap, the bucket cap, and min_spacing; when none does, the slot takes
   the candidate whose creator was shown longest ago (spacing and bucket cap
   relaxed, creator cap kept), so the page is never under-filled while eligible
   candidates remain. If any slot was relaxed, a second pass that serves the
   creators with the most items left first is kept when it relaxes fewer slots.

Candidates only need .score, .item_id, .creator_id and .bucket (ScoredContent,
ScoredProfile).
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel

from ...models.config import DiscoveryConfig
from .shuffle import RandomSource, shuffle_within_tiers

T = TypeVar("T")


class DiversityConstraints(BaseModel):
    """Selection constraints for one surface."""

    min_spacing: int = 4
    max_per_creator: int = 3
    max_per_bucket: Optional[int] = None
    tier_size: int = 5
    shuffle_tiers: bool = True
    recent_creator_penalty: Optional[float] = 0.3


def content_constraints(config: DiscoveryConfig) -> DiversityConstraints:
    return DiversityConstraints(
        min_spacing=config.min_spacing,
        max_per_creator=config.max_per_creator,
        tier_size=config.tier_size,
        shuffle_tiers=config.shuffle_within_tiers,
        recent_creator_penalty=config.recent_creator_penalty if config.use_score_weighting else None,
    )


def people_constraints(config: DiscoveryConfig, limit: int) -> DiversityConstraints:
    """One slot per account, at most ceil(limit / divisor) per mutual-count bucket."""
    return DiversityConstraints(
        min_spacing=1,
        max_per_creator=1,
        max_per_bucket=max(1, math.ceil(limit / config.people_bucket_divisor)),
        tier_size=config.tier_size,
        shuffle_tiers=config.shuffle_within_tiers,
        recent_creator_penalty=None,
    )


def sort_by_score(candidates: Sequence[T]) -> List[T]:
    return sorted(candidates, key=lambda c: (-c.score, c.item_id))


def apply_creator_penalty(ordered: Sequence[T], penalty: float) -> List[T]:
    """
    Re-rank by effective score = score * penalty ** k, k = earlier items from the same creator.

    Input must already be sorted by score. Scores on the candidates are not modified.
    """
    seen: Dict[str, int] = {}
    weighted = []
    for position, cand in enumerate(ordered):
        k = seen.get(cand.creator_id, 0)
        weighted.append((cand.score * (penalty ** k), position, cand))
        seen[cand.creator_id] = k + 1
    weighted.sort(key=lambda entry: (-entry[0], entry[1]))
    return [cand for _, _, cand in weighted]


def _fits_strict(
    cand,
    position: int,
    constraints: DiversityConstraints,
    creator_counts: Dict[str, int],
    bucket_counts: Dict[Optional[int], int],
    last_position: Dict[str, int],
) -> bool:
    if creator_counts.get(cand.creator_id, 0) >= constraints.max_per_creator:
        return False
    if constraints.max_per_bucket is not None and cand.bucket is not None:
        if bucket_counts.get(cand.bucket, 0) >= constraints.max_per_bucket:
            return False
    last = last_position.get(cand.creator_id)
    if last is not None and position - last < constraints.min_spacing:
        return False
    return True


def _greedy_pass(
    ordered: Sequence[T],
    limit: int,
    constraints: DiversityConstraints,
    prefer_backlog: bool,
) -> Tuple[List[T], int]:
    """One selection pass; returns the page and how many slots needed the relaxed rule."""
    remaining = list(ordered)
    selected: List[T] = []
    relaxed = 0
    creator_counts: Dict[str, int] = {}
    bucket_counts: Dict[Optional[int], int] = {}
    last_position: Dict[str, int] = {}
    # Unselected items per creator
    left: Dict[str, int] = {}
    for cand in remaining:
        left[cand.creator_id] = left.get(cand.creator_id, 0) + 1

    while remaining and len(selected) < limit:
        position = len(selected)
        pick: Optional[int] = None

        best_backlog = -1
        for idx, cand in enumerate(remaining):
            if not _fits_strict(cand, position, constraints, creator_counts, bucket_counts, last_position):
                continue
            if not prefer_backlog:
                pick = idx
                break
            # Items the creator can still place under its cap
            room = constraints.max_per_creator - creator_counts.get(cand.creator_id, 0)
            backlog = min(left[cand.creator_id], room)
            if backlog > best_backlog:
                best_backlog = backlog
                pick = idx

        if pick is None:
            # Relaxed: ignore spacing and bucket cap, keep the creator cap,
            # prefer the creator seen longest ago
            best_gap = -1
            for idx, cand in enumerate(remaining):
                if creator_counts.get(cand.creator_id, 0) >= constraints.max_per_creator:
                    continue
                last = last_position.get(cand.creator_id)
                gap = position - last if last is not None else position + 1
                if gap > best_gap:
                    best_gap = gap
                    pick = idx
            if pick is not None:
                relaxed += 1

        if pick is None:
            # Every remaining creator is at its cap
            break

        chosen = remaining.pop(pick)
        selected.append(chosen)
        left[chosen.creator_id] -= 1
        creator_counts[chosen.creator_id] = creator_counts.get(chosen.creator_id, 0) + 1
        if chosen.bucket is not None:
            bucket_counts[chosen.bucket] = bucket_counts.get(chosen.bucket, 0) + 1
        last_position[chosen.creator_id] = position

    return selected, relaxed


def select_with_constraints(
    ordered: Sequence[T],
    limit: int,
    constraints: DiversityConstraints,
) -> List[T]:
    """
    Greedy selection of up to limit candidates from an already-ordered list.

    The first pass takes the best strict fit for each slot. When that pass
    has to relax spacing somewhere, a second pass serves the creators with
    the most items left first among strict fits, and replaces the first page
    only if it relaxes fewer slots without placing fewer items.

    Args:
        ordered: Candidates in preference order. Not mutated.
        limit: Page size.
        constraints: Caps and spacing to enforce.

    Returns:
        Selected candidates in page order.
    """
    page, relaxed = _greedy_pass(ordered, limit, constraints, prefer_backlog=False)
    if relaxed == 0:
        return page
    alternative, alternative_relaxed = _greedy_pass(ordered, limit, constraints, prefer_backlog=True)
    if alternative_relaxed < relaxed and len(alternative) >= len(page):
        return alternative
    return page


def diversify(
    candidates: Sequence[T],
    limit: int,
    constraints: DiversityConstraints,
    rng: Optional[RandomSource] = None,
) -> List[T]:
    """
    Order, shuffle within tiers, and select a page of candidates.

    Identical candidates, constraints and rng seed always give an identical page.
    """
    if limit <= 0 or not candidates:
        return []
    ordered = sort_by_score(candidates)
    if constraints.recent_creator_penalty is not None:
        ordered = apply_creator_penalty(ordered, constraints.recent_creator_penalty)
    if constraints.shuffle_tiers and rng is not None:
        ordered = shuffle_within_tiers(ordered, constraints.tier_size, rng)
    return select_with_constraints(ordered, limit, constraints)


def interleave_by_creator(candidates: Sequence[T], max_per_creator: int = 2) -> List[T]:
    """
    Round-robin across creators in score order, at most max_per_creator each.

    Creators take turns in the order their best item ranks.
    """
    groups: Dict[str, List[T]] = {}
    for cand in sort_by_score(candidates):
        group = groups.setdefault(cand.creator_id, [])
        if len(group) < max_per_creator:
            group.append(cand)

    result: List[T] = []
    for round_index in range(max_per_creator):
        for group in groups.values():
            if round_index < len(group):
                result.append(group[round_index])
    return result
