"""
Ranking Tests

Tests for the scoring formulas, the diversity selection loop, and the seeded
shuffle. Jitter is disabled (jitter_max=0) wherever exact scores are asserted.

Test Scenarios:
---------------
1. Content score terms: creator boost, engagement minus fatigue, preference,
   velocity (viral or boost window, golden-hour multiplier), recency steps
2. People tiers: each capped independently
3. Diversity: creator cap, min spacing, bucket cap, page never under-filled
4. Determinism: same seed -> same page; different sessions -> different pages

Run:
----
    pytest discovery/tests/test_ranking.py -v
"""

from typing import List

import pytest

from discovery import DiscoveryConfig
from discovery.models import InterestProfile, PeopleSignals, ScoredContent
from discovery.stages.ranking import (
    DiversityConstraints,
    SplitMix64,
    ViewerContext,
    content_constraints,
    diversify,
    interleave_by_creator,
    people_constraints,
    score_content,
    score_profile,
    seeded_random,
    session_seed_key,
    shuffle_within_tiers,
)
from discovery.stages.ranking.people_scoring import (
    bucket_similarity,
    engagement_tier,
    growth_tier,
    quality_tier,
    similarity_tier,
    social_tier,
)
from discovery.utils import recency_multiplier

from .factories import NOW, content, user

NO_JITTER = DiscoveryConfig(jitter_max=0)


def _context(**fields) -> ViewerContext:
    fields.setdefault("profile", InterestProfile(viewer_id="viewer"))
    return ViewerContext(viewer_id="viewer", now=NOW, **fields)


def _scored(creator_ids: List[str], base: float = 100.0, step: float = 1.0) -> List[ScoredContent]:
    """One candidate per entry, scores strictly decreasing in list order."""
    return [
        ScoredContent(item=content(f"c{i:03d}", creator), score=base - i * step)
        for i, creator in enumerate(creator_ids)
    ]


def _assert_spacing(page, min_spacing: int) -> None:
    last = {}
    for position, cand in enumerate(page):
        if cand.creator_id in last:
            assert position - last[cand.creator_id] >= min_spacing
        last[cand.creator_id] = position


class TestContentScoring:
    """Composite content score and breakdown."""

    def test_full_breakdown(self):
        item = content("c1", "creator-1", age_hours=0.5, like_count=10, comment_count=5)
        context = _context(following={"creator-1"}, fatigue={"c1": 20}, velocity={"c1": 10.0})

        scored = score_content(item, context, NO_JITTER, seeded_random("viewer"))

        assert scored.breakdown == {
            "creator": 100.0,
            "engagement": 20.0,
            "fatigue": -20.0,
            "preference": pytest.approx(15.0),
            "velocity": 30.0,  # min(10 * 2, 60) * 1.5 golden hour
            "recency": 30.0,
            "jitter": 0.0,
        }
        assert scored.score == pytest.approx(175.0)

    def test_affinity_boost_below_follow_boost(self):
        item = content("c1", "creator-1")
        followed = score_content(item, _context(following={"creator-1"}), NO_JITTER, SplitMix64(1))
        top = score_content(item, _context(top_creators={"creator-1"}), NO_JITTER, SplitMix64(1))
        stranger = score_content(item, _context(), NO_JITTER, SplitMix64(1))

        assert followed.breakdown["creator"] == 100.0
        assert top.breakdown["creator"] == 80.0
        assert stranger.breakdown["creator"] == 0.0

    def test_velocity_needs_viral_or_boost_window(self):
        fresh = content("fresh", "a", age_hours=3)
        stale = content("stale", "b", age_hours=10)
        context = _context(velocity={"fresh": 4.0, "stale": 4.0})

        assert score_content(fresh, context, NO_JITTER, SplitMix64(1)).breakdown["velocity"] == 8.0
        assert score_content(stale, context, NO_JITTER, SplitMix64(1)).breakdown["velocity"] == 0.0

        viral = _context(velocity={"stale": 40.0})
        assert score_content(stale, viral, NO_JITTER, SplitMix64(1)).breakdown["velocity"] == 60.0

    def test_preference_follows_profile(self):
        item = content("c1", "a")
        profile = InterestProfile(viewer_id="viewer", video_preference=100)

        scored = score_content(item, _context(profile=profile), NO_JITTER, SplitMix64(1))
        assert scored.breakdown["preference"] == pytest.approx(30.0)

    @pytest.mark.parametrize(
        "age_hours,expected",
        [(0.5, 1.0), (3, 0.9), (12, 0.7), (48, 0.5), (100, 0.3), (400, 0.1)],
    )
    def test_recency_steps(self, age_hours, expected):
        assert recency_multiplier(age_hours) == expected

    def test_jitter_bounded_and_reproducible(self):
        config = DiscoveryConfig()
        item = content("c1", "a")
        first = score_content(item, _context(), config, seeded_random("session-1", "jitter"))
        again = score_content(item, _context(), config, seeded_random("session-1", "jitter"))

        assert 0.0 <= first.breakdown["jitter"] < config.jitter_max
        assert first.score == again.score


class TestPeopleScoring:
    """Each tier is capped independently."""

    def test_social_tier_caps(self):
        strong = PeopleSignals(user_id="u", mutual_connections=6, second_degree_paths=5, follows_viewer=True)
        weak = PeopleSignals(user_id="u", mutual_connections=2, second_degree_paths=1)

        assert social_tier(strong) == 400.0
        assert social_tier(weak) == 105.0

    def test_engagement_tier_counts_co_engagement_and_bio_overlap(self):
        viewer = user("viewer", bio="Street photography and jazz records")
        candidate = user("cand", bio="Jazz drummer, photography nerd")
        signals = PeopleSignals(user_id="cand", co_engagement=3)

        assert engagement_tier(signals, viewer, candidate) == 65.0  # 45 + 2 keywords * 10
        assert engagement_tier(signals, None, candidate) == 45.0

    def test_similarity_tier_by_bucket_distance(self):
        viewer = user("viewer", attributes={"economic_tier": 2})
        same = user("same", attributes={"economic_tier": 2})
        near = user("near", attributes={"economic_tier": 3})
        far = user("far", attributes={"economic_tier": 5})
        missing = user("missing")

        attributes = ["economic_tier"]
        assert similarity_tier(viewer, same, attributes) == 50.0
        assert similarity_tier(viewer, near, attributes) == 25.0
        assert similarity_tier(viewer, far, attributes) == 0.0
        assert similarity_tier(viewer, missing, attributes) == 0.0
        assert bucket_similarity(1, 3) == 10.0

    def test_quality_tier_capped(self):
        polished = user(
            "polished",
            display_name="Polished Person",
            bio="Long enough biography to count as complete",
            avatar_url="https://img/a.png",
            cover_url="https://img/c.png",
            is_verified=True,
            last_active_at=NOW,
            follower_count=1000,
            following_count=10,
            influence_score=5000,
        )
        bare = user("bare", follower_count=5, following_count=50)

        assert quality_tier(polished, NOW) == 150.0
        assert quality_tier(bare, NOW) == 0.0

    def test_growth_tier_for_new_engaged_poster(self):
        newcomer = user("new", age_days=2, post_count=1)
        signals = PeopleSignals(user_id="new", engaged_with_viewer=True)

        assert growth_tier(newcomer, signals, NOW, DiscoveryConfig()) == 185.0  # 65 + 80 + 40
        veteran = user("old", age_days=400, post_count=50)
        assert growth_tier(veteran, PeopleSignals(user_id="old"), NOW, DiscoveryConfig()) == 0.0

    def test_score_is_sum_of_tiers(self):
        candidate = user("cand", is_verified=True)
        signals = PeopleSignals(user_id="cand", mutual_connections=1, follows_viewer=True)

        scored = score_profile(candidate, signals, None, NOW, NO_JITTER, SplitMix64(7))
        assert scored.breakdown["social"] == 140.0
        assert scored.breakdown["quality"] == 50.0
        assert scored.score == pytest.approx(sum(scored.breakdown.values()))


class TestDiversity:
    """Caps and spacing in the selection loop."""

    def test_creator_cap_and_spacing(self):
        creators = [f"creator-{i % 6}" for i in range(30)]
        constraints = content_constraints(DiscoveryConfig())

        page = diversify(_scored(creators), 12, constraints, seeded_random("viewer", "shuffle"))

        assert len(page) == 12
        counts = {}
        for cand in page:
            counts[cand.creator_id] = counts.get(cand.creator_id, 0) + 1
        assert max(counts.values()) <= 3
        _assert_spacing(page, 4)

    def test_distinct_creators_fill_whole_page(self):
        candidates = _scored([f"creator-{i}" for i in range(20)])

        page = diversify(candidates, 20, content_constraints(DiscoveryConfig()), seeded_random("viewer"))

        assert len(page) == 20
        assert {c.item_id for c in page} == {c.item_id for c in candidates}

    def test_relaxed_fill_when_spacing_impossible(self):
        # Two creators cannot satisfy spacing 4; the page is still filled up to the caps
        candidates = _scored(["a", "b"] * 5)
        constraints = DiversityConstraints(min_spacing=4, max_per_creator=3, shuffle_tiers=False)

        page = diversify(candidates, 10, constraints)

        assert len(page) == 6
        assert [c.creator_id for c in page].count("a") == 3

    def test_repeat_creator_placed_early_when_spacing_allows(self):
        # Taking u2 first leaves room for its second item four slots later
        candidates = _scored(["u3", "u2", "u0", "u1", "u2"])
        constraints = DiversityConstraints(min_spacing=4, shuffle_tiers=False, recent_creator_penalty=None)

        page = diversify(candidates, 5, constraints)

        assert [c.creator_id for c in page] == ["u2", "u3", "u0", "u1", "u2"]
        _assert_spacing(page, 4)

    def test_score_order_kept_when_no_slot_is_relaxed(self):
        candidates = _scored(["a", "b", "c", "d", "a"])
        constraints = DiversityConstraints(min_spacing=4, shuffle_tiers=False, recent_creator_penalty=None)

        page = diversify(candidates, 5, constraints)

        assert [c.item_id for c in page] == ["c000", "c001", "c002", "c003", "c004"]

    def test_score_weighting_demotes_repeat_creators(self):
        candidates = _scored(["a", "a", "b"], base=100.0, step=10.0)  # 100, 90, 80
        constraints = DiversityConstraints(min_spacing=1, shuffle_tiers=False, recent_creator_penalty=0.3)

        page = diversify(candidates, 3, constraints)

        # a's second item is weighted to 27 and falls behind b
        assert [c.item_id for c in page] == ["c000", "c002", "c001"]

    def test_people_bucket_cap(self):
        constraints = people_constraints(DiscoveryConfig(), limit=6)
        assert constraints.max_per_bucket == 2
        assert constraints.max_per_creator == 1

    def test_empty_and_zero_limit(self):
        constraints = content_constraints(DiscoveryConfig())
        assert diversify([], 10, constraints) == []
        assert diversify(_scored(["a"]), 0, constraints) == []

    def test_interleave_round_robin(self):
        candidates = _scored(["a", "a", "a", "b", "b", "c"])

        page = interleave_by_creator(candidates, max_per_creator=2)

        assert [c.creator_id for c in page] == ["a", "b", "c", "a", "b"]


class TestDeterminism:
    """Seeded shuffles reproduce exactly and differ across sessions."""

    def test_same_seed_same_page(self):
        candidates = _scored([f"creator-{i % 8}" for i in range(40)], step=0.0)
        constraints = content_constraints(DiscoveryConfig())

        first = diversify(candidates, 20, constraints, seeded_random("session-1", "shuffle"))
        second = diversify(list(reversed(candidates)), 20, constraints, seeded_random("session-1", "shuffle"))

        assert [c.item_id for c in first] == [c.item_id for c in second]

    def test_shuffle_stays_within_tiers(self):
        items = list(range(12))
        shuffled = shuffle_within_tiers(items, 5, SplitMix64(42))

        assert sorted(shuffled[:5]) == [0, 1, 2, 3, 4]
        assert sorted(shuffled[5:10]) == [5, 6, 7, 8, 9]
        assert sorted(shuffled[10:]) == [10, 11]

    def test_sessions_produce_different_orders(self):
        items = list(range(50))
        one = shuffle_within_tiers(items, 50, seeded_random("session-1", "shuffle"))
        two = shuffle_within_tiers(items, 50, seeded_random("session-2", "shuffle"))

        assert one != two
        assert sorted(one) == sorted(two) == items

    def test_generator_is_stable(self):
        # Reference SplitMix64 output for seed 0
        assert SplitMix64(0).next_u64() == 0xE220A8397B1DCDAF

    def test_seed_key_prefers_session(self):
        assert session_seed_key("viewer", "sess") == "sess"
        assert session_seed_key("viewer", None) == "viewer"

    def test_randbelow_in_range(self):
        rng = SplitMix64(123)
        assert all(0 <= rng.randbelow(7) < 7 for _ in range(200))
        with pytest.raises(ValueError):
            rng.randbelow(0)
