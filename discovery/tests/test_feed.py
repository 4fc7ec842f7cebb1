"""
Personalized Feed Tests

End-to-end tests of sourcing → scoring → diversity through DiscoveryEngine,
on a fresh in-memory database and catalog per test.

Test Scenarios:
---------------
1. Exclusions: seen items, not-interested content and creators, caller extras,
   the viewer's own content, non-public content never appear
2. Surfaces: reels serves video, voice serves voice, explore serves all
3. Diversity on real pages: creator cap and spacing hold
4. Followed creators outrank strangers
5. Read failures: seen ledger down -> empty page; fatigue down -> page still served

Run:
----
    pytest discovery/tests/test_feed.py -v
"""

import pytest

from discovery import DiscoveryConfig, DiscoveryEngine, InvalidInputError, StoreUnavailableError
from discovery.models import ContentClass, ExclusionTarget, SeenKind, Visibility
from discovery.stages.candidate_pool import source_content_candidates
from discovery.stores import InMemoryContentRepository, SqlSignalStore, StaticExclusionProvider

from .factories import content, event


def _ids(page):
    return [item.content_id for item in page]


@pytest.fixture
def catalog(repository):
    """24 videos over 6 creators, 6 voice notes, plus edge cases."""
    for i in range(24):
        repository.add_content(content(f"v{i:02d}", f"creator-{i % 6}", age_hours=1 + i, like_count=i))
    for i in range(6):
        repository.add_content(
            content(f"n{i:02d}", f"voice-creator-{i % 3}", content_class=ContentClass.VOICE, age_hours=2 + i)
        )
    repository.add_content(content("private", "creator-0", visibility=Visibility.PRIVATE))
    repository.add_content(content("own", "alice"))
    return repository


class TestExclusions:
    """Excluded items never appear on a page."""

    def test_seen_items_excluded_until_expiry(self, engine, clock, catalog):
        first = engine.get_personalized_feed("alice", ContentClass.VIDEO, page_size=10)
        second = engine.get_personalized_feed("alice", ContentClass.VIDEO, page_size=10)

        assert len(first) == 10
        assert not set(_ids(first)) & set(_ids(second))

        clock.advance(hours=25)
        # 18 of 24 videos fit the creator caps, so at least 4 repeat from the first page
        third = engine.get_personalized_feed("alice", ContentClass.VIDEO, page_size=24)
        assert len(set(_ids(first)) & set(_ids(third))) >= 4

    def test_recorded_interaction_excludes_content(self, engine, catalog):
        engine.record_interaction(event("alice", "v05", "VIEW"))

        page = engine.get_personalized_feed("alice", ContentClass.VIDEO, page_size=24)
        assert "v05" not in _ids(page)

    def test_private_and_own_content_never_served(self, engine, catalog):
        page = engine.get_personalized_feed("alice", page_size=50)

        assert "private" not in _ids(page)
        assert "own" not in _ids(page)

    def test_not_interested_content_and_creator(self, engine, exclusions, catalog):
        exclusions.mark_not_interested("alice", ExclusionTarget.CONTENT, "v01", reason="boring")
        exclusions.mark_not_interested("alice", ExclusionTarget.CREATOR, "creator-2")

        page = engine.get_personalized_feed("alice", ContentClass.VIDEO, page_size=24)

        assert "v01" not in _ids(page)
        assert all(item.creator_id != "creator-2" for item in page)

    def test_clearing_not_interested_restores_creator(self, engine, exclusions, catalog):
        exclusions.mark_not_interested("alice", ExclusionTarget.CREATOR, "creator-2")
        assert exclusions.clear_not_interested("alice", ExclusionTarget.CREATOR, "creator-2")
        assert exclusions.excluded_creator_ids("alice") == set()

    def test_extra_exclusions(self, engine, catalog):
        page = engine.get_personalized_feed(
            "alice", ContentClass.VIDEO, page_size=24, extra_exclusions=["v00", "v03"]
        )
        assert {"v00", "v03"}.isdisjoint(_ids(page))

    def test_static_exclusion_provider(self, store, catalog, clock):
        provider = StaticExclusionProvider(content_ids={"alice": ["v02"]}, creator_ids={"alice": ["creator-5"]})
        engine = DiscoveryEngine(store, catalog, exclusions=provider, clock=clock)

        page = engine.get_personalized_feed("alice", ContentClass.VIDEO, page_size=24)

        assert "v02" not in _ids(page)
        assert all(item.creator_id != "creator-5" for item in page)


class TestSurfaces:
    """Surfaces map to content classes."""

    def test_reels_serves_video_only(self, engine, catalog):
        page = engine.get_surface_feed("reels", "alice", page_size=10)
        assert page and all(item.content_class == ContentClass.VIDEO for item in page)

    def test_voice_serves_voice_only(self, engine, catalog):
        page = engine.get_surface_feed("voice", "alice", page_size=10)
        assert page and all(item.content_class == ContentClass.VOICE for item in page)

    def test_explore_serves_every_class(self, engine, catalog):
        page = engine.get_surface_feed("explore", "alice", page_size=30)
        assert {item.content_class for item in page} == {ContentClass.VIDEO, ContentClass.VOICE}

    def test_people_surface_rejected(self, engine, catalog):
        with pytest.raises(InvalidInputError):
            engine.get_surface_feed("people", "alice")

    def test_explore_interleave(self, make_engine, catalog):
        engine = make_engine(catalog, DiscoveryConfig(explore_interleave=True, interleave_max_per_creator=2))

        page = engine.get_personalized_feed("alice", page_size=20)

        counts = {}
        for item in page:
            counts[item.creator_id] = counts.get(item.creator_id, 0) + 1
        assert page and max(counts.values()) <= 2


class TestRankedPage:
    """Page shape, diversity and personalization."""

    def test_page_respects_diversity(self, engine, catalog):
        page = engine.get_personalized_feed("alice", ContentClass.VIDEO, page_size=12)

        assert len(page) == 12
        assert [item.position for item in page] == list(range(12))
        last = {}
        counts = {}
        for item in page:
            if item.creator_id in last:
                assert item.position - last[item.creator_id] >= 4
            last[item.creator_id] = item.position
            counts[item.creator_id] = counts.get(item.creator_id, 0) + 1
        assert max(counts.values()) <= 3

    def test_followed_creator_surfaces_first(self, make_engine, catalog):
        catalog.add_follow("alice", "creator-3")
        engine = make_engine(catalog, DiscoveryConfig(shuffle_within_tiers=False))

        page = engine.get_personalized_feed("alice", ContentClass.VIDEO, page_size=5)

        assert page[0].creator_id == "creator-3"
        assert page[0].breakdown["creator"] == 100.0

    def test_same_session_reproduces_page(self, make_engine, catalog):
        first = make_engine(catalog).get_personalized_feed("alice", page_size=15, session_id="s-1")
        again = make_engine(catalog).get_personalized_feed("alice", page_size=15, session_id="s-1")
        other = make_engine(catalog).get_personalized_feed("alice", page_size=15, session_id="s-2")

        assert _ids(first) == _ids(again)
        assert [item.score for item in first] == [item.score for item in again]
        assert _ids(first) != _ids(other)

    def test_distinct_creators_fill_page(self, make_engine):
        repository = InMemoryContentRepository(
            contents=[content(f"c{i:02d}", f"creator-{i}", age_hours=3) for i in range(20)]
        )

        page = make_engine(repository).get_personalized_feed("alice", page_size=20)

        assert sorted(_ids(page)) == [f"c{i:02d}" for i in range(20)]

    def test_empty_catalog_returns_empty_page(self, engine):
        assert engine.get_personalized_feed("alice") == []

    @pytest.mark.parametrize("page_size", [0, -1, 101])
    def test_invalid_page_size(self, engine, catalog, page_size):
        with pytest.raises(InvalidInputError):
            engine.get_personalized_feed("alice", page_size=page_size)

    def test_missing_viewer_rejected(self, engine, catalog):
        with pytest.raises(InvalidInputError):
            engine.get_personalized_feed("")

    def test_unknown_content_class_rejected(self, engine, catalog):
        with pytest.raises(InvalidInputError):
            engine.get_personalized_feed("alice", content_class="HOLOGRAM")


class TestCandidatePool:
    """Over-fetch sizing and local filtering."""

    def test_pool_is_overfetched(self, catalog):
        config = DiscoveryConfig(overfetch_factor=2)

        pool = source_content_candidates(catalog, "alice", ContentClass.VIDEO, 5, set(), set(), config)

        assert len(pool) == 10
        assert [item.id for item in pool] == [f"v{i:02d}" for i in range(10)]

    def test_pool_pages_past_exclusions(self, catalog):
        excluded = {f"v{i:02d}" for i in range(12)}

        pool = source_content_candidates(
            catalog, "alice", ContentClass.VIDEO, 3, excluded, set(), DiscoveryConfig()
        )

        assert [item.id for item in pool] == [f"v{i:02d}" for i in range(12, 21)]


class SeenLedgerDown(SqlSignalStore):
    def active_seen_ids(self, *args, **kwargs):
        raise StoreUnavailableError("active_seen_ids", RuntimeError("timeout"))


class FatigueReadsDown(SqlSignalStore):
    def fatigue_scores(self, *args, **kwargs):
        raise StoreUnavailableError("fatigue_scores", RuntimeError("timeout"))


class TestReadFailures:
    """Read-path failures degrade instead of raising."""

    def test_seen_ledger_down_serves_nothing(self, db_engine, store, catalog, clock):
        engine = DiscoveryEngine(SeenLedgerDown(db_engine), catalog, clock=clock)
        assert engine.get_personalized_feed("alice") == []
        assert engine.get_suggested_people("alice") == []

    def test_fatigue_down_still_serves(self, db_engine, store, catalog, clock):
        engine = DiscoveryEngine(FatigueReadsDown(db_engine), catalog, clock=clock)

        page = engine.get_personalized_feed("alice", ContentClass.VIDEO, page_size=5)

        assert len(page) == 5
        assert all(item.breakdown["fatigue"] == 0.0 for item in page)
        assert store.active_seen_ids("alice", SeenKind.CONTENT, clock()) == set(_ids(page))
