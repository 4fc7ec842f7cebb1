"""
Configuration and Catalog Tests

Tests DiscoveryConfig defaults, grouped-JSON loading and range validation,
the fixed policy table, and the JSON catalog repository.

Run:
----
    pytest discovery/tests/test_config.py -v
"""

import json

import pytest

from discovery import DEFAULT_CONFIG, DiscoveryConfig, resolve_config
from discovery.models import CandidateFilter, CandidateKind, CandidateOrder, InteractionKind
from discovery.models.policy import INTERACTION_DELTAS, profile_delta, velocity_weight
from discovery.stores import JsonContentRepository

from .factories import NOW


class TestDiscoveryConfig:
    def test_defaults(self):
        config = DiscoveryConfig()

        assert config.overfetch_factor == 3
        assert config.content_seen_ttl_hours == 24
        assert config.profile_seen_ttl_hours == 6
        assert config.min_spacing == 4
        assert config.max_per_creator == 3
        assert config.tier_size == 5
        assert config.jitter_max == 15
        assert config.top_creator_limit == 20

    def test_resolve_config(self):
        custom = DiscoveryConfig(min_spacing=2)
        assert resolve_config(None) is DEFAULT_CONFIG
        assert resolve_config(custom) is custom

    def test_from_dict_flattens_sections(self):
        config = DiscoveryConfig.from_dict(
            {
                "feed": {"overfetch_factor": 4},
                "seen": {"content_ttl_hours": 12, "profile_ttl_hours": 3},
                "diversity": {"min_spacing": 2, "explore_interleave": True},
                "people": {"new_account_days": 10},
                "jitter_max": 5,
                "unknown_key": "ignored",
            }
        )

        assert config.overfetch_factor == 4
        assert config.content_seen_ttl_hours == 12
        assert config.profile_seen_ttl_hours == 3
        assert config.min_spacing == 2
        assert config.explore_interleave is True
        assert config.new_account_days == 10
        assert config.jitter_max == 5

    @pytest.mark.parametrize(
        "overrides",
        [
            {"overfetch_factor": 1},
            {"overfetch_factor": 6},
            {"content_seen_ttl_hours": 0},
            {"min_spacing": 0},
            {"max_per_creator": 0},
            {"recent_creator_penalty": 1.5},
            {"jitter_max": -1},
        ],
    )
    def test_out_of_range_rejected(self, overrides):
        with pytest.raises(ValueError):
            DiscoveryConfig(**overrides)


class TestPolicy:
    def test_delta_table(self):
        assert INTERACTION_DELTAS[InteractionKind.SAVE] == (10, 20)
        assert INTERACTION_DELTAS[InteractionKind.REWATCH] == (15, 25)
        assert INTERACTION_DELTAS[InteractionKind.SKIP] == (-5, None)

    def test_view_threshold(self):
        assert profile_delta(InteractionKind.VIEW, 0.8) == 0
        assert profile_delta(InteractionKind.VIEW, 0.81) == 2
        assert profile_delta(InteractionKind.SKIP, 0.0) == -5

    def test_velocity_weights(self):
        assert velocity_weight(InteractionKind.COMMENT) == 2.5
        assert velocity_weight(InteractionKind.SKIP) is None


class TestJsonCatalog:
    def test_loads_contents_users_and_follows(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(
            json.dumps(
                {
                    "contents": [
                        {
                            "id": "c1",
                            "creator_id": "bob",
                            "content_class": "VIDEO",
                            "created_at": NOW.isoformat(),
                        }
                    ],
                    "users": [
                        {"id": "bob", "username": "bob", "created_at": "2025-01-01T00:00:00Z", "follower_count": 3},
                        {"id": "amy", "username": "amy", "created_at": "2026-02-27T00:00:00"},
                    ],
                    "follows": [["amy", "bob"]],
                }
            )
        )

        repository = JsonContentRepository(path)

        assert repository.get_content("c1").creator_id == "bob"
        assert repository.get_following("amy") == {"bob"}
        assert repository.get_followers("bob") == {"amy"}
        assert repository.get_user("amy").created_at.tzinfo is not None
        popular = repository.list_candidates(
            CandidateFilter(kind=CandidateKind.USER, order=CandidateOrder.POPULAR), limit=10
        )
        assert [u.id for u in popular] == ["bob", "amy"]
