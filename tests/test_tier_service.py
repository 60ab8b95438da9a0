"""
test_tier_service.py — Influence tier settings tests.

Default seed, full-set replacement, "never" handling and validation
failures that must leave the stored tiers untouched.

Called by: pytest
Depends on: arhub/services/tier_service.py, conftest.py
"""

import pytest

from arhub.exceptions import InvalidTierConfiguration
from arhub.models import InfluenceTier
from arhub.services.tier_service import (
    list_tiers,
    replace_tiers,
    seed_default_tiers,
    tier_to_dict,
)


def _payload(**overrides):
    tiers = [
        {"name": "Strategic", "level": "VERY_HIGH", "briefing_frequency": 30, "touchpoint_frequency": 14},
        {"name": "Core", "level": "HIGH", "briefing_frequency": 60, "touchpoint_frequency": -1},
        {"name": "Watch", "level": "LOW", "briefing_frequency": -1, "touchpoint_frequency": None,
         "is_active": False},
    ]
    tiers[0].update(overrides)
    return tiers


class TestSeed:
    def test_seeds_four_defaults(self, db_session):
        created = seed_default_tiers(db_session)
        assert len(created) == 4
        by_level = {t.level: t for t in list_tiers(db_session)}
        assert by_level["VERY_HIGH"].briefing_frequency == 60
        assert by_level["VERY_HIGH"].touchpoint_frequency == 30
        assert by_level["HIGH"].briefing_frequency == 90
        assert by_level["MEDIUM"].briefing_frequency == 120
        assert by_level["LOW"].briefing_frequency is None

    def test_seed_is_idempotent(self, db_session, default_tiers):
        assert seed_default_tiers(db_session) == []
        assert db_session.query(InfluenceTier).count() == 4

    def test_list_in_display_order(self, db_session, default_tiers):
        assert [t.name for t in list_tiers(db_session)] == ["Very High", "High", "Medium", "Low"]


class TestTierToDict:
    def test_never_reported_as_minus_one(self, db_session, default_tiers):
        low = db_session.query(InfluenceTier).filter_by(level="LOW").one()
        data = tier_to_dict(low)
        assert data["briefing_frequency"] == -1
        assert data["touchpoint_frequency"] == -1
        assert data["level"] == "LOW"
        assert data["is_active"] is True


class TestReplaceTiers:
    def test_replaces_full_set(self, db_session, default_tiers):
        created = replace_tiers(db_session, _payload())
        assert [t.name for t in created] == ["Strategic", "Core", "Watch"]
        assert [t.order for t in created] == [1, 2, 3]
        assert db_session.query(InfluenceTier).count() == 3
        assert db_session.query(InfluenceTier).filter_by(level="MEDIUM").first() is None

    def test_never_stored_as_null(self, db_session):
        created = {t.level: t for t in replace_tiers(db_session, _payload())}
        assert created["HIGH"].touchpoint_frequency is None
        assert created["LOW"].briefing_frequency is None
        assert created["LOW"].is_active is False

    def test_level_derived_from_name(self, db_session):
        created = replace_tiers(db_session, [{"name": "Very High", "briefing_frequency": 45}])
        assert created[0].level == "VERY_HIGH"

    def test_default_color(self, db_session):
        created = replace_tiers(db_session, _payload())
        assert created[0].color == "#6b7280"

    @pytest.mark.parametrize("bad", [
        {"name": "  "},
        {"briefing_frequency": 0},
        {"briefing_frequency": -7},
        {"touchpoint_frequency": 0},
        {"level": "ULTRA"},
        {"level": "HIGH"},  # duplicates the second entry
    ])
    def test_invalid_submission_leaves_tiers_untouched(self, db_session, default_tiers, bad):
        with pytest.raises(InvalidTierConfiguration):
            replace_tiers(db_session, _payload(**bad))
        assert [t.name for t in list_tiers(db_session)] == ["Very High", "High", "Medium", "Low"]

    def test_invalid_tier_is_a_value_error(self, db_session):
        with pytest.raises(ValueError, match="Each tier must have a name"):
            replace_tiers(db_session, [{"name": ""}])

    def test_empty_list_clears_tiers(self, db_session, default_tiers):
        assert replace_tiers(db_session, []) == []
        assert list_tiers(db_session) == []
