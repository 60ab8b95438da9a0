"""
test_briefing_due_service.py — Briefings-due list tests.

Caching, tier counts, tier aliases, search, sort orders, pagination
and failure propagation.

Called by: pytest
Depends on: arhub/services/briefing_due_service.py, conftest.py
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from arhub.config import settings
from arhub.exceptions import BriefingDataUnavailable
from arhub.services import briefing_due_service
from arhub.services.briefing_due_service import get_briefings_due, normalize_tier_filter


@pytest.fixture()
def roster(default_tiers, make_analyst, make_briefing):
    """Four due analysts across three tiers, plus some that are not due."""
    vh = make_analyst("Vera", "High", influence="VERY_HIGH", company="Gartner")
    make_briefing(vh, days_ago=75)                      # 15 overdue
    hi = make_analyst("Hank", "Ives", influence="HIGH", company="Forrester")
    make_briefing(hi, days_ago=120)                     # 30 overdue
    md = make_analyst("Mia", "Dunn", influence="MEDIUM", company="IDC")
    make_briefing(md, days_ago=121)                     # 1 overdue
    new = make_analyst("Ned", "New", influence="HIGH", company="RedMonk")  # never briefed

    recent = make_analyst("Rita", "Recent", influence="HIGH")
    make_briefing(recent, days_ago=10)
    make_analyst("Lou", "Low", influence="LOW")
    booked = make_analyst("Bo", "Booked", influence="VERY_HIGH")
    make_briefing(booked, days_ago=-4, status="SCHEDULED")
    return {"vh": vh, "hi": hi, "md": md, "new": new}


def _ids(result):
    return [row["analyst_id"] for row in result["data"]]


class TestDueList:
    def test_response_shape(self, db_session, now, roster):
        result = get_briefings_due(db_session, now=now)
        assert result["success"] is True
        assert result["cached"] is False
        assert result["pagination"] == {"page": 1, "page_size": 50, "total": 4, "total_pages": 1}
        assert result["filters"] == {"search": "", "tier": "", "sort": "name"}
        assert result["updated_at"] == now.isoformat()

    def test_name_order_by_default(self, db_session, now, roster):
        result = get_briefings_due(db_session, now=now)
        # first name order from the store: Hank, Mia, Ned, Vera
        assert _ids(result) == [roster["hi"].id, roster["md"].id, roster["new"].id, roster["vh"].id]

    def test_counts_by_tier(self, db_session, now, roster):
        counts = get_briefings_due(db_session, now=now)["counts_by_tier"]
        assert counts == {"VERY_HIGH": 1, "HIGH": 2, "MEDIUM": 1, "LOW": 0}

    def test_counts_ignore_filters(self, db_session, now, roster):
        result = get_briefings_due(db_session, now=now, tier="MEDIUM", search="mia")
        assert result["counts_by_tier"]["HIGH"] == 2
        assert result["pagination"]["total"] == 1

    def test_due_row_fields(self, db_session, now, roster):
        rows = {r["analyst_id"]: r for r in get_briefings_due(db_session, now=now)["data"]}
        vh = rows[roster["vh"].id]
        assert vh["tier_level"] == "VERY_HIGH"
        assert vh["days_since_last_briefing"] == 75
        assert vh["overdue_days"] == 15
        assert vh["last_briefing"]["status"] == "COMPLETED"
        assert rows[roster["new"].id]["last_briefing"] is None


class TestFilters:
    @pytest.mark.parametrize("value,expected", [
        ("", None), ("ALL", None), ("all", None),
        ("TIER_1", "VERY_HIGH"), ("tier_2", "HIGH"), ("TIER_4", "LOW"),
        ("medium", "MEDIUM"),
    ])
    def test_normalize_tier_filter(self, value, expected):
        assert normalize_tier_filter(value) == expected

    def test_unknown_tier_rejected(self, db_session, now):
        with pytest.raises(ValueError):
            get_briefings_due(db_session, now=now, tier="TIER_9")

    def test_tier_alias_filter(self, db_session, now, roster):
        result = get_briefings_due(db_session, now=now, tier="TIER_2")
        assert sorted(_ids(result)) == sorted([roster["hi"].id, roster["new"].id])

    def test_search_matches_name_email_company(self, db_session, now, roster):
        assert _ids(get_briefings_due(db_session, now=now, search="VERA h")) == [roster["vh"].id]
        assert _ids(get_briefings_due(db_session, now=now, search="forrester")) == [roster["hi"].id]
        email = roster["md"].email.upper()
        assert _ids(get_briefings_due(db_session, now=now, search=email)) == [roster["md"].id]

    def test_search_no_match(self, db_session, now, roster):
        result = get_briefings_due(db_session, now=now, search="nobody")
        assert result["data"] == []
        assert result["pagination"]["total_pages"] == 0


class TestSortAndPaging:
    def test_sort_overdue(self, db_session, now, roster):
        result = get_briefings_due(db_session, now=now, sort="overdue")
        assert _ids(result)[:3] == [roster["hi"].id, roster["vh"].id, roster["md"].id]

    def test_sort_tier(self, db_session, now, roster):
        result = get_briefings_due(db_session, now=now, sort="tier")
        levels = [r["tier_level"] for r in result["data"]]
        assert levels == ["VERY_HIGH", "HIGH", "HIGH", "MEDIUM"]
        # within HIGH, most overdue first
        assert _ids(result)[1] == roster["hi"].id

    def test_invalid_sort(self, db_session, now):
        with pytest.raises(ValueError):
            get_briefings_due(db_session, now=now, sort="random")

    def test_pagination(self, db_session, now, roster):
        page2 = get_briefings_due(db_session, now=now, page=2, page_size=3)
        assert page2["pagination"] == {"page": 2, "page_size": 3, "total": 4, "total_pages": 2}
        assert _ids(page2) == [roster["vh"].id]

    @pytest.mark.parametrize("page,page_size", [(0, 10), (1, 0), (1, 1000)])
    def test_invalid_paging(self, db_session, now, page, page_size):
        with pytest.raises(ValueError):
            get_briefings_due(db_session, now=now, page=page, page_size=page_size)


class TestCache:
    def test_second_call_served_from_cache(self, db_session, now, roster, make_analyst):
        get_briefings_due(db_session, now=now)
        make_analyst("Cal", "Cached", influence="HIGH")

        result = get_briefings_due(db_session, now=now + timedelta(seconds=30))
        assert result["cached"] is True
        assert result["pagination"]["total"] == 4
        assert result["updated_at"] == now.isoformat()

    def test_force_recomputes(self, db_session, now, roster, make_analyst):
        get_briefings_due(db_session, now=now)
        make_analyst("Cal", "Cached", influence="HIGH")

        result = get_briefings_due(db_session, now=now, force=True)
        assert result["cached"] is False
        assert result["pagination"]["total"] == 5

    def test_expires_after_ttl(self, db_session, now, roster):
        get_briefings_due(db_session, now=now)
        later = now + timedelta(seconds=settings.briefings_due_cache_seconds + 1)
        assert get_briefings_due(db_session, now=later)["cached"] is False

    def test_clear_cache(self, db_session, now, roster):
        get_briefings_due(db_session, now=now)
        briefing_due_service.clear_cache()
        assert get_briefings_due(db_session, now=now)["cached"] is False

    def test_store_failure_propagates_and_is_not_cached(self, db_session, now):
        with patch(
            "arhub.services.briefing_due_service.list_active_analysts_with_tiers_and_recent_briefings",
            side_effect=BriefingDataUnavailable("db down"),
        ):
            with pytest.raises(BriefingDataUnavailable):
                get_briefings_due(db_session, now=now)
        assert get_briefings_due(db_session, now=now)["cached"] is False
