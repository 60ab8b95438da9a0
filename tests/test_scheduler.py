"""
test_scheduler.py — Background outreach scheduler tests.

Tick gating on SCHEDULING_INTERVAL_HOURS and job error isolation.
The outreach service itself is mocked.

Called by: pytest
Depends on: arhub/scheduler.py
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from arhub import scheduler
from arhub.exceptions import BriefingDataUnavailable

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
RUN = "arhub.services.scheduling_service.initiate_due_outreach"

_OK = {"due": 0, "initiated": 0, "skipped": 0, "notified": 0, "notify_failed": 0,
       "conversations": [], "errors": []}


@pytest.fixture(autouse=True)
def _reset_last_run():
    scheduler._last_outreach_run = datetime.min.replace(tzinfo=timezone.utc)
    yield
    scheduler._last_outreach_run = datetime.min.replace(tzinfo=timezone.utc)


@pytest.fixture()
def session_factory():
    db = MagicMock()
    with patch("arhub.scheduler.SessionLocal", return_value=db):
        yield db


class TestSchedulerTick:
    @pytest.mark.asyncio
    async def test_first_tick_runs_outreach(self, session_factory):
        run = AsyncMock(return_value=_OK)
        with patch(RUN, run):
            await scheduler._scheduler_tick(NOW)
        run.assert_awaited_once_with(session_factory, now=NOW)
        session_factory.close.assert_called_once()
        assert scheduler._last_outreach_run == NOW

    @pytest.mark.asyncio
    async def test_not_rerun_within_interval(self, session_factory):
        run = AsyncMock(return_value=_OK)
        with patch(RUN, run):
            await scheduler._scheduler_tick(NOW)
            await scheduler._scheduler_tick(NOW + timedelta(hours=1))
        assert run.await_count == 1

    @pytest.mark.asyncio
    async def test_reruns_after_interval(self, session_factory):
        run = AsyncMock(return_value=_OK)
        with patch(RUN, run), patch.object(scheduler.settings, "scheduling_interval_hours", 6):
            await scheduler._scheduler_tick(NOW)
            await scheduler._scheduler_tick(NOW + timedelta(hours=6))
        assert run.await_count == 2

    @pytest.mark.asyncio
    async def test_store_failure_retried_next_tick(self, session_factory):
        run = AsyncMock(side_effect=[BriefingDataUnavailable("down"), _OK])
        with patch(RUN, run):
            await scheduler._scheduler_tick(NOW)
            assert scheduler._last_outreach_run < NOW
            await scheduler._scheduler_tick(NOW + timedelta(minutes=5))
        assert run.await_count == 2
        session_factory.rollback.assert_called_once()

    @pytest.mark.asyncio
    async def test_unexpected_error_logged_not_raised(self, session_factory):
        with patch(RUN, AsyncMock(side_effect=RuntimeError("boom"))):
            await scheduler._scheduler_tick(NOW)
        session_factory.close.assert_called_once()


class TestUtc:
    def test_naive_made_aware(self):
        assert scheduler._utc(datetime(2026, 1, 1)).tzinfo == timezone.utc

    def test_none_passthrough(self):
        assert scheduler._utc(None) is None
