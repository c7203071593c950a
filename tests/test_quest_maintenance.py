"""Tests for the scheduled evaluation and daily reset tasks."""
import asyncio
from datetime import datetime, UTC

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from quest_tracker.models import QuestProgress
from quest_tracker.services.indexer_client import EventType
from quest_tracker.services.progress_store import ProgressStore
from quest_tracker.tasks import quest_maintenance
from quest_tracker.tasks.quest_maintenance import (
    run_daily_reset,
    run_quest_evaluation,
    schedule_daily_reset,
    schedule_quest_evaluation,
)

NOW = datetime(2024, 9, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def patched_sessions(session_factory):
    """Route the task sessions to the test database engine."""
    with patch.object(quest_maintenance, "AsyncSessionLocal", session_factory):
        yield session_factory


@pytest.mark.asyncio
async def test_evaluation_covers_every_family_and_subject_kind(
    patched_sessions, db_session, fake_indexer, wallet_factory, nft_factory
):
    wallet, owner, nft_id = wallet_factory(), wallet_factory(), nft_factory()
    fake_indexer.whitelist = [wallet]
    fake_indexer.avatars = [{"id": nft_id, "owner": owner}]
    fake_indexer.add_event(EventType.FAUCET_REQUESTED, suiSender=wallet)

    summaries = await run_quest_evaluation(fake_indexer, now=NOW)

    assert [(s["family"], s["subject_kind"]) for s in summaries] == [
        ("daily", "wallet"),
        ("milestone", "wallet"),
        ("daily", "nft"),
        ("milestone", "nft"),
    ]
    assert summaries[0]["created"] == 4

    record = await ProgressStore(db_session, QuestProgress).get_record(wallet, "claim_energy")
    assert record.completed is True
    assert record.total_reward_points == 3

    # Each cohort is loaded once per run
    assert fake_indexer.count_calls("get_whitelist_wallets") == 1
    assert fake_indexer.count_calls("get_avatars") == 1


@pytest.mark.asyncio
async def test_overlapping_run_is_skipped(patched_sessions, fake_indexer, monkeypatch):
    monkeypatch.setattr(quest_maintenance, "_evaluation_running", True)

    assert await run_quest_evaluation(fake_indexer, now=NOW) is None
    assert fake_indexer.calls == []


@pytest.mark.asyncio
async def test_failed_run_releases_the_guard(patched_sessions, fake_indexer):
    fake_indexer.get_whitelist_wallets = AsyncMock(side_effect=RuntimeError("registry down"))

    summaries = await run_quest_evaluation(fake_indexer, now=NOW)

    assert summaries == []
    assert quest_maintenance._evaluation_running is False


@pytest.mark.asyncio
async def test_daily_reset_task(patched_sessions, db_session, wallet_factory):
    wallet = wallet_factory()
    store = ProgressStore(db_session, QuestProgress)
    await store.reconcile(wallet, "battle_pve", True, 15)

    counts = await run_daily_reset()

    assert set(counts) == {"quest_progress", "quest_progress_nft"}
    record = await store.get_record(wallet, "battle_pve")
    assert record.completed is False
    assert record.total_reward_points == 15


@pytest.mark.asyncio
async def test_daily_reset_task_logs_failures():
    failing_factory = MagicMock(side_effect=RuntimeError("database unavailable"))
    with patch.object(quest_maintenance, "AsyncSessionLocal", failing_factory):
        assert await run_daily_reset() == {}


@pytest.mark.asyncio
async def test_evaluation_scheduler_stops_when_cancelled():
    with patch.object(quest_maintenance, "_sleep_until", AsyncMock()) as sleep_until, \
            patch.object(
                quest_maintenance,
                "run_quest_evaluation",
                AsyncMock(side_effect=[[], asyncio.CancelledError()]),
            ) as run:
        await schedule_quest_evaluation()

    assert run.await_count == 2
    assert sleep_until.await_count == 2


@pytest.mark.asyncio
async def test_reset_scheduler_waits_for_next_boundary():
    with patch.object(quest_maintenance, "_sleep_until", AsyncMock()) as sleep_until, \
            patch.object(
                quest_maintenance,
                "run_daily_reset",
                AsyncMock(side_effect=asyncio.CancelledError()),
            ):
        await schedule_daily_reset()

    target = sleep_until.await_args.args[0]
    assert (target.hour, target.minute, target.second) == (0, 1, 0)
    assert target > datetime.now(UTC)
