"""Background tasks for scheduled quest evaluation and the daily reset."""
import asyncio
import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from quest_tracker.config import get_settings
from quest_tracker.database import AsyncSessionLocal
from quest_tracker.services.cohort_service import get_cohort
from quest_tracker.services.daily_quest_service import DailyQuestService
from quest_tracker.services.indexer_client import IndexerClient, get_indexer_client
from quest_tracker.services.milestone_quest_service import MilestoneQuestService
from quest_tracker.services.progress_store import reset_daily
from quest_tracker.utils.datetime_helpers import next_interval_slot, next_reset_boundary
from quest_tracker.utils.model_registry import SubjectKind

logger = logging.getLogger(__name__)

# Track if an evaluation run is in progress to prevent overlapping runs
_evaluation_running = False


async def run_quest_evaluation(
    indexer: Optional[IndexerClient] = None,
    now: Optional[datetime] = None,
) -> Optional[List[Dict[str, Any]]]:
    """Evaluate every quest family for the wallet and NFT cohorts.

    Each cohort is loaded once and evaluated for the daily and the milestone
    quests. A run that starts while the previous one is still going is
    skipped.

    Returns:
        One summary per (family, subject kind), or ``None`` when skipped.
    """
    global _evaluation_running

    if _evaluation_running:
        logger.warning("Quest evaluation already running, skipping this slot")
        return None

    _evaluation_running = True
    indexer = indexer or get_indexer_client()
    now = now or datetime.now(UTC)
    summaries: List[Dict[str, Any]] = []
    try:
        logger.info("Starting scheduled quest evaluation...")
        async with AsyncSessionLocal() as db:
            for subject_kind in SubjectKind:
                cohort = await get_cohort(indexer, subject_kind)
                for service_class in (DailyQuestService, MilestoneQuestService):
                    service = service_class(db, indexer, subject_kind, now=now)
                    summary = await service.evaluate_cohort(cohort)
                    summaries.append(summary.to_dict())

        logger.info(f"Quest progress updated for all cohorts: {summaries}")
        return summaries
    except Exception as e:
        logger.error(f"Error processing quests: {e}", exc_info=True)
        return summaries
    finally:
        _evaluation_running = False


async def run_daily_reset() -> Dict[str, int]:
    """Clear today's completion flags on the daily quest tables."""
    try:
        async with AsyncSessionLocal() as db:
            return await reset_daily(db)
    except Exception as e:
        logger.error(f"Error resetting quest progress: {e}", exc_info=True)
        return {}


async def _sleep_until(target: datetime) -> None:
    delay = (target - datetime.now(UTC)).total_seconds()
    if delay > 0:
        await asyncio.sleep(delay)


async def schedule_quest_evaluation() -> None:
    """Run the quest evaluation at every configured slot (``offset + k * interval`` minutes, UTC)."""
    settings = get_settings()
    logger.info(
        f"Starting quest evaluation scheduler (interval: {settings.evaluation_interval_minutes}m, "
        f"offset: {settings.evaluation_offset_minutes}m)"
    )

    while True:
        try:
            next_run = next_interval_slot(
                datetime.now(UTC),
                settings.evaluation_interval_minutes,
                settings.evaluation_offset_minutes,
            )
            logger.info(f"Next quest evaluation at {next_run.isoformat()}")
            await _sleep_until(next_run)
            await run_quest_evaluation()
        except asyncio.CancelledError:
            logger.info("Quest evaluation scheduler cancelled")
            break
        except Exception as e:
            logger.error(f"Unexpected error in quest evaluation scheduler: {e}", exc_info=True)
            await asyncio.sleep(60)


async def schedule_daily_reset() -> None:
    """Run the daily reset at the configured UTC reset time."""
    settings = get_settings()
    logger.info(
        f"Starting daily reset scheduler "
        f"(at {settings.daily_reset_hour:02d}:{settings.daily_reset_minute:02d} UTC)"
    )

    while True:
        try:
            next_run = next_reset_boundary(
                datetime.now(UTC),
                settings.daily_reset_hour,
                settings.daily_reset_minute,
            )
            logger.info(f"Next daily reset at {next_run.isoformat()}")
            await _sleep_until(next_run)
            await run_daily_reset()
        except asyncio.CancelledError:
            logger.info("Daily reset scheduler cancelled")
            break
        except Exception as e:
            logger.error(f"Unexpected error in daily reset scheduler: {e}", exc_info=True)
            await asyncio.sleep(60)
