"""Points aggregation across quest families."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from quest_tracker.models.quest_base import DailyQuestType
from quest_tracker.services.cohort_service import get_cohort
from quest_tracker.services.daily_quest_service import DailyQuestService
from quest_tracker.services.indexer_client import IndexerClient
from quest_tracker.services.progress_store import ProgressStore
from quest_tracker.utils.model_registry import (
    QuestFamily,
    SubjectKind,
    get_progress_model,
    get_subject_field,
)

logger = logging.getLogger(__name__)


async def get_aggregate_points(
    db: AsyncSession,
    subject_kind: SubjectKind,
    *,
    include_names: bool = True,
) -> List[Dict[str, Any]]:
    """
    Sum daily and milestone points per subject.

    Subjects with daily records come first, followed by subjects that only
    have milestone records. The display name is taken from the daily records
    when present, otherwise from the milestone ones.

    Args:
        db: Database session
        subject_kind: Aggregate wallets or NFT ids
        include_names: Include the cached ``player_name`` in each row

    Returns:
        Rows of ``{<wallet|nft_id>, total_reward_points[, player_name]}``
    """
    subject_field = get_subject_field(subject_kind)
    combined: Dict[str, Dict[str, Any]] = {}

    for family in (QuestFamily.DAILY, QuestFamily.MILESTONE):
        store = ProgressStore(db, get_progress_model(family, subject_kind))
        for row in await store.get_points_by_subject():
            entry = combined.setdefault(row["subject"], {
                subject_field: row["subject"],
                "total_reward_points": 0,
                "player_name": None,
            })
            entry["total_reward_points"] += row["total_reward_points"]
            entry["player_name"] = entry["player_name"] or row["player_name"]

    rows = list(combined.values())
    if not include_names:
        for row in rows:
            row.pop("player_name")
    return rows


async def get_names_and_points(db: AsyncSession) -> List[Dict[str, Any]]:
    """Aggregated points with display names, wallets first then NFTs."""
    wallet_points = await get_aggregate_points(db, SubjectKind.WALLET)
    nft_points = await get_aggregate_points(db, SubjectKind.NFT)
    return wallet_points + nft_points


async def get_faucet_leaderboard(
    db: AsyncSession,
    indexer: IndexerClient,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Refresh the faucet quest for every known subject, then aggregate points.

    The refresh runs one batched faucet query per subject kind.
    """
    for subject_kind in SubjectKind:
        cohort = await get_cohort(indexer, subject_kind)
        service = DailyQuestService(db, indexer, subject_kind, now=now)
        summary = await service.evaluate_cohort(cohort, [DailyQuestType.CLAIM_ENERGY])
        logger.info(f"Faucet refresh for {subject_kind.value} cohort: {summary.to_dict()}")

    wallet_points = await get_aggregate_points(db, SubjectKind.WALLET, include_names=False)
    nft_points = await get_aggregate_points(db, SubjectKind.NFT, include_names=False)
    return wallet_points + nft_points
