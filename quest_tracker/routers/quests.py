"""Quest status and leaderboard endpoints."""
import logging
from typing import List, Type, Union

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from quest_tracker.database import get_db
from quest_tracker.schemas.quest import (
    CheckQuestResponse,
    DailyQuestStatus,
    MessageResponse,
    MilestoneQuestStatus,
    NamedNftPoints,
    NamedWalletPoints,
    NftPoints,
    WalletPoints,
)
from quest_tracker.services.daily_quest_service import DailyQuestService
from quest_tracker.services.indexer_client import IndexerClient, get_indexer_client
from quest_tracker.services.leaderboard_service import get_faucet_leaderboard, get_names_and_points
from quest_tracker.services.milestone_quest_service import MilestoneQuestService
from quest_tracker.services.progress_store import ProgressStore
from quest_tracker.services.quest_service_base import CohortMember, QuestServiceBase
from quest_tracker.utils.model_registry import QuestFamily, SubjectKind, get_progress_model

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quests"])

PLAYER_NAME_MISSING = "Player name could not be retrieved."


def get_indexer() -> IndexerClient:
    """Dependency returning the shared indexer client."""
    return get_indexer_client()


def _error_response(e: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(e)})


async def _check_daily_quest(db: AsyncSession, subject_kind: SubjectKind, subject: str, quest: str):
    store = ProgressStore(db, get_progress_model(QuestFamily.DAILY, subject_kind))
    try:
        completed = await store.is_completed(subject, quest)
    except Exception as e:
        logger.error(f"Error checking quest for {subject} - {quest}: {e}")
        return _error_response(e)
    return CheckQuestResponse(is_ok=completed)


async def _evaluate_and_snapshot(
    service_class: Type[QuestServiceBase],
    status_schema: Type[Union[DailyQuestStatus, MilestoneQuestStatus]],
    db: AsyncSession,
    indexer: IndexerClient,
    subject_kind: SubjectKind,
    member: CohortMember,
):
    """Evaluate a subject's quests on demand and return its progress snapshot."""
    service = service_class(db, indexer, subject_kind)
    try:
        player_name = await service.resolve_display_name(member)
        if not player_name:
            return MessageResponse(message=PLAYER_NAME_MISSING)

        await service.evaluate_subject(
            CohortMember(subject=member.subject, address=member.address, display_name=player_name)
        )
        logger.info("Indexer pull completed successfully")

        snapshot = await service.get_progress_snapshot(member.subject)
    except Exception as e:
        logger.error(f"Error getting all {service.family.value} quests for {member.subject}: {e}")
        return _error_response(e)

    if status_schema is DailyQuestStatus:
        return [
            DailyQuestStatus(
                quest_name=entry["quest_name"],
                completed_today=entry["completed"],
                total_reward_points=entry["total_reward_points"],
            )
            for entry in snapshot
        ]
    return [MilestoneQuestStatus(**entry) for entry in snapshot]


@router.get("/check-quest", response_model=CheckQuestResponse)
async def check_quest(
    wallet: str = Query(...),
    quest: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Whether a wallet completed a daily quest today."""
    return await _check_daily_quest(db, SubjectKind.WALLET, wallet, quest)


@router.get("/check-quest-nft", response_model=CheckQuestResponse)
async def check_quest_nft(
    nft_id: str = Query(...),
    quest: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Whether an NFT avatar completed a daily quest today."""
    return await _check_daily_quest(db, SubjectKind.NFT, nft_id, quest)


@router.get("/get-all-quests", response_model=Union[List[DailyQuestStatus], MessageResponse])
async def get_all_quests(
    wallet: str = Query(...),
    db: AsyncSession = Depends(get_db),
    indexer: IndexerClient = Depends(get_indexer),
):
    """Refresh and list the daily quests of a wallet."""
    return await _evaluate_and_snapshot(
        DailyQuestService, DailyQuestStatus, db, indexer, SubjectKind.WALLET, CohortMember.for_wallet(wallet)
    )


@router.get("/get-all-quests-nft", response_model=Union[List[DailyQuestStatus], MessageResponse])
async def get_all_quests_nft(
    wallet: str = Query(...),
    nft_id: str = Query(...),
    db: AsyncSession = Depends(get_db),
    indexer: IndexerClient = Depends(get_indexer),
):
    """Refresh and list the daily quests of an NFT avatar owned by ``wallet``."""
    return await _evaluate_and_snapshot(
        DailyQuestService, DailyQuestStatus, db, indexer, SubjectKind.NFT,
        CohortMember(subject=nft_id, address=wallet),
    )


@router.get("/get-all-newplayer-quests", response_model=Union[List[MilestoneQuestStatus], MessageResponse])
async def get_all_newplayer_quests(
    wallet: str = Query(...),
    db: AsyncSession = Depends(get_db),
    indexer: IndexerClient = Depends(get_indexer),
):
    """Refresh and list the new player quests of a wallet."""
    return await _evaluate_and_snapshot(
        MilestoneQuestService, MilestoneQuestStatus, db, indexer, SubjectKind.WALLET,
        CohortMember.for_wallet(wallet),
    )


@router.get("/get-all-newplayer-quests-nft", response_model=Union[List[MilestoneQuestStatus], MessageResponse])
async def get_all_newplayer_quests_nft(
    wallet: str = Query(...),
    nft_id: str = Query(...),
    db: AsyncSession = Depends(get_db),
    indexer: IndexerClient = Depends(get_indexer),
):
    """Refresh and list the new player quests of an NFT avatar owned by ``wallet``."""
    return await _evaluate_and_snapshot(
        MilestoneQuestService, MilestoneQuestStatus, db, indexer, SubjectKind.NFT,
        CohortMember(subject=nft_id, address=wallet),
    )


@router.get("/get-names-and-points", response_model=List[Union[NamedWalletPoints, NamedNftPoints]])
async def names_and_points(db: AsyncSession = Depends(get_db)):
    """Total points per wallet and per NFT avatar, with player names."""
    try:
        rows = await get_names_and_points(db)
    except Exception as e:
        logger.error(f"Error getting wallets and points: {e}")
        return _error_response(e)
    return [NamedWalletPoints(**row) if "wallet" in row else NamedNftPoints(**row) for row in rows]


@router.get("/get-faucet-leaderboard", response_model=List[Union[WalletPoints, NftPoints]])
async def faucet_leaderboard(
    db: AsyncSession = Depends(get_db),
    indexer: IndexerClient = Depends(get_indexer),
):
    """Refresh the faucet quest for every known subject and return total points."""
    try:
        rows = await get_faucet_leaderboard(db, indexer)
    except Exception as e:
        logger.error(f"Error getting faucet leaderboard: {e}")
        return _error_response(e)
    return [WalletPoints(**row) if "wallet" in row else NftPoints(**row) for row in rows]
