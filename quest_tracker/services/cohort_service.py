"""Cohort sourcing from the indexer registries."""
import logging
from typing import List

from quest_tracker.services.indexer_client import IndexerClient
from quest_tracker.services.quest_service_base import CohortMember
from quest_tracker.utils.model_registry import SubjectKind

logger = logging.getLogger(__name__)


async def get_wallet_cohort(indexer: IndexerClient) -> List[CohortMember]:
    """Wallets from the island-claim whitelist, in registry order without duplicates."""
    wallets = await indexer.get_whitelist_wallets()
    cohort = [CohortMember.for_wallet(wallet) for wallet in dict.fromkeys(wallets)]
    logger.info(f"Loaded {len(cohort)} wallets from whitelist")
    return cohort


async def get_nft_cohort(indexer: IndexerClient) -> List[CohortMember]:
    """NFT avatars keyed by id and queried through their owner's wallet."""
    avatars = await indexer.get_avatars()
    seen = set()
    cohort = []
    for avatar in avatars:
        if avatar["id"] in seen:
            continue
        seen.add(avatar["id"])
        cohort.append(CohortMember(subject=avatar["id"], address=avatar["owner"]))
    logger.info(f"Loaded {len(cohort)} NFT avatars from registry")
    return cohort


async def get_cohort(indexer: IndexerClient, subject_kind: SubjectKind) -> List[CohortMember]:
    """Cohort for one subject kind."""
    if subject_kind == SubjectKind.WALLET:
        return await get_wallet_cohort(indexer)
    elif subject_kind == SubjectKind.NFT:
        return await get_nft_cohort(indexer)
    else:
        raise ValueError(f"Unsupported subject kind: {subject_kind}")
