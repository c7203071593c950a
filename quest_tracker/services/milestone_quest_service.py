"""Milestone quest service: one-time new player quests."""
from typing import Any, Dict, List, Optional, Tuple

from quest_tracker.models.quest_base import MilestoneQuestType
from quest_tracker.services.indexer_client import EventType
from quest_tracker.services.quest_configs import MILESTONE_QUEST_CONFIGS
from quest_tracker.services.quest_predicates import (
    EventPredicate,
    count_events_by_sender,
    count_pve_wins,
    evaluate_metric,
    has_claimed_island,
    has_owned_player,
)
from quest_tracker.services.quest_service_base import QuestServiceBase
from quest_tracker.utils.datetime_helpers import QuestWindow, get_milestone_window
from quest_tracker.utils.model_registry import QuestFamily


MILESTONE_EVENT_PREDICATES: Dict[MilestoneQuestType, EventPredicate] = {
    MilestoneQuestType.FIRST_4_CRAFT: EventPredicate(
        EventType.SHIP_PRODUCTION,
        count_events_by_sender,
        MILESTONE_QUEST_CONFIGS[MilestoneQuestType.FIRST_4_CRAFT]["target"],
    ),
    MilestoneQuestType.FIRST_PVE_WIN: EventPredicate(
        EventType.PLAYER_VS_ENVIRONMENT,
        count_pve_wins,
        MILESTONE_QUEST_CONFIGS[MilestoneQuestType.FIRST_PVE_WIN]["target"],
    ),
}

OWNERSHIP_PREDICATES = {
    MilestoneQuestType.WALLET_CREATED: has_owned_player,
    MilestoneQuestType.CLAIMED_ISLAND: has_claimed_island,
}


class MilestoneQuestService(QuestServiceBase):
    """
    Evaluates the new player quests over the window since launch.

    Besides the event-backed quests, milestones come from precomputed indexer
    metrics (``/quests/...``) and from the wallet's player entities. Metric values
    and the player list are fetched once per wallet within a run, so NFTs sharing
    an owner and the two ownership quests reuse the same answers.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._players_by_owner: Dict[str, List[Dict[str, Any]]] = {}
        self._metrics: Dict[Tuple[str, str], Any] = {}

    @property
    def family(self) -> QuestFamily:
        return QuestFamily.MILESTONE

    @property
    def quest_configs(self) -> Dict[Any, Dict[str, Any]]:
        return MILESTONE_QUEST_CONFIGS

    @property
    def event_predicates(self) -> Dict[Any, EventPredicate]:
        return MILESTONE_EVENT_PREDICATES

    @property
    def window(self) -> QuestWindow:
        return get_milestone_window(self.settings.quest_epoch_start, self.now)

    async def _get_players(self, address: str) -> List[Dict[str, Any]]:
        if address not in self._players_by_owner:
            self._players_by_owner[address] = await self.indexer.get_players_by_owner(address)
        return self._players_by_owner[address]

    async def _get_metric(self, endpoint: str, address: str) -> Any:
        key = (endpoint, address)
        if key not in self._metrics:
            self._metrics[key] = await self.indexer.get_quest_metric(endpoint, address)
        return self._metrics[key]

    async def _fetch_custom_verdict(self, quest_type: Any, address: str) -> Optional[bool]:
        config = self.quest_configs[quest_type]

        endpoint = config.get("endpoint")
        if endpoint:
            value = await self._get_metric(endpoint, address)
            return evaluate_metric(value, config["target"])

        predicate = OWNERSHIP_PREDICATES.get(quest_type)
        if predicate is not None:
            return predicate(await self._get_players(address))

        return await super()._fetch_custom_verdict(quest_type, address)
