"""Daily quest service: repeatable quests evaluated over today's window."""
from typing import Any, Dict

from quest_tracker.models.quest_base import DailyQuestType
from quest_tracker.services.indexer_client import EventType
from quest_tracker.services.quest_configs import DAILY_QUEST_CONFIGS
from quest_tracker.services.quest_predicates import (
    EventPredicate,
    count_events_by_sender,
    count_pve_wins,
    count_pvp_wins,
)
from quest_tracker.services.quest_service_base import QuestServiceBase
from quest_tracker.utils.datetime_helpers import QuestWindow, get_daily_window
from quest_tracker.utils.model_registry import QuestFamily


DAILY_EVENT_PREDICATES: Dict[DailyQuestType, EventPredicate] = {
    DailyQuestType.CRAFT_SHIPS: EventPredicate(
        EventType.SHIP_PRODUCTION,
        count_events_by_sender,
        DAILY_QUEST_CONFIGS[DailyQuestType.CRAFT_SHIPS]["target"],
    ),
    DailyQuestType.CLAIM_ENERGY: EventPredicate(
        EventType.FAUCET_REQUESTED,
        count_events_by_sender,
        DAILY_QUEST_CONFIGS[DailyQuestType.CLAIM_ENERGY]["target"],
    ),
    DailyQuestType.BATTLE_PVE: EventPredicate(
        EventType.PLAYER_VS_ENVIRONMENT,
        count_pve_wins,
        DAILY_QUEST_CONFIGS[DailyQuestType.BATTLE_PVE]["target"],
    ),
    DailyQuestType.BATTLE_PVP: EventPredicate(
        EventType.PLAYER_VS_PLAYER,
        count_pvp_wins,
        DAILY_QUEST_CONFIGS[DailyQuestType.BATTLE_PVP]["target"],
    ),
}


class DailyQuestService(QuestServiceBase):
    """Evaluates the daily quests; completion flags are cleared by the daily reset."""

    @property
    def family(self) -> QuestFamily:
        return QuestFamily.DAILY

    @property
    def quest_configs(self) -> Dict[Any, Dict[str, Any]]:
        return DAILY_QUEST_CONFIGS

    @property
    def event_predicates(self) -> Dict[Any, EventPredicate]:
        return DAILY_EVENT_PREDICATES

    @property
    def window(self) -> QuestWindow:
        return get_daily_window(self.now, self.settings.daily_reset_hour, self.settings.daily_reset_minute)
