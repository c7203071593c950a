"""Quest services."""
from quest_tracker.services.indexer_client import IndexerClient, IndexerClientError, EventType, get_indexer_client
from quest_tracker.services.progress_store import ProgressStore, ReconcileOutcome, reset_daily
from quest_tracker.services.quest_configs import DAILY_QUEST_CONFIGS, MILESTONE_QUEST_CONFIGS, get_reward_points
from quest_tracker.services.quest_service_base import CohortMember, EvaluationSummary, QuestServiceBase
from quest_tracker.services.daily_quest_service import DailyQuestService
from quest_tracker.services.milestone_quest_service import MilestoneQuestService

__all__ = [
    "IndexerClient",
    "IndexerClientError",
    "EventType",
    "get_indexer_client",
    "ProgressStore",
    "ReconcileOutcome",
    "reset_daily",
    "DAILY_QUEST_CONFIGS",
    "MILESTONE_QUEST_CONFIGS",
    "get_reward_points",
    "CohortMember",
    "EvaluationSummary",
    "QuestServiceBase",
    "DailyQuestService",
    "MilestoneQuestService",
]
