"""Database models."""
from quest_tracker.models.quest_base import (
    QuestProgressBase,
    DailyQuestProgressBase,
    MilestoneQuestProgressBase,
    DailyQuestType,
    MilestoneQuestType,
)
from quest_tracker.models.quest_progress import QuestProgress, QuestProgressNft
from quest_tracker.models.new_player_quest import NewPlayerQuest, NewPlayerQuestNft

__all__ = [
    "QuestProgressBase",
    "DailyQuestProgressBase",
    "MilestoneQuestProgressBase",
    "DailyQuestType",
    "MilestoneQuestType",
    "QuestProgress",
    "QuestProgressNft",
    "NewPlayerQuest",
    "NewPlayerQuestNft",
]
