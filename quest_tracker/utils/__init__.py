"""Utilities module - datetime windows and model lookups."""
from quest_tracker.utils.datetime_helpers import (
    QuestWindow,
    ensure_utc,
    get_daily_window,
    get_milestone_window,
)
from quest_tracker.utils.model_registry import QuestFamily, SubjectKind, get_progress_model

__all__ = [
    "QuestWindow",
    "ensure_utc",
    "get_daily_window",
    "get_milestone_window",
    "QuestFamily",
    "SubjectKind",
    "get_progress_model",
]
