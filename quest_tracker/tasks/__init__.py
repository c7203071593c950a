"""Background tasks for quest maintenance."""
from quest_tracker.tasks.quest_maintenance import (
    run_daily_reset,
    run_quest_evaluation,
    schedule_daily_reset,
    schedule_quest_evaluation,
)

__all__ = ['run_daily_reset', 'run_quest_evaluation', 'schedule_daily_reset', 'schedule_quest_evaluation']
