"""API routers."""
from quest_tracker.routers import health, quests

__all__ = [
    "health",
    "quests",
]
