"""Central registry for mapping quest families and subject kinds to concrete models.

This utility provides a centralized way to get the correct concrete model
for a (family, subject kind) pair, ensuring abstract base models are never
used directly in database operations.
"""
from typing import Type
from enum import Enum


class QuestFamily(Enum):
    """Enum for the quest record families."""
    DAILY = "daily"
    MILESTONE = "milestone"


class SubjectKind(Enum):
    """Enum for the identities progress is tracked against."""
    WALLET = "wallet"
    NFT = "nft"


def get_progress_model(family: QuestFamily, subject_kind: SubjectKind) -> Type:
    """Get the concrete progress model for a quest family and subject kind."""
    if family == QuestFamily.DAILY:
        if subject_kind == SubjectKind.WALLET:
            from quest_tracker.models.quest_progress import QuestProgress
            return QuestProgress
        elif subject_kind == SubjectKind.NFT:
            from quest_tracker.models.quest_progress import QuestProgressNft
            return QuestProgressNft
    elif family == QuestFamily.MILESTONE:
        if subject_kind == SubjectKind.WALLET:
            from quest_tracker.models.new_player_quest import NewPlayerQuest
            return NewPlayerQuest
        elif subject_kind == SubjectKind.NFT:
            from quest_tracker.models.new_player_quest import NewPlayerQuestNft
            return NewPlayerQuestNft
    raise ValueError(f"Unsupported quest family / subject kind: {family}, {subject_kind}")


def get_subject_field(subject_kind: SubjectKind) -> str:
    """Get the public field name used for a subject kind in API payloads."""
    if subject_kind == SubjectKind.WALLET:
        return "wallet"
    elif subject_kind == SubjectKind.NFT:
        return "nft_id"
    else:
        raise ValueError(f"Unsupported subject kind: {subject_kind}")
