"""Daily quest progress models."""
from sqlalchemy import Column, String, Index
from quest_tracker.models.quest_base import DailyQuestProgressBase


class QuestProgress(DailyQuestProgressBase):
    """Daily quest progress keyed by wallet address."""
    __tablename__ = "quest_progress"

    subject_column = "wallet"
    subject = Column("wallet", String(128), nullable=False, index=True)

    __table_args__ = (
        Index("ix_quest_progress_wallet_quest", "wallet", "quest_name", unique=True),
    )


class QuestProgressNft(DailyQuestProgressBase):
    """Daily quest progress keyed by NFT id."""
    __tablename__ = "quest_progress_nft"

    subject_column = "nft_id"
    subject = Column("nft_id", String(128), nullable=False, index=True)

    __table_args__ = (
        Index("ix_quest_progress_nft_nft_quest", "nft_id", "quest_name", unique=True),
    )
