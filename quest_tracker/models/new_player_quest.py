"""New player (milestone) quest models."""
from sqlalchemy import Column, String, Index
from quest_tracker.models.quest_base import MilestoneQuestProgressBase


class NewPlayerQuest(MilestoneQuestProgressBase):
    """One-time quest progress keyed by wallet address."""
    __tablename__ = "new_player_quests"

    subject_column = "wallet"
    subject = Column("wallet", String(128), nullable=False, index=True)

    __table_args__ = (
        Index("ix_new_player_quests_wallet_quest", "wallet", "quest_name", unique=True),
    )


class NewPlayerQuestNft(MilestoneQuestProgressBase):
    """One-time quest progress keyed by NFT id."""
    __tablename__ = "new_player_quests_nft"

    subject_column = "nft_id"
    subject = Column("nft_id", String(128), nullable=False, index=True)

    __table_args__ = (
        Index("ix_new_player_quests_nft_nft_quest", "nft_id", "quest_name", unique=True),
    )
