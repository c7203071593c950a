"""Base quest progress models with common fields and functionality."""
from sqlalchemy import Column, String, Integer, DateTime, Boolean
from enum import Enum
from datetime import datetime, UTC
from quest_tracker.database import Base


class DailyQuestType(str, Enum):
    """Repeatable quests cleared by the daily reset."""
    CRAFT_SHIPS = "craft_ships"
    BATTLE_PVE = "battle_pve"
    BATTLE_PVP = "battle_pvp"
    CLAIM_ENERGY = "claim_energy"


class MilestoneQuestType(str, Enum):
    """One-time new player quests."""
    ADDED_TO_ROSTER_1_SHIP_QUANTITY = "addedToRoster1ShipQuantity"
    CUT_WOOD_QUANTITY = "cutWoodQuantity"
    MINED_ORE_QUANTITY = "minedOreQuantity"
    PLANTED_COTTON_QUANTITY = "plantedCottonQuantity"
    ROSTER_SAILED = "rosterSailed"
    SHIP_ORDER_ARRANGED = "shipOrderArranged"
    WALLET_CREATED = "walletCreated"
    CLAIMED_ISLAND = "claimedIsland"
    FIRST_4_CRAFT = "first4Craft"
    FIRST_PVE_WIN = "firstPveWin"


class QuestProgressBase(Base):
    """Progress record for one (subject, quest) pair.

    Concrete models map ``subject`` onto their own column (``wallet`` or
    ``nft_id``) and ``completed`` onto the family's flag column, so every
    table is handled through the same attribute names.
    """

    __abstract__ = True

    # Database column name backing ``subject``; used for upsert conflict targets
    subject_column: str = "subject"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quest_name = Column(String(64), nullable=False, index=True)
    total_reward_points = Column(Integer, nullable=False, default=0)
    player_name = Column(String(100), nullable=True)
    timestamp = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    def __repr__(self):
        return (
            f"<{self.__class__.__name__}(subject={self.subject}, quest_name={self.quest_name}, "
            f"completed={self.completed}, total_reward_points={self.total_reward_points})>"
        )


class DailyQuestProgressBase(QuestProgressBase):
    """Daily family: ``completed_today`` is cleared by the reset sweep."""

    __abstract__ = True

    completed = Column("completed_today", Boolean, nullable=False, default=False)


class MilestoneQuestProgressBase(QuestProgressBase):
    """Milestone family: ``completed`` is permanent once set."""

    __abstract__ = True

    completed = Column("completed", Boolean, nullable=False, default=False)
