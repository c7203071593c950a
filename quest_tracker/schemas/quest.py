"""Quest-related Pydantic schemas."""
from typing import Optional

from pydantic import Field

from quest_tracker.schemas.base import BaseSchema


class CheckQuestResponse(BaseSchema):
    """Whether a daily quest is completed today."""
    is_ok: bool


class DailyQuestStatus(BaseSchema):
    """Daily quest progress entry."""
    quest_name: str = Field(alias="questName")
    completed_today: bool = Field(alias="completedToday")
    total_reward_points: int = Field(alias="totalRewardPoints")


class MilestoneQuestStatus(BaseSchema):
    """New player quest progress entry."""
    quest_name: str = Field(alias="questName")
    completed: bool
    total_reward_points: int = Field(alias="totalRewardPoints")


class MessageResponse(BaseSchema):
    """Informational response."""
    message: str


class WalletPoints(BaseSchema):
    """Total points of a wallet."""
    wallet: str
    total_reward_points: int = Field(alias="totalRewardPoints")


class NftPoints(BaseSchema):
    """Total points of an NFT avatar."""
    nft_id: str
    total_reward_points: int = Field(alias="totalRewardPoints")


class NamedWalletPoints(WalletPoints):
    """Total points of a wallet with the cached player name."""
    player_name: Optional[str] = Field(default=None, alias="playerName")


class NamedNftPoints(NftPoints):
    """Total points of an NFT avatar with the cached player name."""
    player_name: Optional[str] = Field(default=None, alias="playerName")
