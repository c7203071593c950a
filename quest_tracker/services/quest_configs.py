"""Quest configuration and reward table."""
from typing import Any, Dict

from quest_tracker.models.quest_base import DailyQuestType, MilestoneQuestType


# Quest configuration mapping for the daily family
DAILY_QUEST_CONFIGS: Dict[DailyQuestType, Dict[str, Any]] = {
    DailyQuestType.CRAFT_SHIPS: {
        "name": "Shipwright",
        "description": "Complete 4 ship productions today",
        "target": 4,
        "reward": 5,
    },
    DailyQuestType.BATTLE_PVE: {
        "name": "Monster Hunter",
        "description": "Win 3 battles against the environment today",
        "target": 3,
        "reward": 15,
    },
    DailyQuestType.BATTLE_PVP: {
        "name": "Duelist",
        "description": "Win a battle against another player today",
        "target": 1,
        "reward": 20,
    },
    DailyQuestType.CLAIM_ENERGY: {
        "name": "Recharge",
        "description": "Claim energy from the faucet today",
        "target": 1,
        "reward": 3,
    },
}

# Quest configuration mapping for the one-time new player family
MILESTONE_QUEST_CONFIGS: Dict[MilestoneQuestType, Dict[str, Any]] = {
    MilestoneQuestType.ADDED_TO_ROSTER_1_SHIP_QUANTITY: {
        "name": "Fleet Builder",
        "description": "Add 4 ships to your first roster",
        "target": 4,
        "reward": 5,
        "endpoint": "/quests/addedToRoster1ShipQuantity",
    },
    MilestoneQuestType.CUT_WOOD_QUANTITY: {
        "name": "Lumberjack",
        "description": "Cut wood 5 times",
        "target": 5,
        "reward": 3,
        "endpoint": "/quests/cutWoodQuantity",
    },
    MilestoneQuestType.MINED_ORE_QUANTITY: {
        "name": "Miner",
        "description": "Mine ore 5 times",
        "target": 5,
        "reward": 3,
        "endpoint": "/quests/minedOreQuantity",
    },
    MilestoneQuestType.PLANTED_COTTON_QUANTITY: {
        "name": "Planter",
        "description": "Plant cotton 5 times",
        "target": 5,
        "reward": 3,
        "endpoint": "/quests/plantedCottonQuantity",
    },
    MilestoneQuestType.ROSTER_SAILED: {
        "name": "Set Sail",
        "description": "Send a roster out to sea",
        "target": True,
        "reward": 10,
        "endpoint": "/quests/rosterSailed",
    },
    MilestoneQuestType.SHIP_ORDER_ARRANGED: {
        "name": "Quartermaster",
        "description": "Arrange the ship order of a roster",
        "target": True,
        "reward": 3,
        "endpoint": "/quests/shipOrderArranged",
    },
    MilestoneQuestType.WALLET_CREATED: {
        "name": "Welcome Aboard",
        "description": "Create a player for your wallet",
        "target": 1,
        "reward": 2,
    },
    MilestoneQuestType.CLAIMED_ISLAND: {
        "name": "Land Ho",
        "description": "Claim an island",
        "target": 1,
        "reward": 5,
    },
    MilestoneQuestType.FIRST_4_CRAFT: {
        "name": "First Fleet",
        "description": "Complete your first 4 ship productions",
        "target": 4,
        "reward": 10,
    },
    MilestoneQuestType.FIRST_PVE_WIN: {
        "name": "First Blood",
        "description": "Win your first battle against the environment",
        "target": 1,
        "reward": 15,
    },
}

# Rewards listed for quests that are not evaluated yet
UNTRACKED_QUEST_REWARDS: Dict[str, int] = {
    "sail_distance": 10,
}


def get_reward_points(quest_name: str) -> int:
    """Return the point value granted when ``quest_name`` is completed.

    Unknown quest names are worth nothing.
    """
    for configs in (DAILY_QUEST_CONFIGS, MILESTONE_QUEST_CONFIGS):
        for quest_type, config in configs.items():
            if quest_type.value == quest_name:
                return config["reward"]
    return UNTRACKED_QUEST_REWARDS.get(quest_name, 0)
