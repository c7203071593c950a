"""Tests for the pure quest predicates and the reward table."""
import pytest

from quest_tracker.services.daily_quest_service import DAILY_EVENT_PREDICATES
from quest_tracker.services.milestone_quest_service import MILESTONE_EVENT_PREDICATES
from quest_tracker.models.quest_base import DailyQuestType, MilestoneQuestType
from quest_tracker.services.quest_configs import get_reward_points
from quest_tracker.services.quest_predicates import (
    count_events_by_sender,
    count_pve_wins,
    count_pvp_wins,
    evaluate_metric,
    has_claimed_island,
    has_owned_player,
)

ALICE = "0xa11ce"
BOB = "0xb0b"
CAROL = "0xca201"


def _sent(address, count, **extra):
    return [dict(suiSender=address, **extra) for _ in range(count)]


class TestRewardTable:
    """Point values granted per quest."""

    @pytest.mark.parametrize("quest_name, points", [
        ("craft_ships", 5),
        ("claim_energy", 3),
        ("battle_pve", 15),
        ("battle_pvp", 20),
        ("sail_distance", 10),
        ("addedToRoster1ShipQuantity", 5),
        ("cutWoodQuantity", 3),
        ("minedOreQuantity", 3),
        ("plantedCottonQuantity", 3),
        ("rosterSailed", 10),
        ("shipOrderArranged", 3),
        ("first4Craft", 10),
        ("firstPveWin", 15),
        ("claimedIsland", 5),
        ("walletCreated", 2),
    ])
    def test_known_quests(self, quest_name, points):
        assert get_reward_points(quest_name) == points

    def test_unknown_quest_is_worth_nothing(self):
        assert get_reward_points("fish_whales") == 0
        assert get_reward_points("") == 0


class TestEventCounters:
    """Per-address counters derived from raw event records."""

    def test_count_events_by_sender(self):
        records = _sent(ALICE, 2) + _sent(BOB, 1) + [{"other": "field"}]
        counts = count_events_by_sender(records)
        assert counts[ALICE] == 2
        assert counts[BOB] == 1
        assert counts[CAROL] == 0

    def test_pve_counts_only_wins(self):
        records = _sent(ALICE, 2, winner=1) + _sent(ALICE, 3, winner=0) + _sent(BOB, 1, winner=1)
        counts = count_pve_wins(records)
        assert counts[ALICE] == 2
        assert counts[BOB] == 1

    def test_pvp_winner_encoding(self):
        """``winner == 1`` credits the initiator, ``winner == 0`` credits the responder."""
        records = [
            {"initiatorSenderAddress": ALICE, "responderSenderAddress": BOB, "winner": 1},
            {"initiatorSenderAddress": CAROL, "responderSenderAddress": ALICE, "winner": 0},
            {"initiatorSenderAddress": ALICE, "responderSenderAddress": CAROL, "winner": 0},
            {"initiatorSenderAddress": BOB, "responderSenderAddress": CAROL, "winner": None},
        ]
        counts = count_pvp_wins(records)
        assert counts[ALICE] == 2
        assert counts[CAROL] == 1
        assert counts[BOB] == 0

    def test_pvp_loss_as_initiator_is_not_a_win(self):
        records = [{"initiatorSenderAddress": ALICE, "responderSenderAddress": BOB, "winner": 0}]
        predicate = DAILY_EVENT_PREDICATES[DailyQuestType.BATTLE_PVP]
        assert predicate.evaluate(records, ALICE) is False
        assert predicate.evaluate(records, BOB) is True


class TestThresholds:
    """Boundary behavior of the event-backed quests."""

    def test_craft_ships_needs_four(self):
        predicate = DAILY_EVENT_PREDICATES[DailyQuestType.CRAFT_SHIPS]
        assert predicate.evaluate(_sent(ALICE, 3), ALICE) is False
        assert predicate.evaluate(_sent(ALICE, 4), ALICE) is True

    def test_battle_pve_needs_three_wins(self):
        predicate = DAILY_EVENT_PREDICATES[DailyQuestType.BATTLE_PVE]
        assert predicate.evaluate(_sent(ALICE, 2, winner=1) + _sent(ALICE, 5, winner=0), ALICE) is False
        assert predicate.evaluate(_sent(ALICE, 3, winner=1), ALICE) is True

    def test_claim_energy_needs_own_event(self):
        predicate = DAILY_EVENT_PREDICATES[DailyQuestType.CLAIM_ENERGY]
        assert predicate.evaluate(_sent(BOB, 1), ALICE) is False
        assert predicate.evaluate(_sent(ALICE, 1), ALICE) is True
        assert predicate.evaluate([], ALICE) is False

    def test_first_pve_win_and_first_4_craft(self):
        pve = MILESTONE_EVENT_PREDICATES[MilestoneQuestType.FIRST_PVE_WIN]
        craft = MILESTONE_EVENT_PREDICATES[MilestoneQuestType.FIRST_4_CRAFT]
        assert pve.evaluate(_sent(ALICE, 1, winner=0), ALICE) is False
        assert pve.evaluate(_sent(ALICE, 1, winner=1), ALICE) is True
        assert craft.evaluate(_sent(ALICE, 3), ALICE) is False
        assert craft.evaluate(_sent(ALICE, 4), ALICE) is True

    def test_verdict_from_shared_counts_matches_own_records(self):
        predicate = DAILY_EVENT_PREDICATES[DailyQuestType.CRAFT_SHIPS]
        records = _sent(ALICE, 4) + _sent(BOB, 2)
        counts = predicate.outcomes(records)
        for address in (ALICE, BOB, CAROL):
            own = [r for r in records if r["suiSender"] == address]
            assert predicate.verdict(counts, address) == predicate.evaluate(own, address)


class TestMetricVerdicts:
    """Precomputed counters and flags from the indexer."""

    @pytest.mark.parametrize("value, target, expected", [
        (4, 4, True),
        (3, 4, False),
        (7, 5, True),
        (0, 5, False),
        (True, True, True),
        (False, True, False),
    ])
    def test_metric_values(self, value, target, expected):
        assert evaluate_metric(value, target) is expected

    @pytest.mark.parametrize("value, target", [
        (1, True),
        ("true", True),
        (None, 5),
        ("5", 5),
        (True, 1),
        ({"count": 5}, 5),
    ])
    def test_malformed_values_yield_no_verdict(self, value, target):
        assert evaluate_metric(value, target) is None


class TestOwnership:
    """Quests derived from the wallet's player entities."""

    def test_wallet_created(self):
        assert has_owned_player([]) is False
        assert has_owned_player([{"name": "Ann"}]) is True

    def test_claimed_island(self):
        assert has_claimed_island([]) is False
        assert has_claimed_island([{"claimedIsland": None}]) is False
        assert has_claimed_island([{"claimedIsland": None}, {"claimedIsland": {"x": 1, "y": 2}}]) is True
