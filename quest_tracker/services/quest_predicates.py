"""Pure quest completion predicates over raw indexer data.

Event records are turned into per-address counters so that the per-subject
and the batched evaluation paths share exactly the same logic: a subject's
verdict is ``counts[address] >= threshold`` in both cases.
"""
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from quest_tracker.services.indexer_client import EventType

SENDER_FIELD = "suiSender"

# Combat results: ``winner`` is 1 when the initiating side (the player in PvE) wins
INITIATOR_WINS = 1
RESPONDER_WINS = 0


def count_events_by_sender(records: Iterable[Dict[str, Any]]) -> Counter:
    """Count events per sending address."""
    counts: Counter = Counter()
    for record in records:
        sender = record.get(SENDER_FIELD)
        if sender:
            counts[sender] += 1
    return counts


def count_pve_wins(records: Iterable[Dict[str, Any]]) -> Counter:
    """Count player-vs-environment battles won by the sending player."""
    counts: Counter = Counter()
    for record in records:
        sender = record.get(SENDER_FIELD)
        if sender and record.get("winner") == INITIATOR_WINS:
            counts[sender] += 1
    return counts


def count_pvp_wins(records: Iterable[Dict[str, Any]]) -> Counter:
    """Count player-vs-player battles won, credited to the winning side's address.

    The initiator wins when ``winner == 1``; the responder wins when ``winner == 0``.
    """
    counts: Counter = Counter()
    for record in records:
        winner = record.get("winner")
        if winner == INITIATOR_WINS:
            address = record.get("initiatorSenderAddress")
        elif winner == RESPONDER_WINS:
            address = record.get("responderSenderAddress")
        else:
            continue
        if address:
            counts[address] += 1
    return counts


@dataclass(frozen=True)
class EventPredicate:
    """Completion rule for quests evaluated from a windowed event stream."""

    event_type: EventType
    count: Callable[[Iterable[Dict[str, Any]]], Counter]
    threshold: int

    def outcomes(self, records: List[Dict[str, Any]]) -> Counter:
        """Derive per-address counts from one indexer response."""
        return self.count(records)

    def verdict(self, counts: Counter, address: str) -> bool:
        return counts.get(address, 0) >= self.threshold

    def evaluate(self, records: List[Dict[str, Any]], address: str) -> bool:
        """Verdict for one subject from its own event records."""
        return self.verdict(self.outcomes(records), address)


def evaluate_metric(value: Any, target: Any) -> Optional[bool]:
    """
    Verdict for a precomputed indexer metric.

    ``target`` is ``True`` for flag metrics and an integer threshold for
    counters. Values of the wrong shape yield no verdict (``None``).
    """
    if target is True:
        if isinstance(value, bool):
            return value
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value >= target


def has_owned_player(players: List[Dict[str, Any]]) -> bool:
    """True when the wallet owns at least one player entity."""
    return len(players) > 0


def has_claimed_island(players: List[Dict[str, Any]]) -> bool:
    """True when any owned player carries an island claim."""
    return any(isinstance(p, dict) and p.get("claimedIsland") is not None for p in players)
