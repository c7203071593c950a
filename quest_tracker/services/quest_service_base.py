"""Base quest service with common evaluation functionality."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from quest_tracker.config import get_settings
from quest_tracker.models.quest_base import QuestProgressBase
from quest_tracker.services.indexer_client import IndexerClient, IndexerClientError
from quest_tracker.services.progress_store import ProgressStore, ReconcileOutcome
from quest_tracker.services.quest_configs import get_reward_points
from quest_tracker.services.quest_predicates import EventPredicate
from quest_tracker.utils.datetime_helpers import QuestWindow
from quest_tracker.utils.model_registry import QuestFamily, SubjectKind, get_progress_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CohortMember:
    """One tracked subject and the wallet address the indexer knows it by."""

    subject: str
    address: str
    display_name: Optional[str] = None

    @classmethod
    def for_wallet(cls, wallet: str, display_name: Optional[str] = None) -> "CohortMember":
        return cls(subject=wallet, address=wallet, display_name=display_name)


@dataclass
class EvaluationSummary:
    """Counters collected over one cohort evaluation run."""

    family: QuestFamily
    subject_kind: SubjectKind
    created: int = 0
    completed: int = 0
    unchanged: int = 0
    already_completed: int = 0
    skipped: int = 0
    failed: int = 0
    skipped_quests: List[str] = field(default_factory=list)

    def record(self, outcome: ReconcileOutcome) -> None:
        if outcome == ReconcileOutcome.CREATED:
            self.created += 1
        elif outcome == ReconcileOutcome.COMPLETED:
            self.completed += 1
        else:
            self.unchanged += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family.value,
            "subject_kind": self.subject_kind.value,
            "created": self.created,
            "completed": self.completed,
            "unchanged": self.unchanged,
            "already_completed": self.already_completed,
            "skipped": self.skipped,
            "failed": self.failed,
            "skipped_quests": list(self.skipped_quests),
        }


class QuestServiceBase(ABC):
    """Base service evaluating one quest family for one subject kind."""

    def __init__(
        self,
        db: AsyncSession,
        indexer: IndexerClient,
        subject_kind: SubjectKind = SubjectKind.WALLET,
        *,
        now: Optional[datetime] = None,
    ):
        """Initialize quest service.

        Args:
            db: Database session
            indexer: Client used to read game state
            subject_kind: Whether progress is keyed by wallet or NFT id
            now: Evaluation instant; defaults to the current time
        """
        self.db = db
        self.indexer = indexer
        self.subject_kind = subject_kind
        self.settings = get_settings()
        self.now = now or datetime.now(UTC)
        self.store = ProgressStore(db, self.progress_model)

    @property
    @abstractmethod
    def family(self) -> QuestFamily:
        """Return the quest family this service evaluates."""
        pass

    @property
    @abstractmethod
    def quest_configs(self) -> Dict[Any, Dict[str, Any]]:
        """Return the quest configuration mapping for this family."""
        pass

    @property
    @abstractmethod
    def event_predicates(self) -> Dict[Any, EventPredicate]:
        """Return the quests evaluated from windowed event streams."""
        pass

    @property
    @abstractmethod
    def window(self) -> QuestWindow:
        """Return the event window for the current evaluation instant."""
        pass

    @property
    def progress_model(self) -> Type[QuestProgressBase]:
        return get_progress_model(self.family, self.subject_kind)

    @property
    def quest_names(self) -> List[str]:
        """Quest names of this family in display order."""
        return [quest_type.value for quest_type in self.quest_configs]

    async def _fetch_custom_verdict(self, quest_type: Any, address: str) -> Optional[bool]:
        """Evaluate a quest that is not backed by an event stream."""
        raise ValueError(f"No evaluator configured for {quest_type=}")

    async def get_verdict(self, quest_type: Any, address: str) -> Optional[bool]:
        """
        Evaluate one quest for one address with per-subject indexer calls.

        Raises:
            IndexerClientError: When the indexer cannot answer.
        """
        predicate = self.event_predicates.get(quest_type)
        if predicate is None:
            return await self._fetch_custom_verdict(quest_type, address)
        records = await self.indexer.get_events(predicate.event_type, self.window, address)
        return predicate.evaluate(records, address)

    async def _get_verdict_or_none(self, quest_type: Any, address: str) -> Optional[bool]:
        try:
            return await self.get_verdict(quest_type, address)
        except IndexerClientError as e:
            logger.error(f"Error checking {quest_type.value} quest for {address}: {e}")
            return None

    async def get_batch_verdicts(self, quest_type: Any, members: Sequence[CohortMember]) -> Dict[str, Optional[bool]]:
        """
        Evaluate one quest for many subjects.

        Event-backed quests use a single batched indexer call for the whole
        address list. Other quests fall back to one call per member, where a
        failure only drops that member's verdict.

        Returns:
            Verdict per subject (``None`` when no verdict could be reached)

        Raises:
            IndexerClientError: When the batched event query fails.
        """
        predicate = self.event_predicates.get(quest_type)
        if predicate is None:
            verdicts: Dict[str, Optional[bool]] = {}
            for member in members:
                verdicts[member.subject] = await self._get_verdict_or_none(quest_type, member.address)
            return verdicts

        addresses = list(dict.fromkeys(member.address for member in members))
        records = await self.indexer.get_events_batch(predicate.event_type, self.window, addresses)
        counts = predicate.outcomes(records)
        return {member.subject: predicate.verdict(counts, member.address) for member in members}

    async def evaluate_cohort(
        self,
        cohort: Sequence[CohortMember],
        quest_types: Optional[Iterable[Any]] = None,
    ) -> EvaluationSummary:
        """
        Evaluate quests for a whole cohort and reconcile the verdicts.

        Quest types run one after another. Subjects that already completed a
        quest are skipped without asking the indexer. An indexer failure skips
        the affected quest type; a store failure skips the affected subject.

        Args:
            cohort: Subjects to evaluate
            quest_types: Restrict the run to these quests (default: all)

        Returns:
            Summary of the reconciliation outcomes
        """
        summary = EvaluationSummary(family=self.family, subject_kind=self.subject_kind)
        if not cohort:
            logger.info(f"No {self.subject_kind.value} subjects to evaluate for {self.family.value} quests")
            return summary

        selected = list(quest_types) if quest_types is not None else list(self.quest_configs)
        subjects = [member.subject for member in cohort]

        for quest_type in selected:
            quest_name = quest_type.value
            points = get_reward_points(quest_name)

            try:
                completed_subjects = await self.store.get_completed_subjects(quest_name, subjects)
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Failed to load completed subjects for {quest_name}: {e}")
                summary.skipped_quests.append(quest_name)
                continue

            pending = [member for member in cohort if member.subject not in completed_subjects]
            summary.already_completed += len(cohort) - len(pending)
            if not pending:
                logger.info(f"Quest '{quest_name}' already completed for every subject in the cohort")
                continue

            try:
                verdicts = await self.get_batch_verdicts(quest_type, pending)
            except IndexerClientError as e:
                logger.error(f"Skipping quest '{quest_name}' for this run: {e}")
                summary.skipped_quests.append(quest_name)
                summary.skipped += len(pending)
                continue

            for member in pending:
                await self._reconcile_member(member, quest_name, verdicts.get(member.subject), points, summary)

        logger.info(
            f"Evaluated {self.family.value} quests for {len(cohort)} {self.subject_kind.value} subjects: "
            f"{summary.to_dict()}"
        )
        return summary

    async def _reconcile_member(
        self,
        member: CohortMember,
        quest_name: str,
        verdict: Optional[bool],
        points: int,
        summary: EvaluationSummary,
    ) -> None:
        if verdict is None:
            summary.skipped += 1
            return
        try:
            outcome = await self.store.reconcile(member.subject, quest_name, verdict, points, member.display_name)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store {quest_name} progress for {member.subject}: {e}")
            summary.failed += 1
            return
        summary.record(outcome)

    async def evaluate_subject(self, member: CohortMember) -> Dict[str, Optional[ReconcileOutcome]]:
        """
        Evaluate every quest of this family for one subject.

        Quests already completed are not re-checked. Indexer failures leave the
        quest unevaluated; store failures propagate to the caller.

        Returns:
            Reconciliation outcome per quest name (``None`` when skipped)
        """
        records = {record.quest_name: record for record in await self.store.get_records(member.subject)}
        outcomes: Dict[str, Optional[ReconcileOutcome]] = {}

        for quest_type in self.quest_configs:
            quest_name = quest_type.value
            record = records.get(quest_name)
            if record is not None and record.completed:
                logger.info(f"Quest '{quest_name}' already completed for {member.subject}")
                outcomes[quest_name] = ReconcileOutcome.UNCHANGED
                continue

            verdict = await self._get_verdict_or_none(quest_type, member.address)
            if verdict is None:
                outcomes[quest_name] = None
                continue

            outcomes[quest_name] = await self.store.reconcile(
                member.subject, quest_name, verdict, get_reward_points(quest_name), member.display_name
            )
        return outcomes

    async def resolve_display_name(self, member: CohortMember) -> Optional[str]:
        """Display name cached on stored progress, else looked up at the indexer."""
        if member.display_name:
            return member.display_name
        stored = await self.store.get_player_name(member.subject)
        if stored:
            return stored
        return await self.indexer.get_player_name(member.address)

    async def get_progress_snapshot(self, subject: str) -> List[Dict[str, Any]]:
        """Stored progress for a subject over this family's quest list."""
        return await self.store.get_progress_snapshot(subject, self.quest_names)
