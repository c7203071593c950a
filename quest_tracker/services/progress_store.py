"""Progress store: reads, atomic reconciliation and bulk resets over one progress table."""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Type

from sqlalchemy import select, update, func
from sqlalchemy.dialects.postgresql import insert as postgres_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from quest_tracker.models.quest_base import QuestProgressBase
from quest_tracker.utils.model_registry import QuestFamily, SubjectKind, get_progress_model

logger = logging.getLogger(__name__)

# Upper bound on subjects per IN (...) list; asyncpg accepts at most 32767 bind parameters
SUBJECT_CHUNK_SIZE = 1000


class ReconcileOutcome(str, Enum):
    """Result of merging a verdict into stored progress."""
    CREATED = "created"
    COMPLETED = "completed"
    UNCHANGED = "unchanged"


class ProgressStore:
    """Store adapter for one concrete progress model (family x subject kind)."""

    def __init__(self, db: AsyncSession, model: Type[QuestProgressBase]):
        """Initialize the store.

        Args:
            db: Database session
            model: Concrete progress model the store reads and writes
        """
        self.db = db
        self.model = model

    def _insert_statement(self):
        bind = self.db.get_bind()
        dialect_name = (bind.dialect.name if bind is not None else "").lower()
        if "sqlite" in dialect_name:
            return sqlite_insert(self.model)
        return postgres_insert(self.model)

    async def get_record(self, subject: str, quest_name: str) -> Optional[QuestProgressBase]:
        """Get the progress record for a (subject, quest) pair."""
        result = await self.db.execute(
            select(self.model).where(
                self.model.subject == subject,
                self.model.quest_name == quest_name,
            ).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_records(self, subject: str) -> List[QuestProgressBase]:
        """Get every progress record stored for a subject."""
        result = await self.db.execute(
            select(self.model)
            .where(self.model.subject == subject)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def is_completed(self, subject: str, quest_name: str) -> bool:
        record = await self.get_record(subject, quest_name)
        return bool(record and record.completed)

    async def get_completed_subjects(self, quest_name: str, subjects: Iterable[str]) -> Set[str]:
        """Return which of ``subjects`` already completed ``quest_name`` in the current period."""
        subject_list = list(dict.fromkeys(subjects))
        completed: Set[str] = set()
        for start in range(0, len(subject_list), SUBJECT_CHUNK_SIZE):
            chunk = subject_list[start:start + SUBJECT_CHUNK_SIZE]
            result = await self.db.execute(
                select(self.model.subject).where(
                    self.model.quest_name == quest_name,
                    self.model.completed.is_(True),
                    self.model.subject.in_(chunk),
                )
            )
            completed.update(result.scalars().all())
        return completed

    async def get_player_name(self, subject: str) -> Optional[str]:
        """Return a cached display name for the subject, if any record carries one."""
        result = await self.db.execute(
            select(self.model.player_name)
            .where(self.model.subject == subject, self.model.player_name.is_not(None))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def reconcile(
        self,
        subject: str,
        quest_name: str,
        completed: bool,
        points: int,
        player_name: Optional[str] = None,
        *,
        auto_commit: bool = True,
    ) -> ReconcileOutcome:
        """Merge a completion verdict into stored progress.

        A missing record is created with the verdict (and ``points`` when
        completed). A record that is not completed yet flips to completed and
        accumulates ``points``. An already completed record is left untouched.
        The flip and the point grant happen in one conditional UPDATE, so two
        overlapping runs can never both grant the reward.

        Args:
            subject: Wallet address or NFT id
            quest_name: Quest identifier
            completed: Verdict of the quest predicate
            points: Reward granted on the transition to completed
            player_name: Optional display name cached on the record
            auto_commit: Commit on success; otherwise the caller commits

        Returns:
            What happened to the stored record.
        """
        try:
            if completed:
                outcome = await self._complete(subject, quest_name, points, player_name)
            else:
                outcome = await self._ensure_exists(subject, quest_name, player_name)

            if auto_commit:
                await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        if outcome == ReconcileOutcome.CREATED:
            logger.info(
                f"Created new quest progress for {subject} - {quest_name}: "
                f"completed={completed} with {points if completed else 0} points"
            )
        elif outcome == ReconcileOutcome.COMPLETED:
            logger.info(f"Updated quest progress for {subject} - {quest_name}: completed=True with {points} points")
        else:
            logger.debug(f"No update needed for {subject} - {quest_name} ({completed=})")
        return outcome

    async def _complete(self, subject: str, quest_name: str, points: int,
                        player_name: Optional[str]) -> ReconcileOutcome:
        if await self._conditional_complete(subject, quest_name, points, player_name):
            return ReconcileOutcome.COMPLETED

        if await self._insert(subject, quest_name, True, points, player_name):
            return ReconcileOutcome.CREATED

        # The record appeared between the update and the insert
        if await self._conditional_complete(subject, quest_name, points, player_name):
            return ReconcileOutcome.COMPLETED
        return ReconcileOutcome.UNCHANGED

    async def _ensure_exists(self, subject: str, quest_name: str,
                             player_name: Optional[str]) -> ReconcileOutcome:
        if await self._insert(subject, quest_name, False, 0, player_name):
            return ReconcileOutcome.CREATED
        return ReconcileOutcome.UNCHANGED

    async def _conditional_complete(self, subject: str, quest_name: str, points: int,
                                    player_name: Optional[str]) -> bool:
        """Set completed and add points only where the record is not completed yet."""
        values: Dict[Any, Any] = {
            self.model.completed: True,
            self.model.total_reward_points: self.model.total_reward_points + points,
        }
        if player_name:
            values[self.model.player_name] = func.coalesce(self.model.player_name, player_name)

        result = await self.db.execute(
            update(self.model)
            .where(
                self.model.subject == subject,
                self.model.quest_name == quest_name,
                self.model.completed.is_(False),
            )
            .values(values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _insert(self, subject: str, quest_name: str, completed: bool, points: int,
                      player_name: Optional[str]) -> bool:
        """Insert a new record unless one already exists; report whether it was inserted."""
        stmt = self._insert_statement().values({
            self.model.subject: subject,
            self.model.quest_name: quest_name,
            self.model.completed: completed,
            self.model.total_reward_points: points if completed else 0,
            self.model.player_name: player_name,
        })
        stmt = stmt.on_conflict_do_nothing(index_elements=[self.model.subject_column, "quest_name"])
        result = await self.db.execute(stmt)
        return getattr(result, "rowcount", None) == 1

    async def reset_completed(self, *, auto_commit: bool = True) -> int:
        """Clear the completion flag on every record of this table.

        Points and display names are untouched.

        Returns:
            Number of records that were completed before the reset.
        """
        try:
            result = await self.db.execute(
                update(self.model)
                .where(self.model.completed.is_(True))
                .values({self.model.completed: False})
                .execution_options(synchronize_session=False)
            )
            if auto_commit:
                await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return result.rowcount or 0

    async def get_progress_snapshot(self, subject: str, quest_names: List[str]) -> List[Dict[str, Any]]:
        """Project stored progress over a fixed quest list; absent quests read as not completed."""
        records = {record.quest_name: record for record in await self.get_records(subject)}
        snapshot = []
        for quest_name in quest_names:
            record = records.get(quest_name)
            snapshot.append({
                "quest_name": quest_name,
                "completed": bool(record.completed) if record else False,
                "total_reward_points": record.total_reward_points if record else 0,
            })
        return snapshot

    async def get_points_by_subject(self) -> List[Dict[str, Any]]:
        """Sum reward points per subject across this table."""
        result = await self.db.execute(
            select(
                self.model.subject.label("subject"),
                func.sum(self.model.total_reward_points).label("total_reward_points"),
                func.max(self.model.player_name).label("player_name"),
            )
            .group_by(self.model.subject)
            .order_by(self.model.subject)
        )
        return [
            {
                "subject": row.subject,
                "total_reward_points": int(row.total_reward_points or 0),
                "player_name": row.player_name,
            }
            for row in result.all()
        ]


async def reset_daily(db: AsyncSession) -> Dict[str, int]:
    """Clear ``completed_today`` on every record of both daily tables.

    Points, display names and the milestone tables are left alone, so running
    the sweep twice is the same as running it once.

    Returns:
        Number of records reset per table.
    """
    reset_counts: Dict[str, int] = {}
    for subject_kind in SubjectKind:
        model = get_progress_model(QuestFamily.DAILY, subject_kind)
        reset_counts[model.__tablename__] = await ProgressStore(db, model).reset_completed(auto_commit=False)
    await db.commit()

    logger.info(f"Daily quest reset complete: {reset_counts}")
    return reset_counts
