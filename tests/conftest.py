"""Pytest configuration and fixtures."""
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

import pytest
from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Ensure the application uses a dedicated SQLite database during tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
# No real indexer and no background schedulers during tests
os.environ["INDEXER_BASE_URL"] = ""
os.environ["EVALUATION_ENABLED"] = "false"
os.environ["DAILY_RESET_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

from quest_tracker.config import get_settings
from quest_tracker.services.indexer_client import EventType, IndexerClientError
from quest_tracker.utils.datetime_helpers import QuestWindow


BASE_DIR = Path(__file__).resolve().parent.parent
TEST_DB_PATH = BASE_DIR / "test.db"
settings = get_settings()


@pytest.fixture(scope="session", autouse=True)
def apply_migrations():
    """Apply database migrations against the test database."""
    # Clean up any existing test database
    if TEST_DB_PATH.exists():
        try:
            TEST_DB_PATH.unlink()
        except PermissionError:
            pass  # Continue anyway, migrations will handle it

    alembic_cfg = AlembicConfig(str(BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(alembic_cfg, "head")

    yield

    # Clean up test database after all tests
    if TEST_DB_PATH.exists():
        try:
            TEST_DB_PATH.unlink()
        except PermissionError:
            # On Windows, database might still be in use
            pass


@pytest.fixture
async def test_engine():
    """Create test database engine using the same database as migrations."""
    engine = create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
    )

    yield engine

    # Properly dispose of the engine to close all connections
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        # Ensure transaction is rolled back and session is closed
        await session.rollback()
        await session.close()


def _involves(record: Dict[str, Any], addresses: Set[str]) -> bool:
    return any(
        record.get(field) in addresses
        for field in ("suiSender", "initiatorSenderAddress", "responderSenderAddress")
    )


def _in_window(record: Dict[str, Any], window: QuestWindow) -> bool:
    """Records without a timestamp are treated as inside every window."""
    timestamp = record.get("timestampMs")
    return timestamp is None or window.start_ms <= timestamp <= window.end_ms


class FakeIndexerClient:
    """In-memory stand-in for ``IndexerClient``.

    Event records are stored per event type and filtered by the addresses
    they involve, the same way the real indexer scopes its responses.
    Failures can be injected per event type or per endpoint.
    """

    def __init__(self):
        self.events: Dict[EventType, List[Dict[str, Any]]] = {event_type: [] for event_type in EventType}
        self.metrics: Dict[Tuple[str, str], Any] = {}
        self.players: Dict[str, List[Dict[str, Any]]] = {}
        self.whitelist: List[str] = []
        self.avatars: List[Dict[str, Any]] = []
        self.failing: Set[Any] = set()
        # (method, key, argument, window); window is None for non-event calls
        self.calls: List[Tuple[str, Any, Any, Optional[QuestWindow]]] = []

    def add_event(self, event_type: EventType, **record):
        self.events[event_type].append(record)

    def _check(self, key: Any) -> None:
        if key in self.failing:
            raise IndexerClientError(f"Injected failure for {key}")

    def count_calls(self, method: str, key: Any = None) -> int:
        return sum(1 for name, k, *_ in self.calls if name == method and (key is None or k == key))

    async def get_events(self, event_type: EventType, window: QuestWindow, address: str):
        self.calls.append(("get_events", event_type, address, window))
        self._check(event_type)
        return [
            record for record in self.events[event_type]
            if _involves(record, {address}) and _in_window(record, window)
        ]

    async def get_events_batch(self, event_type: EventType, window: QuestWindow, addresses: Sequence[str]):
        self.calls.append(("get_events_batch", event_type, list(addresses), window))
        self._check(event_type)
        wanted = set(addresses)
        return [
            record for record in self.events[event_type]
            if _involves(record, wanted) and _in_window(record, window)
        ]

    async def get_quest_metric(self, endpoint: str, address: str):
        self.calls.append(("get_quest_metric", endpoint, address, None))
        self._check(endpoint)
        return self.metrics.get((endpoint, address), 0)

    async def get_players_by_owner(self, address: str):
        self.calls.append(("get_players_by_owner", "/Players", address, None))
        self._check("/Players")
        return self.players.get(address, [])

    async def get_player_name(self, address: str) -> Optional[str]:
        try:
            players = await self.get_players_by_owner(address)
        except IndexerClientError:
            return None
        for player in players:
            if player.get("name"):
                return player["name"]
        return None

    async def get_whitelist_wallets(self) -> List[str]:
        self.calls.append(("get_whitelist_wallets", None, None, None))
        return list(self.whitelist)

    async def get_avatars(self) -> List[Dict[str, Any]]:
        self.calls.append(("get_avatars", None, None, None))
        return list(self.avatars)

    async def health_check(self) -> bool:
        return True

    async def close(self):
        pass


@pytest.fixture
def fake_indexer():
    """Fresh in-memory indexer per test."""
    return FakeIndexerClient()


@pytest.fixture
def wallet_factory():
    """Factory for unique wallet addresses so tests never share records."""

    def _create_wallet() -> str:
        return f"0x{uuid.uuid4().hex}"

    return _create_wallet


@pytest.fixture
def nft_factory():
    """Factory for unique NFT ids."""

    def _create_nft_id() -> str:
        return f"nft-{uuid.uuid4().hex[:12]}"

    return _create_nft_id


@pytest.fixture
async def test_app(session_factory, fake_indexer):
    """Create test app with database and indexer overrides."""
    from quest_tracker.main import app
    from quest_tracker.database import get_db
    from quest_tracker.routers.quests import get_indexer

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_indexer] = lambda: fake_indexer
    yield app
    app.dependency_overrides.clear()
