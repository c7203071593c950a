"""Client for the external game-state indexer."""
import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
from aiohttp import ClientTimeout, ClientError

from quest_tracker.config import get_settings
from quest_tracker.utils.datetime_helpers import QuestWindow

logger = logging.getLogger(__name__)


class IndexerClientError(RuntimeError):
    """Raised when the indexer cannot answer a query."""


class EventType(Enum):
    """Contract event streams exposed by the indexer.

    Each value holds the (single subject, batch) endpoint pair.
    """
    SHIP_PRODUCTION = (
        "/contractEvents/getShipProductionCompletedEvents",
        "/contractEvents/batchShipProductionCompletedEvents",
    )
    FAUCET_REQUESTED = (
        "/contractEvents/getFaucetRequestedEvents",
        "/contractEvents/batchFaucetRequestedEvents",
    )
    PLAYER_VS_ENVIRONMENT = (
        "/contractEvents/getPlayerVsEnvironmentEvents",
        "/contractEvents/batchGetPlayerVsEnvironmentEvents",
    )
    PLAYER_VS_PLAYER = (
        "/contractEvents/getPlayerVsPlayerEvents",
        "/contractEvents/batchGetPlayerVsPlayerEvents",
    )

    @property
    def single_endpoint(self) -> str:
        return self.value[0]

    @property
    def batch_endpoint(self) -> str:
        return self.value[1]


class IndexerClient:
    """
    Client for the game-state indexer service.

    Manages HTTP session lifecycle properly to prevent resource leaks.
    Session is created lazily on first use and should be closed on shutdown.
    """

    def __init__(self):
        self.settings = get_settings()
        self.base_url = self.settings.indexer_base_url.rstrip('/')
        self.timeout = ClientTimeout(total=self.settings.indexer_timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - ensure session is closed."""
        await self.close()

    async def _ensure_session(self):
        """Ensure session exists and is not closed."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            logger.debug("Created new aiohttp session for indexer client")

    async def close(self):
        """Close the underlying aiohttp client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed aiohttp session for indexer client")
            self._session = None

    async def _request(self, method: str, endpoint: str, *, params: Optional[dict] = None,
                       payload: Optional[dict] = None) -> Any:
        """Issue a request and return the decoded JSON body.

        Raises:
            IndexerClientError: On timeouts, transport errors, non-200
                responses and undecodable bodies.
        """
        await self._ensure_session()
        url = f"{self.base_url}{endpoint}"

        try:
            async with self._session.request(method, url, params=params, json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.error(f"Indexer API error {response.status} for {endpoint}: {error_text[:200]}")
                    raise IndexerClientError(f"Indexer returned {response.status} for {endpoint}")
                return await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            logger.error(f"Indexer API timeout for {endpoint}")
            raise IndexerClientError(f"Indexer timeout for {endpoint}") from e
        except ClientError as e:
            logger.error(f"Indexer API client error for {endpoint}: {e}")
            raise IndexerClientError(f"Indexer unavailable for {endpoint}: {e}") from e
        except ValueError as e:
            logger.error(f"Indexer API returned malformed JSON for {endpoint}: {e}")
            raise IndexerClientError(f"Malformed indexer response for {endpoint}") from e

    @staticmethod
    def _expect_list(data: Any, endpoint: str) -> List[Dict[str, Any]]:
        if not isinstance(data, list):
            logger.error(f"Unexpected response format from {endpoint}: {type(data)}")
            raise IndexerClientError(f"Expected a list from {endpoint}")
        return data

    async def get_events(self, event_type: EventType, window: QuestWindow, address: str) -> List[Dict[str, Any]]:
        """
        Fetch the events of one sender inside a time window.

        Args:
            event_type: Event stream to query
            window: Time window (sent as epoch milliseconds)
            address: Sender wallet address

        Returns:
            List of raw event records
        """
        params = {
            "startAt": window.start_ms,
            "endedAt": window.end_ms,
            "senderAddress": address,
        }
        data = await self._request("GET", event_type.single_endpoint, params=params)
        return self._expect_list(data, event_type.single_endpoint)

    async def get_events_batch(self, event_type: EventType, window: QuestWindow,
                               addresses: Sequence[str]) -> List[Dict[str, Any]]:
        """
        Fetch the events of many senders inside a time window with one request.

        Args:
            event_type: Event stream to query
            window: Time window (sent as epoch milliseconds)
            addresses: Sender wallet addresses

        Returns:
            List of raw event records for the whole address set
        """
        if not addresses:
            return []
        payload = {
            "startAt": window.start_ms,
            "endAt": window.end_ms,
            "senderAddresses": list(addresses),
        }
        logger.info(f"Fetching {event_type.name} events for {len(addresses)} addresses")
        data = await self._request("POST", event_type.batch_endpoint, payload=payload)
        return self._expect_list(data, event_type.batch_endpoint)

    async def get_quest_metric(self, endpoint: str, address: str) -> Any:
        """Fetch a precomputed quest counter or flag (e.g. ``/quests/cutWoodQuantity``)."""
        return await self._request("GET", endpoint, params={"senderAddress": address})

    async def get_players_by_owner(self, address: str) -> List[Dict[str, Any]]:
        """Fetch the player entities owned by a wallet."""
        data = await self._request("GET", "/Players", params={"owner": address})
        return self._expect_list(data, "/Players")

    async def get_player_name(self, address: str) -> Optional[str]:
        """Return the display name of the first named player owned by ``address``.

        Lookup failures are logged and reported as ``None``.
        """
        try:
            players = await self.get_players_by_owner(address)
        except IndexerClientError as e:
            logger.error(f"Error fetching player name for {address}: {e}")
            return None

        for player in players:
            name = player.get("name") if isinstance(player, dict) else None
            if name:
                return name
        return None

    async def get_whitelist_wallets(self) -> List[str]:
        """Return wallet addresses from the island-claim whitelist.

        Returns an empty list when the registry cannot be read.
        """
        try:
            data = await self._request("GET", "/MapClaimIslandWhitelistItems")
            items = self._expect_list(data, "/MapClaimIslandWhitelistItems")
        except IndexerClientError as e:
            logger.error(f"Error fetching wallets from whitelist: {e}")
            return []

        wallets = []
        for item in items:
            if not isinstance(item, dict):
                continue
            address = item.get("accountAddress")
            if address:
                wallets.append(address)
        return wallets

    async def get_avatars(self) -> List[Dict[str, Any]]:
        """Return ``{"id", "owner"}`` pairs from the NFT avatar registry.

        Returns an empty list when the registry cannot be read.
        """
        try:
            data = await self._request("GET", "/Avatars")
            items = self._expect_list(data, "/Avatars")
        except IndexerClientError as e:
            logger.error(f"Error fetching avatars from NFT registry: {e}")
            return []

        return [
            {"id": str(item["id"]), "owner": item["owner"]}
            for item in items
            if isinstance(item, dict) and item.get("id") is not None and item.get("owner")
        ]

    async def health_check(self) -> bool:
        """
        Check if the indexer is reachable.

        Returns:
            True if the indexer answered, False otherwise
        """
        if not self.base_url:
            return False
        await self._ensure_session()

        try:
            async with self._session.get(f"{self.base_url}/Avatars") as response:
                if response.status == 200:
                    return True
                logger.error(f"Indexer health check failed: {response.status}")
                return False

        except asyncio.TimeoutError:
            logger.error("Indexer health check timeout")
            return False
        except ClientError as e:
            logger.error(f"Indexer health check client error: {e}")
            return False


# Singleton instance
_indexer_client: IndexerClient | None = None


def get_indexer_client() -> IndexerClient:
    """Get singleton indexer client instance."""
    global _indexer_client
    if _indexer_client is None:
        _indexer_client = IndexerClient()
    return _indexer_client
