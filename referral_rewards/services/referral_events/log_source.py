"""
Log source.

Fetches pages of raw logs from a HyperSync-style event-indexing service.
One request covers a bounded block range; the response says which block
the next request should start from.
"""

from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp
from loguru import logger

from referral_rewards.config.protocols import NetworkId
from referral_rewards.config.settings import Settings, settings as default_settings
from referral_rewards.models import LogPage, RawLog
from referral_rewards.utils.exceptions import LogDecodeError, LogFetchError


LOG_FIELDS = [
    "block_number",
    "log_index",
    "transaction_hash",
    "data",
    "topic0",
    "topic1",
    "topic2",
    "topic3",
]
BLOCK_FIELDS = ["number", "timestamp"]


class LogSource(Protocol):
    """Anything that can return one page of logs for a block range."""

    async def get_logs(
        self,
        from_block: int,
        to_block: int,
        event_signature: str,
        topic_filters: list[list[str]] | None = None,
    ) -> LogPage:
        ...


def _to_int(value: Any, field_name: str) -> int:
    """Parse an int that may arrive as a JSON number or a 0x hex string."""
    if isinstance(value, bool) or value is None:
        raise LogDecodeError(f"Missing or invalid {field_name}: {value!r}")
    if isinstance(value, int):
        return value
    try:
        if isinstance(value, str) and value.startswith("0x"):
            return int(value, 16)
        return int(value)
    except (TypeError, ValueError):
        raise LogDecodeError(
            f"Missing or invalid {field_name}: {value!r}"
        ) from None


def _as_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise LogDecodeError(f"Expected an object for {what}, got {value!r}")
    return value


def _as_list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise LogDecodeError(f"Expected a list for {what}, got {value!r}")
    return value


def parse_log_page(payload: Mapping[str, Any]) -> LogPage:
    """
    Convert a query response into a LogPage.

    Log order is preserved exactly as returned by the service. Block
    timestamps are joined onto logs by block number.

    Raises:
        LogDecodeError: If the response is malformed
    """
    payload = _as_mapping(payload, "response")
    if "next_block" not in payload:
        raise LogDecodeError("Log source response has no next_block")
    next_block = _to_int(payload["next_block"], "next_block")

    batches = payload.get("data")
    if isinstance(batches, Mapping):
        batches = [batches]

    timestamps: dict[int, int] = {}
    raw_logs: list[Mapping[str, Any]] = []
    for batch in _as_list(batches, "data"):
        batch = _as_mapping(batch, "data batch")
        for block in _as_list(batch.get("blocks"), "blocks"):
            block = _as_mapping(block, "block")
            number = _to_int(block.get("number"), "block.number")
            timestamps[number] = _to_int(block.get("timestamp"), "block.timestamp")
        for entry in _as_list(batch.get("logs"), "logs"):
            raw_logs.append(_as_mapping(entry, "log"))

    logs = []
    for entry in raw_logs:
        block_number = _to_int(entry.get("block_number"), "log.block_number")
        if block_number not in timestamps:
            raise LogDecodeError(
                f"No block timestamp returned for block {block_number}"
            )
        topics = tuple(
            entry[name]
            for name in ("topic0", "topic1", "topic2", "topic3")
            if entry.get(name) is not None
        )
        log_index = entry.get("log_index")
        logs.append(
            RawLog(
                block_number=block_number,
                timestamp=timestamps[block_number],
                transaction_hash=str(entry.get("transaction_hash") or ""),
                data=str(entry.get("data") or "0x"),
                topics=topics,
                log_index=(
                    None if log_index is None
                    else _to_int(log_index, "log.log_index")
                ),
            )
        )

    return LogPage(logs=tuple(logs), next_block=next_block)


class HyperSyncLogSource:
    """
    Log source backed by the HyperSync JSON query API.

    Does not retry; retries and timeouts are applied per page by the
    pipeline.
    """

    def __init__(
        self,
        network: NetworkId | str,
        app_settings: Settings | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize log source.

        Args:
            network: Network to query
            app_settings: Settings (default: global settings)
            session: Optional shared aiohttp session
        """
        self.settings = app_settings or default_settings
        self.network = NetworkId(network)
        self.base_url = self.settings.get_log_source_url(self.network)
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "HyperSyncLogSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def build_query(
        self,
        from_block: int,
        to_block: int,
        event_signature: str,
        topic_filters: list[list[str]] | None = None,
    ) -> dict[str, Any]:
        """Build the JSON query body for a block range."""
        topics = [[event_signature], *(topic_filters or [])]
        return {
            "from_block": from_block,
            "to_block": to_block,
            "logs": [{"topics": topics}],
            "field_selection": {
                "block": BLOCK_FIELDS,
                "log": LOG_FIELDS,
            },
        }

    async def get_logs(
        self,
        from_block: int,
        to_block: int,
        event_signature: str,
        topic_filters: list[list[str]] | None = None,
    ) -> LogPage:
        """
        Fetch one page of logs for [from_block, to_block).

        Raises:
            LogFetchError: On HTTP or service errors
            LogDecodeError: On malformed responses
        """
        session = await self._get_session()
        headers = {"Content-Type": "application/json"}
        if self.settings.hypersync_api_token:
            headers["Authorization"] = f"Bearer {self.settings.hypersync_api_token}"

        query = self.build_query(from_block, to_block, event_signature, topic_filters)
        async with session.post(
            f"{self.base_url}/query",
            json=query,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.settings.log_page_timeout),
        ) as response:
            if response.status != 200:
                body = await response.text()
                raise LogFetchError(
                    f"Log source returned HTTP {response.status}: {body[:200]}",
                    resume_block=from_block,
                )
            try:
                payload = await response.json()
            except ValueError as e:
                raise LogDecodeError(f"Log source returned invalid JSON: {e}") from e

        page = parse_log_page(payload)
        logger.debug(
            f"[LogSource] {self.network.value} {from_block}-{to_block}: "
            f"{len(page.logs)} logs, next_block={page.next_block}"
        )
        return page
