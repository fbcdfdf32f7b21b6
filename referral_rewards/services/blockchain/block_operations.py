"""
Block operations module.

Resolves timestamps to block numbers. The resolver finds the first block
whose timestamp is at or after a given time by binary search over block
headers, with an optional Redis cache in front of it.
"""

from datetime import datetime

import redis.asyncio as redis
from loguru import logger
from web3 import Web3

from referral_rewards.config.constants import (
    BLOCK_CACHE_KEY_PREFIX,
    BLOCK_CACHE_TTL_SECONDS,
    BLOCKCHAIN_EXECUTOR_TIMEOUT,
    BLOCKCHAIN_RPC_TIMEOUT,
)
from referral_rewards.config.protocols import NetworkId
from referral_rewards.config.settings import Settings, settings as default_settings
from referral_rewards.utils.redis_utils import get_redis_client, get_redis_url_masked

from .rpc_wrapper import run_sync


def to_unix_seconds(timestamp: datetime | int) -> int:
    """Convert a datetime (or unix seconds) to integer unix seconds."""
    if isinstance(timestamp, datetime):
        return int(timestamp.timestamp())
    return int(timestamp)


class BlockTimestampResolver:
    """
    Maps timestamps to block numbers.

    Resolved values are immutable on finalized chains, so they are cached
    for a long time when a Redis client is given.
    """

    def __init__(
        self,
        providers: dict[str, Web3] | None = None,
        redis_client: redis.Redis | None = None,
        app_settings: Settings | None = None,
    ) -> None:
        """
        Initialize resolver.

        Args:
            providers: Web3 instances keyed by network id (created lazily
                from settings.rpc_urls when missing)
            redis_client: Optional Redis client for caching
            app_settings: Settings (default: global settings)
        """
        self.settings = app_settings or default_settings
        self.providers: dict[str, Web3] = dict(providers or {})
        self.redis = redis_client

    @classmethod
    def from_settings(
        cls, app_settings: Settings | None = None
    ) -> "BlockTimestampResolver":
        """
        Create a resolver, with a Redis cache when BLOCK_CACHE_ENABLED is set.
        """
        app_settings = app_settings or default_settings
        redis_client = None
        if app_settings.block_cache_enabled:
            redis_client = get_redis_client(app_settings)
            logger.info(
                f"[Blocks] Caching resolved blocks in "
                f"{get_redis_url_masked(app_settings)}"
            )
        return cls(redis_client=redis_client, app_settings=app_settings)

    def get_web3(self, network: NetworkId | str) -> Web3:
        """Get (or create) the Web3 instance for a network."""
        network_id = NetworkId(network).value
        w3 = self.providers.get(network_id)
        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(
                self.settings.get_rpc_url(network_id),
                request_kwargs={'timeout': BLOCKCHAIN_RPC_TIMEOUT}
            ))
            self.providers[network_id] = w3
        return w3

    async def get_first_block_at_or_after(
        self,
        network: NetworkId | str,
        timestamp: datetime | int,
    ) -> int:
        """
        Find the first block with timestamp >= the given timestamp.

        When every existing block is older than the timestamp the next,
        not yet produced block number is returned.

        Args:
            network: Network id
            timestamp: Datetime or unix seconds

        Returns:
            Block number
        """
        network_id = NetworkId(network).value
        target = to_unix_seconds(timestamp)
        cache_key = f"{BLOCK_CACHE_KEY_PREFIX}:{network_id}:{target}"

        if self.redis is not None:
            cached = await self.redis.get(cache_key)
            if cached is not None:
                return int(cached)

        w3 = self.get_web3(network_id)
        block_number = await self._search(w3, network_id, target)

        if self.redis is not None:
            await self.redis.set(
                cache_key, str(block_number), ex=BLOCK_CACHE_TTL_SECONDS
            )

        return block_number

    async def _get_block_timestamp(self, w3: Web3, block_number: int) -> int:
        block = await run_sync(
            lambda: w3.eth.get_block(block_number),
            timeout=BLOCKCHAIN_EXECUTOR_TIMEOUT,
            label=f"get_block({block_number})",
        )
        return int(block["timestamp"])

    async def _search(self, w3: Web3, network_id: str, target: int) -> int:
        latest = await run_sync(
            lambda: w3.eth.block_number,
            timeout=BLOCKCHAIN_EXECUTOR_TIMEOUT,
            label="block_number",
        )

        if await self._get_block_timestamp(w3, latest) < target:
            logger.debug(
                f"[Blocks] {network_id}: timestamp {target} is after "
                f"latest block {latest}"
            )
            return latest + 1

        low, high = 0, latest
        while low < high:
            mid = (low + high) // 2
            if await self._get_block_timestamp(w3, mid) < target:
                low = mid + 1
            else:
                high = mid

        logger.debug(
            f"[Blocks] {network_id}: first block at or after {target} is {low}"
        )
        return low
