"""
Referral event pipeline.

Drives pagination over the registry's logs for one protocol and decodes
every log in arrival order.
"""

import asyncio
from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from loguru import logger

from referral_rewards.config.constants import REFERRAL_REGISTERED_TOPIC
from referral_rewards.config.protocols import (
    NetworkId,
    ProtocolConfig,
    get_protocol_config,
)
from referral_rewards.config.settings import Settings, settings as default_settings
from referral_rewards.models import LogPage, ReferralEvent
from referral_rewards.services.blockchain.rpc_wrapper import (
    RetryPolicy,
    rpc_call_with_retry,
)
from referral_rewards.utils.exceptions import LogFetchError

from .decoder import address_to_topic, decode_referral_log
from .dedup import remove_duplicates
from .log_source import LogSource


class BlockResolver(Protocol):
    """Maps a timestamp to the first block at or after it."""

    async def get_first_block_at_or_after(
        self,
        network: NetworkId | str,
        timestamp: datetime | int,
    ) -> int:
        ...


class ReferralEventPipeline:
    """
    Fetches the complete, ordered referral registrations of a protocol.

    Pages are fetched strictly one after another, each page's start block
    is the previous page's cursor. A page that keeps failing aborts the run
    with a LogFetchError whose resume_block is the page's start block, so
    a retry does not start over from the beginning.
    """

    def __init__(
        self,
        log_source: LogSource,
        block_resolver: BlockResolver,
        app_settings: Settings | None = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            log_source: Source of log pages for the registry network
            block_resolver: Timestamp to block number resolver
            app_settings: Settings (default: global settings)
        """
        self.log_source = log_source
        self.block_resolver = block_resolver
        self.settings = app_settings or default_settings
        self.network = self.settings.referral_network
        self.retry_policy = RetryPolicy(
            attempts=self.settings.log_page_max_retries,
            timeout=self.settings.log_page_timeout,
            base_delay=self.settings.log_page_retry_delay,
        )

    def resolve_start_block(
        self,
        config: ProtocolConfig,
        end_block: int,
        start_block: int | None = None,
        include_all: bool = False,
    ) -> int:
        """
        Pick the first block to scan.

        Explicit start block wins, then the protocol genesis block when
        include_all is set, otherwise a recent lookback window.
        """
        if start_block is not None:
            return start_block
        if include_all:
            return config.genesis_block
        return max(
            config.genesis_block,
            end_block - self.settings.referral_lookback_blocks,
        )

    async def fetch_referral_events(
        self,
        protocol: str,
        end_timestamp: datetime | int,
        start_block: int | None = None,
        include_all: bool = False,
    ) -> list[ReferralEvent]:
        """
        Fetch all referral events of a protocol before end_timestamp.

        Args:
            protocol: Protocol identifier
            end_timestamp: Exclusive end; events from the first block at or
                after it are not included
            start_block: Explicit first block to scan
            include_all: Scan from the protocol genesis block

        Returns:
            Events in on-chain emission order (duplicates included)

        Raises:
            LogFetchError: If a page could not be fetched
            LogDecodeError: If a log is malformed
        """
        config = get_protocol_config(protocol)
        end_block = await self.block_resolver.get_first_block_at_or_after(
            self.network, end_timestamp
        )
        from_block = self.resolve_start_block(
            config, end_block, start_block, include_all
        )

        logger.info(
            f"[ReferralEvents] {protocol}: scanning blocks "
            f"{from_block} -> {end_block} (exclusive)"
        )

        topic_filters = (
            [[], [address_to_topic(config.registry_id)]]
            if config.registry_id else None
        )
        events: list[ReferralEvent] = []
        pages = 0
        skipped = 0
        current = from_block

        while current < end_block:
            page = await self._fetch_page(
                protocol, current, end_block, topic_filters
            )
            pages += 1

            for log in page.logs:
                # Cursor may overshoot; the boundary is the resolved block
                if log.block_number >= end_block:
                    skipped += 1
                    continue
                events.append(
                    decode_referral_log(log, protocol, config.registry_id)
                )

            if page.next_block >= end_block:
                break
            if page.next_block <= current:
                if page.is_empty:
                    break
                raise LogFetchError(
                    f"Log source cursor did not advance past block {current}",
                    protocol=protocol,
                    resume_block=current,
                )
            current = page.next_block

        if skipped:
            logger.debug(
                f"[ReferralEvents] {protocol}: dropped {skipped} logs "
                f"at or after block {end_block}"
            )
        logger.info(
            f"[ReferralEvents] {protocol}: {len(events)} events "
            f"from {pages} pages"
        )
        return events

    async def fetch_unique_referral_events(
        self,
        protocol: str,
        end_timestamp: datetime | int,
        start_block: int | None = None,
        include_all: bool = False,
    ) -> list[ReferralEvent]:
        """Fetch referral events and keep the first registration per user."""
        events = await self.fetch_referral_events(
            protocol,
            end_timestamp,
            start_block=start_block,
            include_all=include_all,
        )
        unique = remove_duplicates(events)
        logger.info(
            f"[ReferralEvents] {protocol}: {len(unique)} unique users "
            f"({len(events) - len(unique)} duplicates removed)"
        )
        return unique

    async def fetch_for_protocols(
        self,
        protocols: Iterable[str],
        end_timestamp: datetime | int,
        include_all: bool = False,
    ) -> dict[str, list[ReferralEvent]]:
        """
        Fetch deduplicated events for several protocols concurrently.

        Dedup runs per protocol. The first failing protocol fails the call
        and cancels the fetches still in flight.
        """
        names = list(protocols)
        tasks = [
            asyncio.create_task(
                self.fetch_unique_referral_events(
                    name, end_timestamp, include_all=include_all
                ),
                name=f"referral-events:{name}",
            )
            for name in names
        ]
        try:
            results = await asyncio.gather(*tasks)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                logger.warning(
                    f"[ReferralEvents] Cancelled {len(pending)} protocol "
                    f"fetches after a failure"
                )
        return dict(zip(names, results))

    async def _fetch_page(
        self,
        protocol: str,
        from_block: int,
        to_block: int,
        topic_filters: list[list[str]] | None,
    ) -> LogPage:
        try:
            return await rpc_call_with_retry(
                lambda: self.log_source.get_logs(
                    from_block=from_block,
                    to_block=to_block,
                    event_signature=REFERRAL_REGISTERED_TOPIC,
                    topic_filters=topic_filters,
                ),
                policy=self.retry_policy,
                label=f"[ReferralEvents] {protocol} page @{from_block}",
            )
        except LogFetchError as e:
            raise LogFetchError(
                f"Fetching {protocol} referral events failed at block "
                f"{from_block}: {e}",
                protocol=protocol,
                resume_block=from_block,
            ) from e
