"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Settings tuned for fast retries
- Raw referral log factory
- Referrer addresses
"""

import pytest

from referral_rewards.config.constants import REFERRAL_REGISTERED_TOPIC
from referral_rewards.config.settings import Settings
from referral_rewards.models import RawLog

REGISTRY_TOPIC = (
    "0x0000000000000000000000005f0a55fad9424ac99429f635dfb9bf20c3360ab8"
)


def address_topic(address: str) -> str:
    """Pad a 0x address to a 32-byte topic."""
    return "0x" + "0" * 24 + address[2:].lower()


def make_log(
    user: str,
    referrer: str,
    block_number: int,
    timestamp: int,
    tx_hash: str = "0x" + "ab" * 32,
    log_index: int | None = None,
) -> RawLog:
    """Build a raw referral registration log."""
    return RawLog(
        block_number=block_number,
        timestamp=timestamp,
        transaction_hash=tx_hash,
        data="0x",
        topics=(
            REFERRAL_REGISTERED_TOPIC,
            address_topic(user),
            REGISTRY_TOPIC,
            address_topic(referrer),
        ),
        log_index=log_index,
    )


@pytest.fixture
def test_settings():
    """
    Settings with instant retries.

    Returns:
        Settings: Test configuration
    """
    return Settings(
        environment="test",
        log_page_max_retries=2,
        log_page_retry_delay=0,
        log_page_timeout=5,
    )


@pytest.fixture
def referrers():
    """Three well-formed referrer addresses."""
    return [
        "0x7890abcdef1234567890abcdef1234567890abcd",
        "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd",
        "0x1111111111111111111111111111111111111111",
    ]


@pytest.fixture
def log_factory():
    """Factory for raw referral logs."""
    return make_log
