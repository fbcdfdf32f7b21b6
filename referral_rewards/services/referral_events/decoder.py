"""
Referral event decoder.

Turns one raw registry log into a ReferralEvent. Decoding is strict: a log
that cannot be decoded aborts the run instead of being skipped, a silently
dropped registration would move rewards to the wrong referrer.
"""

from eth_utils import is_hexstr, to_normalized_address

from referral_rewards.config.constants import (
    REFERRAL_EVENT_TOPIC_COUNT,
    REFERRAL_REGISTERED_TOPIC,
)
from referral_rewards.models import RawLog, ReferralEvent
from referral_rewards.utils.exceptions import LogDecodeError

# 32-byte topic: 0x + 64 hex chars
TOPIC_LENGTH = 66
ADDRESS_PADDING = "0" * 24


def topic_to_address(topic: str) -> str:
    """
    Extract a lowercase address from an indexed address topic.

    Raises:
        LogDecodeError: If the topic is not a left-padded 20-byte value
    """
    if not isinstance(topic, str) or len(topic) != TOPIC_LENGTH or not is_hexstr(topic):
        raise LogDecodeError(f"Invalid topic: {topic!r}")
    body = topic[2:].lower()
    if not body.startswith(ADDRESS_PADDING):
        raise LogDecodeError(f"Topic is not an address: {topic}")
    return to_normalized_address("0x" + body[24:])


def decode_referral_log(
    log: RawLog,
    protocol: str,
    registry_id: str | None = None,
) -> ReferralEvent:
    """
    Decode a referral registration log.

    Args:
        log: Raw log from the log source
        protocol: Protocol the log was fetched for
        registry_id: Expected registry identifier in topic2 (optional)

    Returns:
        Decoded ReferralEvent

    Raises:
        LogDecodeError: If the log is not a well-formed registration
    """
    if len(log.topics) != REFERRAL_EVENT_TOPIC_COUNT:
        raise LogDecodeError(
            f"Expected {REFERRAL_EVENT_TOPIC_COUNT} topics, got "
            f"{len(log.topics)} (tx {log.transaction_hash})"
        )

    signature = log.topics[0]
    if not isinstance(signature, str) or signature.lower() != REFERRAL_REGISTERED_TOPIC:
        raise LogDecodeError(
            f"Unexpected event signature {signature} (tx {log.transaction_hash})"
        )

    user_address = topic_to_address(log.topics[1])
    log_registry_id = topic_to_address(log.topics[2])
    referrer_id = topic_to_address(log.topics[3])

    if registry_id is not None and log_registry_id != registry_id.lower():
        raise LogDecodeError(
            f"Log registry {log_registry_id} does not match {registry_id} "
            f"(tx {log.transaction_hash})"
        )

    if log.timestamp < 0:
        raise LogDecodeError(
            f"Invalid block timestamp {log.timestamp} (tx {log.transaction_hash})"
        )

    return ReferralEvent(
        user_address=user_address,
        timestamp=log.timestamp,
        referrer_id=referrer_id,
        protocol=protocol,
    )


def address_to_topic(address: str) -> str:
    """Left-pad a 20-byte address to a 32-byte topic."""
    normalized = to_normalized_address(address)
    return "0x" + ADDRESS_PADDING + normalized[2:]
