"""
Unit tests for referral log decoding.

Tests cover:
- Topic to address extraction
- Successful decoding
- Fail-fast on malformed logs
"""

from dataclasses import replace

import pytest

from referral_rewards.services.referral_events import (
    address_to_topic,
    decode_referral_log,
    topic_to_address,
)
from referral_rewards.utils.exceptions import LogDecodeError

USER = "0x1234567890abcdef1234567890abcdef12345678"
REFERRER = "0x7890abcdef1234567890abcdef1234567890abcd"
REGISTRY = "0x5f0a55fad9424ac99429f635dfb9bf20c3360ab8"


class TestTopicToAddress:
    """Test address extraction from topics."""

    def test_extracts_lowercase_address(self):
        """Padded topic yields the lowercase address."""
        topic = "0x000000000000000000000000ABCDEFabcdefABCDEFabcdefABCDEFabcdefABCD"
        assert topic_to_address(topic) == "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"

    def test_round_trip_with_address_to_topic(self):
        """address_to_topic pads what topic_to_address strips."""
        assert topic_to_address(address_to_topic(USER)) == USER

    def test_rejects_short_topic(self):
        """Topics must be 32 bytes."""
        with pytest.raises(LogDecodeError):
            topic_to_address("0x1234")

    def test_rejects_non_address_topic(self):
        """Upper 12 bytes must be zero."""
        topic = "0x" + "ff" * 32
        with pytest.raises(LogDecodeError):
            topic_to_address(topic)

    def test_rejects_non_hex(self):
        """Non-hex characters are rejected."""
        topic = "0x" + "0" * 24 + "zz" * 20
        with pytest.raises(LogDecodeError):
            topic_to_address(topic)


class TestDecodeReferralLog:
    """Test decoding raw logs into events."""

    def test_decodes_user_referrer_and_timestamp(self, log_factory):
        """topic1 is the user, topic3 the referrer."""
        log = log_factory(USER, REFERRER, block_number=135226237, timestamp=1746051251)

        event = decode_referral_log(log, "celo-transactions")

        assert event.user_address == USER
        assert event.referrer_id == REFERRER
        assert event.timestamp == 1746051251
        assert event.protocol == "celo-transactions"

    def test_as_dict_uses_camel_case(self, log_factory):
        """Serialized events match the external format."""
        log = log_factory(USER, REFERRER, block_number=1, timestamp=2)

        assert decode_referral_log(log, "beefy").as_dict() == {
            "userAddress": USER,
            "timestamp": 2,
            "referrerId": REFERRER,
            "protocol": "beefy",
        }

    def test_wrong_topic_count_fails(self, log_factory):
        """A log without all indexed args is malformed."""
        log = log_factory(USER, REFERRER, block_number=1, timestamp=2)
        log = replace(log, topics=log.topics[:3])

        with pytest.raises(LogDecodeError):
            decode_referral_log(log, "beefy")

    def test_wrong_signature_fails(self, log_factory):
        """Logs of other events are rejected."""
        log = log_factory(USER, REFERRER, block_number=1, timestamp=2)
        log = replace(log, topics=("0x" + "00" * 32,) + log.topics[1:])

        with pytest.raises(LogDecodeError):
            decode_referral_log(log, "beefy")

    def test_registry_id_checked_when_given(self, log_factory):
        """topic2 must match the expected registry."""
        log = log_factory(USER, REFERRER, block_number=1, timestamp=2)

        assert decode_referral_log(log, "beefy", registry_id=REGISTRY.upper().replace("0X", "0x"))
        with pytest.raises(LogDecodeError):
            decode_referral_log(log, "beefy", registry_id=REFERRER)

    def test_negative_timestamp_fails(self, log_factory):
        """Block timestamps cannot be negative."""
        log = log_factory(USER, REFERRER, block_number=1, timestamp=-1)

        with pytest.raises(LogDecodeError):
            decode_referral_log(log, "beefy")
