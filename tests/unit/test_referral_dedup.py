"""
Unit tests for first-touch deduplication.

Tests cover:
- Later registrations of a user are dropped
- Order of kept events is preserved
- Idempotence
"""

from referral_rewards.models import ReferralEvent
from referral_rewards.services.referral_events import remove_duplicates


def event(user: str, referrer: str, timestamp: int) -> ReferralEvent:
    return ReferralEvent(
        user_address=user,
        timestamp=timestamp,
        referrer_id=referrer,
        protocol="beefy",
    )


class TestRemoveDuplicates:
    """Test first-touch attribution."""

    def test_keeps_first_referrer_per_user(self):
        """Later events for a known user are removed."""
        events = [
            event("user1", "referrer1", 1),
            event("user2", "referrer1", 2),
            event("user1", "referrer2", 3),
        ]

        assert remove_duplicates(events) == [
            event("user1", "referrer1", 1),
            event("user2", "referrer1", 2),
        ]

    def test_idempotent(self):
        """Applying twice equals applying once."""
        events = [
            event("user1", "referrer1", 1),
            event("user1", "referrer2", 2),
            event("user3", "referrer2", 3),
            event("user3", "referrer1", 4),
            event("user2", "referrer3", 5),
        ]

        once = remove_duplicates(events)
        assert remove_duplicates(once) == once

    def test_preserves_relative_order(self):
        """Kept events stay in input order."""
        events = [
            event("user3", "referrer1", 1),
            event("user1", "referrer1", 2),
            event("user3", "referrer2", 3),
            event("user2", "referrer1", 4),
        ]

        users = [e.user_address for e in remove_duplicates(events)]
        assert users == ["user3", "user1", "user2"]

    def test_empty_input(self):
        """No events gives no events."""
        assert remove_duplicates([]) == []

    def test_accepts_iterator(self):
        """Works on a one-shot iterator."""
        events = iter([event("user1", "referrer1", 1), event("user1", "referrer1", 2)])
        assert len(remove_duplicates(events)) == 1
