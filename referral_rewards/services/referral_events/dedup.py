"""
Referral event deduplication.

First-touch attribution: a user stays credited to the referrer of the first
registration observed for them.
"""

from collections.abc import Iterable

from referral_rewards.models import ReferralEvent


def remove_duplicates(events: Iterable[ReferralEvent]) -> list[ReferralEvent]:
    """
    Keep only the first event per user address.

    Events must be in on-chain emission order. The relative order of kept
    events is preserved. Applying it twice gives the same result as once.

    Args:
        events: Ordered referral events of a single protocol

    Returns:
        Events with later registrations of already-seen users removed
    """
    seen: set[str] = set()
    unique: list[ReferralEvent] = []
    for event in events:
        if event.user_address in seen:
            continue
        seen.add(event.user_address)
        unique.append(event)
    return unique
