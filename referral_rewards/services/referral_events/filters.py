"""
Referral event filters.

Protocols may restrict which referred users count towards a campaign. A
matcher decides per event; filter_events applies it to a batch.
"""

from collections.abc import Awaitable, Callable, Iterable

from referral_rewards.models import FilterParams, ReferralEvent

MatcherFn = Callable[[ReferralEvent, FilterParams | None], Awaitable[bool]]


async def allow_list_matcher(
    event: ReferralEvent,
    filter_params: FilterParams | None = None,
) -> bool:
    """Keep users on the allow list. An empty or missing list keeps everyone."""
    if filter_params is None or not filter_params.allow_list:
        return True
    allowed = {address.lower() for address in filter_params.allow_list}
    return event.user_address.lower() in allowed


async def filter_events(
    events: Iterable[ReferralEvent],
    matcher: MatcherFn,
    filter_params: FilterParams | None = None,
) -> list[ReferralEvent]:
    """
    Keep events accepted by the matcher, preserving order.

    Matchers are awaited one by one; they usually hit RPC endpoints that
    are rate limited.
    """
    kept = []
    for event in events:
        if await matcher(event, filter_params):
            kept.append(event)
    return kept
