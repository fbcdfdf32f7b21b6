"""
Referral event ingestion.

Fetches referral registrations from the registry's logs and reduces them
to first-touch attributions.

Key features:
- Cursor-driven pagination over a resolved block window
- Strict decoding of registry logs
- Per-page timeout and retry, resumable on failure
- First-touch deduplication and allow-list filtering
"""

from .decoder import address_to_topic, decode_referral_log, topic_to_address
from .dedup import remove_duplicates
from .filters import MatcherFn, allow_list_matcher, filter_events
from .log_source import HyperSyncLogSource, LogSource, parse_log_page
from .pipeline import BlockResolver, ReferralEventPipeline

__all__ = [
    "BlockResolver",
    "HyperSyncLogSource",
    "LogSource",
    "MatcherFn",
    "ReferralEventPipeline",
    "address_to_topic",
    "allow_list_matcher",
    "decode_referral_log",
    "filter_events",
    "parse_log_page",
    "remove_duplicates",
    "topic_to_address",
]
