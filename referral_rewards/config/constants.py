"""
Application constants.

Centralized constants for referral event ingestion and reward allocation.
"""

# ========================================================================
# LOG SOURCE CONSTANTS
# ========================================================================

# Log source operation timeouts (in seconds)
LOG_PAGE_TIMEOUT = 30.0  # Single page request to the indexing service
BLOCKCHAIN_TIMEOUT = 30.0  # Standard RPC operations (get_block, etc.)
BLOCKCHAIN_EXECUTOR_TIMEOUT = 20.0  # Timeout for run_in_executor operations
BLOCKCHAIN_RPC_TIMEOUT = 30  # RPC provider HTTP timeout

# Retry settings
LOG_PAGE_MAX_RETRIES = 3  # Attempts per page before the run is aborted
LOG_PAGE_RETRY_DELAY_BASE = 1.0  # Base delay in seconds for exponential backoff

# Default lookback when neither a start block nor include_all is given.
# ~7 days of 2s blocks on OP Mainnet.
REFERRAL_LOOKBACK_BLOCKS = 302_400

# ========================================================================
# REFERRAL REGISTRY EVENT
# ========================================================================

# topic0 of the registry's referral registration event.
# Indexed args: topic1 = user, topic2 = registry identifier, topic3 = referrer
REFERRAL_REGISTERED_TOPIC = (
    "0xfddf272d6cdce612f7757626eff4fda5e235d0da62a22cc77ebe3e295b1479d0"
)
REFERRAL_EVENT_TOPIC_COUNT = 4

# ========================================================================
# REWARD MATH CONSTANTS
# ========================================================================

# Significant digits for the reward Decimal context, used only for fractional
# math (square-root weights, fractional pools or caps). Integral amounts and
# KPIs are computed with exact ints. Fractional results beyond 200 digits are
# truncated toward zero.
REWARD_DECIMAL_PRECISION = 200

# Fractional digits kept when taking square roots (rounded toward zero)
SQRT_SCALE = 18

# ========================================================================
# BLOCK CACHE CONSTANTS
# ========================================================================

BLOCK_CACHE_KEY_PREFIX = "block-at-or-after"
BLOCK_CACHE_TTL_SECONDS = 30 * 24 * 60 * 60  # Resolved blocks never change
