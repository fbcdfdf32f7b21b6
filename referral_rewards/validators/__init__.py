"""
Validators package.

Provides validation for payout addresses and integer amounts.
"""

from referral_rewards.validators.unified import (
    parse_integer_amount,
    validate_wallet_address,
)


__all__ = [
    "parse_integer_amount",
    "validate_wallet_address",
]
