"""Validators for payout addresses and integer token amounts."""
from decimal import Decimal, InvalidOperation

from eth_utils import is_checksum_address, is_hex_address

ADDRESS_LENGTH = 42


def validate_wallet_address(address: str) -> tuple[bool, str | None]:
    """
    Check that a referrer address can receive a payout.

    All-lowercase and all-uppercase hex is accepted as is; mixed case must
    carry a valid EIP-55 checksum.

    Returns:
        (True, None) when valid, otherwise (False, reason)

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("1234")
        (False, 'Address must start with 0x')
    """
    candidate = address.strip() if isinstance(address, str) else ""
    if not candidate:
        return False, "Address is empty"
    if not candidate.startswith("0x"):
        return False, "Address must start with 0x"
    if len(candidate) != ADDRESS_LENGTH:
        return False, "Address must be 42 characters"
    if not is_hex_address(candidate):
        return False, "Invalid address format"

    digits = candidate[2:]
    mixed_case = digits not in (digits.lower(), digits.upper())
    if mixed_case and not is_checksum_address(candidate):
        return False, "Invalid address checksum"
    return True, None


def parse_integer_amount(value: str | int | Decimal) -> int:
    """
    Parse an integral amount given as int, Decimal or decimal string.

    "5" and "5.0" are both 5; "5.5", "abc", NaN and bools are rejected.

    Raises:
        ValueError: If the value is not an integral number
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, int):
        return value
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite() or amount != amount.to_integral_value():
        raise ValueError(f"Amount must be an integer: {value!r}")
    return int(amount)
