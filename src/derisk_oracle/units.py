from __future__ import annotations

from .errors import ArithmeticOverflow

U8_MAX = 2**8 - 1
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1

USD_DECIMALS = 8
INTERMEDIATE_DECIMALS = 18


def checked_add(a: int, b: int) -> int:
    """Add two u128 values, raising ArithmeticOverflow past U128_MAX."""
    result = a + b
    if result > U128_MAX:
        raise ArithmeticOverflow(f"u128 addition overflow: {a} + {b}")
    return result


def checked_mul(a: int, b: int) -> int:
    """Multiply two u128 values, raising ArithmeticOverflow past U128_MAX."""
    result = a * b
    if result > U128_MAX:
        raise ArithmeticOverflow(f"u128 multiplication overflow: {a} * {b}")
    return result


def _require_u128(name: str, value: int) -> None:
    if not 0 <= value <= U128_MAX:
        raise ValueError(f"{name} must fit in u128, got {value}")


def scale_to_18(value: int, decimals: int) -> int:
    """Scale an integer amount to 18 decimals.

    Args:
        value: Integer amount expressed with ``decimals`` decimal places.
        decimals: Current decimal precision of ``value``.

    Returns:
        The amount scaled to 18-decimal precision.

    Raises:
        ArithmeticOverflow: If scaling up leaves the u128 range.

    Notes:
        - If ``decimals`` < 18, multiplies by 10**(18 - decimals).
        - If ``decimals`` > 18, uses integer division (truncates toward zero).
    """
    if decimals == INTERMEDIATE_DECIMALS:
        return value
    if decimals < INTERMEDIATE_DECIMALS:
        return checked_mul(value, 10 ** (INTERMEDIATE_DECIMALS - decimals))
    return value // (10 ** (decimals - INTERMEDIATE_DECIMALS))


def normalize(amount: int, decimals: int, price_usd_1e8: int) -> int:
    """Convert a native token amount into a USD value scaled by 1e8.

    Args:
        amount: Token amount in native units (u128).
        decimals: Token decimal precision (u8).
        price_usd_1e8: USD price of one whole token, scaled by 1e8 (u128).

    Returns:
        USD value scaled by 1e8.

    Raises:
        ValueError: If an argument is outside its unsigned range.
        ArithmeticOverflow: If an intermediate product leaves the u128 range.
    """
    _require_u128("amount", amount)
    _require_u128("price_usd_1e8", price_usd_1e8)
    if not 0 <= decimals <= U8_MAX:
        raise ValueError(f"decimals must fit in u8, got {decimals}")

    intermediate = scale_to_18(amount, decimals)
    return checked_mul(intermediate, price_usd_1e8) // 10**INTERMEDIATE_DECIMALS


def format_usd(value_1e8: int) -> str:
    """Render a 1e8-scaled USD amount for display (not for arithmetic)."""
    whole, frac = divmod(value_1e8, 10**USD_DECIMALS)
    return f"${whole:,}.{frac // 10**(USD_DECIMALS - 2):02d}"
