"""Constant-liquidity segment math over Q64.64 sqrt prices.

Liquidity L is Q64-scaled, so within one segment:
    Δbase  = L * (√P_upper - √P_lower) / (√P_lower * √P_upper)
    Δquote = L * (√P_upper - √P_lower) >> 128
"""

from __future__ import annotations

from src.constants import RESOLUTION
from src.exceptions import MathOverflowError
from src.utils.safe_math import Rounding, checked_u128, div_round, mul_div

_SHIFT = RESOLUTION * 2


def _ordered(lower: int, upper: int) -> int:
    if lower > upper:
        raise MathOverflowError(f"inverted price range: {lower} > {upper}")
    return upper - lower


def get_delta_amount_base_unsigned(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    delta = _ordered(lower_sqrt_price, upper_sqrt_price)
    if delta == 0 or liquidity == 0:
        return 0
    return mul_div(liquidity, delta, lower_sqrt_price * upper_sqrt_price, rounding)


def get_delta_amount_quote_unsigned(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    delta = _ordered(lower_sqrt_price, upper_sqrt_price)
    return div_round(liquidity * delta, 1 << _SHIFT, rounding)


def get_next_sqrt_price_from_input(
    sqrt_price: int,
    liquidity: int,
    amount_in: int,
    base_for_quote: bool,
) -> int:
    """Price after `amount_in` enters the segment.

    Selling base moves the price down and rounds up so the target is never
    passed. Buying with quote moves it up and rounds down.
    """
    if sqrt_price <= 0 or liquidity <= 0:
        raise MathOverflowError("sqrt price and liquidity must be positive")
    if amount_in == 0:
        return sqrt_price

    if base_for_quote:
        # √P' = √P * L / (L + Δx * √P)
        product = amount_in * sqrt_price
        denominator = liquidity + product
        return checked_u128(mul_div(liquidity, sqrt_price, denominator, Rounding.UP))

    # √P' = √P + Δy / L
    quotient = (amount_in << _SHIFT) // liquidity
    return checked_u128(sqrt_price + quotient)


def get_next_sqrt_price_from_output(
    sqrt_price: int,
    liquidity: int,
    amount_out: int,
    base_for_quote: bool,
) -> int:
    """Price after `amount_out` leaves the segment (exact-out inversion)."""
    if sqrt_price <= 0 or liquidity <= 0:
        raise MathOverflowError("sqrt price and liquidity must be positive")
    if amount_out == 0:
        return sqrt_price

    if base_for_quote:
        # quote leaves: √P' = √P - Δy / L, rounded toward a lower price
        quotient = div_round(amount_out << _SHIFT, liquidity, Rounding.UP)
        if quotient > sqrt_price:
            raise MathOverflowError("quote output exceeds segment depth")
        return sqrt_price - quotient

    # base leaves: √P' = √P * L / (L - Δx * √P)
    product = amount_out * sqrt_price
    if product >= liquidity:
        raise MathOverflowError("base output exceeds segment depth")
    return checked_u128(
        mul_div(liquidity, sqrt_price, liquidity - product, Rounding.DOWN)
    )


def get_initial_liquidity_from_delta_quote(
    quote_amount: int,
    lower_sqrt_price: int,
    upper_sqrt_price: int,
) -> int:
    delta = _ordered(lower_sqrt_price, upper_sqrt_price)
    if delta == 0:
        raise MathOverflowError("empty price range")
    return checked_u128((quote_amount << _SHIFT) // delta)


def get_initial_liquidity_from_delta_base(
    base_amount: int,
    upper_sqrt_price: int,
    lower_sqrt_price: int,
) -> int:
    delta = _ordered(lower_sqrt_price, upper_sqrt_price)
    if delta == 0:
        raise MathOverflowError("empty price range")
    return checked_u128(base_amount * lower_sqrt_price * upper_sqrt_price // delta)
