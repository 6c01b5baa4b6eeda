"""Supply distribution along a curve: migration price, swap and migration amounts.

Also designs a single-segment constant-product curve from a total supply and
a migration allocation, the way launch UIs produce curve parameters.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, localcontext

from src.constants import (
    MAX_SQRT_PRICE,
    MIN_SQRT_PRICE,
    ONE_Q64,
    SWAP_BUFFER_PERCENTAGE,
)
from src.curve.curve_math import (
    get_delta_amount_base_unsigned,
    get_delta_amount_quote_unsigned,
    get_initial_liquidity_from_delta_base,
    get_initial_liquidity_from_delta_quote,
    get_next_sqrt_price_from_input,
)
from src.exceptions import ConfigurationError, InsufficientCurveLiquidity
from src.models.config import CurvePoint, LockedVesting, TokenSupply
from src.models.enums import MigrationOption
from src.utils.safe_math import Rounding, checked_u64, mul_div_u64, safe_sub


@dataclass(frozen=True)
class MigrationAmount:
    quote_amount: int  # deposited into the market
    fee: int  # withheld migration fee


@dataclass(frozen=True)
class DesignedCurve:
    sqrt_start_price: int
    curve: list[CurvePoint]
    token_supply: TokenSupply | None = None


def get_migration_threshold_price(
    migration_threshold: int, sqrt_start_price: int, curve: Sequence[CurvePoint]
) -> int:
    """Sqrt price reached once exactly `migration_threshold` quote entered the curve."""
    sqrt_price = sqrt_start_price
    amount_left = migration_threshold
    for point in curve:
        max_amount = get_delta_amount_quote_unsigned(
            sqrt_price, point.sqrt_price, point.liquidity, Rounding.UP
        )
        if max_amount > amount_left:
            return get_next_sqrt_price_from_input(
                sqrt_price, point.liquidity, amount_left, False
            )
        amount_left -= max_amount
        sqrt_price = point.sqrt_price
        if amount_left == 0:
            return sqrt_price
    raise InsufficientCurveLiquidity(
        f"curve absorbs only {migration_threshold - amount_left} of "
        f"{migration_threshold} quote"
    )


def get_base_token_for_swap(
    sqrt_start_price: int, sqrt_migration_price: int, curve: Sequence[CurvePoint]
) -> int:
    """Base sold between the start price and `sqrt_migration_price`, rounded up."""
    total = 0
    lower = sqrt_start_price
    for point in curve:
        if point.sqrt_price > sqrt_migration_price:
            total += get_delta_amount_base_unsigned(
                lower, sqrt_migration_price, point.liquidity, Rounding.UP
            )
            break
        total += get_delta_amount_base_unsigned(
            lower, point.sqrt_price, point.liquidity, Rounding.UP
        )
        lower = point.sqrt_price
    return total


def get_migration_base_token(
    quote_amount: int, sqrt_migration_price: int, migration_option: MigrationOption
) -> int:
    """Base deposited next to `quote_amount` at the migration price."""
    if migration_option is MigrationOption.METEORA_DAMM:
        # constant product: base = quote / price
        price = sqrt_migration_price * sqrt_migration_price
        return checked_u64((quote_amount << 128) // price)

    liquidity = get_initial_liquidity_from_delta_quote(
        quote_amount, MIN_SQRT_PRICE, sqrt_migration_price
    )
    return checked_u64(
        get_delta_amount_base_unsigned(
            sqrt_migration_price, MAX_SQRT_PRICE, liquidity, Rounding.UP
        )
    )


def get_migration_quote_amount(
    migration_threshold: int, migration_fee_percentage: int
) -> MigrationAmount:
    quote_amount = mul_div_u64(
        migration_threshold, 100 - migration_fee_percentage, 100, Rounding.UP
    )
    return MigrationAmount(
        quote_amount=quote_amount, fee=safe_sub(migration_threshold, quote_amount)
    )


def get_swap_amount_with_buffer(
    swap_base_amount: int, sqrt_start_price: int, curve: Sequence[CurvePoint]
) -> int:
    """Swap amount plus a 25% buffer, capped by everything the curve can sell."""
    with_buffer = swap_base_amount + swap_base_amount * SWAP_BUFFER_PERCENTAGE // 100
    max_on_curve = get_base_token_for_swap(sqrt_start_price, MAX_SQRT_PRICE, curve)
    return checked_u64(min(with_buffer, max_on_curve))


def get_total_token_supply(
    swap_base_amount: int, migration_base_threshold: int, locked_vesting: LockedVesting
) -> int:
    return checked_u64(
        swap_base_amount + migration_base_threshold + locked_vesting.total_amount
    )


def get_sqrt_price_from_price(price: Decimal) -> int:
    """floor(sqrt(price) * 2^64)."""
    with localcontext() as ctx:
        ctx.prec = 60
        scaled = price.sqrt() * ONE_Q64
        return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def design_curve(
    *,
    total_supply: int,
    migration_percentage: int | Decimal,
    migration_quote_threshold: int,
    migration_option: MigrationOption,
    locked_vesting: LockedVesting | None = None,
    migration_fee_percentage: int = 0,
    fixed_supply: bool = False,
) -> DesignedCurve:
    """Single constant-product segment up to the migration price plus a tail to MAX.

    The migration price is quote_threshold / migration_allocation. The tail
    segment carries whatever supply the first segment leaves unallocated.
    """
    vesting = locked_vesting or LockedVesting()
    migration_amount = int(
        Decimal(total_supply) * Decimal(migration_percentage) / Decimal(100)
    )
    if migration_amount <= 0:
        raise ConfigurationError("migration allocation must be positive")

    quote_amount = get_migration_quote_amount(
        migration_quote_threshold, migration_fee_percentage
    ).quote_amount
    sqrt_migration_price = get_sqrt_price_from_price(
        Decimal(migration_quote_threshold) / Decimal(migration_amount)
    )
    migration_base = get_migration_base_token(
        quote_amount, sqrt_migration_price, migration_option
    )
    # base worth the whole threshold; keeps the first segment's quote depth at the threshold
    threshold_base = get_migration_base_token(
        migration_quote_threshold, sqrt_migration_price, migration_option
    )

    swap_amount = total_supply - migration_base - vesting.total_amount
    if swap_amount <= 0:
        raise ConfigurationError(
            f"supply {total_supply} cannot cover migration {migration_base} "
            f"and vesting {vesting.total_amount}"
        )

    sqrt_start_price = sqrt_migration_price * threshold_base // swap_amount
    if not MIN_SQRT_PRICE <= sqrt_start_price < sqrt_migration_price:
        raise ConfigurationError(
            f"start price {sqrt_start_price} outside [{MIN_SQRT_PRICE}, "
            f"{sqrt_migration_price})"
        )
    liquidity = min(
        get_initial_liquidity_from_delta_base(
            swap_amount, sqrt_migration_price, sqrt_start_price
        ),
        get_initial_liquidity_from_delta_quote(
            migration_quote_threshold, sqrt_start_price, sqrt_migration_price
        ),
    )
    curve = [CurvePoint(sqrt_price=sqrt_migration_price, liquidity=liquidity)]

    swap_base = get_base_token_for_swap(sqrt_start_price, sqrt_migration_price, curve)
    dynamic_supply = get_total_token_supply(swap_base, migration_base, vesting)
    remaining = max(total_supply - dynamic_supply, 0)
    last_liquidity = get_initial_liquidity_from_delta_base(
        remaining, MAX_SQRT_PRICE, sqrt_migration_price
    )
    curve.append(CurvePoint(sqrt_price=MAX_SQRT_PRICE, liquidity=max(last_liquidity, 1)))

    token_supply = None
    if fixed_supply:
        migration_price = get_migration_threshold_price(
            migration_quote_threshold, sqrt_start_price, curve
        )
        swap_base = get_base_token_for_swap(sqrt_start_price, migration_price, curve)
        buffered = get_swap_amount_with_buffer(swap_base, sqrt_start_price, curve)
        min_without = get_total_token_supply(swap_base, migration_base, vesting)
        min_with = get_total_token_supply(buffered, migration_base, vesting)
        pre = max(total_supply, min_with)
        token_supply = TokenSupply(
            pre_migration_token_supply=pre,
            post_migration_token_supply=min(max(total_supply, min_without), pre),
        )

    return DesignedCurve(
        sqrt_start_price=sqrt_start_price, curve=curve, token_supply=token_supply
    )
