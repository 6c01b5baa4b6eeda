"""Validate partner parameters and derive the immutable PoolConfig."""

from __future__ import annotations

from loguru import logger

from src.constants import (
    MAX_CREATOR_MIGRATION_FEE_PERCENTAGE,
    MAX_CURVE_POINT,
    MAX_MIGRATION_FEE_PERCENTAGE,
    MAX_SQRT_PRICE,
    MAX_TOKEN_DECIMALS,
    MIN_SQRT_PRICE,
    MIN_TOKEN_DECIMALS,
)
from src.curve.distribution import (
    get_base_token_for_swap,
    get_migration_base_token,
    get_migration_quote_amount,
    get_migration_threshold_price,
    get_swap_amount_with_buffer,
    get_total_token_supply,
)
from src.exceptions import ConfigurationError, EngineError
from src.fees.fee_engine import validate_pool_fees
from src.migration.vesting import validate_vesting
from src.models.config import ConfigParameters, PoolConfig
from src.utils.safe_math import checked_u64


def validate_curve(params: ConfigParameters) -> None:
    start = params.sqrt_start_price
    curve = params.curve
    if not MIN_SQRT_PRICE <= start < MAX_SQRT_PRICE:
        raise ConfigurationError(f"start price {start} out of range")
    if not 0 < len(curve) <= MAX_CURVE_POINT:
        raise ConfigurationError(f"curve needs 1..{MAX_CURVE_POINT} points, got {len(curve)}")

    first = curve[0]
    if first.sqrt_price <= start or first.liquidity == 0 or first.sqrt_price > MAX_SQRT_PRICE:
        raise ConfigurationError("first curve point must sit above the start price")
    for prev, point in zip(curve, curve[1:]):
        if point.sqrt_price <= prev.sqrt_price or point.liquidity == 0:
            raise ConfigurationError(
                f"curve not monotonic at sqrt price {point.sqrt_price}"
            )
    if curve[-1].sqrt_price != MAX_SQRT_PRICE:
        raise ConfigurationError("last curve point must be MAX_SQRT_PRICE")


def validate_parameters(params: ConfigParameters) -> None:
    validate_pool_fees(params.pool_fees, params.collect_fee_mode, params.activation_type)

    if not MIN_TOKEN_DECIMALS <= params.token_decimal <= MAX_TOKEN_DECIMALS:
        raise ConfigurationError(f"token decimal {params.token_decimal} unsupported")

    lp_sum = (
        params.partner_lp_percentage
        + params.partner_locked_lp_percentage
        + params.creator_lp_percentage
        + params.creator_locked_lp_percentage
    )
    if lp_sum != 100:
        raise ConfigurationError(f"LP percentages sum to {lp_sum}, expected 100")
    if not 0 <= params.creator_trading_fee_percentage <= 100:
        raise ConfigurationError("creator trading fee percentage must be within 0..100")

    if params.migration_quote_threshold <= 0:
        raise ConfigurationError("migration quote threshold must be positive")

    validate_vesting(params.locked_vesting)

    fee = params.migration_fee
    if fee.fee_percentage > MAX_MIGRATION_FEE_PERCENTAGE:
        raise ConfigurationError(f"migration fee {fee.fee_percentage}% too high")
    if fee.creator_fee_percentage > MAX_CREATOR_MIGRATION_FEE_PERCENTAGE:
        raise ConfigurationError(f"creator migration fee {fee.creator_fee_percentage}% too high")

    validate_curve(params)


def create_config(params: ConfigParameters) -> PoolConfig:
    """Validate and derive supply bookkeeping. Raises ConfigurationError."""
    validate_parameters(params)

    curve = tuple(params.curve)
    start = params.sqrt_start_price
    try:
        migration_sqrt_price = get_migration_threshold_price(
            params.migration_quote_threshold, start, curve
        )
        swap_base_amount = checked_u64(
            get_base_token_for_swap(start, migration_sqrt_price, curve)
        )
        swap_with_buffer = get_swap_amount_with_buffer(swap_base_amount, start, curve)
        quote_amount = get_migration_quote_amount(
            params.migration_quote_threshold, params.migration_fee.fee_percentage
        ).quote_amount
        migration_base_threshold = get_migration_base_token(
            quote_amount, migration_sqrt_price, params.migration_option
        )
        min_with_buffer = get_total_token_supply(
            swap_with_buffer, migration_base_threshold, params.locked_vesting
        )
        min_without_buffer = get_total_token_supply(
            swap_base_amount, migration_base_threshold, params.locked_vesting
        )
    except ConfigurationError:
        raise
    except EngineError as e:
        raise ConfigurationError(f"curve cannot be distributed: {e}") from e

    fixed = params.token_supply is not None
    pre = post = 0
    if params.token_supply is not None:
        pre = params.token_supply.pre_migration_token_supply
        post = params.token_supply.post_migration_token_supply
        if not params.leftover_receiver:
            raise ConfigurationError("fixed supply needs a leftover receiver")
        if not (min_without_buffer <= post <= pre and min_with_buffer <= pre):
            raise ConfigurationError(
                f"token supply pre={pre} post={post} does not cover "
                f"min={min_without_buffer} buffered={min_with_buffer}"
            )

    config = PoolConfig(
        **params.model_dump(exclude={"curve", "token_supply"}),
        curve=curve,
        migration_sqrt_price=migration_sqrt_price,
        swap_base_amount=swap_base_amount,
        migration_base_threshold=migration_base_threshold,
        fixed_token_supply=fixed,
        pre_migration_token_supply=pre,
        post_migration_token_supply=post,
        initial_base_supply=pre if fixed else min_with_buffer,
    )
    logger.info(
        f"[CURVE] Config created: partner={config.partner} "
        f"threshold={config.migration_quote_threshold} "
        f"swap_base={swap_base_amount} migration_base={migration_base_threshold} "
        f"supply={config.initial_base_supply} fixed={fixed}"
    )
    return config
