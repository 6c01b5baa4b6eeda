"""Swap executor: walks curve segments and settles fees into pool state.

Buying (quote -> base) walks the sqrt price up, selling walks it down.
Required inputs round up and delivered outputs round down. Every entry point
computes on a deep copy of the pool and commits only when the whole
operation succeeded.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from loguru import logger

from src.constants import MAX_SQRT_PRICE, MAX_SWALLOW_PERCENTAGE
from src.curve.curve_math import (
    get_delta_amount_base_unsigned,
    get_delta_amount_quote_unsigned,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)
from src.exceptions import (
    InsufficientCurveLiquidity,
    InsufficientLiquidityForMigration,
    InvalidSwapError,
    RateLimiterBatchViolation,
    SlippageExceeded,
)
from src.fees.dynamic_fee import update_post_swap, update_references
from src.fees.fee_engine import (
    FeeMode,
    get_base_fee_handler,
    get_fee_mode,
    get_fee_on_amount,
    get_included_fee_amount,
    get_total_fee_numerator,
    split_partner_and_creator_fee,
)
from src.models.config import PoolConfig
from src.models.enums import MigrationProgress, SwapMode, TokenSide, TradeDirection
from src.models.pool import PoolState
from src.utils.safe_math import Rounding, checked_u64, mul_div_u64, safe_sub


@dataclass(frozen=True)
class SwapRequest:
    """One swap. amount_0/amount_1 meaning depends on mode:

    exact_in, partial_fill: (amount_in, minimum_amount_out)
    exact_out:              (amount_out, maximum_amount_in)
    """

    direction: TradeDirection
    mode: SwapMode
    amount_0: int
    amount_1: int = 0
    has_referral: bool = False


@dataclass(frozen=True)
class SwapOutcome:
    direction: TradeDirection
    mode: SwapMode
    amount_in: int  # charged to the trader, fee included
    amount_out: int  # delivered to the trader
    fee: int  # total withheld, referral included
    fee_token: TokenSide
    trading_fee: int
    protocol_fee: int
    referral_fee: int
    partner_fee: int
    creator_fee: int
    refund: int  # unfilled input returned (partial fill)
    swallowed: int  # exact-in quote kept past the migration price
    next_sqrt_price: int
    curve_complete: bool


@dataclass(frozen=True)
class SwapAmount:
    amount: int  # output of a forward walk, required input of an inverse walk
    next_sqrt_price: int
    amount_left: int = 0


@dataclass(frozen=True)
class _SwapResult:
    actual_input_amount: int  # enters the curve reserves
    included_input_amount: int
    output_amount: int
    next_sqrt_price: int
    trading_fee: int = 0
    protocol_fee: int = 0
    referral_fee: int = 0
    refund: int = 0
    swallowed: int = 0

    @property
    def total_fee(self) -> int:
        return self.trading_fee + self.protocol_fee + self.referral_fee


# ═══════════════════════════════════════════════════════════════════════
# Curve walks
# ═══════════════════════════════════════════════════════════════════════


def iter_segments(config: PoolConfig) -> Iterator[tuple[int, int, int]]:
    """(lower, upper, liquidity) for each segment, lowest first."""
    lower = config.sqrt_start_price
    for point in config.curve:
        yield lower, point.sqrt_price, point.liquidity
        lower = point.sqrt_price


def get_swap_amount_from_quote_to_base(
    config: PoolConfig, sqrt_price: int, amount_in: int, stop_sqrt_price: int
) -> SwapAmount:
    """Base out for `amount_in` quote, never moving above `stop_sqrt_price`."""
    current = sqrt_price
    amount_left = amount_in
    total_out = 0
    for _, upper, liquidity in iter_segments(config):
        upper = min(upper, stop_sqrt_price)
        if upper <= current:
            continue
        if amount_left == 0:
            break
        max_in = get_delta_amount_quote_unsigned(current, upper, liquidity, Rounding.UP)
        if amount_left < max_in:
            next_price = get_next_sqrt_price_from_input(current, liquidity, amount_left, False)
            total_out += get_delta_amount_base_unsigned(
                current, next_price, liquidity, Rounding.DOWN
            )
            current = next_price
            amount_left = 0
            break
        total_out += get_delta_amount_base_unsigned(current, upper, liquidity, Rounding.DOWN)
        amount_left -= max_in
        current = upper
        if current >= stop_sqrt_price:
            break
    return SwapAmount(amount=total_out, next_sqrt_price=current, amount_left=amount_left)


def get_swap_amount_from_base_to_quote(
    config: PoolConfig, sqrt_price: int, amount_in: int
) -> SwapAmount:
    """Quote out for `amount_in` base, never moving below the start price."""
    floor_price = config.sqrt_start_price
    current = sqrt_price
    amount_left = amount_in
    total_out = 0
    for lower, _, liquidity in reversed(list(iter_segments(config))):
        lower = max(lower, floor_price)
        if lower >= current:
            continue
        if amount_left == 0:
            break
        max_in = get_delta_amount_base_unsigned(lower, current, liquidity, Rounding.UP)
        if amount_left < max_in:
            next_price = get_next_sqrt_price_from_input(current, liquidity, amount_left, True)
            total_out += get_delta_amount_quote_unsigned(
                next_price, current, liquidity, Rounding.DOWN
            )
            current = next_price
            amount_left = 0
            break
        total_out += get_delta_amount_quote_unsigned(lower, current, liquidity, Rounding.DOWN)
        amount_left -= max_in
        current = lower
    return SwapAmount(amount=total_out, next_sqrt_price=current, amount_left=amount_left)


def get_in_amount_from_quote_to_base(
    config: PoolConfig, sqrt_price: int, amount_out: int
) -> SwapAmount:
    """Quote needed to take exactly `amount_out` base."""
    current = sqrt_price
    amount_left = amount_out
    total_in = 0
    for _, upper, liquidity in iter_segments(config):
        if upper <= current:
            continue
        if amount_left == 0:
            break
        max_out = get_delta_amount_base_unsigned(current, upper, liquidity, Rounding.DOWN)
        if amount_left < max_out:
            next_price = get_next_sqrt_price_from_output(current, liquidity, amount_left, False)
            total_in += get_delta_amount_quote_unsigned(
                current, next_price, liquidity, Rounding.UP
            )
            current = next_price
            amount_left = 0
            break
        total_in += get_delta_amount_quote_unsigned(current, upper, liquidity, Rounding.UP)
        amount_left -= max_out
        current = upper
    if amount_left:
        raise InsufficientCurveLiquidity(f"curve short of {amount_left} base")
    return SwapAmount(amount=total_in, next_sqrt_price=current)


def get_in_amount_from_base_to_quote(
    config: PoolConfig, sqrt_price: int, amount_out: int
) -> SwapAmount:
    """Base needed to take exactly `amount_out` quote."""
    floor_price = config.sqrt_start_price
    current = sqrt_price
    amount_left = amount_out
    total_in = 0
    for lower, _, liquidity in reversed(list(iter_segments(config))):
        lower = max(lower, floor_price)
        if lower >= current:
            continue
        if amount_left == 0:
            break
        max_out = get_delta_amount_quote_unsigned(lower, current, liquidity, Rounding.DOWN)
        if amount_left < max_out:
            next_price = get_next_sqrt_price_from_output(current, liquidity, amount_left, True)
            total_in += get_delta_amount_base_unsigned(
                next_price, current, liquidity, Rounding.UP
            )
            current = next_price
            amount_left = 0
            break
        total_in += get_delta_amount_base_unsigned(lower, current, liquidity, Rounding.UP)
        amount_left -= max_out
        current = lower
    if amount_left:
        raise InsufficientCurveLiquidity(f"curve short of {amount_left} quote")
    return SwapAmount(amount=total_in, next_sqrt_price=current)


# ═══════════════════════════════════════════════════════════════════════
# Swap modes
# ═══════════════════════════════════════════════════════════════════════


def _max_swallow_quote_amount(config: PoolConfig) -> int:
    return mul_div_u64(
        config.migration_quote_threshold, MAX_SWALLOW_PERCENTAGE, 100, Rounding.DOWN
    )


def _fee_numerator(
    pool: PoolState, config: PoolConfig, direction: TradeDirection, amount: int, now: int
) -> int:
    return get_total_fee_numerator(
        config.pool_fees,
        pool.volatility_tracker,
        now,
        pool.activation_point,
        direction,
        amount,
    )


def _swap_exact_in(
    pool: PoolState,
    config: PoolConfig,
    request: SwapRequest,
    fee_mode: FeeMode,
    now: int,
) -> _SwapResult:
    amount_in = request.amount_0
    numerator = _fee_numerator(pool, config, request.direction, amount_in, now)
    fees = (0, 0, 0)

    actual_in = amount_in
    if fee_mode.fees_on_input:
        on_input = get_fee_on_amount(config.pool_fees, numerator, amount_in, request.has_referral)
        actual_in = on_input.amount
        fees = (on_input.trading_fee, on_input.protocol_fee, on_input.referral_fee)

    swallowed = 0
    if request.direction is TradeDirection.QUOTE_TO_BASE:
        walk = get_swap_amount_from_quote_to_base(
            config, pool.sqrt_price, actual_in, config.migration_sqrt_price
        )
        swallowed = walk.amount_left
        max_swallow = _max_swallow_quote_amount(config)
        if swallowed > max_swallow:
            logger.warning(
                f"[SWAP] Rejected: {swallowed} quote past migration price > "
                f"swallow limit {max_swallow}"
            )
            raise InvalidSwapError(
                f"input overshoots migration price by {swallowed} (limit {max_swallow})"
            )
    else:
        walk = get_swap_amount_from_base_to_quote(config, pool.sqrt_price, actual_in)
        if walk.amount_left:
            raise InsufficientCurveLiquidity(
                f"{walk.amount_left} base left below the start price"
            )

    amount_out = walk.amount
    if not fee_mode.fees_on_input:
        on_output = get_fee_on_amount(config.pool_fees, numerator, amount_out, request.has_referral)
        amount_out = on_output.amount
        fees = (on_output.trading_fee, on_output.protocol_fee, on_output.referral_fee)

    _check_minimum_out(amount_out, request.amount_1)
    return _SwapResult(
        actual_input_amount=actual_in,
        included_input_amount=amount_in,
        output_amount=amount_out,
        next_sqrt_price=walk.next_sqrt_price,
        trading_fee=fees[0],
        protocol_fee=fees[1],
        referral_fee=fees[2],
        swallowed=swallowed,
    )


def _swap_partial_fill(
    pool: PoolState,
    config: PoolConfig,
    request: SwapRequest,
    fee_mode: FeeMode,
    now: int,
) -> _SwapResult:
    amount_in = request.amount_0
    numerator = _fee_numerator(pool, config, request.direction, amount_in, now)
    fees = (0, 0, 0)

    included_in = amount_in
    actual_in = amount_in
    if fee_mode.fees_on_input:
        on_input = get_fee_on_amount(config.pool_fees, numerator, amount_in, request.has_referral)
        actual_in = on_input.amount
        fees = (on_input.trading_fee, on_input.protocol_fee, on_input.referral_fee)

    if request.direction is TradeDirection.QUOTE_TO_BASE:
        cap = safe_sub(config.migration_quote_threshold, pool.quote_reserve)
        if actual_in > cap:
            if fee_mode.fees_on_input:
                included_in, _ = get_included_fee_amount(numerator, cap)
                on_input = get_fee_on_amount(
                    config.pool_fees, numerator, included_in, request.has_referral
                )
                fees = (on_input.trading_fee, on_input.protocol_fee, on_input.referral_fee)
            else:
                included_in = cap
            actual_in = cap
        walk = get_swap_amount_from_quote_to_base(
            config, pool.sqrt_price, actual_in, MAX_SQRT_PRICE
        )
        if walk.amount_left:
            raise InsufficientCurveLiquidity(f"curve short of {walk.amount_left} quote")
    else:
        walk = get_swap_amount_from_base_to_quote(config, pool.sqrt_price, actual_in)
        actual_in -= walk.amount_left
        included_in = actual_in

    amount_out = walk.amount
    if not fee_mode.fees_on_input:
        on_output = get_fee_on_amount(config.pool_fees, numerator, amount_out, request.has_referral)
        amount_out = on_output.amount
        fees = (on_output.trading_fee, on_output.protocol_fee, on_output.referral_fee)

    _check_minimum_out(amount_out, request.amount_1)
    return _SwapResult(
        actual_input_amount=actual_in,
        included_input_amount=included_in,
        output_amount=amount_out,
        next_sqrt_price=walk.next_sqrt_price,
        trading_fee=fees[0],
        protocol_fee=fees[1],
        referral_fee=fees[2],
        refund=amount_in - included_in,
    )


def _swap_exact_out(
    pool: PoolState,
    config: PoolConfig,
    request: SwapRequest,
    fee_mode: FeeMode,
    now: int,
) -> _SwapResult:
    handler = get_base_fee_handler(config.pool_fees.base_fee)
    if handler.is_applied(now, pool.activation_point, request.direction):
        logger.warning("[SWAP] Rejected: exact-out is not priced inside the rate-limiter window")
        raise InvalidSwapError("exact-out not supported while the rate limiter is active")

    amount_out = request.amount_0
    maximum_in = request.amount_1
    # zero amount: the size-dependent limiter path is excluded above
    numerator = _fee_numerator(pool, config, request.direction, 0, now)
    fees = (0, 0, 0)

    included_out = amount_out
    if not fee_mode.fees_on_input:
        included_out, _ = get_included_fee_amount(numerator, amount_out)
        on_output = get_fee_on_amount(
            config.pool_fees, numerator, included_out, request.has_referral
        )
        fees = (on_output.trading_fee, on_output.protocol_fee, on_output.referral_fee)

    if request.direction is TradeDirection.QUOTE_TO_BASE:
        walk = get_in_amount_from_quote_to_base(config, pool.sqrt_price, included_out)
    else:
        walk = get_in_amount_from_base_to_quote(config, pool.sqrt_price, included_out)

    excluded_in = walk.amount
    included_in = excluded_in
    if fee_mode.fees_on_input:
        included_in, _ = get_included_fee_amount(numerator, excluded_in)
        on_input = get_fee_on_amount(
            config.pool_fees, numerator, included_in, request.has_referral
        )
        fees = (on_input.trading_fee, on_input.protocol_fee, on_input.referral_fee)

    if included_in > maximum_in:
        logger.warning(
            f"[SWAP] Slippage: exact-out needs {included_in} in, limit {maximum_in}"
        )
        raise SlippageExceeded(f"required input {included_in} > maximum {maximum_in}")

    return _SwapResult(
        actual_input_amount=excluded_in,
        included_input_amount=included_in,
        output_amount=amount_out,
        next_sqrt_price=walk.next_sqrt_price,
        trading_fee=fees[0],
        protocol_fee=fees[1],
        referral_fee=fees[2],
    )


def _check_minimum_out(amount_out: int, minimum_amount_out: int) -> None:
    if amount_out < minimum_amount_out:
        logger.warning(f"[SWAP] Slippage: out {amount_out} < minimum {minimum_amount_out}")
        raise SlippageExceeded(f"output {amount_out} < minimum {minimum_amount_out}")


_MODE_HANDLERS = {
    SwapMode.EXACT_IN: _swap_exact_in,
    SwapMode.PARTIAL_FILL: _swap_partial_fill,
    SwapMode.EXACT_OUT: _swap_exact_out,
}


# ═══════════════════════════════════════════════════════════════════════
# Settlement
# ═══════════════════════════════════════════════════════════════════════


def apply_swap_result(
    pool: PoolState,
    config: PoolConfig,
    result: _SwapResult,
    fee_mode: FeeMode,
    direction: TradeDirection,
    now: int,
) -> tuple[int, int]:
    """Move price, reserves and fee counters. Returns (partner_fee, creator_fee)."""
    old_sqrt_price = pool.sqrt_price
    pool.sqrt_price = result.next_sqrt_price

    partner_fee, creator_fee = split_partner_and_creator_fee(
        result.trading_fee, config.creator_trading_fee_percentage
    )
    metrics = pool.metrics
    if fee_mode.fees_on_base_token:
        pool.partner_base_fee = checked_u64(pool.partner_base_fee + partner_fee)
        pool.creator_base_fee = checked_u64(pool.creator_base_fee + creator_fee)
        pool.protocol_base_fee = checked_u64(pool.protocol_base_fee + result.protocol_fee)
        metrics.total_protocol_base_fee += result.protocol_fee
        metrics.total_trading_base_fee += result.trading_fee
    else:
        pool.partner_quote_fee = checked_u64(pool.partner_quote_fee + partner_fee)
        pool.creator_quote_fee = checked_u64(pool.creator_quote_fee + creator_fee)
        pool.protocol_quote_fee = checked_u64(pool.protocol_quote_fee + result.protocol_fee)
        metrics.total_protocol_quote_fee += result.protocol_fee
        metrics.total_trading_quote_fee += result.trading_fee

    reserve_out = result.output_amount
    if not fee_mode.fees_on_input:
        reserve_out += result.total_fee

    if direction is TradeDirection.BASE_TO_QUOTE:
        pool.base_reserve = checked_u64(pool.base_reserve + result.actual_input_amount)
        pool.quote_reserve = safe_sub(pool.quote_reserve, reserve_out)
    else:
        pool.quote_reserve = checked_u64(pool.quote_reserve + result.actual_input_amount)
        pool.base_reserve = safe_sub(pool.base_reserve, reserve_out)

    update_post_swap(
        config.pool_fees.dynamic_fee,
        pool.volatility_tracker,
        old_sqrt_price,
        pool.sqrt_price,
        now,
    )

    if pool.is_curve_complete(config.migration_quote_threshold):
        reserved = config.migration_base_threshold + config.locked_vesting.total_amount
        if pool.base_reserve < reserved:
            logger.warning(
                f"[SWAP] Rejected: base reserve {pool.base_reserve} below "
                f"migration allocation {reserved}"
            )
            raise InsufficientLiquidityForMigration(
                f"base reserve {pool.base_reserve} < reserved {reserved}"
            )
        pool.finish_curve_timestamp = now
        pool.advance_progress(MigrationProgress.THRESHOLD_REACHED)
        logger.info(
            f"[CURVE] Threshold reached: quote_reserve={pool.quote_reserve} "
            f">= {config.migration_quote_threshold}"
        )
    return partner_fee, creator_fee


def _execute(
    pool: PoolState, config: PoolConfig, request: SwapRequest, now: int
) -> SwapOutcome:
    if request.amount_0 == 0:
        raise InvalidSwapError("swap amount is zero")
    if pool.is_curve_complete(config.migration_quote_threshold):
        logger.warning("[SWAP] Rejected: curve already complete")
        raise InvalidSwapError("curve is complete")

    fee_mode = get_fee_mode(config.collect_fee_mode, request.direction, request.has_referral)
    update_references(
        config.pool_fees.dynamic_fee, pool.volatility_tracker, pool.sqrt_price, now
    )
    result = _MODE_HANDLERS[request.mode](pool, config, request, fee_mode, now)
    partner_fee, creator_fee = apply_swap_result(
        pool, config, result, fee_mode, request.direction, now
    )
    outcome = SwapOutcome(
        direction=request.direction,
        mode=request.mode,
        amount_in=result.included_input_amount,
        amount_out=result.output_amount,
        fee=result.total_fee,
        fee_token=fee_mode.fee_token,
        trading_fee=result.trading_fee,
        protocol_fee=result.protocol_fee,
        referral_fee=result.referral_fee,
        partner_fee=partner_fee,
        creator_fee=creator_fee,
        refund=result.refund,
        swallowed=result.swallowed,
        next_sqrt_price=result.next_sqrt_price,
        curve_complete=pool.is_curve_complete(config.migration_quote_threshold),
    )
    logger.debug(
        f"[SWAP] {request.direction.value}/{request.mode.value} "
        f"in={outcome.amount_in} out={outcome.amount_out} "
        f"fee={outcome.fee} {outcome.fee_token.value} refund={outcome.refund}"
    )
    return outcome


# ═══════════════════════════════════════════════════════════════════════
# Entry points
# ═══════════════════════════════════════════════════════════════════════


def swap(
    pool: PoolState,
    config: PoolConfig,
    direction: TradeDirection,
    mode: SwapMode,
    amount_specified: int,
    limit_amount: int,
    now: int,
    *,
    has_referral: bool = False,
) -> SwapOutcome:
    """Execute one swap atomically; the pool is untouched on any error."""
    request = SwapRequest(
        direction=direction,
        mode=mode,
        amount_0=amount_specified,
        amount_1=limit_amount,
        has_referral=has_referral,
    )
    staged = pool.model_copy(deep=True)
    outcome = _execute(staged, config, request, now)
    pool.commit(staged)
    return outcome


def swap_exact_in(
    pool: PoolState,
    config: PoolConfig,
    direction: TradeDirection,
    amount_in: int,
    minimum_amount_out: int,
    now: int,
    *,
    has_referral: bool = False,
) -> SwapOutcome:
    return swap(
        pool,
        config,
        direction,
        SwapMode.EXACT_IN,
        amount_in,
        minimum_amount_out,
        now,
        has_referral=has_referral,
    )


def swap2(
    pool: PoolState,
    config: PoolConfig,
    direction: TradeDirection,
    amount_0: int,
    amount_1: int,
    mode: SwapMode,
    now: int,
    *,
    has_referral: bool = False,
) -> SwapOutcome:
    return swap(
        pool, config, direction, mode, amount_0, amount_1, now, has_referral=has_referral
    )


def swap_batch(
    pool: PoolState,
    config: PoolConfig,
    requests: Sequence[SwapRequest],
    now: int,
) -> list[SwapOutcome]:
    """Apply requests in order, all or nothing.

    While the rate limiter is active at most one request may take the
    size-dependent fee path; otherwise splitting one large buy into many
    small ones would dodge the surcharge.
    """
    handler = get_base_fee_handler(config.pool_fees.base_fee)
    limited = sum(
        1
        for request in requests
        if handler.is_applied(now, pool.activation_point, request.direction)
    )
    if limited > 1:
        logger.warning(
            f"[SWAP] Batch rejected: {limited} rate-limited swaps in one batch"
        )
        raise RateLimiterBatchViolation(
            f"{limited} rate-limited swaps in one batch, at most 1 allowed"
        )

    staged = pool.model_copy(deep=True)
    outcomes = [_execute(staged, config, request, now) for request in requests]
    pool.commit(staged)
    logger.info(f"[SWAP] Batch of {len(outcomes)} swaps committed")
    return outcomes
