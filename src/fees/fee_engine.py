"""Fee engine: base + dynamic numerator, fee-mode routing, fee splits.

Numerators are parts of FEE_DENOMINATOR (1e9). The withheld fee is always
rounded up, every split rounds down and hands the remainder to the other side.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from src.constants import FEE_DENOMINATOR, MAX_FEE_NUMERATOR
from src.fees.dynamic_fee import get_variable_fee_numerator, validate_dynamic_fee
from src.fees.rate_limiter import FeeRateLimiter
from src.fees.scheduler import FeeScheduler
from src.models.enums import (
    ActivationType,
    CollectFeeMode,
    TokenSide,
    TradeDirection,
)
from src.models.fees import FeeSchedulerConfig, PoolFees, RateLimiterConfig
from src.models.pool import PoolState, VolatilityTracker
from src.utils.safe_math import Rounding, mul_div_u64, safe_sub

BaseFeeHandler = FeeScheduler | FeeRateLimiter


@dataclass(frozen=True)
class FeeMode:
    fees_on_input: bool
    fees_on_base_token: bool
    has_referral: bool = False

    @property
    def fee_token(self) -> TokenSide:
        return TokenSide.BASE if self.fees_on_base_token else TokenSide.QUOTE


@dataclass(frozen=True)
class FeeOnAmountResult:
    amount: int  # amount left after the fee
    trading_fee: int
    protocol_fee: int
    referral_fee: int

    @property
    def total_fee(self) -> int:
        return self.trading_fee + self.protocol_fee + self.referral_fee


@dataclass(frozen=True)
class FeeQuote:
    """Withheld amount, the token it is withheld from, and the numerator used."""

    amount: int
    token: TokenSide
    fee_numerator: int


def get_fee_mode(
    collect_fee_mode: CollectFeeMode,
    trade_direction: TradeDirection,
    has_referral: bool = False,
) -> FeeMode:
    if collect_fee_mode is CollectFeeMode.QUOTE_TOKEN:
        on_input = trade_direction is TradeDirection.QUOTE_TO_BASE
        return FeeMode(fees_on_input=on_input, fees_on_base_token=False, has_referral=has_referral)
    # output token: buys pay in base, sells pay in quote
    on_base = trade_direction is TradeDirection.QUOTE_TO_BASE
    return FeeMode(fees_on_input=False, fees_on_base_token=on_base, has_referral=has_referral)


def get_base_fee_handler(base_fee: FeeSchedulerConfig | RateLimiterConfig) -> BaseFeeHandler:
    if isinstance(base_fee, RateLimiterConfig):
        return FeeRateLimiter(base_fee)
    return FeeScheduler(base_fee)


def validate_pool_fees(
    pool_fees: PoolFees,
    collect_fee_mode: CollectFeeMode,
    activation_type: ActivationType,
) -> None:
    get_base_fee_handler(pool_fees.base_fee).validate(collect_fee_mode, activation_type)
    validate_dynamic_fee(pool_fees.dynamic_fee)


def get_total_fee_numerator(
    pool_fees: PoolFees,
    tracker: VolatilityTracker,
    current_point: int,
    activation_point: int,
    trade_direction: TradeDirection,
    amount: int,
) -> int:
    """min(base + variable, MAX_FEE_NUMERATOR)."""
    handler = get_base_fee_handler(pool_fees.base_fee)
    base = handler.get_base_fee_numerator(
        current_point, activation_point, trade_direction, amount
    )
    total = base + get_variable_fee_numerator(pool_fees.dynamic_fee, tracker)
    return min(total, MAX_FEE_NUMERATOR)


def get_excluded_fee_amount(fee_numerator: int, included_fee_amount: int) -> tuple[int, int]:
    """(amount after fee, fee) with the fee rounded up."""
    fee = mul_div_u64(included_fee_amount, fee_numerator, FEE_DENOMINATOR, Rounding.UP)
    return safe_sub(included_fee_amount, fee), fee


def get_included_fee_amount(fee_numerator: int, excluded_fee_amount: int) -> tuple[int, int]:
    """Smallest gross amount whose net after the fee covers `excluded_fee_amount`."""
    included = mul_div_u64(
        excluded_fee_amount,
        FEE_DENOMINATOR,
        safe_sub(FEE_DENOMINATOR, fee_numerator),
        Rounding.UP,
    )
    return included, safe_sub(included, excluded_fee_amount)


def split_fees(pool_fees: PoolFees, fee_amount: int, has_referral: bool) -> tuple[int, int, int]:
    """Returns (trading_fee, protocol_fee, referral_fee)."""
    protocol = mul_div_u64(fee_amount, pool_fees.protocol_fee_percent, 100, Rounding.DOWN)
    trading = safe_sub(fee_amount, protocol)
    referral = (
        mul_div_u64(protocol, pool_fees.referral_fee_percent, 100, Rounding.DOWN)
        if has_referral
        else 0
    )
    return trading, safe_sub(protocol, referral), referral


def get_fee_on_amount(
    pool_fees: PoolFees, fee_numerator: int, amount: int, has_referral: bool
) -> FeeOnAmountResult:
    excluded, fee = get_excluded_fee_amount(fee_numerator, amount)
    trading, protocol, referral = split_fees(pool_fees, fee, has_referral)
    return FeeOnAmountResult(
        amount=excluded,
        trading_fee=trading,
        protocol_fee=protocol,
        referral_fee=referral,
    )


def split_partner_and_creator_fee(
    trading_fee: int, creator_trading_fee_percentage: int
) -> tuple[int, int]:
    """Returns (partner_fee, creator_fee); the creator side is floored."""
    if creator_trading_fee_percentage == 0:
        return trading_fee, 0
    creator = mul_div_u64(trading_fee, creator_trading_fee_percentage, 100, Rounding.DOWN)
    return safe_sub(trading_fee, creator), creator


def quote_fee(
    notional: int,
    now: int,
    pool: PoolState,
    pool_fees: PoolFees,
    collect_fee_mode: CollectFeeMode,
    trade_direction: TradeDirection,
) -> FeeQuote:
    """Fee withheld on `notional` for a trade at `now`.

    `notional` is the amount on the fee-bearing side: the input for
    quote-collected buys, the curve output otherwise.
    """
    fee_mode = get_fee_mode(collect_fee_mode, trade_direction)
    numerator = get_total_fee_numerator(
        pool_fees,
        pool.volatility_tracker,
        now,
        pool.activation_point,
        trade_direction,
        notional,
    )
    _, fee = get_excluded_fee_amount(numerator, notional)
    logger.debug(
        f"[FEE] {trade_direction.value} notional={notional} "
        f"numerator={numerator} fee={fee} token={fee_mode.fee_token.value}"
    )
    return FeeQuote(amount=fee, token=fee_mode.fee_token, fee_numerator=numerator)
