"""Rate-limiter base fee: anti-sniping surcharge during the launch window.

Write x0 = reference_amount, c = cliff fee numerator, i = increment numerator.
An amount <= x0 pays c. Above x0, split amount - x0 = a * x0 + b; every
whole x0 step pays i more than the previous one:

    a < max_index:  fee = x0 * (c + c*a + i*a*(a+1)/2) + b * (c + i*(a+1))
    a >= max_index: fee = x0 * (c + c*m + i*m*(m+1)/2) + (d*x0 + b) * MAX_FEE
                    where m = max_index, d = a - m

The trading fee is the ceiling of fee / 1e9, converted back to an effective
numerator over the whole amount (rounded up).
"""

from __future__ import annotations

from src.constants import (
    BASIS_POINT_MAX,
    FEE_DENOMINATOR,
    MAX_FEE_NUMERATOR,
    MAX_RATE_LIMITER_DURATION_IN_SECONDS,
    MAX_RATE_LIMITER_DURATION_IN_SLOTS,
    MIN_FEE_NUMERATOR,
    U64_MAX,
)
from src.exceptions import ConfigurationError
from src.models.enums import ActivationType, CollectFeeMode, TradeDirection
from src.models.fees import RateLimiterConfig
from src.utils.safe_math import Rounding, checked_u64, div_round, mul_div_u64


class FeeRateLimiter:
    """Size-dependent base fee for buys inside the limiter window."""

    def __init__(self, config: RateLimiterConfig) -> None:
        self._config = config

    @property
    def config(self) -> RateLimiterConfig:
        return self._config

    @property
    def is_zero(self) -> bool:
        cfg = self._config
        return (
            cfg.reference_amount == 0
            and cfg.max_limiter_duration == 0
            and cfg.fee_increment_bps == 0
        )

    @property
    def is_non_zero(self) -> bool:
        cfg = self._config
        return (
            cfg.reference_amount != 0
            and cfg.max_limiter_duration != 0
            and cfg.fee_increment_bps != 0
        )

    @property
    def fee_increment_numerator(self) -> int:
        return self._config.fee_increment_bps * FEE_DENOMINATOR // BASIS_POINT_MAX

    @property
    def max_index(self) -> int:
        delta = MAX_FEE_NUMERATOR - self._config.cliff_fee_numerator
        return delta // self.fee_increment_numerator

    def is_applied(
        self, current_point: int, activation_point: int, trade_direction: TradeDirection
    ) -> bool:
        """True while buys pay the size-dependent fee.

        The window is half-open: the limiter covers points strictly before
        activation_point + max_limiter_duration.
        """
        if self.is_zero:
            return False
        if trade_direction is TradeDirection.BASE_TO_QUOTE:
            return False
        return current_point - activation_point < self._config.max_limiter_duration

    def is_rate_limited(self, fee_numerator: int) -> bool:
        return fee_numerator > self._config.cliff_fee_numerator

    def fee_numerator_from_amount(self, amount: int) -> int:
        cfg = self._config
        c = cfg.cliff_fee_numerator
        x0 = cfg.reference_amount
        if amount <= x0:
            return c

        a, b = divmod(amount - x0, x0)
        i = self.fee_increment_numerator
        max_index = self.max_index

        if a < max_index:
            first = x0 * (c + c * a + i * a * (a + 1) // 2)
            second = b * (c + i * (a + 1))
        else:
            first = x0 * (c + c * max_index + i * max_index * (max_index + 1) // 2)
            d = a - max_index
            second = (d * x0 + b) * MAX_FEE_NUMERATOR

        trading_fee = checked_u64(
            div_round(first + second, FEE_DENOMINATOR, Rounding.UP)
        )
        return mul_div_u64(trading_fee, FEE_DENOMINATOR, amount, Rounding.UP)

    def get_base_fee_numerator(
        self,
        current_point: int,
        activation_point: int,
        trade_direction: TradeDirection,
        amount: int,
    ) -> int:
        if self.is_applied(current_point, activation_point, trade_direction):
            return self.fee_numerator_from_amount(amount)
        return self._config.cliff_fee_numerator

    def validate(
        self, collect_fee_mode: CollectFeeMode, activation_type: ActivationType
    ) -> None:
        cfg = self._config
        if collect_fee_mode is not CollectFeeMode.QUOTE_TOKEN:
            raise ConfigurationError("rate limiter requires quote-token fee collection")

        if self.is_zero:
            return
        if not self.is_non_zero:
            raise ConfigurationError(
                "rate limiter factors must be all zero or all non-zero"
            )

        max_duration = (
            MAX_RATE_LIMITER_DURATION_IN_SLOTS
            if activation_type is ActivationType.SLOT
            else MAX_RATE_LIMITER_DURATION_IN_SECONDS
        )
        if cfg.max_limiter_duration > max_duration:
            raise ConfigurationError(
                f"rate limiter duration {cfg.max_limiter_duration} > {max_duration}"
            )
        if self.fee_increment_numerator >= FEE_DENOMINATOR:
            raise ConfigurationError("fee increment must be below the fee denominator")
        if not MIN_FEE_NUMERATOR <= cfg.cliff_fee_numerator <= MAX_FEE_NUMERATOR:
            raise ConfigurationError(
                f"cliff fee {cfg.cliff_fee_numerator} outside "
                f"[{MIN_FEE_NUMERATOR}, {MAX_FEE_NUMERATOR}]"
            )

        min_fee = self.fee_numerator_from_amount(0)
        max_fee = self.fee_numerator_from_amount(U64_MAX)
        if min_fee < MIN_FEE_NUMERATOR or max_fee > MAX_FEE_NUMERATOR:
            raise ConfigurationError(
                f"rate limiter fee range [{min_fee}, {max_fee}] outside "
                f"[{MIN_FEE_NUMERATOR}, {MAX_FEE_NUMERATOR}]"
            )
