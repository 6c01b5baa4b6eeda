"""Fee scheduler: a cliff fee that decays per elapsed period.

linear:       fee = cliff - reduction * period
exponential:  fee = cliff * (1 - reduction / 10_000) ^ period
"""

from __future__ import annotations

from src.constants import (
    BASIS_POINT_MAX,
    FEE_DENOMINATOR,
    MAX_FEE_NUMERATOR,
    MIN_FEE_NUMERATOR,
    ONE_Q64,
    RESOLUTION,
)
from src.exceptions import ConfigurationError
from src.models.enums import ActivationType, CollectFeeMode, TradeDirection
from src.models.fees import FeeSchedulerConfig
from src.utils.safe_math import checked_u64, pow_q64, safe_sub


def get_fee_in_period(cliff_fee_numerator: int, reduction_factor: int, period: int) -> int:
    """Exponential decay in Q64, floored after every multiply."""
    if period == 0:
        return cliff_fee_numerator
    if reduction_factor >= BASIS_POINT_MAX:
        return 0
    bps = (reduction_factor << RESOLUTION) // BASIS_POINT_MAX
    base = safe_sub(ONE_Q64, bps)
    result = pow_q64(base, period)
    return checked_u64((cliff_fee_numerator * result) >> RESOLUTION)


class FeeScheduler:
    """Time-decayed base fee. Ignores trade direction and size."""

    def __init__(self, config: FeeSchedulerConfig) -> None:
        self._config = config

    @property
    def config(self) -> FeeSchedulerConfig:
        return self._config

    @property
    def max_base_fee_numerator(self) -> int:
        return self._config.cliff_fee_numerator

    @property
    def min_base_fee_numerator(self) -> int:
        return self.fee_numerator_for_period(self._config.number_of_period)

    def fee_numerator_for_period(self, period: int) -> int:
        cfg = self._config
        period = min(period, cfg.number_of_period)
        if cfg.mode == "linear":
            return safe_sub(cfg.cliff_fee_numerator, cfg.reduction_factor * period)
        return get_fee_in_period(cfg.cliff_fee_numerator, cfg.reduction_factor, period)

    def get_base_fee_numerator(
        self,
        current_point: int,
        activation_point: int,
        trade_direction: TradeDirection,
        amount: int,
    ) -> int:
        cfg = self._config
        if cfg.period_frequency == 0:
            return cfg.cliff_fee_numerator
        period = safe_sub(current_point, activation_point) // cfg.period_frequency
        return self.fee_numerator_for_period(period)

    def is_applied(
        self, current_point: int, activation_point: int, trade_direction: TradeDirection
    ) -> bool:
        """A scheduler never enters the rate-limited fee path."""
        return False

    def validate(
        self, collect_fee_mode: CollectFeeMode, activation_type: ActivationType
    ) -> None:
        cfg = self._config
        factors = (cfg.number_of_period, cfg.period_frequency, cfg.reduction_factor)
        if any(factors) and not all(factors):
            raise ConfigurationError(
                "fee scheduler factors must be all zero or all non-zero"
            )

        min_fee = self.min_base_fee_numerator
        max_fee = self.max_base_fee_numerator
        if max_fee >= FEE_DENOMINATOR:
            raise ConfigurationError(f"fee numerator {max_fee} >= denominator")
        if min_fee < MIN_FEE_NUMERATOR or max_fee > MAX_FEE_NUMERATOR:
            raise ConfigurationError(
                f"scheduler fee range [{min_fee}, {max_fee}] outside "
                f"[{MIN_FEE_NUMERATOR}, {MAX_FEE_NUMERATOR}]"
            )
