"""Pydantic v2 models for fee configuration.

The base fee is a tagged union on `mode`: scheduler variants carry
period/frequency/reduction, the rate limiter carries increment/duration/
reference amount. Raw three-factor parameters are resolved once by
`base_fee_from_factors`.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from config.settings import settings
from src.constants import BIN_STEP_BPS_DEFAULT, BIN_STEP_BPS_U128_DEFAULT


class FeeSchedulerConfig(BaseModel):
    """Cliff fee decaying per elapsed period since activation."""

    mode: Literal["linear", "exponential"] = "linear"
    cliff_fee_numerator: int
    number_of_period: int = 0
    period_frequency: int = 0
    reduction_factor: int = 0

    model_config = {"extra": "ignore", "frozen": True}


class RateLimiterConfig(BaseModel):
    """Anti-sniping fee growing with trade size during the launch window."""

    mode: Literal["rate_limiter"] = "rate_limiter"
    cliff_fee_numerator: int
    fee_increment_bps: int = 0
    max_limiter_duration: int = 0
    reference_amount: int = 0

    model_config = {"extra": "ignore", "frozen": True}


BaseFeeConfig = Annotated[
    Union[FeeSchedulerConfig, RateLimiterConfig], Field(discriminator="mode")
]


def base_fee_from_factors(
    cliff_fee_numerator: int,
    first_factor: int,
    second_factor: int,
    third_factor: int,
    mode: str,
) -> FeeSchedulerConfig | RateLimiterConfig:
    """Resolve the packed (first, second, third) factors for a fee mode.

    Scheduler: (number_of_period, period_frequency, reduction_factor).
    Rate limiter: (fee_increment_bps, max_limiter_duration, reference_amount).
    """
    if mode in ("linear", "exponential"):
        return FeeSchedulerConfig(
            mode=mode,
            cliff_fee_numerator=cliff_fee_numerator,
            number_of_period=first_factor,
            period_frequency=second_factor,
            reduction_factor=third_factor,
        )
    if mode == "rate_limiter":
        return RateLimiterConfig(
            cliff_fee_numerator=cliff_fee_numerator,
            fee_increment_bps=first_factor,
            max_limiter_duration=second_factor,
            reference_amount=third_factor,
        )
    raise ValueError(f"unknown base fee mode: {mode}")


class DynamicFeeConfig(BaseModel):
    """Volatility-driven variable fee layered on top of the base fee."""

    bin_step: int = BIN_STEP_BPS_DEFAULT
    bin_step_u128: int = BIN_STEP_BPS_U128_DEFAULT
    filter_period: int
    decay_period: int
    reduction_factor: int
    max_volatility_accumulator: int
    variable_fee_control: int

    model_config = {"extra": "ignore", "frozen": True}


class PoolFees(BaseModel):
    base_fee: BaseFeeConfig
    dynamic_fee: DynamicFeeConfig | None = None
    protocol_fee_percent: int = Field(
        default_factory=lambda: settings.protocol_fee_percent
    )
    referral_fee_percent: int = Field(
        default_factory=lambda: settings.referral_fee_percent
    )

    model_config = {"extra": "ignore", "frozen": True}
