"""Volatility-driven variable fee.

The tracker approximates price movement in bins: (1 + b) ^ delta_bin is
treated as 1 + b * delta_bin, which holds for the 1 bps bin step used here.
"""

from __future__ import annotations

from src.constants import (
    BASIS_POINT_MAX,
    BIN_STEP_BPS_DEFAULT,
    BIN_STEP_BPS_U128_DEFAULT,
    DYNAMIC_FEE_SCALE,
    ONE_Q64,
    RESOLUTION,
    U24_MAX,
)
from src.exceptions import ConfigurationError
from src.models.fees import DynamicFeeConfig
from src.models.pool import VolatilityTracker
from src.utils.safe_math import Rounding, div_round, safe_sub


def validate_dynamic_fee(config: DynamicFeeConfig | None) -> None:
    if config is None:
        return
    if config.bin_step != BIN_STEP_BPS_DEFAULT:
        raise ConfigurationError(f"bin step must be {BIN_STEP_BPS_DEFAULT}")
    if config.bin_step_u128 != BIN_STEP_BPS_U128_DEFAULT:
        raise ConfigurationError(f"bin step u128 must be {BIN_STEP_BPS_U128_DEFAULT}")
    if config.filter_period >= config.decay_period:
        raise ConfigurationError("filter period must be shorter than decay period")
    if config.reduction_factor > BASIS_POINT_MAX:
        raise ConfigurationError(f"reduction factor {config.reduction_factor} > 10000")
    if config.variable_fee_control > U24_MAX:
        raise ConfigurationError("variable fee control exceeds 24 bits")
    if config.max_volatility_accumulator > U24_MAX:
        raise ConfigurationError("max volatility accumulator exceeds 24 bits")


def get_variable_fee_numerator(
    config: DynamicFeeConfig | None, tracker: VolatilityTracker
) -> int:
    """ceil((va * bin_step)^2 * variable_fee_control / 1e11); 0 when disabled."""
    if config is None:
        return 0
    square = (tracker.volatility_accumulator * config.bin_step) ** 2
    return div_round(square * config.variable_fee_control, DYNAMIC_FEE_SCALE, Rounding.UP)


def get_delta_bin_id(bin_step_u128: int, sqrt_price_a: int, sqrt_price_b: int) -> int:
    upper, lower = max(sqrt_price_a, sqrt_price_b), min(sqrt_price_a, sqrt_price_b)
    if lower == 0:
        return 0
    price_ratio = (upper << RESOLUTION) // lower
    return safe_sub(price_ratio, ONE_Q64) // bin_step_u128 * 2


def update_references(
    config: DynamicFeeConfig | None,
    tracker: VolatilityTracker,
    sqrt_price: int,
    now: int,
) -> None:
    """Refresh the reference price and decay the accumulator before a swap."""
    if config is None:
        return
    elapsed = safe_sub(now, tracker.last_update_timestamp)
    if elapsed < config.filter_period:
        # high-frequency trading keeps the old reference
        return
    tracker.sqrt_price_reference = sqrt_price
    if elapsed < config.decay_period:
        tracker.volatility_reference = (
            tracker.volatility_accumulator * config.reduction_factor // BASIS_POINT_MAX
        )
    else:
        tracker.volatility_reference = 0


def update_volatility_accumulator(
    config: DynamicFeeConfig | None, tracker: VolatilityTracker, sqrt_price: int
) -> int:
    """Grow the accumulator by the bins moved since the reference; returns delta_bin."""
    if config is None:
        return 0
    delta_bin = get_delta_bin_id(
        config.bin_step_u128, sqrt_price, tracker.sqrt_price_reference
    )
    accumulator = tracker.volatility_reference + delta_bin * BASIS_POINT_MAX
    tracker.volatility_accumulator = min(accumulator, config.max_volatility_accumulator)
    return delta_bin


def update_post_swap(
    config: DynamicFeeConfig | None,
    tracker: VolatilityTracker,
    sqrt_price_before: int,
    sqrt_price_after: int,
    now: int,
) -> None:
    if config is None:
        return
    update_volatility_accumulator(config, tracker, sqrt_price_after)
    # only a swap that moved at least one bin refreshes the timestamp
    if get_delta_bin_id(config.bin_step_u128, sqrt_price_before, sqrt_price_after) > 0:
        tracker.last_update_timestamp = now
