"""Locked-vesting schedule: validation and escrow parameters."""

from __future__ import annotations

from src.exceptions import ConfigurationError
from src.migration.collaborators import VestingEscrowParams
from src.models.config import LockedVesting


def validate_vesting(vesting: LockedVesting) -> None:
    if vesting.has_vesting and (vesting.frequency == 0 or vesting.total_amount == 0):
        raise ConfigurationError("vesting needs a frequency and a non-zero total")


def build_escrow_params(
    vesting: LockedVesting, finish_curve_timestamp: int
) -> VestingEscrowParams:
    """Escrow starts when the curve finished; the cliff follows after the delay."""
    return VestingEscrowParams(
        vesting_start_time=finish_curve_timestamp,
        cliff_time=finish_curve_timestamp + vesting.cliff_duration_from_migration_time,
        frequency=vesting.frequency,
        cliff_unlock_amount=vesting.cliff_unlock_amount,
        amount_per_period=vesting.amount_per_period,
        number_of_period=vesting.number_of_period,
    )


def unlocked_amount(vesting: LockedVesting, finish_curve_timestamp: int, now: int) -> int:
    """Amount released by `now` under the schedule handed to the escrow."""
    params = build_escrow_params(vesting, finish_curve_timestamp)
    if now < params.cliff_time:
        return 0
    periods = 0
    if params.frequency:
        periods = min((now - params.cliff_time) // params.frequency, params.number_of_period)
    return params.cliff_unlock_amount + params.amount_per_period * periods
