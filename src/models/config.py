"""Pydantic v2 models for launch configuration.

`ConfigParameters` is what a partner submits. `PoolConfig` is the validated,
immutable result shared by every pool launched from it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from src.models.enums import (
    ActivationType,
    CollectFeeMode,
    MigrationFeeOption,
    MigrationOption,
)
from src.models.fees import PoolFees


class CurvePoint(BaseModel):
    """Upper sqrt-price bound of a segment and the liquidity inside it."""

    sqrt_price: int
    liquidity: int

    model_config = {"extra": "ignore", "frozen": True}


class LockedVesting(BaseModel):
    amount_per_period: int = 0
    cliff_duration_from_migration_time: int = 0
    frequency: int = 0
    number_of_period: int = 0
    cliff_unlock_amount: int = 0

    model_config = {"extra": "ignore", "frozen": True}

    @property
    def total_amount(self) -> int:
        return self.cliff_unlock_amount + self.amount_per_period * self.number_of_period

    @property
    def has_vesting(self) -> bool:
        return self != LockedVesting()


class MigrationFee(BaseModel):
    """Percent of the quote threshold withheld at migration."""

    fee_percentage: int = 0
    creator_fee_percentage: int = 0

    model_config = {"extra": "ignore", "frozen": True}


class TokenSupply(BaseModel):
    pre_migration_token_supply: int
    post_migration_token_supply: int

    model_config = {"extra": "ignore", "frozen": True}


class ConfigParameters(BaseModel):
    partner: str
    leftover_receiver: str | None = None
    pool_fees: PoolFees
    collect_fee_mode: CollectFeeMode = CollectFeeMode.QUOTE_TOKEN
    migration_option: MigrationOption = MigrationOption.DAMM_V2
    activation_type: ActivationType = ActivationType.TIMESTAMP
    token_decimal: int = 6
    partner_lp_percentage: int = 0
    partner_locked_lp_percentage: int = 0
    creator_lp_percentage: int = 0
    creator_locked_lp_percentage: int = 0
    creator_trading_fee_percentage: int = 0
    migration_quote_threshold: int
    sqrt_start_price: int
    locked_vesting: LockedVesting = Field(default_factory=LockedVesting)
    migration_fee: MigrationFee = Field(default_factory=MigrationFee)
    migration_fee_option: MigrationFeeOption = MigrationFeeOption.FIXED_BPS_25
    token_supply: TokenSupply | None = None
    curve: list[CurvePoint]

    model_config = {"extra": "ignore"}


class PoolConfig(BaseModel):
    """Validated launch configuration with derived supply bookkeeping."""

    partner: str
    leftover_receiver: str | None = None
    pool_fees: PoolFees
    collect_fee_mode: CollectFeeMode
    migration_option: MigrationOption
    activation_type: ActivationType
    token_decimal: int
    partner_lp_percentage: int
    partner_locked_lp_percentage: int
    creator_lp_percentage: int
    creator_locked_lp_percentage: int
    creator_trading_fee_percentage: int
    migration_quote_threshold: int
    sqrt_start_price: int
    locked_vesting: LockedVesting
    migration_fee: MigrationFee
    migration_fee_option: MigrationFeeOption
    curve: tuple[CurvePoint, ...]

    # Derived at creation
    migration_sqrt_price: int
    swap_base_amount: int
    migration_base_threshold: int
    fixed_token_supply: bool = False
    pre_migration_token_supply: int = 0
    post_migration_token_supply: int = 0
    initial_base_supply: int

    model_config = {"extra": "ignore", "frozen": True}
