"""Mutable per-launch pool state."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from src.models.enums import ClaimFlag, MigrationProgress

if TYPE_CHECKING:
    from src.models.config import PoolConfig


class VolatilityTracker(BaseModel):
    last_update_timestamp: int = 0
    sqrt_price_reference: int = 0
    volatility_accumulator: int = 0
    volatility_reference: int = 0  # decayed accumulator

    model_config = {"extra": "ignore"}


class PoolMetrics(BaseModel):
    """Lifetime fee totals, never decreased by claims."""

    total_protocol_base_fee: int = 0
    total_protocol_quote_fee: int = 0
    total_trading_base_fee: int = 0
    total_trading_quote_fee: int = 0

    model_config = {"extra": "ignore"}


class LpDistribution(BaseModel):
    partner_locked_lp: int
    partner_lp: int
    creator_locked_lp: int
    creator_lp: int

    model_config = {"extra": "ignore", "frozen": True}


class PoolState(BaseModel):
    creator: str
    base_reserve: int
    quote_reserve: int = 0
    sqrt_price: int
    activation_point: int = 0

    protocol_base_fee: int = 0
    protocol_quote_fee: int = 0
    partner_base_fee: int = 0
    partner_quote_fee: int = 0
    creator_base_fee: int = 0
    creator_quote_fee: int = 0

    volatility_tracker: VolatilityTracker = Field(default_factory=VolatilityTracker)
    metrics: PoolMetrics = Field(default_factory=PoolMetrics)

    migration_progress: MigrationProgress = MigrationProgress.NOT_STARTED
    claim_flags: int = 0
    finish_curve_timestamp: int = 0
    burned_base_amount: int = 0
    lp_distribution: LpDistribution | None = None

    model_config = {"extra": "ignore"}

    @classmethod
    def initialize(
        cls, config: PoolConfig, *, creator: str, activation_point: int = 0
    ) -> PoolState:
        return cls(
            creator=creator,
            base_reserve=config.initial_base_supply,
            sqrt_price=config.sqrt_start_price,
            activation_point=activation_point,
        )

    @property
    def flags(self) -> ClaimFlag:
        return ClaimFlag(self.claim_flags)

    def has_flag(self, flag: ClaimFlag) -> bool:
        return bool(self.claim_flags & flag)

    def set_flag(self, flag: ClaimFlag) -> None:
        self.claim_flags |= int(flag)

    def is_curve_complete(self, migration_threshold: int) -> bool:
        return self.quote_reserve >= migration_threshold

    def advance_progress(self, target: MigrationProgress) -> None:
        """Move forward to `target`; never moves backward."""
        if target > self.migration_progress:
            self.migration_progress = target

    def commit(self, staged: PoolState) -> None:
        """Adopt every field of a staged copy once an operation has succeeded."""
        for name in type(self).model_fields:
            setattr(self, name, getattr(staged, name))
