"""External systems the migration flow hands amounts to.

The engine only computes amounts; custody, the constant-product market and
the vesting escrow are provided by the host.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from src.models.enums import MigrationFeeOption, MigrationOption


@dataclass(frozen=True)
class PoolCreationRequest:
    migration_option: MigrationOption
    fee_option: MigrationFeeOption
    base_amount: int
    quote_amount: int
    sqrt_price: int
    liquidity: int = 0  # concentrated-liquidity markets only


@dataclass(frozen=True)
class VestingEscrowParams:
    vesting_start_time: int
    cliff_time: int
    frequency: int
    cliff_unlock_amount: int
    amount_per_period: int
    number_of_period: int

    @property
    def total_amount(self) -> int:
        return self.cliff_unlock_amount + self.amount_per_period * self.number_of_period


class ConstantProductMarket(Protocol):
    def create_pool(self, request: PoolCreationRequest) -> int:
        """Create the market pool and return the LP amount minted."""
        ...

    def lock_liquidity(self, owner: str, amount: int) -> None: ...

    def claim_liquidity(self, owner: str, amount: int) -> None: ...


class VestingLocker(Protocol):
    def create_vesting_escrow(self, recipient: str, params: VestingEscrowParams) -> None: ...


class TokenCustody(Protocol):
    def burn_base(self, amount: int) -> None: ...
