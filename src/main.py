"""Demo launch: design a curve, buy through to migration, distribute.

Run with `python -m src.main`. Parameters come from DEMO_* settings.
"""

from __future__ import annotations

import math

from loguru import logger

from config.settings import settings
from src.constants import U64_MAX
from src.curve.config_builder import create_config
from src.curve.distribution import design_curve
from src.curve.executor import swap_exact_in, swap2
from src.migration.collaborators import PoolCreationRequest, VestingEscrowParams
from src.migration.migrator import Migrator
from src.migration.withdrawals import (
    claim_protocol_fee,
    claim_trading_fee,
    withdraw_migration_fee,
    withdraw_surplus,
)
from src.models import (
    ConfigParameters,
    FeeSchedulerConfig,
    MigrationFee,
    MigrationOption,
    Party,
    PoolFees,
    PoolState,
    SwapMode,
    TradeDirection,
)
from src.utils.logger import setup_logger

PARTNER = "partner-demo"
CREATOR = "creator-demo"


class InMemoryMarket:
    def __init__(self) -> None:
        self.pools: list[PoolCreationRequest] = []
        self.locked: dict[str, int] = {}
        self.claimed: dict[str, int] = {}

    def create_pool(self, request: PoolCreationRequest) -> int:
        self.pools.append(request)
        # constant-product LP: sqrt(base * quote)
        return math.isqrt(request.base_amount * request.quote_amount)

    def lock_liquidity(self, owner: str, amount: int) -> None:
        self.locked[owner] = self.locked.get(owner, 0) + amount

    def claim_liquidity(self, owner: str, amount: int) -> None:
        self.claimed[owner] = self.claimed.get(owner, 0) + amount


class InMemoryLocker:
    def __init__(self) -> None:
        self.escrows: list[tuple[str, VestingEscrowParams]] = []

    def create_vesting_escrow(self, recipient: str, params: VestingEscrowParams) -> None:
        self.escrows.append((recipient, params))


class InMemoryCustody:
    def __init__(self) -> None:
        self.burned = 0

    def burn_base(self, amount: int) -> None:
        self.burned += amount


def build_demo_parameters() -> ConfigParameters:
    designed = design_curve(
        total_supply=settings.demo_total_supply,
        migration_percentage=settings.demo_migration_percentage,
        migration_quote_threshold=settings.demo_migration_quote_threshold,
        migration_option=MigrationOption.DAMM_V2,
        migration_fee_percentage=settings.demo_migration_fee_percentage,
    )
    return ConfigParameters(
        partner=PARTNER,
        pool_fees=PoolFees(
            base_fee=FeeSchedulerConfig(cliff_fee_numerator=settings.demo_cliff_fee_numerator)
        ),
        partner_lp_percentage=25,
        partner_locked_lp_percentage=25,
        creator_lp_percentage=25,
        creator_locked_lp_percentage=25,
        creator_trading_fee_percentage=settings.demo_creator_trading_fee_percentage,
        migration_quote_threshold=settings.demo_migration_quote_threshold,
        sqrt_start_price=designed.sqrt_start_price,
        migration_fee=MigrationFee(
            fee_percentage=settings.demo_migration_fee_percentage,
            creator_fee_percentage=settings.demo_creator_migration_fee_percentage,
        ),
        curve=designed.curve,
    )


def run_demo() -> PoolState:
    config = create_config(build_demo_parameters())
    pool = PoolState.initialize(config, creator=CREATOR, activation_point=0)

    now = 1
    while not pool.is_curve_complete(config.migration_quote_threshold):
        remaining = config.migration_quote_threshold - pool.quote_reserve
        if remaining > settings.demo_buy_amount:
            outcome = swap_exact_in(
                pool, config, TradeDirection.QUOTE_TO_BASE, settings.demo_buy_amount, 0, now
            )
        else:
            outcome = swap2(
                pool,
                config,
                TradeDirection.QUOTE_TO_BASE,
                settings.demo_buy_amount,
                0,
                SwapMode.PARTIAL_FILL,
                now,
            )
        logger.info(
            f"[DEMO] t={now} bought {outcome.amount_out} base for {outcome.amount_in} quote "
            f"(fee {outcome.fee}, refund {outcome.refund})"
        )
        now += 1

    market, locker, custody = InMemoryMarket(), InMemoryLocker(), InMemoryCustody()
    migrator = Migrator(market=market, locker=locker, custody=custody)
    migrator.create_migration_metadata(pool, config)
    result = migrator.migrate(pool, config)
    for owner in (PARTNER, CREATOR):
        migrator.lock_lp(pool, config, owner)
        migrator.claim_lp(pool, config, owner)

    for party in (Party.PARTNER, Party.PROTOCOL):
        withdraw_surplus(pool, config, party)
    for party in (Party.PARTNER, Party.CREATOR):
        withdraw_migration_fee(pool, config, party)
        claim_trading_fee(pool, party, max_base_amount=U64_MAX, max_quote_amount=U64_MAX)
    claim_protocol_fee(pool)

    logger.info(
        f"[DEMO] Done: progress={pool.migration_progress.name} lp={result.lp_amount} "
        f"burned={custody.burned} market_pools={len(market.pools)}"
    )
    return pool


def main() -> None:
    setup_logger(json_logs=settings.json_logs, level=settings.log_level)
    logger.info("Starting bonding-curve demo launch...")
    run_demo()


if __name__ == "__main__":
    main()
