"""Migration sequence: metadata -> (locker) -> migrate -> lock LP -> claim LP.

Collaborators are called before the staged pool is committed, so a failing
market or escrow call leaves the pool as it was.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from src.curve.distribution import get_migration_quote_amount
from src.exceptions import StateError
from src.migration.collaborators import (
    ConstantProductMarket,
    PoolCreationRequest,
    TokenCustody,
    VestingEscrowParams,
    VestingLocker,
)
from src.migration.lp import claim_lp, get_damm_v2_liquidity, get_lp_distribution, lock_lp
from src.migration.vesting import build_escrow_params
from src.migration.withdrawals import get_leftover_total
from src.models.config import PoolConfig
from src.models.enums import ClaimFlag, MigrationOption, MigrationProgress
from src.models.pool import LpDistribution, PoolState


@dataclass(frozen=True)
class MigrationResult:
    request: PoolCreationRequest
    lp_amount: int
    lp_distribution: LpDistribution
    burned_base_amount: int


def _require_progress(pool: PoolState, expected: MigrationProgress) -> None:
    if pool.migration_progress != expected:
        logger.warning(
            f"[MIGRATION] Rejected: progress {pool.migration_progress.name}, "
            f"expected {expected.name}"
        )
        raise StateError(
            f"migration progress is {pool.migration_progress.name}, expected {expected.name}"
        )


def get_burnable_amount(config: PoolConfig, leftover: int) -> int:
    if config.fixed_token_supply:
        max_burnable = config.pre_migration_token_supply - config.post_migration_token_supply
        return min(max_burnable, leftover)
    return leftover


def build_pool_creation_request(config: PoolConfig) -> PoolCreationRequest:
    quote_amount = get_migration_quote_amount(
        config.migration_quote_threshold, config.migration_fee.fee_percentage
    ).quote_amount
    base_amount = config.migration_base_threshold
    liquidity = 0
    if config.migration_option is MigrationOption.DAMM_V2:
        liquidity = get_damm_v2_liquidity(
            base_amount, quote_amount, config.migration_sqrt_price
        )
    return PoolCreationRequest(
        migration_option=config.migration_option,
        fee_option=config.migration_fee_option,
        base_amount=base_amount,
        quote_amount=quote_amount,
        sqrt_price=config.migration_sqrt_price,
        liquidity=liquidity,
    )


class Migrator:
    """Drives one pool through migration against external collaborators."""

    def __init__(
        self,
        *,
        market: ConstantProductMarket,
        locker: VestingLocker,
        custody: TokenCustody,
    ) -> None:
        self._market = market
        self._locker = locker
        self._custody = custody

    def create_migration_metadata(self, pool: PoolState, config: PoolConfig) -> None:
        _require_progress(pool, MigrationProgress.THRESHOLD_REACHED)
        pool.advance_progress(MigrationProgress.METADATA_CREATED)
        logger.info(f"[MIGRATION] Metadata created for {config.migration_option.value}")

    def create_locker(self, pool: PoolState, config: PoolConfig) -> VestingEscrowParams:
        _require_progress(pool, MigrationProgress.METADATA_CREATED)
        if not config.locked_vesting.has_vesting:
            raise StateError("config has no locked vesting")
        if pool.has_flag(ClaimFlag.VESTING_LOCKED):
            raise StateError("vesting escrow already created")

        params = build_escrow_params(config.locked_vesting, pool.finish_curve_timestamp)
        self._locker.create_vesting_escrow(pool.creator, params)
        pool.set_flag(ClaimFlag.VESTING_LOCKED)
        logger.info(
            f"[MIGRATION] Vesting escrow for {pool.creator}: total={params.total_amount} "
            f"cliff_time={params.cliff_time}"
        )
        return params

    def migrate(self, pool: PoolState, config: PoolConfig) -> MigrationResult:
        _require_progress(pool, MigrationProgress.METADATA_CREATED)
        if config.locked_vesting.has_vesting and not pool.has_flag(ClaimFlag.VESTING_LOCKED):
            raise StateError("vesting escrow must be created before migrating")

        request = build_pool_creation_request(config)
        leftover = get_leftover_total(pool, config)
        burnable = get_burnable_amount(config, leftover)

        lp_amount = self._market.create_pool(request)
        if config.migration_option is MigrationOption.DAMM_V2:
            lp_amount = request.liquidity
        distribution = get_lp_distribution(config, lp_amount)
        if burnable:
            self._custody.burn_base(burnable)

        pool.lp_distribution = distribution
        pool.burned_base_amount = burnable
        pool.advance_progress(MigrationProgress.MIGRATED)
        logger.info(
            f"[MIGRATION] Migrated: base={request.base_amount} quote={request.quote_amount} "
            f"lp={lp_amount} burned={burnable}"
        )
        return MigrationResult(
            request=request,
            lp_amount=lp_amount,
            lp_distribution=distribution,
            burned_base_amount=burnable,
        )

    def lock_lp(self, pool: PoolState, config: PoolConfig, owner: str) -> int:
        staged = pool.model_copy(deep=True)
        amount = lock_lp(staged, config, owner)
        self._market.lock_liquidity(owner, amount)
        pool.commit(staged)
        logger.info(f"[MIGRATION] {owner} locked {amount} LP")
        return amount

    def claim_lp(self, pool: PoolState, config: PoolConfig, owner: str) -> int:
        staged = pool.model_copy(deep=True)
        amount = claim_lp(staged, config, owner)
        self._market.claim_liquidity(owner, amount)
        pool.commit(staged)
        logger.info(f"[MIGRATION] {owner} claimed {amount} LP")
        return amount
