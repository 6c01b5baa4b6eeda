"""Tests for the migration sequence against mocked collaborators.

Covers: progress ordering, vesting escrow, pool creation, burns, LP
lock/claim hand-off, collaborator failures and end-to-end supply conservation.
"""

import pytest

from src.exceptions import StateError
from src.migration.migrator import Migrator, build_pool_creation_request, get_burnable_amount
from src.migration.withdrawals import get_leftover_total, withdraw_leftover
from src.models import (
    ClaimFlag,
    LockedVesting,
    MigrationOption,
    MigrationProgress,
    PoolState,
)

VESTING = LockedVesting(
    amount_per_period=1_000_000_000_000,
    cliff_duration_from_migration_time=3_600,
    frequency=86_400,
    number_of_period=10,
    cliff_unlock_amount=10_000_000_000_000,
)


# ═══════════════════════════════════════════════════════════════════════
# Ordering
# ═══════════════════════════════════════════════════════════════════════


class TestProgressOrdering:
    def test_metadata_requires_threshold(self, migrator, pool, launch_config):
        with pytest.raises(StateError, match="NOT_STARTED"):
            migrator.create_migration_metadata(pool, launch_config)

    def test_migrate_requires_metadata(self, migrator, completed_pool, launch_config, market):
        with pytest.raises(StateError, match="expected METADATA_CREATED"):
            migrator.migrate(completed_pool, launch_config)
        market.create_pool.assert_not_called()

    def test_metadata_only_once(self, migrator, completed_pool, launch_config):
        migrator.create_migration_metadata(completed_pool, launch_config)
        assert completed_pool.migration_progress is MigrationProgress.METADATA_CREATED
        with pytest.raises(StateError):
            migrator.create_migration_metadata(completed_pool, launch_config)

    def test_full_sequence(self, migrator, completed_pool, launch_config, market):
        migrator.create_migration_metadata(completed_pool, launch_config)
        migrator.migrate(completed_pool, launch_config)
        assert completed_pool.migration_progress is MigrationProgress.MIGRATED

        for owner in (launch_config.partner, completed_pool.creator):
            migrator.lock_lp(completed_pool, launch_config, owner)
        assert completed_pool.migration_progress is MigrationProgress.LP_LOCKED

        for owner in (launch_config.partner, completed_pool.creator):
            migrator.claim_lp(completed_pool, launch_config, owner)
        assert completed_pool.migration_progress is MigrationProgress.LP_CLAIMED
        assert market.lock_liquidity.call_count == 2
        assert market.claim_liquidity.call_count == 2


# ═══════════════════════════════════════════════════════════════════════
# Migrate
# ═══════════════════════════════════════════════════════════════════════


class TestMigrate:
    def test_pool_creation_request(self, migrator, completed_pool, launch_config, market):
        migrator.create_migration_metadata(completed_pool, launch_config)
        result = migrator.migrate(completed_pool, launch_config)

        request = market.create_pool.call_args.args[0]
        assert request == build_pool_creation_request(launch_config)
        assert request.base_amount == launch_config.migration_base_threshold
        assert request.quote_amount == launch_config.migration_quote_threshold
        assert request.sqrt_price == launch_config.migration_sqrt_price
        # concentrated-liquidity target: LP is the computed liquidity
        assert result.lp_amount == request.liquidity > 0
        assert completed_pool.lp_distribution == result.lp_distribution

    def test_constant_product_uses_market_lp(self, make_config, market, locker, custody, complete):
        config = make_config(migration_option=MigrationOption.METEORA_DAMM)
        pool = PoolState.initialize(config, creator="creator-wallet")
        complete(pool, config)
        migrator = Migrator(market=market, locker=locker, custody=custody)
        migrator.create_migration_metadata(pool, config)

        result = migrator.migrate(pool, config)
        assert result.request.liquidity == 0
        assert result.lp_amount == market.create_pool.return_value

    def test_dynamic_supply_burns_all_leftover(
        self, migrator, completed_pool, launch_config, custody
    ):
        leftover = get_leftover_total(completed_pool, launch_config)
        migrator.create_migration_metadata(completed_pool, launch_config)
        result = migrator.migrate(completed_pool, launch_config)

        assert result.burned_base_amount == leftover
        assert completed_pool.burned_base_amount == leftover
        if leftover:
            custody.burn_base.assert_called_once_with(leftover)
        else:
            custody.burn_base.assert_not_called()

    def test_fixed_supply_burn_is_capped(self, make_config):
        config = make_config(fixed_supply=True)
        cap = config.pre_migration_token_supply - config.post_migration_token_supply
        assert get_burnable_amount(config, cap + 1_000) == cap
        assert get_burnable_amount(config, 0) == 0

    def test_market_failure_leaves_pool_unchanged(
        self, migrator, completed_pool, launch_config, market
    ):
        migrator.create_migration_metadata(completed_pool, launch_config)
        before = completed_pool.model_dump()
        market.create_pool.side_effect = RuntimeError("market unavailable")

        with pytest.raises(RuntimeError):
            migrator.migrate(completed_pool, launch_config)
        assert completed_pool.model_dump() == before

    def test_lock_failure_leaves_flags_unset(
        self, migrator, completed_pool, launch_config, market
    ):
        migrator.create_migration_metadata(completed_pool, launch_config)
        migrator.migrate(completed_pool, launch_config)
        market.lock_liquidity.side_effect = RuntimeError("lock failed")

        with pytest.raises(RuntimeError):
            migrator.lock_lp(completed_pool, launch_config, launch_config.partner)
        assert not completed_pool.has_flag(ClaimFlag.PARTNER_LP_LOCKED)


# ═══════════════════════════════════════════════════════════════════════
# Vesting
# ═══════════════════════════════════════════════════════════════════════


class TestVestingLocker:
    @pytest.fixture
    def vesting_config(self, make_config):
        return make_config(locked_vesting=VESTING)

    @pytest.fixture
    def vesting_pool(self, vesting_config, complete):
        pool = PoolState.initialize(vesting_config, creator="creator-wallet")
        complete(pool, vesting_config, now=1_000)
        return pool

    def test_escrow_created_for_creator(self, migrator, vesting_pool, vesting_config, locker):
        migrator.create_migration_metadata(vesting_pool, vesting_config)
        params = migrator.create_locker(vesting_pool, vesting_config)

        locker.create_vesting_escrow.assert_called_once_with("creator-wallet", params)
        assert params.vesting_start_time == 1_000
        assert params.cliff_time == 4_600
        assert params.total_amount == VESTING.total_amount
        assert vesting_pool.has_flag(ClaimFlag.VESTING_LOCKED)

    def test_migrate_requires_escrow(self, migrator, vesting_pool, vesting_config):
        migrator.create_migration_metadata(vesting_pool, vesting_config)
        with pytest.raises(StateError, match="vesting escrow"):
            migrator.migrate(vesting_pool, vesting_config)

    def test_escrow_once(self, migrator, vesting_pool, vesting_config):
        migrator.create_migration_metadata(vesting_pool, vesting_config)
        migrator.create_locker(vesting_pool, vesting_config)
        with pytest.raises(StateError, match="already created"):
            migrator.create_locker(vesting_pool, vesting_config)

    def test_no_vesting_configured(self, migrator, completed_pool, launch_config):
        migrator.create_migration_metadata(completed_pool, launch_config)
        with pytest.raises(StateError, match="no locked vesting"):
            migrator.create_locker(completed_pool, launch_config)


# ═══════════════════════════════════════════════════════════════════════
# Supply conservation
# ═══════════════════════════════════════════════════════════════════════


class TestSupplyConservation:
    """sold + migrated + vested + leftover == post-migration supply."""

    def test_fixed_supply_with_vesting(self, make_config, migrator, complete):
        config = make_config(fixed_supply=True, locked_vesting=VESTING)
        pool = PoolState.initialize(config, creator="creator-wallet")
        complete(pool, config)

        migrator.create_migration_metadata(pool, config)
        migrator.create_locker(pool, config)
        migrator.migrate(pool, config)
        leftover = withdraw_leftover(pool, config)

        sold = config.pre_migration_token_supply - pool.base_reserve
        total = sold + config.migration_base_threshold + VESTING.total_amount + leftover
        assert total == config.post_migration_token_supply
        assert pool.burned_base_amount == (
            config.pre_migration_token_supply - config.post_migration_token_supply
        )

    def test_dynamic_supply(self, migrator, completed_pool, launch_config):
        migrator.create_migration_metadata(completed_pool, launch_config)
        result = migrator.migrate(completed_pool, launch_config)

        sold = launch_config.initial_base_supply - completed_pool.base_reserve
        circulating = launch_config.initial_base_supply - result.burned_base_amount
        assert circulating == sold + launch_config.migration_base_threshold
