"""Shared test fixtures.

Configs are designed with `design_curve` so every test runs against a curve
that a launch UI could actually submit. Collaborators are MagicMocks.
"""

from unittest.mock import MagicMock

import pytest

from src.curve.config_builder import create_config
from src.curve.distribution import design_curve
from src.curve.executor import swap2
from src.migration.migrator import Migrator
from src.models import (
    CollectFeeMode,
    ConfigParameters,
    FeeSchedulerConfig,
    LockedVesting,
    MigrationFee,
    MigrationOption,
    PoolConfig,
    PoolFees,
    PoolState,
    SwapMode,
    TradeDirection,
)

PARTNER = "partner-wallet"
CREATOR = "creator-wallet"
LEFTOVER_RECEIVER = "treasury-wallet"

# 1B tokens at 6 decimals, 20% to migration, 85 SOL threshold
LAUNCH_SUPPLY = 1_000_000_000_000_000
LAUNCH_THRESHOLD = 85_000_000_000


def build_params(
    *,
    total_supply: int = LAUNCH_SUPPLY,
    migration_percentage: int = 20,
    threshold: int = LAUNCH_THRESHOLD,
    collect_fee_mode: CollectFeeMode = CollectFeeMode.QUOTE_TOKEN,
    pool_fees: PoolFees | None = None,
    locked_vesting: LockedVesting | None = None,
    migration_fee: MigrationFee | None = None,
    fixed_supply: bool = False,
    creator_trading_fee_percentage: int = 0,
    lp_percentages: tuple[int, int, int, int] = (25, 25, 25, 25),
    migration_option: MigrationOption = MigrationOption.DAMM_V2,
) -> ConfigParameters:
    """ConfigParameters around a designed single-segment curve.

    lp_percentages: (partner, partner_locked, creator, creator_locked).
    """
    vesting = locked_vesting or LockedVesting()
    fee = migration_fee or MigrationFee()
    designed = design_curve(
        total_supply=total_supply,
        migration_percentage=migration_percentage,
        migration_quote_threshold=threshold,
        migration_option=migration_option,
        locked_vesting=vesting,
        migration_fee_percentage=fee.fee_percentage,
        fixed_supply=fixed_supply,
    )
    partner_lp, partner_locked, creator_lp, creator_locked = lp_percentages
    return ConfigParameters(
        partner=PARTNER,
        leftover_receiver=LEFTOVER_RECEIVER,
        pool_fees=pool_fees or default_pool_fees(),
        collect_fee_mode=collect_fee_mode,
        migration_option=migration_option,
        partner_lp_percentage=partner_lp,
        partner_locked_lp_percentage=partner_locked,
        creator_lp_percentage=creator_lp,
        creator_locked_lp_percentage=creator_locked,
        creator_trading_fee_percentage=creator_trading_fee_percentage,
        migration_quote_threshold=threshold,
        sqrt_start_price=designed.sqrt_start_price,
        locked_vesting=vesting,
        migration_fee=fee,
        token_supply=designed.token_supply,
        curve=designed.curve,
    )


def default_pool_fees(**overrides) -> PoolFees:
    """1% flat scheduler fee with explicit protocol/referral shares."""
    values = {
        "base_fee": FeeSchedulerConfig(cliff_fee_numerator=10_000_000),
        "protocol_fee_percent": 20,
        "referral_fee_percent": 20,
    }
    values.update(overrides)
    return PoolFees(**values)


def complete_curve(pool: PoolState, config: PoolConfig, now: int = 50) -> None:
    """Buy exactly up to the migration threshold with one partial fill."""
    swap2(
        pool,
        config,
        TradeDirection.QUOTE_TO_BASE,
        config.migration_quote_threshold * 2,
        0,
        SwapMode.PARTIAL_FILL,
        now,
    )


@pytest.fixture
def make_config():
    """Factory: keyword overrides for build_params -> validated PoolConfig."""

    def _make(**kwargs) -> PoolConfig:
        return create_config(build_params(**kwargs))

    return _make


@pytest.fixture
def launch_config(make_config) -> PoolConfig:
    return make_config()


@pytest.fixture
def small_config(make_config) -> PoolConfig:
    """1B raw units, 10% migration, 300-unit threshold."""
    return make_config(total_supply=1_000_000_000, migration_percentage=10, threshold=300)


@pytest.fixture
def pool(launch_config) -> PoolState:
    return PoolState.initialize(launch_config, creator=CREATOR)


@pytest.fixture
def market() -> MagicMock:
    mock = MagicMock()
    mock.create_pool.return_value = 1_000_000
    return mock


@pytest.fixture
def locker() -> MagicMock:
    return MagicMock()


@pytest.fixture
def custody() -> MagicMock:
    return MagicMock()


@pytest.fixture
def migrator(market, locker, custody) -> Migrator:
    return Migrator(market=market, locker=locker, custody=custody)


@pytest.fixture
def make_params():
    """Factory for unvalidated ConfigParameters (see build_params)."""
    return build_params


@pytest.fixture
def completed_pool(pool, launch_config) -> PoolState:
    complete_curve(pool, launch_config)
    return pool


@pytest.fixture
def make_pool_fees():
    return default_pool_fees


@pytest.fixture
def complete():
    """complete_curve(pool, config, now=50)."""
    return complete_curve
