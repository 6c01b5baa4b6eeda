"""Tests for LP distribution and one-time lock/claim bookkeeping."""

import pytest

from src.constants import ONE_Q64
from src.exceptions import StateError
from src.migration.lp import claim_lp, get_damm_v2_liquidity, get_lp_distribution, lock_lp
from src.models import ClaimFlag, LpDistribution, MigrationProgress, PoolState


def _migrated_pool(creator: str, distribution: LpDistribution) -> PoolState:
    return PoolState(
        creator=creator,
        base_reserve=0,
        sqrt_price=ONE_Q64,
        migration_progress=MigrationProgress.MIGRATED,
        lp_distribution=distribution,
    )


EVEN = LpDistribution(partner_locked_lp=250, partner_lp=250, creator_locked_lp=250, creator_lp=250)


class TestDistribution:
    def test_even_split(self, launch_config):
        assert get_lp_distribution(launch_config, 1_000) == EVEN

    def test_remainder_goes_to_creator(self, make_config):
        config = make_config(lp_percentages=(33, 33, 33, 1))
        split = get_lp_distribution(config, 1_000)
        assert split.partner_lp == split.partner_locked_lp == 330
        assert split.creator_locked_lp == 10
        assert split.creator_lp == 330

    def test_damm_v2_liquidity_is_positive(self, launch_config):
        liquidity = get_damm_v2_liquidity(
            launch_config.migration_base_threshold,
            launch_config.migration_quote_threshold,
            launch_config.migration_sqrt_price,
        )
        assert liquidity > 0


class TestSeparateParties:
    def test_lock_then_claim_each(self, launch_config):
        pool = _migrated_pool("creator-wallet", EVEN)
        partner = launch_config.partner

        assert lock_lp(pool, launch_config, partner) == 250
        assert pool.has_flag(ClaimFlag.PARTNER_LP_LOCKED)
        assert pool.migration_progress is MigrationProgress.MIGRATED

        assert lock_lp(pool, launch_config, "creator-wallet") == 250
        assert pool.migration_progress is MigrationProgress.LP_LOCKED

        assert claim_lp(pool, launch_config, partner) == 250
        assert pool.migration_progress is MigrationProgress.LP_LOCKED
        assert claim_lp(pool, launch_config, "creator-wallet") == 250
        assert pool.migration_progress is MigrationProgress.LP_CLAIMED

    def test_claim_requires_lock(self, launch_config):
        pool = _migrated_pool("creator-wallet", EVEN)
        with pytest.raises(StateError, match="must lock"):
            claim_lp(pool, launch_config, launch_config.partner)
        assert pool.claim_flags == 0

    def test_second_lock_rejected(self, launch_config):
        pool = _migrated_pool("creator-wallet", EVEN)
        lock_lp(pool, launch_config, launch_config.partner)
        with pytest.raises(StateError, match="already locked"):
            lock_lp(pool, launch_config, launch_config.partner)

    def test_stranger_rejected(self, launch_config):
        pool = _migrated_pool("creator-wallet", EVEN)
        with pytest.raises(StateError, match="neither partner nor creator"):
            lock_lp(pool, launch_config, "someone-else")

    def test_before_migration_rejected(self, launch_config):
        pool = _migrated_pool("creator-wallet", EVEN)
        pool.migration_progress = MigrationProgress.METADATA_CREATED
        with pytest.raises(StateError, match="not migrated"):
            lock_lp(pool, launch_config, launch_config.partner)

    def test_zero_locked_share(self, launch_config):
        split = LpDistribution(
            partner_locked_lp=0, partner_lp=500, creator_locked_lp=250, creator_lp=250
        )
        pool = _migrated_pool("creator-wallet", split)
        with pytest.raises(StateError, match="no locked LP"):
            lock_lp(pool, launch_config, launch_config.partner)
        # nothing to lock, so claiming is open right away
        assert claim_lp(pool, launch_config, launch_config.partner) == 500


class TestSelfPartnered:
    """Partner and creator are the same owner: one call covers both roles."""

    def test_single_calls_cover_both_roles(self, launch_config):
        pool = _migrated_pool(launch_config.partner, EVEN)

        assert lock_lp(pool, launch_config, launch_config.partner) == 500
        assert pool.has_flag(ClaimFlag.PARTNER_LP_LOCKED)
        assert pool.has_flag(ClaimFlag.CREATOR_LP_LOCKED)
        assert pool.migration_progress is MigrationProgress.LP_LOCKED

        assert claim_lp(pool, launch_config, launch_config.partner) == 500
        assert pool.migration_progress is MigrationProgress.LP_CLAIMED

    def test_second_claim_rejected(self, launch_config):
        pool = _migrated_pool(launch_config.partner, EVEN)
        lock_lp(pool, launch_config, launch_config.partner)
        claim_lp(pool, launch_config, launch_config.partner)
        with pytest.raises(StateError, match="already claimed"):
            claim_lp(pool, launch_config, launch_config.partner)
