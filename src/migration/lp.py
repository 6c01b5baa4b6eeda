"""LP position split and one-time lock/claim bookkeeping.

Lock and claim operate over the set of roles an owner holds. When the
partner also created the pool, one call satisfies both roles.
"""

from __future__ import annotations

from src.constants import MAX_SQRT_PRICE, MIN_SQRT_PRICE
from src.curve.curve_math import (
    get_initial_liquidity_from_delta_base,
    get_initial_liquidity_from_delta_quote,
)
from src.exceptions import StateError
from src.models.config import PoolConfig
from src.models.enums import ClaimAction, MigrationProgress, Party, claim_flag
from src.models.pool import LpDistribution, PoolState
from src.utils.safe_math import Rounding, mul_div, safe_sub

LP_PARTIES = (Party.PARTNER, Party.CREATOR)


def get_lp_distribution(config: PoolConfig, lp_amount: int) -> LpDistribution:
    partner_locked = mul_div(lp_amount, config.partner_locked_lp_percentage, 100, Rounding.DOWN)
    partner = mul_div(lp_amount, config.partner_lp_percentage, 100, Rounding.DOWN)
    creator_locked = mul_div(lp_amount, config.creator_locked_lp_percentage, 100, Rounding.DOWN)
    creator = safe_sub(lp_amount, partner_locked + partner + creator_locked)
    return LpDistribution(
        partner_locked_lp=partner_locked,
        partner_lp=partner,
        creator_locked_lp=creator_locked,
        creator_lp=creator,
    )


def get_damm_v2_liquidity(base_amount: int, quote_amount: int, sqrt_price: int) -> int:
    """Full-range liquidity the deposit supports on both sides of `sqrt_price`."""
    return min(
        get_initial_liquidity_from_delta_base(base_amount, MAX_SQRT_PRICE, sqrt_price),
        get_initial_liquidity_from_delta_quote(quote_amount, MIN_SQRT_PRICE, sqrt_price),
    )


def locked_lp(distribution: LpDistribution, party: Party) -> int:
    if party is Party.PARTNER:
        return distribution.partner_locked_lp
    return distribution.creator_locked_lp


def unlocked_lp(distribution: LpDistribution, party: Party) -> int:
    if party is Party.PARTNER:
        return distribution.partner_lp
    return distribution.creator_lp


def resolve_roles(config: PoolConfig, pool: PoolState, owner: str) -> set[Party]:
    roles = set()
    if owner == config.partner:
        roles.add(Party.PARTNER)
    if owner == pool.creator:
        roles.add(Party.CREATOR)
    if not roles:
        raise StateError(f"{owner} is neither partner nor creator")
    return roles


def _distribution(pool: PoolState) -> LpDistribution:
    if pool.migration_progress < MigrationProgress.MIGRATED or pool.lp_distribution is None:
        raise StateError("pool has not migrated")
    return pool.lp_distribution


def _refresh_progress(pool: PoolState, distribution: LpDistribution) -> None:
    all_locked = all(
        pool.has_flag(claim_flag(party, ClaimAction.LP_LOCK))
        for party in LP_PARTIES
        if locked_lp(distribution, party)
    )
    all_claimed = all(
        pool.has_flag(claim_flag(party, ClaimAction.LP_CLAIM))
        for party in LP_PARTIES
        if unlocked_lp(distribution, party)
    )
    if all_locked:
        pool.advance_progress(MigrationProgress.LP_LOCKED)
        if all_claimed:
            pool.advance_progress(MigrationProgress.LP_CLAIMED)


def lock_lp(pool: PoolState, config: PoolConfig, owner: str) -> int:
    """Mark the owner's locked share as locked. Returns the amount to lock."""
    distribution = _distribution(pool)
    pending = [
        party
        for party in resolve_roles(config, pool, owner)
        if not pool.has_flag(claim_flag(party, ClaimAction.LP_LOCK))
    ]
    if not pending:
        raise StateError(f"LP already locked for {owner}")

    amount = sum(locked_lp(distribution, party) for party in pending)
    if amount == 0:
        raise StateError(f"{owner} has no locked LP share")

    for party in pending:
        pool.set_flag(claim_flag(party, ClaimAction.LP_LOCK))
    _refresh_progress(pool, distribution)
    return amount


def claim_lp(pool: PoolState, config: PoolConfig, owner: str) -> int:
    """Mark the owner's unlocked share as claimed. Returns the amount to claim."""
    distribution = _distribution(pool)
    pending = [
        party
        for party in resolve_roles(config, pool, owner)
        if not pool.has_flag(claim_flag(party, ClaimAction.LP_CLAIM))
    ]
    if not pending:
        raise StateError(f"LP already claimed for {owner}")

    for party in pending:
        locked = locked_lp(distribution, party)
        if locked and not pool.has_flag(claim_flag(party, ClaimAction.LP_LOCK)):
            raise StateError(f"{party.value} must lock LP before claiming")

    amount = sum(unlocked_lp(distribution, party) for party in pending)
    if amount == 0:
        raise StateError(f"{owner} has no LP to claim")

    for party in pending:
        pool.set_flag(claim_flag(party, ClaimAction.LP_CLAIM))
    _refresh_progress(pool, distribution)
    return amount
