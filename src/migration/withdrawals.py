"""One-time withdrawals and fee claims after (and around) curve completion.

Every operation validates before it mutates, so a rejected call leaves the
pool untouched.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from src.constants import PARTNER_SURPLUS_SHARE
from src.curve.distribution import get_migration_quote_amount
from src.exceptions import StateError
from src.models.config import PoolConfig
from src.models.enums import ClaimAction, ClaimFlag, MigrationProgress, Party, claim_flag
from src.models.pool import PoolState
from src.utils.safe_math import Rounding, checked_u64, mul_div_u64, safe_sub


@dataclass(frozen=True)
class FeeClaim:
    base_amount: int
    quote_amount: int


@dataclass(frozen=True)
class MigrationFeeDistribution:
    partner_migration_fee: int
    creator_migration_fee: int


def _require_curve_complete(pool: PoolState, config: PoolConfig) -> None:
    if not pool.is_curve_complete(config.migration_quote_threshold):
        raise StateError("curve is not complete")


def _require_unset(pool: PoolState, flag: ClaimFlag) -> None:
    if pool.has_flag(flag):
        logger.warning(f"[CLAIM] Rejected: {flag.name} already done")
        raise StateError(f"{flag.name} already done")


def get_surplus_split(pool: PoolState, config: PoolConfig) -> tuple[int, int]:
    """Returns (partner_surplus, protocol_surplus)."""
    total = safe_sub(pool.quote_reserve, config.migration_quote_threshold)
    partner = mul_div_u64(total, PARTNER_SURPLUS_SHARE, 100, Rounding.DOWN)
    return partner, total - partner


def withdraw_surplus(pool: PoolState, config: PoolConfig, party: Party) -> int:
    if party not in (Party.PARTNER, Party.PROTOCOL):
        raise StateError(f"{party.value} has no surplus share")
    _require_curve_complete(pool, config)
    flag = claim_flag(party, ClaimAction.SURPLUS)
    _require_unset(pool, flag)

    partner, protocol = get_surplus_split(pool, config)
    amount = partner if party is Party.PARTNER else protocol
    pool.set_flag(flag)
    logger.info(f"[CLAIM] {party.value} surplus withdrawn: {amount}")
    return amount


def get_migration_fee_distribution(config: PoolConfig) -> MigrationFeeDistribution:
    fee = get_migration_quote_amount(
        config.migration_quote_threshold, config.migration_fee.fee_percentage
    ).fee
    creator = mul_div_u64(
        fee, config.migration_fee.creator_fee_percentage, 100, Rounding.DOWN
    )
    return MigrationFeeDistribution(
        partner_migration_fee=fee - creator, creator_migration_fee=creator
    )


def withdraw_migration_fee(pool: PoolState, config: PoolConfig, party: Party) -> int:
    if party not in (Party.PARTNER, Party.CREATOR):
        raise StateError(f"{party.value} has no migration fee share")
    _require_curve_complete(pool, config)
    flag = claim_flag(party, ClaimAction.MIGRATION_FEE)
    _require_unset(pool, flag)

    distribution = get_migration_fee_distribution(config)
    amount = (
        distribution.partner_migration_fee
        if party is Party.PARTNER
        else distribution.creator_migration_fee
    )
    pool.set_flag(flag)
    logger.info(f"[CLAIM] {party.value} migration fee withdrawn: {amount}")
    return amount


def get_leftover_total(pool: PoolState, config: PoolConfig) -> int:
    """Base left in the pool once migration and vesting allocations are taken."""
    return safe_sub(
        pool.base_reserve,
        config.migration_base_threshold + config.locked_vesting.total_amount,
    )


def withdraw_leftover(pool: PoolState, config: PoolConfig) -> int:
    if not config.fixed_token_supply:
        raise StateError("leftover withdrawal requires a fixed token supply")
    if pool.migration_progress < MigrationProgress.MIGRATED:
        raise StateError("pool has not migrated")
    _require_unset(pool, ClaimFlag.LEFTOVER_WITHDRAWN)

    amount = safe_sub(get_leftover_total(pool, config), pool.burned_base_amount)
    pool.set_flag(ClaimFlag.LEFTOVER_WITHDRAWN)
    logger.info(f"[CLAIM] Leftover {amount} base sent to {config.leftover_receiver}")
    return amount


def claim_trading_fee(
    pool: PoolState, party: Party, max_base_amount: int, max_quote_amount: int
) -> FeeClaim:
    """Pay out up to the caps from the party's own counters."""
    max_base_amount = checked_u64(max_base_amount)
    max_quote_amount = checked_u64(max_quote_amount)
    if party is Party.PARTNER:
        base = min(pool.partner_base_fee, max_base_amount)
        quote = min(pool.partner_quote_fee, max_quote_amount)
        pool.partner_base_fee -= base
        pool.partner_quote_fee -= quote
    elif party is Party.CREATOR:
        base = min(pool.creator_base_fee, max_base_amount)
        quote = min(pool.creator_quote_fee, max_quote_amount)
        pool.creator_base_fee -= base
        pool.creator_quote_fee -= quote
    else:
        raise StateError("protocol fees are claimed with claim_protocol_fee")
    logger.info(f"[CLAIM] {party.value} trading fee: base={base} quote={quote}")
    return FeeClaim(base_amount=base, quote_amount=quote)


def claim_protocol_fee(pool: PoolState) -> FeeClaim:
    claim = FeeClaim(base_amount=pool.protocol_base_fee, quote_amount=pool.protocol_quote_fee)
    pool.protocol_base_fee = 0
    pool.protocol_quote_fee = 0
    logger.info(
        f"[CLAIM] protocol fee: base={claim.base_amount} quote={claim.quote_amount}"
    )
    return claim
