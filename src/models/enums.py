"""Enumerations shared by the curve, fee and migration layers."""

from __future__ import annotations

from enum import Enum, IntEnum, IntFlag


class TradeDirection(str, Enum):
    BASE_TO_QUOTE = "base_to_quote"  # sell
    QUOTE_TO_BASE = "quote_to_base"  # buy


class SwapMode(str, Enum):
    EXACT_IN = "exact_in"
    PARTIAL_FILL = "partial_fill"
    EXACT_OUT = "exact_out"


class CollectFeeMode(str, Enum):
    """Which token trading fees are withheld from."""

    QUOTE_TOKEN = "quote_token"
    OUTPUT_TOKEN = "output_token"


class TokenSide(str, Enum):
    BASE = "base"
    QUOTE = "quote"


class ActivationType(str, Enum):
    SLOT = "slot"
    TIMESTAMP = "timestamp"


class MigrationOption(str, Enum):
    """Target constant-product market."""

    METEORA_DAMM = "meteora_damm"
    DAMM_V2 = "damm_v2"


class MigrationFeeOption(IntEnum):
    """Base fee tier (bps) of the pool created on the target market."""

    FIXED_BPS_25 = 25
    FIXED_BPS_30 = 30
    FIXED_BPS_100 = 100
    FIXED_BPS_200 = 200
    FIXED_BPS_400 = 400
    FIXED_BPS_600 = 600


class MigrationProgress(IntEnum):
    """Monotonic lifecycle of a pool. Ordering is meaningful."""

    NOT_STARTED = 0
    THRESHOLD_REACHED = 1
    METADATA_CREATED = 2
    MIGRATED = 3
    LP_LOCKED = 4
    LP_CLAIMED = 5


class Party(str, Enum):
    PROTOCOL = "protocol"
    PARTNER = "partner"
    CREATOR = "creator"


class ClaimAction(str, Enum):
    SURPLUS = "surplus"
    MIGRATION_FEE = "migration_fee"
    LP_LOCK = "lp_lock"
    LP_CLAIM = "lp_claim"


class ClaimFlag(IntFlag):
    """One bit per one-time action, keyed by (party, action)."""

    PARTNER_SURPLUS = 1 << 0
    PROTOCOL_SURPLUS = 1 << 1
    CREATOR_MIGRATION_FEE = 1 << 2
    PARTNER_MIGRATION_FEE = 1 << 3
    CREATOR_LP_LOCKED = 1 << 4
    PARTNER_LP_LOCKED = 1 << 5
    CREATOR_LP_CLAIMED = 1 << 6
    PARTNER_LP_CLAIMED = 1 << 7
    LEFTOVER_WITHDRAWN = 1 << 8
    VESTING_LOCKED = 1 << 9


_CLAIM_FLAGS: dict[tuple[Party, ClaimAction], ClaimFlag] = {
    (Party.PARTNER, ClaimAction.SURPLUS): ClaimFlag.PARTNER_SURPLUS,
    (Party.PROTOCOL, ClaimAction.SURPLUS): ClaimFlag.PROTOCOL_SURPLUS,
    (Party.CREATOR, ClaimAction.MIGRATION_FEE): ClaimFlag.CREATOR_MIGRATION_FEE,
    (Party.PARTNER, ClaimAction.MIGRATION_FEE): ClaimFlag.PARTNER_MIGRATION_FEE,
    (Party.CREATOR, ClaimAction.LP_LOCK): ClaimFlag.CREATOR_LP_LOCKED,
    (Party.PARTNER, ClaimAction.LP_LOCK): ClaimFlag.PARTNER_LP_LOCKED,
    (Party.CREATOR, ClaimAction.LP_CLAIM): ClaimFlag.CREATOR_LP_CLAIMED,
    (Party.PARTNER, ClaimAction.LP_CLAIM): ClaimFlag.PARTNER_LP_CLAIMED,
}


def claim_flag(party: Party, action: ClaimAction) -> ClaimFlag:
    try:
        return _CLAIM_FLAGS[(party, action)]
    except KeyError:
        raise ValueError(f"{party.value} has no {action.value} action") from None
