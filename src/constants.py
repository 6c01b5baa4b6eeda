"""Protocol constants for the bonding-curve engine.

Prices are Q64.64 square roots, fee numerators are parts of FEE_DENOMINATOR.
"""

# Sqrt-price bounds (Q64.64)
MIN_SQRT_PRICE = 4295048016
MAX_SQRT_PRICE = 79226673521066979257578248091

RESOLUTION = 64
ONE_Q64 = 1 << RESOLUTION

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1
U24_MAX = 0xFFFFFF

BASIS_POINT_MAX = 10_000

# Fees
FEE_DENOMINATOR = 1_000_000_000
MAX_FEE_NUMERATOR = 500_000_000  # 50%
MIN_FEE_NUMERATOR = 100_000  # 0.01%
PROTOCOL_FEE_PERCENT = 20
HOST_FEE_PERCENT = 20

# Dynamic fee
BIN_STEP_BPS_DEFAULT = 1
BIN_STEP_BPS_U128_DEFAULT = 1844674407370955  # (1 << 64) / 10_000
DYNAMIC_FEE_SCALE = 100_000_000_000

# Rate limiter window caps
MAX_RATE_LIMITER_DURATION_IN_SECONDS = 43_200  # 12h
MAX_RATE_LIMITER_DURATION_IN_SLOTS = 108_000  # 12h at 400ms slots

# Curve
MAX_CURVE_POINT = 16
SWAP_BUFFER_PERCENTAGE = 25
PARTNER_SURPLUS_SHARE = 80
MAX_SWALLOW_PERCENTAGE = 20

# Migration
MAX_MIGRATION_FEE_PERCENTAGE = 50
MAX_CREATOR_MIGRATION_FEE_PERCENTAGE = 100
MIN_TOKEN_DECIMALS = 6
MAX_TOKEN_DECIMALS = 9
