from src.models.config import (
    ConfigParameters,
    CurvePoint,
    LockedVesting,
    MigrationFee,
    PoolConfig,
    TokenSupply,
)
from src.models.enums import (
    ActivationType,
    ClaimAction,
    ClaimFlag,
    CollectFeeMode,
    MigrationFeeOption,
    MigrationOption,
    MigrationProgress,
    Party,
    SwapMode,
    TokenSide,
    TradeDirection,
)
from src.models.fees import (
    DynamicFeeConfig,
    FeeSchedulerConfig,
    PoolFees,
    RateLimiterConfig,
    base_fee_from_factors,
)
from src.models.pool import LpDistribution, PoolMetrics, PoolState, VolatilityTracker

__all__ = [
    "ConfigParameters",
    "CurvePoint",
    "LockedVesting",
    "MigrationFee",
    "PoolConfig",
    "TokenSupply",
    "ActivationType",
    "ClaimAction",
    "ClaimFlag",
    "CollectFeeMode",
    "MigrationFeeOption",
    "MigrationOption",
    "MigrationProgress",
    "Party",
    "SwapMode",
    "TokenSide",
    "TradeDirection",
    "DynamicFeeConfig",
    "FeeSchedulerConfig",
    "PoolFees",
    "RateLimiterConfig",
    "base_fee_from_factors",
    "LpDistribution",
    "PoolMetrics",
    "PoolState",
    "VolatilityTracker",
]
