class EngineError(Exception):
    pass


class ConfigurationError(EngineError):
    pass


class MathOverflowError(EngineError, ArithmeticError):
    pass


class SlippageExceeded(EngineError):
    pass


class RateLimiterBatchViolation(EngineError):
    pass


class StateError(EngineError):
    pass


class InsufficientCurveLiquidity(EngineError):
    pass


class InvalidSwapError(EngineError):
    pass


class InsufficientLiquidityForMigration(EngineError):
    pass
