from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False
    log_file: str = "logs/engine_{time:YYYY-MM-DD}.log"
    audit_log_file: str = "logs/engine_audit.log"

    # Fee distribution defaults (percent)
    protocol_fee_percent: int = 20
    referral_fee_percent: int = 20  # share of the protocol fee paid to referrers

    # Demo launch (python -m src.main)
    demo_total_supply: int = 1_000_000_000_000_000  # 1B with 6 decimals
    demo_migration_percentage: int = 20
    demo_migration_quote_threshold: int = 85_000_000_000  # 85 SOL in lamports
    demo_cliff_fee_numerator: int = 10_000_000  # 1%
    demo_creator_trading_fee_percentage: int = 50
    demo_buy_amount: int = 5_000_000_000
    demo_migration_fee_percentage: int = 5
    demo_creator_migration_fee_percentage: int = 50


settings = Settings()
