"""Configuration management using Pydantic Settings"""

from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LENDBOOK_",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./lendbook.db"

    # Service
    service_name: str = "lendbook"
    log_level: str = "INFO"

    # Credit limits
    base_limit: Decimal = Decimal("20000")
    tier_increment: Decimal = Decimal("5000")
    max_loan_cap: Decimal = Decimal("50000")

    # Repayments
    payment_tolerance: Decimal = Decimal("0.01")  # Absorbs installment rounding
    par_threshold_days: int = 30

    # Persistence writes
    persistence_max_retries: int = 3
    persistence_backoff_base: float = 0.5  # Exponential backoff base in seconds


settings = Settings()
