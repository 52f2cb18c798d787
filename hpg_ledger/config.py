"""Configuration management using Pydantic Settings"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from hpg_ledger.domain.assessment import GRANDFATHERED_YEAR
from hpg_ledger.domain.loans import PENALTY_RATE


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./hpg_ledger.db"

    # Service
    service_name: str = "hpg-ledger"
    log_level: str = "INFO"

    # Ledger rules
    # Pending product-owner confirmation
    grandfathered_year: int = GRANDFATHERED_YEAR
    default_fiscal_year: int = 2026
    penalty_rate: float = PENALTY_RATE

    # Customers imported when the persisted customer collection is empty
    seed_file: Optional[str] = None


settings = Settings()
