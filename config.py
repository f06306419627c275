"""
Configuration management for the currency ledger.
Uses pydantic-settings for type-safe, centralized configuration.
"""

from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Ledger settings read from the environment or a local .env file.
    Field names map to upper-case variables (e.g. STORE_BACKEND=memory).
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'  # Allow extra fields in .env for flexibility
    )

    # Database
    database_url: str = "sqlite:///currency_ledger.db"
    db_echo: bool = False
    store_backend: Literal["sql", "memory"] = "sql"

    # Accounting
    # When enabled, BUY transactions also increment the daily transaction count.
    # Profit is unaffected either way since buys realize nothing.
    count_buys_in_daily_stat: bool = False
    seed_default_currencies: bool = True

    # Market rates are quoted in this currency (units of base per 1 foreign unit)
    base_currency: str = "INR"

    # Logging
    log_level: str = "INFO"

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
