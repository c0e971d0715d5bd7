"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite+aiosqlite:///./treasury.db"
    database_echo: bool = False

    # Service
    service_name: str = "treasury-analytics"
    log_level: str = "INFO"

    # Analytics windows
    liquidity_window: int = 90  # most recent transactions used for liquidity
    overview_balance_window: int = 30  # most recent transactions used for average daily balance
    liquidity_threshold_amount: float = 25000.0
    vendor_limit: int = 50

    # Dashboard
    dashboard_cash_flow_points: int = 30
    dashboard_category_limit: int = 10


settings = Settings()
