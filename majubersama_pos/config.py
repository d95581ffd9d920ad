"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./pos_data.db"
    sqlalchemy_echo: bool = False

    # Service
    service_name: str = "majubersama-pos"
    store_name: str = "CV. Maju Bersama"
    log_level: str = "INFO"

    # Ledger rules
    enforce_debt_limit: bool = True
    overdue_grace_days: int = 0  # Days added to a due date before a debt counts as overdue

    # Cashier login
    default_pin: str = "2103"  # Used until a PIN has been set through the API
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 720


settings = Settings()
