from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardLedger"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/cardledger"

    # Local JSON mirror used when the database is unreachable
    persist_path: str = "data/persist"

    card_master_path: str = "data/CoreMasterReference.json"

    # Ordered storage providers, first available wins
    storage_providers: list[str] = ["sql", "file"]

    daily_sell_limit: int = 5
    max_trade_selection: int = 3


settings = Settings()


# =============================================================================
# SELL LIMITS
# =============================================================================

# Upper bound for a single line item quantity
MAX_LINE_QTY = 9999
