"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

# ===========================================
# Product Branding
# ===========================================
PRODUCT_NAME = "Carteira"
PRODUCT_TAGLINE = "Your holdings, reconciled against the market."
PRODUCT_VERSION = "1.0.0"
PRODUCT_DESCRIPTION = "Track positions, refresh quotes, see the real gain."


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API server
    host: str = "0.0.0.0"
    port: int = Field(8000, ge=1, le=65535)

    # Database
    database_url: str = "sqlite:///./carteira.db"

    # Market Data
    quote_fetch_timeout: float = 30.0
    quote_symbol_suffix: str = ".SA"  # B3 tickers on Yahoo Finance (PETR4 -> PETR4.SA)

    # Reference rate (SELIC, BCB SGS series 432)
    reference_rate_url: str = (
        "https://api.bcb.gov.br/dados/serie/bcdata.sgs.432/dados/ultimos/1?formato=json"
    )
    reference_rate_timeout: float = 10.0

    # Logging
    log_level: str = "INFO"

    # Default user (single-user mode)
    default_user_email: str = "user@localhost"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
