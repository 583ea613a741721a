"""FastAPI application setup."""

from fastapi import FastAPI

from carteira.api.routes import market, portfolio
from carteira.config import (
    PRODUCT_DESCRIPTION,
    PRODUCT_NAME,
    PRODUCT_TAGLINE,
    PRODUCT_VERSION,
    get_settings,
)
from carteira.core.valuation import RefreshCoordinator
from carteira.data.market.provider import YFinanceQuoteProvider
from carteira.data.market.rates import BCBReferenceRateProvider
from carteira.db.database import init_db

settings = get_settings()

app = FastAPI(
    title=f"{PRODUCT_NAME} API",
    description=PRODUCT_DESCRIPTION,
    version=PRODUCT_VERSION,
)

# One coordinator per process so the quote snapshot and coalescing span requests
app.state.coordinator = RefreshCoordinator(
    YFinanceQuoteProvider(),
    timeout=settings.quote_fetch_timeout,
)
app.state.rate_provider = BCBReferenceRateProvider()


@app.on_event("startup")
def startup():
    """Initialize database on startup."""
    init_db()


@app.get("/api/health")
def health():
    """Health check endpoint."""
    coordinator = app.state.coordinator
    return {
        "name": PRODUCT_NAME,
        "version": PRODUCT_VERSION,
        "status": "ok",
        "tagline": PRODUCT_TAGLINE,
        "quotes": coordinator.state.value,
    }


app.include_router(portfolio.router, prefix="/api/portfolio", tags=["portfolio"])
app.include_router(market.router, prefix="/api", tags=["market"])
