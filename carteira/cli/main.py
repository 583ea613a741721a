"""Main CLI entry point using Typer."""

import asyncio
import logging

import typer
from rich.console import Console

from carteira.config import PRODUCT_NAME, PRODUCT_TAGLINE, PRODUCT_VERSION, get_settings
from carteira.core.errors import MarketDataError
from carteira.data.market.rates import BCBReferenceRateProvider
from carteira.db.database import init_db

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries
logging.getLogger("yfinance").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)

console = Console()
app = typer.Typer(
    name="carteira",
    help=f"{PRODUCT_NAME} - {PRODUCT_TAGLINE}",
    add_completion=False,
)


@app.callback()
def main_callback():
    """Initialize database on startup."""
    init_db()


from carteira.cli.portfolio import app as portfolio_app

app.add_typer(portfolio_app, name="portfolio", help="Manage and value portfolio holdings")


@app.command()
def rate():
    """Show the current SELIC reference rate."""
    try:
        selic = asyncio.run(BCBReferenceRateProvider().fetch_rate())
    except MarketDataError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(
        f"[bold]{selic.name}:[/bold] [green]{selic.value:.2f}%[/green] "
        f"[dim]({selic.effective_date:%d/%m/%Y})[/dim]"
    )


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold #4F46E5]{PRODUCT_NAME}[/] - {PRODUCT_TAGLINE}")
    console.print(f"[bold]Version:[/] {PRODUCT_VERSION}")


if __name__ == "__main__":
    app()
