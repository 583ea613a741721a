"""Portfolio CLI commands."""

import asyncio
from decimal import Decimal
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from carteira.config import get_settings
from carteira.core.errors import MarketDataError, PersistenceError, ValidationError
from carteira.core.portfolio.models import PortfolioView
from carteira.core.portfolio.service import PortfolioService
from carteira.core.valuation import RefreshCoordinator, RefreshState, ValuationStatus
from carteira.data.market.provider import YFinanceQuoteProvider
from carteira.data.market.rates import BCBReferenceRateProvider
from carteira.db.database import get_db

settings = get_settings()

console = Console()
app = typer.Typer()


def build_service(db) -> PortfolioService:
    """Service wired to the live providers."""
    coordinator = RefreshCoordinator(
        YFinanceQuoteProvider(),
        timeout=settings.quote_fetch_timeout,
    )
    return PortfolioService(db, coordinator, rate_provider=BCBReferenceRateProvider())


def money(value: Decimal) -> str:
    return f"R$ {value:,.2f}"


@app.command("add")
def add_holding(
    symbol: str = typer.Argument(..., help="Ticker symbol (e.g., PETR4, MXRF11)"),
    quantity: int = typer.Argument(..., help="Number of units"),
    average_price: str = typer.Argument(..., help="Average price per unit"),
):
    """Add a new holding to the portfolio."""
    with get_db() as db:
        service = build_service(db)
        try:
            holding = service.repo.create(
                symbol=symbol,
                quantity=quantity,
                average_price=average_price,
            )
        except ValidationError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        console.print(
            f"[green]Added:[/green] {holding.symbol} - "
            f"{holding.quantity} @ {money(holding.average_price)} = {money(holding.total_cost)}"
        )


@app.command("list")
def list_holdings():
    """List all holdings in the portfolio."""
    with get_db() as db:
        holdings = build_service(db).list_holdings()

        if not holdings:
            console.print("[yellow]No holdings found.[/yellow] Use 'add' to add some.")
            return

        table = Table(title="Portfolio Holdings")
        table.add_column("ID", style="dim")
        table.add_column("Symbol", style="cyan")
        table.add_column("Quantity", justify="right")
        table.add_column("Average Price", justify="right", style="green")
        table.add_column("Invested", justify="right")

        for h in holdings:
            table.add_row(
                h.id[:8],
                h.symbol,
                f"{h.quantity:,}",
                money(h.average_price),
                money(h.total_cost),
            )

        console.print(table)
        console.print(f"\n[dim]Total holdings: {len(holdings)}[/dim]")


def _find(service: PortfolioService, symbol: str):
    holding = service.repo.get_by_symbol(symbol)
    if not holding:
        console.print(f"[red]Error:[/red] Holding {symbol.upper()} not found.")
        raise typer.Exit(1)
    return holding


@app.command("update")
def update_holding(
    symbol: str = typer.Argument(..., help="Ticker symbol"),
    quantity: Optional[int] = typer.Option(None, "--quantity", "-q", help="New quantity"),
    average_price: Optional[str] = typer.Option(
        None, "--price", "-p", help="New average price per unit"
    ),
):
    """Update an existing holding."""
    if quantity is None and average_price is None:
        console.print("[red]Error:[/red] Provide --quantity and/or --price to update.")
        raise typer.Exit(1)

    with get_db() as db:
        service = build_service(db)
        holding = _find(service, symbol)
        try:
            holding = service.repo.update(
                holding.id,
                quantity=quantity,
                average_price=average_price,
            )
        except (ValidationError, PersistenceError) as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        console.print(
            f"[green]Updated:[/green] {holding.symbol} - "
            f"{holding.quantity} @ {money(holding.average_price)} = {money(holding.total_cost)}"
        )


@app.command("remove")
def remove_holding(
    symbol: str = typer.Argument(..., help="Ticker symbol to remove"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Remove a holding from the portfolio."""
    with get_db() as db:
        service = build_service(db)
        holding = _find(service, symbol)

        if not force:
            confirm = typer.confirm(
                f"Remove {holding.symbol} ({holding.quantity} @ {money(holding.average_price)})?"
            )
            if not confirm:
                console.print("[yellow]Cancelled.[/yellow]")
                raise typer.Exit(0)

        service.remove_holding(holding.id)
        console.print(f"[green]Removed:[/green] {holding.symbol}")


def render_view(view: PortfolioView) -> None:
    """Print valuations and totals."""
    table = Table(title="Portfolio Value")
    table.add_column("Symbol", style="cyan")
    table.add_column("Name")
    table.add_column("Quantity", justify="right")
    table.add_column("Average Price", justify="right")
    table.add_column("Current Price", justify="right")
    table.add_column("Invested", justify="right")
    table.add_column("Current Value", justify="right")
    table.add_column("Gain", justify="right")
    table.add_column("Gain %", justify="right")

    for v in view.valuations:
        if v.status == ValuationStatus.REJECTED:
            table.add_row(v.symbol, f"[red]{v.error}[/red]", "-", "-", "-", "-", "-", "-", "-")
            continue
        if v.status == ValuationStatus.UNMATCHED:
            table.add_row(
                v.symbol,
                "[yellow]No data[/yellow]",
                f"{v.quantity:,}",
                money(v.average_price),
                "-", "-", "-", "-", "-",
            )
            continue

        color = "green" if v.gain >= 0 else "red"
        table.add_row(
            v.symbol,
            v.display_name or v.symbol,
            f"{v.quantity:,}",
            money(v.average_price),
            money(v.current_price),
            money(v.invested),
            money(v.current_value),
            f"[{color}]R$ {v.gain:+,.2f}[/{color}]",
            f"[{color}]{v.gain_percentage:+.2f}%[/{color}]",
        )

    console.print(table)

    s = view.summary
    color = "green" if s.total_gain >= 0 else "red"
    console.print()
    console.print(f"[bold]Total Invested:[/bold]  {money(s.total_invested)}")
    console.print(f"[bold]Current Value:[/bold]   {money(s.total_current_value)}")
    console.print(
        f"[bold]Total Gain:[/bold]      [{color}]R$ {s.total_gain:+,.2f} "
        f"({s.total_gain_percentage:+.2f}%)[/{color}]"
    )
    if s.unmatched_count or s.rejected_count:
        console.print(
            f"[dim]{s.unmatched_count} without quote, {s.rejected_count} rejected; "
            f"excluded from totals[/dim]"
        )

    if view.reference_rate:
        rate = view.reference_rate
        console.print(
            f"[bold]{rate.name}:[/bold]           {rate.value:.2f}% "
            f"[dim]({rate.effective_date:%d/%m/%Y})[/dim]"
        )

    if view.refresh_state == RefreshState.ERROR:
        console.print(f"[red]Quote refresh failed:[/red] {view.refresh_error}")


@app.command("value")
def portfolio_value(
    rate: bool = typer.Option(True, "--rate/--no-rate", help="Show the SELIC reference rate"),
):
    """Show portfolio value with current quotes and gains."""
    with get_db() as db:
        service = build_service(db)
        if not service.list_holdings():
            console.print("[yellow]No holdings found.[/yellow] Use 'add' to add some.")
            return

        view = asyncio.run(service.get_valuation(sync=True, include_rate=rate))
        render_view(view)


@app.command("refresh")
def refresh_quotes():
    """Fetch fresh quotes for every holding."""
    with get_db() as db:
        service = build_service(db)
        try:
            snapshot = asyncio.run(service.refresh_quotes())
        except MarketDataError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

        console.print(f"[green]Quotes updated:[/green] {len(snapshot)}/{len(snapshot.symbols)} priced")
        for symbol in sorted(snapshot):
            quote = snapshot[symbol]
            console.print(f"  [cyan]{symbol}[/cyan]: {money(quote.price)}")
