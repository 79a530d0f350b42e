"""
Command-line interface for the portfolio analytics engine.

Provides commands for:
- kpis: Headline metrics and performance chart series
- risk: Risk analysis with recommendations
- allocation: Sector/asset-class breakdown and concentration alerts
- simulate: What-if simulation of hypothetical changes
- tax-lots: FIFO tax lot report for one ticker
- sell: Apply a FIFO sale to a lot ledger
- correlation: Correlation matrix across tickers
- summary: Dashboard summary, position alerts and fund fees

All results are written to stdout as JSON.
"""

import json
import sys
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import click
import pandas as pd

from folio_analytics.analytics.allocation import calculate_allocations, concentration_alerts
from folio_analytics.analytics.correlation import correlation_matrix, portfolio_tickers
from folio_analytics.analytics.fees import calculate_fees_summary
from folio_analytics.analytics.kpis import calculate_kpis, performance_series
from folio_analytics.analytics.pnl import calculate_realized_pnl
from folio_analytics.analytics.risk import analyze_risk
from folio_analytics.config import ConfigurationError, load_engine_config, resolve_config_path
from folio_analytics.data import (
    DataLoadError,
    load_changes,
    load_lots,
    load_positions,
    load_price_history,
    load_snapshots,
    save_lots,
)
from folio_analytics.data.providers import DataProviderError, get_statistics_provider
from folio_analytics.logging import DecimalEncoder, get_logger
from folio_analytics.models import ActionType, EngineConfig, Portfolio, normalize_ticker
from folio_analytics.portfolio.holdings import check_position_alerts, summarize_portfolio
from folio_analytics.portfolio.lots import (
    InsufficientSharesError,
    analyze_lots,
    apply_sale,
    mark_wash_sales,
)
from folio_analytics.simulation import SimulationError, WhatIfEngine


DOMAIN_ERRORS = (
    ConfigurationError,
    DataLoadError,
    DataProviderError,
    SimulationError,
    InsufficientSharesError,
)


def _emit(data: dict) -> None:
    click.echo(json.dumps(data, cls=DecimalEncoder, indent=2))


def _fail(message: str) -> None:
    click.echo(message, err=True)
    sys.exit(1)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        _fail(f"Invalid date format: {value}. Use YYYY-MM-DD.")


def _parse_decimal(value: Optional[str], name: str) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        _fail(f"Invalid {name}: {value}")


def _load_config(config_path: Optional[str], output_dir: str) -> EngineConfig:
    """Load the engine config and record it in the decision log."""
    path = resolve_config_path(config_path)
    engine_config = load_engine_config(path)
    get_logger(Path(output_dir) / "decision_log.jsonl").log_config_loaded(
        engine_config, str(path) if path else None
    )
    return engine_config


def _load_portfolio(
    portfolio_id: str,
    positions_path: str,
    snapshots_path: Optional[str],
) -> Portfolio:
    return Portfolio(
        portfolio_id=portfolio_id,
        positions=load_positions(positions_path),
        snapshots=load_snapshots(snapshots_path) if snapshots_path else [],
    )


def _fetch_prices(symbols: list[str], start: date, end: date, cache_ttl: int) -> pd.DataFrame:
    """Download close history from Yahoo Finance."""
    from folio_analytics.data.providers.cache import QuoteCache
    from folio_analytics.data.providers.yfinance_provider import YFinancePriceSource

    source = YFinancePriceSource(cache=QuoteCache(ttl_seconds=cache_ttl))
    return source.get_prices(symbols, start, end)


def _build_provider(
    engine_config: EngineConfig,
    prices_path: Optional[str],
    fetch_symbols: Optional[list[str]] = None,
    fetch_range: Optional[tuple[date, date]] = None,
    benchmark: str = "SPY",
):
    """
    Statistics provider for a command.

    Price history comes from --prices, or from Yahoo Finance when
    --fetch-prices was given (fetch_symbols is set).
    """
    prices = None
    if prices_path:
        prices = load_price_history(prices_path)
    elif fetch_symbols:
        end = fetch_range[1] if fetch_range else date.today()
        start = fetch_range[0] if fetch_range else end - timedelta(days=365)
        prices = _fetch_prices(fetch_symbols, start, end, engine_config.quote_cache_ttl)

    return get_statistics_provider(
        engine_config.statistics_provider,
        prices=prices,
        seed=engine_config.synthetic_seed,
        benchmark_symbol=benchmark,
    )


def _snapshot_range(portfolio: Portfolio) -> Optional[tuple[date, date]]:
    if not portfolio.snapshots:
        return None
    dates = [s.date for s in portfolio.snapshots]
    return min(dates), max(dates)


def portfolio_options(func):
    """Options shared by the commands that analyze a whole portfolio."""
    options = [
        click.option("--portfolio-id", "-p", default="default", show_default=True,
                     help="Portfolio identifier used in the decision log"),
        click.option("--positions", required=True, type=click.Path(exists=True),
                     help="Path to positions CSV file"),
        click.option("--snapshots", "-s", type=click.Path(exists=True), default=None,
                     help="Path to valuation snapshots CSV file"),
        click.option("--prices", type=click.Path(exists=True), default=None,
                     help="Path to price history CSV file (date, symbol, close)"),
        click.option("--fetch-prices", is_flag=True,
                     help="Download benchmark history from Yahoo Finance"),
        click.option("--benchmark", default="SPY", show_default=True,
                     help="Benchmark symbol in the price history"),
        click.option("--config", "-c", type=click.Path(), default=None,
                     help="Path to engine configuration YAML file"),
        click.option("--output-dir", "-o", type=click.Path(), default="output", show_default=True,
                     help="Directory for the decision log"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(version="0.1.0", prog_name="folio")
def main():
    """
    Portfolio analytics and what-if simulation engine.

    Computes risk/return statistics, allocations, tax lot reports and
    what-if simulations from CSV/YAML inputs.
    """
    pass


@main.command()
@portfolio_options
def kpis(
    portfolio_id: str,
    positions: str,
    snapshots: Optional[str],
    prices: Optional[str],
    fetch_prices: bool,
    benchmark: str,
    config: Optional[str],
    output_dir: str,
):
    """Calculate the KPI bundle and performance chart series."""
    try:
        engine_config = _load_config(config, output_dir)
        portfolio = _load_portfolio(portfolio_id, positions, snapshots)
        provider = _build_provider(
            engine_config,
            prices,
            [benchmark] if fetch_prices else None,
            _snapshot_range(portfolio),
            benchmark,
        )
        bundle = calculate_kpis(portfolio, provider, engine_config)
    except DOMAIN_ERRORS as e:
        _fail(f"Error calculating KPIs: {e}")

    get_logger().log_analysis(ActionType.KPIS_CALCULATED, portfolio_id, {
        "total_value": bundle.total_value,
        "sharpe_ratio": bundle.sharpe_ratio,
        "beta": bundle.beta,
        "statistics_source": provider.name,
        "estimated_fields": list(bundle.estimated_fields),
    })

    _emit({
        "kpis": bundle.to_dict(),
        "performance": [p.to_dict() for p in performance_series(portfolio.snapshots)],
        "statistics_source": provider.name,
    })


@main.command()
@portfolio_options
def risk(
    portfolio_id: str,
    positions: str,
    snapshots: Optional[str],
    prices: Optional[str],
    fetch_prices: bool,
    benchmark: str,
    config: Optional[str],
    output_dir: str,
):
    """Run the risk analysis with recommendations."""
    try:
        engine_config = _load_config(config, output_dir)
        portfolio = _load_portfolio(portfolio_id, positions, snapshots)
        provider = _build_provider(
            engine_config,
            prices,
            [benchmark] if fetch_prices else None,
            _snapshot_range(portfolio),
            benchmark,
        )
        analysis = analyze_risk(portfolio, provider, engine_config)
    except DOMAIN_ERRORS as e:
        _fail(f"Error analyzing risk: {e}")

    get_logger().log_analysis(ActionType.RISK_ANALYZED, portfolio_id, {
        "volatility": analysis.volatility,
        "beta": analysis.beta,
        "value_at_risk": analysis.value_at_risk.to_dict(),
        "recommendations": [r["type"] for r in analysis.recommendations],
        "statistics_source": analysis.statistics_source,
    })

    _emit(analysis.to_dict())


@main.command()
@click.option("--portfolio-id", "-p", default="default", show_default=True,
              help="Portfolio identifier used in the decision log")
@click.option("--positions", required=True, type=click.Path(exists=True),
              help="Path to positions CSV file")
@click.option("--config", "-c", type=click.Path(), default=None,
              help="Path to engine configuration YAML file")
@click.option("--output-dir", "-o", type=click.Path(), default="output", show_default=True,
              help="Directory for the decision log")
def allocation(portfolio_id: str, positions: str, config: Optional[str], output_dir: str):
    """Break the portfolio down by sector and asset class."""
    try:
        engine_config = _load_config(config, output_dir)
        holdings = load_positions(positions)
    except DOMAIN_ERRORS as e:
        _fail(f"Error loading data: {e}")

    breakdown = calculate_allocations(holdings)
    alerts = concentration_alerts(
        breakdown,
        threshold=engine_config.concentration_threshold,
        high_threshold=engine_config.high_concentration_threshold,
        target_weight=engine_config.target_sector_weight,
    )

    get_logger().log_analysis(ActionType.ALLOCATION_ANALYZED, portfolio_id, {
        "total_value": breakdown.total_value,
        "sectors": len(breakdown.by_sector),
        "top_sector": breakdown.top_sector.name if breakdown.top_sector else None,
        "alerts": len(alerts),
    })

    data = breakdown.to_dict()
    data["alerts"] = alerts
    _emit(data)


@main.command()
@portfolio_options
@click.option("--changes", required=True, type=click.Path(exists=True),
              help="Path to YAML file listing the changes to apply")
@click.option("--allow-empty", is_flag=True,
              help="Accept an empty change list (returns an identity result)")
def simulate(
    portfolio_id: str,
    positions: str,
    snapshots: Optional[str],
    prices: Optional[str],
    fetch_prices: bool,
    benchmark: str,
    config: Optional[str],
    output_dir: str,
    changes: str,
    allow_empty: bool,
):
    """
    Run a what-if simulation.

    Example:
        folio simulate --positions positions.csv --snapshots snapshots.csv --changes changes.yaml
    """
    try:
        engine_config = _load_config(config, output_dir)
        portfolio = _load_portfolio(portfolio_id, positions, snapshots)
        change_list = load_changes(changes)
        provider = _build_provider(
            engine_config,
            prices,
            [benchmark] if fetch_prices else None,
            _snapshot_range(portfolio),
            benchmark,
        )
        engine = WhatIfEngine(engine_config, provider)
        result = engine.simulate(portfolio, change_list, allow_empty=allow_empty)
    except DOMAIN_ERRORS as e:
        _fail(f"Error running simulation: {e}")

    get_logger().log_simulation_run(portfolio_id, change_list, result)

    _emit(result.to_dict())


@main.command("tax-lots")
@click.option("--lots", required=True, type=click.Path(exists=True),
              help="Path to tax lots CSV file")
@click.option("--ticker", "-t", required=True, help="Ticker to analyze")
@click.option("--price", type=str, default=None, help="Current price per unit")
@click.option("--as-of", type=str, default=None, help="Holding-period date (YYYY-MM-DD, default today)")
@click.option("--portfolio-id", "-p", default="default", show_default=True,
              help="Portfolio identifier used in the decision log")
@click.option("--config", "-c", type=click.Path(), default=None,
              help="Path to engine configuration YAML file")
@click.option("--output-dir", "-o", type=click.Path(), default="output", show_default=True,
              help="Directory for the decision log")
def tax_lots(
    lots: str,
    ticker: str,
    price: Optional[str],
    as_of: Optional[str],
    portfolio_id: str,
    config: Optional[str],
    output_dir: str,
):
    """FIFO tax lot report for one ticker."""
    current_price = _parse_decimal(price, "price")
    as_of_date = _parse_date(as_of)

    try:
        engine_config = _load_config(config, output_dir)
        ledger = load_lots(lots, ticker=ticker)
    except DOMAIN_ERRORS as e:
        _fail(f"Error loading lots: {e}")

    report = analyze_lots(
        ledger,
        current_price=current_price,
        as_of=as_of_date,
        ticker=normalize_ticker(ticker),
        long_term_days=engine_config.long_term_days,
    )
    get_logger().log_tax_lots_analyzed(portfolio_id, report)

    _emit(report.to_dict())


@main.command()
@click.option("--lots", required=True, type=click.Path(exists=True),
              help="Path to tax lots CSV file")
@click.option("--ticker", "-t", required=True, help="Ticker to sell")
@click.option("--quantity", "-q", required=True, type=str, help="Units to sell")
@click.option("--price", type=str, default=None, help="Sale price per unit (for realized P&L)")
@click.option("--date", "-d", "sale_date", type=str, default=None,
              help="Sale date (YYYY-MM-DD, default today)")
@click.option("--output", type=click.Path(), default=None,
              help="Where to write the updated ledger (default: overwrite --lots)")
@click.option("--portfolio-id", "-p", default="default", show_default=True,
              help="Portfolio identifier used in the decision log")
@click.option("--config", "-c", type=click.Path(), default=None,
              help="Path to engine configuration YAML file")
@click.option("--output-dir", "-o", type=click.Path(), default="output", show_default=True,
              help="Directory for the decision log")
def sell(
    lots: str,
    ticker: str,
    quantity: str,
    price: Optional[str],
    sale_date: Optional[str],
    output: Optional[str],
    portfolio_id: str,
    config: Optional[str],
    output_dir: str,
):
    """
    Apply a FIFO sale to the lot ledger.

    The sale is rejected without touching the ledger if the open lots
    cannot cover it. A realized loss flags the ticker's open lots bought
    within the wash-sale window.
    """
    units = _parse_decimal(quantity, "quantity")
    sale_price = _parse_decimal(price, "price")
    when = _parse_date(sale_date) or date.today()
    if units <= Decimal("0"):
        _fail(f"Quantity must be positive, got {units}")

    symbol = normalize_ticker(ticker)
    try:
        engine_config = _load_config(config, output_dir)
        ledger = load_lots(lots)
        position_lots = [lot for lot in ledger if lot.ticker == symbol]
        consumptions = apply_sale(position_lots, units)
    except DOMAIN_ERRORS as e:
        _fail(f"Error applying sale: {e}")

    realized = None
    flagged = []
    if sale_price is not None:
        realized = calculate_realized_pnl(
            consumptions, sale_price, when, engine_config.long_term_days
        )
        if realized["total_realized_pnl"] < Decimal("0"):
            flagged = mark_wash_sales(position_lots, when)

    save_lots(ledger, output or lots)
    get_logger().log_sale_applied(portfolio_id, symbol, units, consumptions, realized)

    _emit({
        "ticker": symbol,
        "quantity": units,
        "lots_consumed": [
            {
                "lot_id": c.lot_id,
                "quantity": c.quantity,
                "cost_basis": c.cost_basis,
                "purchase_date": c.purchase_date,
            }
            for c in consumptions
        ],
        "realized": realized,
        "wash_sale_lots": [lot.lot_id for lot in flagged],
    })


@main.command()
@click.option("--tickers", "-t", multiple=True, help="Ticker to include (repeatable)")
@click.option("--positions", type=click.Path(exists=True), default=None,
              help="Path to positions CSV file (adds its tickers)")
@click.option("--prices", type=click.Path(exists=True), default=None,
              help="Path to price history CSV file (date, symbol, close)")
@click.option("--fetch-prices", is_flag=True,
              help="Download a year of history from Yahoo Finance")
@click.option("--portfolio-id", "-p", default="default", show_default=True,
              help="Portfolio identifier used in the decision log")
@click.option("--config", "-c", type=click.Path(), default=None,
              help="Path to engine configuration YAML file")
@click.option("--output-dir", "-o", type=click.Path(), default="output", show_default=True,
              help="Directory for the decision log")
def correlation(
    tickers: tuple[str, ...],
    positions: Optional[str],
    prices: Optional[str],
    fetch_prices: bool,
    portfolio_id: str,
    config: Optional[str],
    output_dir: str,
):
    """Correlation matrix across portfolio and additional tickers."""
    try:
        engine_config = _load_config(config, output_dir)
        holdings = load_positions(positions) if positions else []
        symbols = portfolio_tickers(holdings, tickers)
        if not symbols:
            _fail("No tickers given. Use --tickers or --positions.")
        provider = _build_provider(
            engine_config,
            prices,
            symbols if fetch_prices else None,
        )
        result = correlation_matrix(symbols, provider)
    except DOMAIN_ERRORS as e:
        _fail(f"Error estimating correlations: {e}")

    get_logger().log_analysis(ActionType.CORRELATION_ESTIMATED, portfolio_id, {
        "tickers": result.tickers,
        "source": result.source,
        "is_synthetic": result.is_synthetic,
    })

    _emit(result.to_dict())


@main.command()
@click.option("--positions", required=True, type=click.Path(exists=True),
              help="Path to positions CSV file")
@click.option("--top", "top_n", type=int, default=5, show_default=True,
              help="Number of top holdings to list")
@click.option("--config", "-c", type=click.Path(), default=None,
              help="Path to engine configuration YAML file")
@click.option("--output-dir", "-o", type=click.Path(), default="output", show_default=True,
              help="Directory for the decision log")
def summary(positions: str, top_n: int, config: Optional[str], output_dir: str):
    """Dashboard summary with position alerts and fund fees."""
    try:
        engine_config = _load_config(config, output_dir)
        holdings = load_positions(positions)
    except DOMAIN_ERRORS as e:
        _fail(f"Error loading data: {e}")

    data = summarize_portfolio(holdings, top_n=top_n)
    data["alerts"] = check_position_alerts(
        holdings,
        concentration_threshold=Decimal(str(engine_config.position_alert_threshold)),
    )
    data["fees"] = calculate_fees_summary(holdings)
    _emit(data)


if __name__ == "__main__":
    main()
