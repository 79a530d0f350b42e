"""
Pytest fixtures for the portfolio analytics engine tests.

Provides common test data and utilities used across test modules.
"""

from datetime import date, timedelta
from decimal import Decimal

import pandas as pd
import pytest

from folio_analytics.data.providers import (
    HistoricalStatisticsProvider,
    SyntheticStatisticsProvider,
)
from folio_analytics.models import (
    AssetClass,
    EngineConfig,
    Portfolio,
    PortfolioSnapshot,
    Position,
    TaxLot,
)


@pytest.fixture
def engine_config() -> EngineConfig:
    """Default engine configuration."""
    return EngineConfig()


@pytest.fixture
def sample_positions() -> list[Position]:
    """A small multi-asset portfolio worth $10,500 (cost $9,500)."""
    return [
        Position(
            ticker="AAPL",
            quantity=Decimal("20"),
            avg_cost_basis=Decimal("150"),
            current_price=Decimal("200"),
            sector="Technology",
            asset_class=AssetClass.STOCK,
            name="Apple Inc.",
            day_change_percent=Decimal("1.5"),
        ),
        Position(
            ticker="MSFT",
            quantity=Decimal("5"),
            avg_cost_basis=Decimal("500"),
            current_price=Decimal("400"),
            sector="Technology",
            asset_class=AssetClass.STOCK,
            name="Microsoft Corp.",
            day_change_percent=Decimal("-0.5"),
        ),
        Position(
            ticker="VTI",
            quantity=Decimal("10"),
            avg_cost_basis=Decimal("200"),
            current_price=Decimal("250"),
            sector="Other",
            asset_class=AssetClass.ETF,
            name="Vanguard Total Stock Market ETF",
            expense_ratio=Decimal("0.03"),
        ),
        Position(
            ticker="BND",
            quantity=Decimal("20"),
            avg_cost_basis=Decimal("75"),
            current_price=Decimal("75"),
            sector="Finance",
            asset_class=AssetClass.BOND,
            expense_ratio=Decimal("0.035"),
        ),
        Position(
            ticker="CASH",
            quantity=Decimal("500"),
            avg_cost_basis=Decimal("1"),
            current_price=Decimal("1"),
            sector="Other",
            asset_class=AssetClass.CASH,
        ),
    ]


@pytest.fixture
def sample_snapshots() -> list[PortfolioSnapshot]:
    """Snapshots newest-first, as returned by descending-date queries."""
    values = [10000, 9800, 10100, 9900, 9500, 9700, 9400, 9600, 9200, 9000]
    benchmarks = [460, 452, 465, 458, 440, 449, 436, 445, 428, 420]
    start = date(2024, 6, 14)
    return [
        PortfolioSnapshot(
            date=start - timedelta(days=i),
            total_value=Decimal(str(value)),
            benchmark_value=Decimal(str(benchmark)),
        )
        for i, (value, benchmark) in enumerate(zip(values, benchmarks))
    ]


@pytest.fixture
def sample_portfolio(sample_positions, sample_snapshots) -> Portfolio:
    return Portfolio(
        portfolio_id="TEST001",
        positions=sample_positions,
        snapshots=sample_snapshots,
    )


@pytest.fixture
def fifo_lots() -> list[TaxLot]:
    """Two lots: 10 shares bought in 2020 and 5 shares in 2021."""
    return [
        TaxLot(
            lot_id="lot-2021",
            ticker="AAPL",
            quantity=Decimal("5"),
            cost_basis=Decimal("120"),
            purchase_date=date(2021, 3, 1),
        ),
        TaxLot(
            lot_id="lot-2020",
            ticker="AAPL",
            quantity=Decimal("10"),
            cost_basis=Decimal("80"),
            purchase_date=date(2020, 3, 1),
        ),
    ]


@pytest.fixture
def price_history() -> pd.DataFrame:
    """Daily closes for two co-moving tickers, one inverse ticker and SPY."""
    dates = pd.date_range("2024-01-01", periods=6, freq="D")
    up = [100, 102, 101, 104, 103, 106]
    inverse = [100, 98, 99, 96, 97, 94]
    spy = [400, 404, 402, 408, 406, 412]
    records = []
    for i, d in enumerate(dates):
        records.append({"date": d.date(), "symbol": "AAA", "close": up[i]})
        records.append({"date": d.date(), "symbol": "BBB", "close": up[i] * 2})
        records.append({"date": d.date(), "symbol": "CCC", "close": inverse[i]})
        records.append({"date": d.date(), "symbol": "SPY", "close": spy[i]})
    return pd.DataFrame(records)


@pytest.fixture
def historical_provider(price_history) -> HistoricalStatisticsProvider:
    return HistoricalStatisticsProvider(prices=price_history)


@pytest.fixture
def synthetic_provider() -> SyntheticStatisticsProvider:
    return SyntheticStatisticsProvider(seed=42)


@pytest.fixture
def positions_csv(tmp_path):
    """Positions CSV for CLI and loader tests."""
    path = tmp_path / "positions.csv"
    path.write_text(
        "ticker,quantity,avg_cost_basis,current_price,sector,asset_class,expense_ratio\n"
        "aapl,20,150,200,Technology,STOCK,\n"
        "MSFT,5,500,400,Technology,STOCK,\n"
        "VTI,10,200,250,Other,ETF,0.03\n"
        "CASH,500,1,1,Other,CASH,\n"
    )
    return path


@pytest.fixture
def snapshots_csv(tmp_path):
    path = tmp_path / "snapshots.csv"
    path.write_text(
        "date,total_value,benchmark_value\n"
        "2024-06-10,9000,420\n"
        "2024-06-11,9500,440\n"
        "2024-06-12,9300,436\n"
        "2024-06-13,9800,452\n"
        "2024-06-14,10000,460\n"
    )
    return path


@pytest.fixture
def lots_csv(tmp_path):
    path = tmp_path / "lots.csv"
    path.write_text(
        "lot_id,ticker,quantity,cost_basis,purchase_date,sold_quantity\n"
        "lot-1,AAPL,10,80,2020-03-01,0\n"
        "lot-2,AAPL,5,120,2021-03-01,0\n"
        "lot-3,MSFT,5,500,2024-01-02,0\n"
    )
    return path
