"""
Tests for the KPI bundle and performance series.
"""

from datetime import date
from decimal import Decimal

import pytest

from folio_analytics.analytics.kpis import (
    calculate_kpis,
    format_currency,
    format_signed_percent,
    performance_series,
)
from folio_analytics.models import Portfolio, PortfolioSnapshot


class TestFormatting:
    def test_currency(self):
        assert format_currency(Decimal("1234.5")) == "$1,234.50"
        assert format_currency(-987654.321) == "-$987,654.32"
        assert format_currency(0) == "$0.00"

    def test_signed_percent(self):
        assert format_signed_percent(Decimal("10.526")) == "+10.53%"
        assert format_signed_percent(-2.5) == "-2.50%"


class TestCalculateKpis:
    """Tests for the headline metrics."""

    def test_sample_portfolio(self, sample_portfolio, historical_provider):
        kpis = calculate_kpis(sample_portfolio, historical_provider)

        assert kpis.total_value == Decimal("10500")
        assert kpis.unrealized_pl == Decimal("1000")
        assert float(kpis.unrealized_pl_percent) == pytest.approx(1000 / 9500 * 100)
        assert kpis.cash_available == Decimal("500")
        assert float(kpis.cash_percent) == pytest.approx(500 / 10500 * 100)
        assert kpis.max_drawdown == pytest.approx(300 / 10100)
        assert kpis.estimated_fields == ()

    def test_to_dict_formatting(self, sample_portfolio, historical_provider):
        data = calculate_kpis(sample_portfolio, historical_provider).to_dict()

        assert data["total_value"]["formatted"] == "$10,500.00"
        assert data["unrealized_pl"]["formatted"] == "$1,000.00"
        assert data["unrealized_pl"]["formatted_percent"] == "+10.53%"
        assert data["cash_available"]["formatted_percent"] == "4.8"
        assert data["max_drawdown"]["formatted"] == "3.0%"
        assert data["sharpe_ratio"]["rating"] in {
            "Excellent", "Very Good", "Good", "Acceptable", "Poor",
        }

    def test_empty_portfolio(self, historical_provider):
        kpis = calculate_kpis(Portfolio(portfolio_id="EMPTY"), historical_provider)

        assert kpis.total_value == Decimal("0")
        assert kpis.unrealized_pl_percent == Decimal("0")
        assert kpis.cash_percent == Decimal("0")
        assert kpis.beta == 1.0
        assert kpis.beta_interpretation == "Market-Like"
        assert set(kpis.estimated_fields) == {"sharpe_ratio", "beta"}


class TestPerformanceSeries:
    """Tests for the rebased chart series."""

    def test_rebased_to_oldest(self, sample_snapshots):
        points = performance_series(sample_snapshots)

        assert [p.date for p in points] == sorted(s.date for s in sample_snapshots)
        assert points[0].value == pytest.approx(100.0)
        assert points[0].benchmark == pytest.approx(100.0)
        assert points[-1].value == pytest.approx(10000 / 9000 * 100)
        assert points[-1].benchmark == pytest.approx(460 / 420 * 100)
        assert points[-1].raw_value == 10000.0

    def test_missing_benchmark(self):
        snapshots = [
            PortfolioSnapshot(date=date(2024, 1, 2), total_value=Decimal("110")),
            PortfolioSnapshot(date=date(2024, 1, 1), total_value=Decimal("100"),
                              benchmark_value=Decimal("50")),
        ]

        points = performance_series(snapshots)

        assert points[0].benchmark == pytest.approx(100.0)
        assert points[1].benchmark is None
        assert points[1].to_dict()["raw_benchmark"] is None

    def test_no_snapshots(self):
        assert performance_series([]) == []
