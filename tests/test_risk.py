"""
Tests for the risk analysis bundle.
"""

from decimal import Decimal

import pytest

from folio_analytics.analytics.allocation import AllocationSlice
from folio_analytics.analytics.risk import (
    analyze_risk,
    build_recommendations,
    insufficient_history_fields,
    resolve_beta,
)
from folio_analytics.models import EngineConfig, Portfolio


class TestResolveBeta:
    def test_provider_estimate(self, sample_portfolio, historical_provider):
        beta, estimated = resolve_beta(sample_portfolio, historical_provider)

        assert 0.8 < beta < 1.3
        assert not estimated

    def test_fallback_is_marked_estimated(self, sample_positions, historical_provider):
        portfolio = Portfolio(portfolio_id="P1", positions=sample_positions)

        assert resolve_beta(portfolio, historical_provider) == (1.0, True)

    def test_synthetic_beta_is_marked_estimated(self, sample_portfolio, synthetic_provider):
        _, estimated = resolve_beta(sample_portfolio, synthetic_provider)

        assert estimated


class TestInsufficientHistoryFields:
    def test_no_returns(self):
        assert insufficient_history_fields([]) == [
            "expected_return", "standard_deviation", "sharpe_ratio",
        ]

    def test_one_return(self):
        assert insufficient_history_fields([0.01]) == ["standard_deviation", "sharpe_ratio"]

    def test_enough_returns(self):
        assert insufficient_history_fields([0.01, 0.02]) == []


class TestBuildRecommendations:
    """Tests for rule-based recommendations."""

    def test_all_rules(self):
        top = AllocationSlice("Technology", Decimal("6000"), 57.14, "#10b981")

        recommendations = build_recommendations(1.5, top, 0.4)

        assert [r["type"] for r in recommendations] == ["risk", "concentration", "efficiency"]
        assert recommendations[0]["action"] == "Add VIG or defensive ETFs"
        assert recommendations[1]["message"] == (
            "Technology sector at 57.1% exceeds recommended 40% limit."
        )
        assert recommendations[1]["action"] == "Reduce Technology exposure by 27.1%"

    def test_no_recommendations(self):
        top = AllocationSlice("Technology", Decimal("30"), 30.0, "#10b981")

        assert build_recommendations(1.0, top, 1.5) == []

    def test_configured_threshold(self):
        top = AllocationSlice("Energy", Decimal("35"), 35.0, "#f59e0b")
        config = EngineConfig(concentration_threshold=30.0, target_sector_weight=20.0)

        recommendations = build_recommendations(1.0, top, 1.5, config)

        assert recommendations[0]["action"] == "Reduce Energy exposure by 15.0%"


class TestAnalyzeRisk:
    """Tests for the full risk report."""

    def test_sample_portfolio(self, sample_portfolio, historical_provider):
        analysis = analyze_risk(sample_portfolio, historical_provider)

        assert analysis.volatility > 0
        assert analysis.statistics_source == "Historical"
        assert analysis.estimated_fields == ()
        assert [s.name for s in analysis.sector_concentration] == ["Technology", "Other", "Finance"]
        assert "concentration" in [r["type"] for r in analysis.recommendations]

    def test_value_at_risk_uses_worst_return(self, sample_portfolio, historical_provider):
        analysis = analyze_risk(sample_portfolio, historical_provider)

        # Nine returns: floor(9 * 0.05) = 0, worst is 10100 -> 9800
        worst = (9800 - 10100) / 10100
        assert analysis.value_at_risk.percent == pytest.approx(worst * 100)
        assert analysis.value_at_risk.amount == pytest.approx(abs(worst) * 10500)

    def test_max_drawdown(self, sample_portfolio, historical_provider):
        analysis = analyze_risk(sample_portfolio, historical_provider)

        assert analysis.max_drawdown == pytest.approx(300 / 10100)

    def test_no_history(self, sample_positions, historical_provider):
        portfolio = Portfolio(portfolio_id="P1", positions=sample_positions)

        analysis = analyze_risk(portfolio, historical_provider)

        assert analysis.volatility == 0.15
        assert analysis.beta == 1.0
        # 0.08 * 100 - 1.0 * 10
        assert analysis.alpha == pytest.approx(-2.0)
        assert analysis.max_drawdown == 0.0
        assert analysis.value_at_risk.amount == 0.0
        assert set(analysis.estimated_fields) == {"volatility", "sharpe_ratio", "beta", "alpha"}

    def test_to_dict(self, sample_portfolio, historical_provider):
        data = analyze_risk(sample_portfolio, historical_provider).to_dict()

        assert set(data["value_at_risk"]) == {"percent", "amount"}
        assert data["sector_concentration"][0]["name"] == "Technology"
        assert data["estimated_fields"] == []
