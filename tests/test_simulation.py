"""
Tests for the what-if simulation engine.
"""

from decimal import Decimal

import pytest

from folio_analytics.models import (
    AssetClass,
    Change,
    ChangeAction,
    EngineConfig,
    MetricSet,
    Portfolio,
)
from folio_analytics.simulation import (
    SimulationError,
    WhatIfEngine,
    apply_changes,
    calculate_efficient_frontier,
    metric_delta,
    simulated_metric_set,
)
from folio_analytics.simulation.frontier import frontier_curve


@pytest.fixture
def engine(historical_provider) -> WhatIfEngine:
    return WhatIfEngine(provider=historical_provider)


def _by_ticker(positions):
    return {p.ticker: p for p in positions}


class TestApplyChanges:
    """Tests for applying changes to a working copy of the positions."""

    def test_add_to_existing_recomputes_cost(self, sample_portfolio):
        changes = [Change("AAPL", ChangeAction.ADD, Decimal("20"), Decimal("250"))]

        kept, removed = apply_changes(sample_portfolio, changes)

        aapl = _by_ticker(kept)["AAPL"]
        assert aapl.quantity == Decimal("40")
        assert aapl.avg_cost_basis == Decimal("200")
        assert not aapl.is_new
        assert removed == []

    def test_add_without_price_keeps_cost(self, sample_portfolio):
        kept, _ = apply_changes(sample_portfolio, [Change("MSFT", ChangeAction.ADD, Decimal("5"))])

        msft = _by_ticker(kept)["MSFT"]
        assert msft.quantity == Decimal("10")
        assert msft.avg_cost_basis == Decimal("500")

    def test_add_new_position(self, sample_portfolio):
        kept, _ = apply_changes(
            sample_portfolio, [Change("nvda", ChangeAction.ADD, Decimal("10"), Decimal("100"))]
        )

        nvda = _by_ticker(kept)["NVDA"]
        assert nvda.is_new
        assert nvda.sector == "Unknown"
        assert nvda.asset_class == AssetClass.STOCK
        assert nvda.market_value == Decimal("1000")
        # 1000 / 11500
        assert nvda.weight == pytest.approx(1000 / 11500 * 100)

    def test_remove(self, sample_portfolio):
        kept, removed = apply_changes(sample_portfolio, [Change("MSFT", ChangeAction.REMOVE)])

        assert "MSFT" not in _by_ticker(kept)
        assert [p.ticker for p in removed] == ["MSFT"]
        assert removed[0].is_removed
        assert removed[0].weight == 0.0
        assert sum(p.weight for p in kept) == pytest.approx(100.0)

    def test_adjust_sets_quantity(self, sample_portfolio):
        kept, _ = apply_changes(sample_portfolio, [Change("AAPL", ChangeAction.ADJUST, Decimal("5"))])

        aapl = _by_ticker(kept)["AAPL"]
        assert aapl.quantity == Decimal("5")
        assert aapl.market_value == Decimal("1000")

    def test_adjust_to_zero_keeps_entry_with_zero_weight(self, sample_portfolio):
        kept, removed = apply_changes(sample_portfolio, [Change("AAPL", ChangeAction.ADJUST, Decimal("0"))])

        aapl = _by_ticker(kept)["AAPL"]
        assert aapl.weight == 0.0
        assert removed == []
        assert sum(p.weight for p in kept) == pytest.approx(100.0)

    def test_absent_ticker_ignored_for_remove_and_adjust(self, sample_portfolio):
        changes = [
            Change("ZZZ", ChangeAction.REMOVE),
            Change("YYY", ChangeAction.ADJUST, Decimal("3")),
        ]

        kept, removed = apply_changes(sample_portfolio, changes)

        assert len(kept) == len(sample_portfolio.positions)
        assert removed == []

    def test_changes_applied_in_order(self, sample_portfolio):
        changes = [
            Change("MSFT", ChangeAction.REMOVE),
            Change("MSFT", ChangeAction.ADD, Decimal("2")),
        ]

        kept, removed = apply_changes(sample_portfolio, changes)

        assert _by_ticker(kept)["MSFT"].quantity == Decimal("2")
        assert removed == []

    def test_reported_market_value_cleared_on_change(self, sample_portfolio):
        sample_portfolio.positions[0].reported_market_value = Decimal("3999")

        kept, _ = apply_changes(sample_portfolio, [Change("AAPL", ChangeAction.ADD, Decimal("1"))])

        assert _by_ticker(kept)["AAPL"].market_value == Decimal("4200")

    def test_input_not_mutated(self, sample_portfolio):
        apply_changes(sample_portfolio, [
            Change("AAPL", ChangeAction.ADJUST, Decimal("1")),
            Change("MSFT", ChangeAction.REMOVE),
        ])

        positions = _by_ticker(sample_portfolio.positions)
        assert positions["AAPL"].quantity == Decimal("20")
        assert positions["MSFT"].quantity == Decimal("5")

    def test_negative_quantity_rejected(self, sample_portfolio):
        with pytest.raises(SimulationError):
            apply_changes(sample_portfolio, [Change("AAPL", ChangeAction.ADD, Decimal("-1"))])

    def test_negative_price_rejected(self, sample_portfolio):
        with pytest.raises(SimulationError):
            apply_changes(
                sample_portfolio, [Change("AAPL", ChangeAction.ADD, Decimal("1"), Decimal("-5"))]
            )


class TestSimulatedMetricSet:
    """Tests for the diversification heuristic."""

    @pytest.fixture
    def baseline(self) -> MetricSet:
        return MetricSet(
            total_value=10000.0,
            expected_return=0.10,
            standard_deviation=0.20,
            sharpe_ratio=0.25,
            max_drawdown=0.12,
            beta=1.1,
        )

    def test_new_position_adjusts_return_and_volatility(self, sample_portfolio, baseline):
        kept, _ = apply_changes(
            sample_portfolio, [Change("NVDA", ChangeAction.ADD, Decimal("1"), Decimal("100"))]
        )

        simulated = simulated_metric_set(baseline, kept)

        assert simulated.standard_deviation == pytest.approx(0.19)
        assert simulated.expected_return == pytest.approx(0.102)
        assert simulated.sharpe_ratio == pytest.approx((0.102 - 0.05) / 0.19)
        assert simulated.max_drawdown == 0.12
        assert simulated.beta == 1.1
        assert simulated.total_value == pytest.approx(10600.0)
        assert set(simulated.estimated_fields) == {
            "expected_return", "standard_deviation", "sharpe_ratio",
        }

    def test_configured_factors(self, sample_portfolio, baseline):
        kept, _ = apply_changes(
            sample_portfolio, [Change("NVDA", ChangeAction.ADD, Decimal("1"), Decimal("100"))]
        )
        config = EngineConfig(diversification_volatility_factor=1.0, diversification_return_factor=1.0)

        simulated = simulated_metric_set(baseline, kept, config)

        assert simulated.standard_deviation == pytest.approx(0.20)
        assert simulated.sharpe_ratio == pytest.approx((0.10 - 0.05) / 0.20)

    def test_no_new_position_keeps_baseline_statistics(self, sample_portfolio, baseline):
        kept, _ = apply_changes(sample_portfolio, [Change("MSFT", ChangeAction.REMOVE)])

        simulated = simulated_metric_set(baseline, kept)

        assert simulated.expected_return == 0.10
        assert simulated.standard_deviation == 0.20
        assert simulated.sharpe_ratio == 0.25
        assert simulated.total_value == pytest.approx(8500.0)

    def test_metric_delta(self, baseline):
        simulated = MetricSet(
            total_value=11000.0,
            expected_return=0.12,
            standard_deviation=0.20,
            sharpe_ratio=0.35,
            max_drawdown=0.12,
            beta=1.1,
        )

        delta = metric_delta(baseline, simulated)

        assert set(delta) == set(MetricSet.FIELDS)
        assert delta["total_value"]["change"] == pytest.approx(1000.0)
        assert delta["expected_return"]["change"] == pytest.approx(0.02)
        assert delta["beta"] == {"current": 1.1, "simulated": 1.1, "change": 0.0}


class TestEfficientFrontier:
    def test_curve_points(self):
        points = frontier_curve()

        assert [p.risk for p in points] == [5.0, 7.0, 9.0, 11.0, 13.0, 15.0, 17.0, 19.0]
        assert [p.expected_return for p in points] == [5.5, 6.5, 7.5, 8.5, 9.5, 10.5, 11.5, 12.5]

    def test_portfolio_points_in_percent(self):
        current = MetricSet(10000.0, 0.08, 0.15, 0.2, 0.1, 1.0)
        simulated = MetricSet(10000.0, 0.0816, 0.1425, 0.22, 0.1, 1.0)

        frontier = calculate_efficient_frontier(current, simulated).to_dict()

        assert frontier["current_portfolio"]["risk"] == pytest.approx(15.0)
        assert frontier["current_portfolio"]["return"] == pytest.approx(8.0)
        assert frontier["simulated_portfolio"]["risk"] == pytest.approx(14.25)
        assert len(frontier["frontier"]) == 8

    def test_without_simulation(self):
        current = MetricSet(10000.0, 0.08, 0.15, 0.2, 0.1, 1.0)

        assert calculate_efficient_frontier(current).simulated_portfolio is None


class TestWhatIfEngine:
    """Tests for end-to-end simulations."""

    def test_empty_changes_are_identity(self, engine, sample_portfolio):
        result = engine.simulate(sample_portfolio, [], allow_empty=True)

        assert result.simulated == result.current
        assert all(values["change"] == 0 for values in result.delta.values())
        assert [(p.ticker, p.quantity, p.market_value) for p in result.simulated_positions] == [
            (p.ticker, p.quantity, p.market_value) for p in sample_portfolio.positions
        ]
        assert result.removed_positions == []

    def test_empty_changes_rejected_by_default(self, engine, sample_portfolio):
        with pytest.raises(SimulationError, match="At least one change"):
            engine.simulate(sample_portfolio, [])

    def test_portfolio_id_required(self, engine, sample_positions):
        with pytest.raises(SimulationError, match="Portfolio id"):
            engine.simulate(Portfolio(portfolio_id="", positions=sample_positions), [
                Change("AAPL", ChangeAction.ADD, Decimal("1")),
            ])

    def test_add_new_position(self, engine, sample_portfolio):
        result = engine.simulate(
            sample_portfolio, [Change("NVDA", ChangeAction.ADD, Decimal("10"), Decimal("100"))]
        )

        assert result.delta["total_value"]["change"] == pytest.approx(1000.0)
        assert result.simulated.standard_deviation == pytest.approx(
            result.current.standard_deviation * 0.95
        )
        assert result.simulated.expected_return == pytest.approx(
            result.current.expected_return * 1.02
        )
        assert result.delta["beta"]["change"] == 0.0
        assert result.statistics_source == "Historical"
        assert not result.is_synthetic

    def test_remove_and_to_dict(self, engine, sample_portfolio):
        result = engine.simulate(sample_portfolio, [Change("MSFT", ChangeAction.REMOVE)])
        data = result.to_dict()

        assert result.delta["total_value"]["change"] == pytest.approx(-2000.0)
        assert [p["ticker"] for p in data["removed_positions"]] == ["MSFT"]
        assert data["efficient_frontier"]["current_portfolio"] is not None
        assert "estimated_fields" in data["current"]

    def test_repeatable(self, engine, sample_portfolio):
        changes = [Change("NVDA", ChangeAction.ADD, Decimal("10"), Decimal("100"))]

        first = engine.simulate(sample_portfolio, changes)
        second = engine.simulate(sample_portfolio, changes)

        assert first.simulated == second.simulated

    def test_default_provider_from_config(self):
        engine = WhatIfEngine(config=EngineConfig(statistics_provider="synthetic", synthetic_seed=3))

        assert engine.provider.is_synthetic

    def test_synthetic_result_is_labelled(self, synthetic_provider, sample_portfolio):
        result = WhatIfEngine(provider=synthetic_provider).simulate(
            sample_portfolio, [Change("AAPL", ChangeAction.ADD, Decimal("1"))]
        )

        assert result.is_synthetic
        assert "beta" in result.current.estimated_fields
