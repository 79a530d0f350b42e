"""
Tests for realized P&L calculations.
"""

from datetime import date
from decimal import Decimal

from folio_analytics.analytics.pnl import calculate_realized_pnl, classify_consumption
from folio_analytics.models import GainType, LotConsumption
from folio_analytics.portfolio.lots import apply_sale


class TestClassifyConsumption:
    def test_long_term_after_one_year(self):
        consumption = LotConsumption(
            lot_id="a", quantity=Decimal("1"), cost_basis=Decimal("10"),
            purchase_date=date(2022, 1, 1),
        )
        assert classify_consumption(consumption, date(2023, 6, 1)) == GainType.LONG_TERM

    def test_short_term_within_one_year(self):
        consumption = LotConsumption(
            lot_id="a", quantity=Decimal("1"), cost_basis=Decimal("10"),
            purchase_date=date(2023, 1, 1),
        )
        assert classify_consumption(consumption, date(2023, 6, 1)) == GainType.SHORT_TERM


class TestCalculateRealizedPnl:
    """Tests for realized P&L of a FIFO sale."""

    def test_split_by_holding_period(self, fifo_lots):
        """Selling 12 at $150 on 2021-06-01: 10 long-term from 2020, 2 short-term from 2021."""
        consumed = apply_sale(fifo_lots, Decimal("12"))

        result = calculate_realized_pnl(consumed, Decimal("150"), date(2021, 6, 1))

        # (150 - 80) * 10
        assert result["long_term_realized"] == Decimal("700")
        # (150 - 120) * 2
        assert result["short_term_realized"] == Decimal("60")
        assert result["total_realized_pnl"] == Decimal("760")
        assert result["total_proceeds"] == Decimal("1800")
        assert result["total_cost_basis"] == Decimal("1040")

    def test_realized_loss(self, fifo_lots):
        consumed = apply_sale(fifo_lots, Decimal("5"))

        result = calculate_realized_pnl(consumed, Decimal("50"), date(2024, 1, 1))

        assert result["total_realized_pnl"] == Decimal("-150")
        assert result["short_term_realized"] == Decimal("0")

    def test_no_consumptions(self):
        result = calculate_realized_pnl([], Decimal("100"), date(2024, 1, 1))

        assert result["total_realized_pnl"] == Decimal("0")
        assert result["total_proceeds"] == Decimal("0")
