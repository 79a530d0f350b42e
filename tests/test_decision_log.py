"""
Tests for the append-only decision log.
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from folio_analytics.logging import decision_log
from folio_analytics.logging.decision_log import (
    DecimalEncoder,
    DecisionLogger,
    get_logger,
    log_action,
)
from folio_analytics.models import (
    ActionType,
    AssetClass,
    Change,
    ChangeAction,
    EngineConfig,
)
from folio_analytics.portfolio.lots import analyze_lots, apply_sale
from folio_analytics.simulation import WhatIfEngine


@pytest.fixture
def logger(tmp_path) -> DecisionLogger:
    return DecisionLogger(tmp_path / "logs" / "decision_log.jsonl")


class TestDecimalEncoder:
    def test_encodes_domain_types(self):
        payload = {
            "amount": Decimal("12.50"),
            "as_of": date(2024, 6, 14),
            "asset_class": AssetClass.ETF,
        }

        encoded = json.loads(json.dumps(payload, cls=DecimalEncoder))

        assert encoded == {"amount": "12.50", "as_of": "2024-06-14", "asset_class": "ETF"}


class TestDecisionLogger:
    """Tests for writing and reading log entries."""

    def test_creates_parent_directory(self, logger):
        assert logger.log_path.parent.exists()

    def test_read_empty(self, logger):
        assert logger.read_log() == []

    def test_config_loaded(self, logger):
        logger.log_config_loaded(EngineConfig(synthetic_seed=3), "config/engine.yaml")

        entries = logger.read_log()
        assert len(entries) == 1
        assert entries[0].action_type == ActionType.CONFIG_LOADED
        assert entries[0].portfolio_id is None
        assert entries[0].details["synthetic_seed"] == 3

    def test_one_json_object_per_line(self, logger):
        logger.log_analysis(ActionType.KPIS_CALCULATED, "P1", {"total_value": Decimal("10")})
        logger.log_analysis(ActionType.RISK_ANALYZED, "P1", {"beta": 1.0})

        lines = logger.log_path.read_text().strip().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["details"]["total_value"] == "10"

    def test_simulation_run(self, logger, sample_portfolio, historical_provider):
        changes = [
            Change("NVDA", ChangeAction.ADD, Decimal("10"), Decimal("100")),
            Change("MSFT", ChangeAction.REMOVE),
        ]
        result = WhatIfEngine(provider=historical_provider).simulate(sample_portfolio, changes)

        logger.log_simulation_run("TEST001", changes, result)

        details = logger.read_log()[0].details
        assert details["changes"][0] == {
            "ticker": "NVDA", "action": "add", "quantity": "10", "price": "100",
        }
        assert details["new_positions"] == ["NVDA"]
        assert details["removed_positions"] == ["MSFT"]
        assert details["statistics_source"] == "Historical"

    def test_tax_lots_and_sale(self, logger, fifo_lots):
        report = analyze_lots(fifo_lots, current_price=Decimal("150"), as_of=date(2024, 1, 1))
        logger.log_tax_lots_analyzed("TEST001", report)

        consumed = apply_sale(fifo_lots, Decimal("12"))
        logger.log_sale_applied("TEST001", "AAPL", Decimal("12"), consumed)

        entries = logger.read_log()
        assert entries[0].details["open_lots"] == 2
        assert entries[1].action_type == ActionType.SALE_APPLIED
        assert [c["lot_id"] for c in entries[1].details["lots_consumed"]] == ["lot-2020", "lot-2021"]
        assert "realized" not in entries[1].details

    def test_filters(self, logger):
        logger.log_analysis(ActionType.KPIS_CALCULATED, "P1", {})
        logger.log_analysis(ActionType.KPIS_CALCULATED, "P2", {})
        logger.log_analysis(ActionType.RISK_ANALYZED, "P1", {})

        assert len(logger.filter_by_portfolio("P1")) == 2
        assert len(logger.filter_by_action_type(ActionType.KPIS_CALCULATED)) == 2


class TestGlobalLogger:
    def test_log_action_uses_given_path(self, tmp_path, monkeypatch):
        monkeypatch.setattr(decision_log, "_global_logger", None)
        path = tmp_path / "global.jsonl"

        log_action(ActionType.ALLOCATION_ANALYZED, "P1", {"sectors": 3}, log_path=path)

        assert get_logger().log_path == path
        assert get_logger().read_log()[0].details == {"sectors": 3}
