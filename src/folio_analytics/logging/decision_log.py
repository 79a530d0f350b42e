"""
Append-only decision logging for the portfolio analytics engine.

Every analysis and ledger change requested through the CLI is logged with
a timestamp and its key inputs and outputs to support auditability.
"""

import json
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from folio_analytics.models import (
    ActionType,
    DecisionLogEntry,
    EngineConfig,
    LotConsumption,
    TaxLotReport,
)


class DecisionLogger:
    """
    Append-only decision logger.

    Writes all decisions to a JSONL file for audit purposes.
    Each line is a complete JSON object representing one action.
    """

    def __init__(self, log_path: str | Path):
        """
        Initialize the decision logger.

        Args:
            log_path: Path to the log file (will be created if not exists)
        """
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: DecisionLogEntry) -> None:
        """
        Write a decision log entry.

        Args:
            entry: DecisionLogEntry to write
        """
        record = {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "portfolio_id": entry.portfolio_id,
            "details": entry.details,
        }

        with open(self.log_path, "a") as f:
            f.write(json.dumps(record, cls=DecimalEncoder) + "\n")

    def _write(self, action_type: ActionType, portfolio_id: Optional[str], details: dict) -> None:
        self.log(DecisionLogEntry.create(
            action_type=action_type,
            portfolio_id=portfolio_id,
            details=details,
        ))

    def log_config_loaded(
        self,
        config: EngineConfig,
        config_path: Optional[str],
    ) -> None:
        """
        Log configuration loading.

        Args:
            config: Loaded configuration
            config_path: Path to configuration file (None for defaults)
        """
        details = {
            "config_path": config_path,
            "risk_free_rate": config.risk_free_rate,
            "periods_per_year": config.periods_per_year,
            "statistics_provider": config.statistics_provider,
            "synthetic_seed": config.synthetic_seed,
        }
        self._write(ActionType.CONFIG_LOADED, None, details)

    def log_simulation_run(
        self,
        portfolio_id: str,
        changes: list,
        result,
    ) -> None:
        """
        Log a what-if simulation.

        Args:
            portfolio_id: Portfolio identifier
            changes: Changes applied
            result: SimulationResult returned by the engine
        """
        details = {
            "changes": [
                {
                    "ticker": c.ticker,
                    "action": c.action.value,
                    "quantity": c.quantity,
                    "price": c.price,
                }
                for c in changes
            ],
            "statistics_source": result.statistics_source,
            "is_synthetic": result.is_synthetic,
            "delta": {name: values["change"] for name, values in result.delta.items()},
            "new_positions": [p.ticker for p in result.simulated_positions if p.is_new],
            "removed_positions": [p.ticker for p in result.removed_positions],
        }
        self._write(ActionType.SIMULATION_RUN, portfolio_id, details)

    def log_tax_lots_analyzed(
        self,
        portfolio_id: Optional[str],
        report: TaxLotReport,
    ) -> None:
        """
        Log a tax lot analysis.

        Args:
            portfolio_id: Portfolio identifier
            report: Tax lot report
        """
        details = {
            "ticker": report.ticker,
            "current_price": report.current_price,
            "open_lots": len(report.lots),
            "total_quantity": report.total_quantity,
            "short_term_quantity": report.summary.short_term_quantity,
            "long_term_quantity": report.summary.long_term_quantity,
            "total_unrealized_gain": report.summary.total_unrealized_gain,
        }
        self._write(ActionType.TAX_LOTS_ANALYZED, portfolio_id, details)

    def log_sale_applied(
        self,
        portfolio_id: Optional[str],
        ticker: str,
        quantity: Decimal,
        consumptions: list[LotConsumption],
        realized: Optional[dict] = None,
    ) -> None:
        """
        Log a FIFO sale against the lot ledger.

        Args:
            portfolio_id: Portfolio identifier
            ticker: Ticker sold
            quantity: Units sold
            consumptions: Lot consumptions in FIFO order
            realized: Realized P&L summary (if a sale price was given)
        """
        details = {
            "ticker": ticker,
            "quantity": quantity,
            "lots_consumed": [
                {"lot_id": c.lot_id, "quantity": c.quantity, "cost_basis": c.cost_basis}
                for c in consumptions
            ],
        }
        if realized is not None:
            details["realized"] = realized
        self._write(ActionType.SALE_APPLIED, portfolio_id, details)

    def log_analysis(
        self,
        action_type: ActionType,
        portfolio_id: Optional[str],
        details: dict,
    ) -> None:
        """
        Log a read-only analysis (KPIs, risk, allocation, correlation).

        Args:
            action_type: Type of analysis
            portfolio_id: Portfolio identifier
            details: Summary of the result
        """
        self._write(action_type, portfolio_id, details)

    def read_log(self) -> list[DecisionLogEntry]:
        """
        Read all entries from the log file.

        Returns:
            List of DecisionLogEntry objects
        """
        if not self.log_path.exists():
            return []

        entries = []
        with open(self.log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                entries.append(
                    DecisionLogEntry(
                        timestamp=datetime.fromisoformat(record["timestamp"]),
                        action_type=ActionType(record["action_type"]),
                        portfolio_id=record.get("portfolio_id"),
                        details=record.get("details", {}),
                    )
                )

        return entries

    def filter_by_portfolio(
        self,
        portfolio_id: str,
    ) -> list[DecisionLogEntry]:
        """Get log entries for a specific portfolio."""
        return [e for e in self.read_log() if e.portfolio_id == portfolio_id]

    def filter_by_action_type(
        self,
        action_type: ActionType,
    ) -> list[DecisionLogEntry]:
        """Get log entries of a specific action type."""
        return [e for e in self.read_log() if e.action_type == action_type]


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal, date and Enum types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


# Global logger instance (initialized on first use)
_global_logger: Optional[DecisionLogger] = None


def get_logger(log_path: Optional[str | Path] = None) -> DecisionLogger:
    """
    Get or create the global decision logger.

    Args:
        log_path: Optional path to initialize logger (required on first call)

    Returns:
        DecisionLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if log_path is None:
            log_path = "output/decision_log.jsonl"
        _global_logger = DecisionLogger(log_path)
    elif log_path is not None:
        # Allow reinitializing with new path
        _global_logger = DecisionLogger(log_path)

    return _global_logger


def log_action(
    action_type: ActionType,
    portfolio_id: Optional[str],
    details: dict,
    log_path: Optional[str | Path] = None,
) -> None:
    """
    Convenience function to log an action.

    Args:
        action_type: Type of action
        portfolio_id: Portfolio identifier (optional)
        details: Action details dictionary
        log_path: Optional path to log file
    """
    logger = get_logger(log_path)
    entry = DecisionLogEntry.create(
        action_type=action_type,
        portfolio_id=portfolio_id,
        details=details,
    )
    logger.log(entry)
