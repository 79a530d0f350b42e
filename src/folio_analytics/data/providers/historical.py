"""
Market statistics estimated from real price history.

Beta uses the benchmark values recorded on each portfolio snapshot, filling
gaps from the benchmark symbol's closes in the price history when one is
supplied. Correlations use daily close-to-close returns of each ticker.
"""

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from folio_analytics.analytics.returns import calculate_beta
from folio_analytics.data.schemas import PRICES_SCHEMA
from folio_analytics.data.providers.base import DataProviderError, MarketStatisticsProvider
from folio_analytics.models import PortfolioSnapshot, normalize_ticker


class HistoricalStatisticsProvider(MarketStatisticsProvider):
    """
    Statistics provider backed by historical prices.

    Args:
        prices: DataFrame with columns date, symbol, close (optional)
        benchmark_symbol: Symbol of the benchmark index in prices
    """

    def __init__(
        self,
        prices: Optional[pd.DataFrame] = None,
        benchmark_symbol: str = "SPY",
    ):
        self.benchmark_symbol = normalize_ticker(benchmark_symbol)
        self._prices = self._prepare_prices(prices)

    @property
    def name(self) -> str:
        return "Historical"

    @staticmethod
    def _prepare_prices(prices: Optional[pd.DataFrame]) -> pd.DataFrame:
        if prices is None or prices.empty:
            return pd.DataFrame(columns=["date", "symbol", "close"])

        is_valid, missing = PRICES_SCHEMA.validate_columns(list(prices.columns))
        if not is_valid:
            raise DataProviderError(f"Price history missing columns: {missing}")

        df = prices[["date", "symbol", "close"]].copy()
        df["date"] = pd.to_datetime(df["date"])
        df["symbol"] = df["symbol"].astype(str).str.upper().str.strip()
        df["close"] = pd.to_numeric(df["close"], errors="coerce")
        return df.dropna(subset=["close"])

    def _closes_wide(self) -> pd.DataFrame:
        """Closes pivoted to one column per symbol, indexed by date."""
        return self._prices.pivot_table(
            index="date", columns="symbol", values="close", aggfunc="last"
        ).sort_index()

    def estimate_beta(
        self,
        snapshots: Sequence[PortfolioSnapshot],
        min_observations: int = 2,
    ) -> Optional[float]:
        if len(snapshots) < 2:
            return None

        frame = pd.DataFrame({
            "date": pd.to_datetime([s.date for s in snapshots]),
            "portfolio": [float(s.total_value) for s in snapshots],
            "benchmark": [
                float(s.benchmark_value) if s.benchmark_value is not None else np.nan
                for s in snapshots
            ],
        })
        frame = frame.drop_duplicates(subset="date", keep="last").sort_values("date")

        if frame["benchmark"].isna().any() and not self._prices.empty:
            closes = self._prices[self._prices["symbol"] == self.benchmark_symbol]
            closes = closes.drop_duplicates(subset="date", keep="last").set_index("date")["close"]
            frame["benchmark"] = frame["benchmark"].fillna(frame["date"].map(closes))

        previous = frame.shift(1)
        portfolio_returns = (frame["portfolio"] - previous["portfolio"]) / previous["portfolio"].where(
            previous["portfolio"] > 0
        )
        market_returns = (frame["benchmark"] - previous["benchmark"]) / previous["benchmark"].where(
            previous["benchmark"] > 0
        )

        return calculate_beta(
            portfolio_returns.tolist(),
            market_returns.tolist(),
            min_observations=min_observations,
        )

    def correlation_matrix(self, tickers: Sequence[str]) -> list[list[float]]:
        symbols = [normalize_ticker(t) for t in tickers]
        n = len(symbols)

        correlations = pd.DataFrame()
        if not self._prices.empty:
            closes = self._closes_wide()
            returns = closes / closes.shift(1) - 1
            returns = returns.replace([np.inf, -np.inf], np.nan)
            correlations = returns.corr(min_periods=2)

        matrix = [[0.0] * n for _ in range(n)]
        for i in range(n):
            matrix[i][i] = 1.0
            for j in range(i + 1, n):
                value = 0.0
                a, b = symbols[i], symbols[j]
                if a == b:
                    value = 1.0
                elif a in correlations.index and b in correlations.columns:
                    raw = correlations.loc[a, b]
                    if pd.notna(raw):
                        value = float(np.clip(raw, -1.0, 1.0))
                matrix[i][j] = value
                matrix[j][i] = value

        return matrix
