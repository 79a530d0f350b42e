"""
Abstract base class for market statistics providers.

A provider estimates statistical relationships between assets and the
benchmark from whatever history is available: beta of a portfolio against
its benchmark and pairwise correlations across tickers. Implementations are
pluggable so the analytics code never depends on where history comes from.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from folio_analytics.models import PortfolioSnapshot


class DataProviderError(Exception):
    """Raised when a data provider encounters an error."""
    pass


class MarketStatisticsProvider(ABC):
    """
    Abstract base class for market statistics providers.

    Implementations must provide methods to estimate:
    - Portfolio beta against the benchmark
    - A correlation matrix across a ticker set
    """

    @abstractmethod
    def estimate_beta(
        self,
        snapshots: Sequence[PortfolioSnapshot],
        min_observations: int = 2,
    ) -> Optional[float]:
        """
        Estimate portfolio beta from valuation snapshots.

        Args:
            snapshots: Portfolio snapshots (any order)
            min_observations: Aligned returns required for an estimate

        Returns:
            Beta, or None when the history is insufficient
        """
        pass

    @abstractmethod
    def correlation_matrix(self, tickers: Sequence[str]) -> list[list[float]]:
        """
        Pairwise correlation matrix for tickers.

        Args:
            tickers: Ticker symbols (duplicates allowed)

        Returns:
            N x N symmetric matrix with 1.0 on the diagonal
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this provider."""
        pass

    @property
    def is_synthetic(self) -> bool:
        """Whether results are synthetic placeholders rather than estimates from history."""
        return False
