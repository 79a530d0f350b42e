"""
Synthetic market statistics for environments without price history.

STUB: nothing here is estimated from market data. Beta is produced from a
perturbed copy of the portfolio's own returns and correlations from a
same-leading-character heuristic with random jitter. Results carry
is_synthetic=True and must not be mixed into production output.
"""

import random
from typing import Optional, Sequence

import numpy as np

from folio_analytics.analytics.returns import calculate_beta, period_returns, normalize_snapshots
from folio_analytics.data.providers.base import MarketStatisticsProvider
from folio_analytics.models import PortfolioSnapshot, normalize_ticker


SAME_GROUP_CORRELATION = 0.5
CROSS_GROUP_CORRELATION = 0.2
CORRELATION_JITTER = 0.2
MIN_SYNTHETIC_BETA_RETURNS = 10


class SyntheticStatisticsProvider(MarketStatisticsProvider):
    """
    Placeholder statistics provider.

    Args:
        seed: Random seed; pass one for reproducible output
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = random.Random(seed)

    @property
    def name(self) -> str:
        return "Synthetic"

    @property
    def is_synthetic(self) -> bool:
        return True

    def estimate_beta(
        self,
        snapshots: Sequence[PortfolioSnapshot],
        min_observations: int = 2,
    ) -> Optional[float]:
        returns = period_returns(normalize_snapshots(snapshots))
        if len(returns) < MIN_SYNTHETIC_BETA_RETURNS:
            return 1.0

        market_returns = [r * 0.9 + self._rng.uniform(-0.01, 0.01) for r in returns]
        beta = calculate_beta(returns, market_returns, min_observations=min_observations)
        return 1.0 if beta is None else beta

    def correlation_matrix(self, tickers: Sequence[str]) -> list[list[float]]:
        symbols = [normalize_ticker(t) for t in tickers]
        n = len(symbols)
        matrix = [[0.0] * n for _ in range(n)]

        for i in range(n):
            matrix[i][i] = 1.0
            for j in range(i + 1, n):
                same_group = symbols[i][:1] == symbols[j][:1]
                base = SAME_GROUP_CORRELATION if same_group else CROSS_GROUP_CORRELATION
                jitter = self._rng.uniform(-CORRELATION_JITTER, CORRELATION_JITTER)
                value = float(np.clip(base + jitter, -1.0, 1.0))
                matrix[i][j] = value
                matrix[j][i] = value

        return matrix
