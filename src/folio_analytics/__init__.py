"""
Portfolio analytics and what-if simulation engine (folio-analytics)

A pure computation layer for a personal portfolio tracker: FIFO tax lot
accounting, return and risk statistics over valuation snapshots,
allocation and concentration analysis, correlation estimation and
what-if simulation of hypothetical trades.

The engine never fetches market data inside its calculations; callers
supply fully materialized positions, lots and snapshots.
"""

__version__ = "0.1.0"
__author__ = "Folio Analytics Team"
