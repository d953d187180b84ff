"""Lotto Core - revenue rollup and commission split for a lottery reseller network.

This package aggregates bet and payout facts bottom-up through the reseller
hierarchy and splits each node's gross figures by its own percentages:

    comercializadora → subdistribuidor → agencia → taquilla

Module Structure:
    lotto_core.facts: Fact store contract and adapters (frames, CSV, PostgREST)
    lotto_core.periods: today / week / month / custom interval resolution
    lotto_core.hierarchy: Reseller tree
    lotto_core.leaf: Per-taquilla aggregation
    lotto_core.commission: Commission and profit split
    lotto_core.rollup: Tree rollup engine
    lotto_core.views: Drillable hierarchical view
    lotto_core.stats: Dashboard sales, bet-number and daily result stats
    lotto_core.pots: Prize/reserve/profit pots and currency formatting

Quick Start:
    >>> from lotto_core import DataPaths, RollupEngine, resolve_period
    >>> from lotto_core.facts import CsvFactStore
    >>>
    >>> engine = RollupEngine(CsvFactStore(DataPaths.from_root("data")))
    >>>
    >>> # Whole network, current month
    >>> result = engine.rollup(None, resolve_period("month"))
    >>> print(result.totals.sales, result.totals.balance)
    >>>
    >>> # One agency and everything below it
    >>> agency = engine.compute_node_metrics("agencia-7", resolve_period("week"))

Grain Reference:
    Facts:
        - bets: one row per bet at a taquilla
        - winners: one row per winning bet (potential_win)
        - daily_results: one row per lottery per day
    Rollup:
        - RollupResult.frame: one row per node of the requested subtrees
"""

__version__ = "0.1.0"

from lotto_core.config import DataPaths, Settings
from lotto_core.exceptions import (
    ConfigError,
    DataQualityError,
    FactStoreError,
    InvalidRangeError,
    LottoAPIError,
    MissingNodeError,
)
from lotto_core.periods import Interval, resolve_period
from lotto_core.rollup import NodeMetrics, RollupEngine, RollupResult
from lotto_core.views import CurrentUser, HierarchyView

__all__ = [
    "ConfigError",
    "CurrentUser",
    "DataPaths",
    "DataQualityError",
    "FactStoreError",
    "HierarchyView",
    "Interval",
    "InvalidRangeError",
    "LottoAPIError",
    "MissingNodeError",
    "NodeMetrics",
    "RollupEngine",
    "RollupResult",
    "Settings",
    "__version__",
    "resolve_period",
]
