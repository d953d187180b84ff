"""Dashboard statistics.

- ``stats.sales``: today/week/month sales and per-taquilla sales for today
- ``stats.bets``: most played numbers and numbers with the highest amounts
- ``stats.results``: today's draw results and payout summary

Example:
    >>> from lotto_core.stats import compute_sales_stats
    >>> stats = compute_sales_stats(store, visible_taquilla_ids=["t1", "t2"])  # doctest: +SKIP
    >>> stats.today_sales  # doctest: +SKIP
"""

from lotto_core.stats.bets import ANIMALS, BetNumberStats, compute_bet_number_stats
from lotto_core.stats.results import DailySummary, compute_daily_summary
from lotto_core.stats.sales import SalesStats, compute_sales_stats

__all__ = [
    "ANIMALS",
    "BetNumberStats",
    "DailySummary",
    "SalesStats",
    "compute_bet_number_stats",
    "compute_daily_summary",
    "compute_sales_stats",
]
