"""Today's draw summary for the dashboard.

- ``result_count``: draw results recorded today
- ``results_with_winners``: results whose ``total_to_pay`` is positive
- ``total_payout``: prizes won today at the visible taquillas
- ``total_raised``: today's sales minus ``total_payout`` (may be negative)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from lotto_core.facts.base import CANCELLED, FactStore, WinnerScope
from lotto_core.leaf import count_results
from lotto_core.periods import DateLike, resolve_period

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailySummary:
    today_sales: float = 0.0
    total_payout: float = 0.0
    total_raised: float = 0.0
    result_count: int = 0
    results_with_winners: int = 0


def compute_daily_summary(
    store: FactStore,
    visible_taquilla_ids: Iterable[str] | None = None,
    now: DateLike | None = None,
) -> DailySummary:
    """Summarize today's results, payout and net raised.

    Results are network-wide; sales and payout are restricted to
    ``visible_taquilla_ids`` (None means every taquilla, an empty
    collection means none).
    """
    today = resolve_period("today", now)
    result_count, with_winners = count_results(store.list_daily_results(today), today)

    if visible_taquilla_ids is not None:
        visible_taquilla_ids = list(visible_taquilla_ids)
    if visible_taquilla_ids == []:
        return DailySummary(result_count=result_count, results_with_winners=with_winners)

    bets = store.list_bets(visible_taquilla_ids, today)
    sales = float(bets.loc[bets["status"] != CANCELLED, "amount"].sum())
    scope = (
        WinnerScope.everywhere()
        if visible_taquilla_ids is None
        else WinnerScope.for_taquillas(visible_taquilla_ids)
    )
    payout = float(store.list_winners(scope, today)["potential_win"].sum())
    logger.debug("Daily summary for %s: sales=%s payout=%s", today, sales, payout)
    return DailySummary(
        today_sales=sales,
        total_payout=payout,
        total_raised=sales - payout,
        result_count=result_count,
        results_with_winners=with_winners,
    )
