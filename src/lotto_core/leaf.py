"""Leaf aggregation: per-taquilla sales and prizes for an interval.

Grain of the output: one row per requested taquilla (``node_id`` index).

- ``sales``: sum of ``amount`` over non-cancelled bets in the interval
- ``prizes``: sum of ``potential_win`` over winners in the interval
- ``bets_count`` / ``winners_count``: row counts behind those sums

A taquilla with no facts gets zeros, never an error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import pandas as pd

from lotto_core.facts.base import CANCELLED, FactStore, WinnerScope
from lotto_core.periods import Interval

logger = logging.getLogger(__name__)

LEAF_COLUMNS = ["sales", "prizes", "bets_count", "winners_count"]


@dataclass(frozen=True)
class LeafMetrics:
    """Aggregated figures for one taquilla."""

    sales: float = 0.0
    prizes: float = 0.0
    result_count: int = 0
    results_with_winners_count: int = 0
    bets_count: int = 0
    winners_count: int = 0


def aggregate_leaves(
    bets: pd.DataFrame,
    winners: pd.DataFrame,
    taquilla_ids: Iterable[str],
    interval: Interval,
) -> pd.DataFrame:
    """Aggregate bet and winner facts per taquilla.

    Facts outside the interval, cancelled bets and facts for taquillas not
    in ``taquilla_ids`` are ignored.

    Args:
        bets: Bet frame with BET_COLUMNS.
        winners: Winner frame with WINNER_COLUMNS.
        taquilla_ids: Taquillas to report; every one appears in the output.
        interval: Resolved interval.

    Returns:
        DataFrame indexed by ``node_id`` with LEAF_COLUMNS.

    Examples:
        >>> from lotto_core.periods import resolve_period
        >>> bets = pd.DataFrame({
        ...     "taquilla_id": ["t1", "t1"], "amount": [40.0, 60.0],
        ...     "created_at": pd.to_datetime(["2025-01-15 09:00", "2025-01-15 11:00"]),
        ...     "status": ["active", "active"],
        ... })
        >>> winners = bets.iloc[0:0].assign(potential_win=[])
        >>> leaves = aggregate_leaves(bets, winners, ["t1", "t2"],
        ...                           resolve_period("today", now="2025-01-15"))
        >>> leaves["sales"].tolist()
        [100.0, 0.0]

    """
    ids = list(dict.fromkeys(str(t) for t in taquilla_ids))

    b = bets[interval.mask(bets["created_at"])]
    b = b[b["status"] != CANCELLED]
    b = b[b["taquilla_id"].isin(ids)]
    bet_totals = b.groupby("taquilla_id")["amount"].agg(["sum", "count"])

    w = winners[interval.mask(winners["created_at"])]
    w = w[w["taquilla_id"].isin(ids)]
    win_totals = w.groupby("taquilla_id")["potential_win"].agg(["sum", "count"])

    out = pd.DataFrame(index=pd.Index(ids, name="node_id", dtype=object))
    out["sales"] = bet_totals["sum"].reindex(ids).fillna(0.0).astype(float).to_numpy()
    out["prizes"] = win_totals["sum"].reindex(ids).fillna(0.0).astype(float).to_numpy()
    out["bets_count"] = bet_totals["count"].reindex(ids).fillna(0).astype(int).to_numpy()
    out["winners_count"] = win_totals["count"].reindex(ids).fillna(0).astype(int).to_numpy()

    logger.debug(
        "Aggregated %d taquillas for %s: %d bets, %d winners", len(ids), interval, len(b), len(w)
    )
    return out


def aggregate_leaf(store: FactStore, taquilla_id: str, interval: Interval) -> LeafMetrics:
    """Fetch and aggregate the facts of a single taquilla."""
    bets = store.list_bets(taquilla_id, interval)
    winners = store.list_winners(WinnerScope.for_taquillas([taquilla_id]), interval)
    row = aggregate_leaves(bets, winners, [taquilla_id], interval).loc[taquilla_id]
    return LeafMetrics(
        sales=float(row["sales"]),
        prizes=float(row["prizes"]),
        bets_count=int(row["bets_count"]),
        winners_count=int(row["winners_count"]),
    )


def count_results(daily_results: pd.DataFrame, interval: Interval) -> tuple[int, int]:
    """Count draw results in the interval and those that produced winners.

    Results are lottery-level, so the counts only mean something at the
    whole-network scope. A result "has winners" when ``total_to_pay > 0``.

    Returns:
        ``(result_count, results_with_winners_count)``
    """
    in_range = daily_results[interval.date_mask(daily_results["result_date"])]
    with_winners = int((in_range["total_to_pay"] > 0).sum())
    return len(in_range), with_winners
