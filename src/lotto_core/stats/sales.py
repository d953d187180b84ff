"""Sales statistics for the dashboard header.

Windows are resolved against the same ``now``: today, week (from Monday)
and month, all ending today. Bets are fetched once for the widest window
and masked per window. Cancelled bets are not sales.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import pandas as pd

from lotto_core.facts.base import CANCELLED, FactStore
from lotto_core.periods import DateLike, Interval, resolve_all_periods

logger = logging.getLogger(__name__)

UNKNOWN_TAQUILLA = "Desconocida"


@dataclass(frozen=True)
class TaquillaSales:
    taquilla_id: str
    taquilla_name: str
    sales: float
    bets_count: int


@dataclass(frozen=True)
class SalesStats:
    today_sales: float = 0.0
    today_bets_count: int = 0
    week_sales: float = 0.0
    week_bets_count: int = 0
    month_sales: float = 0.0
    month_bets_count: int = 0
    sales_by_taquilla: list[TaquillaSales] = field(default_factory=list)


def _name_of(names: Mapping[str, str], taquilla_id: str) -> str:
    name = names.get(taquilla_id)
    return name if isinstance(name, str) and name else UNKNOWN_TAQUILLA


def _window(bets: pd.DataFrame, interval: Interval) -> pd.DataFrame:
    return bets[interval.mask(bets["created_at"])]


def compute_sales_stats(
    store: FactStore,
    visible_taquilla_ids: Iterable[str] | None = None,
    now: DateLike | None = None,
    names: Mapping[str, str] | None = None,
) -> SalesStats:
    """Compute today/week/month sales and today's sales per taquilla.

    Args:
        store: Fact store to read bets (and node names) from.
        visible_taquilla_ids: Taquillas the user can see. None means no
            filter; an empty collection means the user sees no taquilla and
            yields empty stats without querying the store.
        now: Reference instant (defaults to now).
        names: Optional ``taquilla_id -> name`` map. When None, names are
            read from the store's reseller listing.

    Returns:
        SalesStats; ``sales_by_taquilla`` is sorted by sales, highest first.

    """
    if visible_taquilla_ids is not None:
        visible_taquilla_ids = list(visible_taquilla_ids)
        if not visible_taquilla_ids:
            return SalesStats()

    periods = resolve_all_periods(now)
    today, week, month = periods["today"], periods["week"], periods["month"]
    widest = Interval(start=min(week.start, month.start), end=today.end, period="custom")

    bets = store.list_bets(visible_taquilla_ids, widest)
    bets = bets[bets["status"] != CANCELLED]
    logger.debug("Computing sales stats over %d bets for %s", len(bets), widest)

    today_bets = _window(bets, today)
    week_bets = _window(bets, week)
    month_bets = _window(bets, month)

    by_taquilla = (
        today_bets.groupby("taquilla_id")["amount"].agg(["sum", "count"]).reset_index()
    )
    if names is None and not by_taquilla.empty:
        nodes = store.list_reseller_nodes()
        names = dict(zip(nodes["node_id"].astype(str), nodes["name"]))
    names = names or {}

    sales_by_taquilla = [
        TaquillaSales(
            taquilla_id=row["taquilla_id"],
            taquilla_name=_name_of(names, row["taquilla_id"]),
            sales=float(row["sum"]),
            bets_count=int(row["count"]),
        )
        for row in by_taquilla.to_dict("records")
    ]
    sales_by_taquilla.sort(key=lambda t: t.sales, reverse=True)

    return SalesStats(
        today_sales=float(today_bets["amount"].sum()),
        today_bets_count=len(today_bets),
        week_sales=float(week_bets["amount"].sum()),
        week_bets_count=len(week_bets),
        month_sales=float(month_bets["amount"].sum()),
        month_bets_count=len(month_bets),
        sales_by_taquilla=sales_by_taquilla,
    )
