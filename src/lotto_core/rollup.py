"""Tree rollup: bottom-up aggregation of leaf figures through the reseller tree.

Grain of ``RollupResult.frame``: one row per node in the requested subtrees
(``node_id`` index), in post-order (children before their parent).

Rollup rules:
- taquillas take their figures from the leaf aggregator
- every other node's ``sales``/``prizes``/counts are the sum of its direct
  children's rolled-up figures, so a root always equals the sum over all
  taquillas below it, whatever the depth
- each node then gets its own commission split (see lotto_core.commission)

One engine covers one render cycle: the reseller tree is fetched once and
reused until ``reset()``. Facts are fetched per call and never cached.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

import pandas as pd

from lotto_core.commission import apply_commission, validate_share
from lotto_core.exceptions import FactStoreError
from lotto_core.facts.base import (
    FactStore,
    WinnerScope,
    normalize_bets,
    normalize_daily_results,
    normalize_winners,
)
from lotto_core.hierarchy import ADMIN, TAQUILLA, ResellerTree
from lotto_core.leaf import LEAF_COLUMNS, aggregate_leaves, count_results
from lotto_core.periods import Interval

logger = logging.getLogger(__name__)

ROLLUP_COLUMNS = [
    "name",
    "kind",
    "parent_id",
    "depth",
    "share_on_sales",
    "share_on_profits",
    "sales",
    "prizes",
    "bets_count",
    "winners_count",
    "commission",
    "balance",
    "profit",
    "profit_share",
    "has_children",
]

_ROW_COLUMNS = [
    "node_id",
    "name",
    "kind",
    "parent_id",
    "depth",
    "share_on_sales",
    "share_on_profits",
    *LEAF_COLUMNS,
    "has_children",
]


@dataclass(frozen=True)
class NodeMetrics:
    """Rolled-up and split figures for one node and one interval.

    ``node_id`` is None for the admin/scope total. ``incomplete`` is set when
    a fact stream could not be fetched and was rolled up as empty; the
    affected streams are listed in ``missing_streams``.
    """

    node_id: str | None
    name: str = ""
    kind: str = ADMIN
    parent_id: str | None = None
    share_on_sales: float | None = None
    share_on_profits: float | None = None
    sales: float = 0.0
    prizes: float = 0.0
    commission: float = 0.0
    balance: float = 0.0
    profit: float = 0.0
    profit_share: float = 0.0
    bets_count: int = 0
    winners_count: int = 0
    result_count: int = 0
    results_with_winners_count: int = 0
    has_children: bool = False
    incomplete: bool = False
    missing_streams: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, eq=False)
class RollupResult:
    """Output of RollupEngine.rollup.

    Attributes:
        frame: Flat per-node summary (ROLLUP_COLUMNS, ``node_id`` index).
        totals: Scope total as an admin NodeMetrics (no percentages).
        interval: Interval the figures cover.
        incomplete: True when a fact stream was missing.
        missing_streams: Names of the missing streams.
    """

    frame: pd.DataFrame
    totals: NodeMetrics
    interval: Interval
    incomplete: bool = False
    missing_streams: tuple[str, ...] = field(default_factory=tuple)

    def metrics(self, node_id: str) -> NodeMetrics:
        """NodeMetrics for one node of the frame.

        Raises:
            KeyError: If the node is not part of this result.
        """
        row = self.frame.loc[node_id]
        return NodeMetrics(
            node_id=node_id,
            name=row["name"],
            kind=row["kind"],
            parent_id=_none_if_na(row["parent_id"]),
            share_on_sales=_none_if_na(row["share_on_sales"]),
            share_on_profits=_none_if_na(row["share_on_profits"]),
            sales=float(row["sales"]),
            prizes=float(row["prizes"]),
            commission=float(row["commission"]),
            balance=float(row["balance"]),
            profit=float(row["profit"]),
            profit_share=float(row["profit_share"]),
            bets_count=int(row["bets_count"]),
            winners_count=int(row["winners_count"]),
            has_children=bool(row["has_children"]),
            incomplete=self.incomplete,
            missing_streams=self.missing_streams,
        )


def _none_if_na(value: Any) -> Any:
    return None if value is None or pd.isna(value) else value


class RollupEngine:
    """Rolls bet/winner facts up the reseller tree.

    Args:
        store: Fact store to read facts and the node listing from.
        tree: Optional pre-built tree. When given it is kept across resets.

    Example:
        >>> from lotto_core.facts import FrameFactStore
        >>> from lotto_core.periods import resolve_period
        >>> engine = RollupEngine(store)  # doctest: +SKIP
        >>> result = engine.rollup("agencia-1", resolve_period("month"))  # doctest: +SKIP
        >>> result.frame[["sales", "prizes", "commission", "balance"]]  # doctest: +SKIP

    """

    def __init__(
        self,
        store: FactStore,
        tree: ResellerTree | None = None,
    ) -> None:
        self.store = store
        self._given_tree = tree
        self._tree = tree
        self._lock = threading.Lock()

    @property
    def tree(self) -> ResellerTree:
        """The reseller tree, fetched from the store on first use."""
        with self._lock:
            if self._tree is None:
                logger.info("Loading reseller tree")
                tree = ResellerTree.from_frame(self.store.list_reseller_nodes())
                for node in tree:
                    validate_share(node.share_on_sales, f"share_on_sales of {node.node_id}")
                    validate_share(node.share_on_profits, f"share_on_profits of {node.node_id}")
                logger.info("Reseller tree has %d nodes, %d roots", len(tree), len(tree.roots()))
                self._tree = tree
            return self._tree

    def reset(self) -> None:
        """Drop the cached tree so the next call starts a new render cycle."""
        with self._lock:
            self._tree = self._given_tree

    def top_level_ids(self) -> list[str]:
        """Roots of the forest, with admin roots replaced by their children."""
        tree = self.tree
        ids: list[str] = []
        for root_id in tree.roots():
            if tree.get(root_id).kind == ADMIN:
                ids.extend(tree.children(root_id))
            else:
                ids.append(root_id)
        return ids

    # --------------------------------------------------------------- fetching

    def _fetch(
        self,
        stream: str,
        fetch: Callable[[], pd.DataFrame],
        allow_partial: bool,
        missing: list[str],
    ) -> pd.DataFrame | None:
        try:
            return fetch()
        except FactStoreError as e:
            if not allow_partial:
                logger.error("Fetching %s failed: %s", stream, e)
                raise
            logger.warning("%s facts unavailable (%s); rolling up without them", stream, e)
            missing.append(stream)
            return None

    # ----------------------------------------------------------------- rollup

    def rollup(
        self,
        root_ids: str | Iterable[str] | None,
        interval: Interval,
        allow_partial: bool = False,
    ) -> RollupResult:
        """Roll facts up from the taquillas to ``root_ids``.

        Args:
            root_ids: One node id, several node ids, or None for the whole
                network (admin scope).
            interval: Resolved interval.
            allow_partial: Roll up with a missing bets/winners stream treated
                as empty instead of raising. The result is then flagged
                ``incomplete``.

        Returns:
            RollupResult with the per-node frame and the scope totals.

        Raises:
            MissingNodeError: If a requested node is not in the tree.
            FactStoreError: If a fact stream fails and allow_partial is False.

        """
        tree = self.tree
        admin_scope = root_ids is None
        if admin_scope:
            requested = tree.roots()
        elif isinstance(root_ids, str):
            requested = [root_ids]
        else:
            requested = list(dict.fromkeys(root_ids))
        for root_id in requested:
            tree.get(root_id)

        # A requested node inside another requested subtree is not a separate root.
        inner: set[str] = set()
        for root_id in requested:
            inner.update(n for n in tree.iter_subtree(root_id) if n != root_id)
        roots = [r for r in requested if r not in inner]

        order = tree.post_order(roots)
        taquillas = [node_id for node_id, _ in order if tree.get(node_id).is_taquilla]

        missing: list[str] = []
        scope = None if admin_scope else taquillas
        winner_scope = WinnerScope.everywhere() if admin_scope else WinnerScope.for_taquillas(taquillas)
        if admin_scope or taquillas:
            bets = self._fetch(
                "bets", lambda: self.store.list_bets(scope, interval), allow_partial, missing
            )
            winners = self._fetch(
                "winners",
                lambda: self.store.list_winners(winner_scope, interval),
                allow_partial,
                missing,
            )
        else:
            bets = winners = None
        if bets is None:
            bets = normalize_bets(None)
        if winners is None:
            winners = normalize_winners(None)

        orphans: list[str] = []
        if admin_scope:
            seen = pd.concat([bets["taquilla_id"], winners["taquilla_id"]], ignore_index=True)
            for taquilla_id in dict.fromkeys(seen.astype(str)):
                if taquilla_id in tree:
                    if not tree.get(taquilla_id).is_taquilla:
                        logger.warning(
                            "Facts recorded at non-taquilla node %s are ignored", taquilla_id
                        )
                    continue
                logger.warning(
                    "Facts reference taquilla %s missing from reseller tree; rolling it up as a root",
                    taquilla_id,
                )
                orphans.append(taquilla_id)

        leaves = aggregate_leaves(bets, winners, taquillas + orphans, interval)

        figures: dict[str, pd.Series] = {}
        rows: list[dict[str, Any]] = []
        for node_id, depth in order:
            node = tree.get(node_id)
            if node.is_taquilla:
                totals = leaves.loc[node_id, LEAF_COLUMNS]
            else:
                children = tree.children(node_id)
                totals = pd.Series(0, index=LEAF_COLUMNS, dtype=float)
                for child_id in children:
                    totals = totals + figures[child_id]
            figures[node_id] = totals
            rows.append(
                {
                    "node_id": node_id,
                    "name": node.name,
                    "kind": node.kind,
                    "parent_id": node.parent_id,
                    "depth": depth,
                    "share_on_sales": node.share_on_sales,
                    "share_on_profits": node.share_on_profits,
                    **totals.to_dict(),
                    "has_children": tree.has_children(node_id),
                }
            )
        for taquilla_id in orphans:
            rows.append(
                {
                    "node_id": taquilla_id,
                    "name": "",
                    "kind": TAQUILLA,
                    "parent_id": None,
                    "depth": 0,
                    "share_on_sales": None,
                    "share_on_profits": None,
                    **leaves.loc[taquilla_id, LEAF_COLUMNS].to_dict(),
                    "has_children": False,
                }
            )

        frame = pd.DataFrame(rows, columns=_ROW_COLUMNS).set_index("node_id")
        frame = frame.astype({"sales": float, "prizes": float, "bets_count": int, "winners_count": int})
        frame = apply_commission(frame)[ROLLUP_COLUMNS]

        result_count = results_with_winners = 0
        if admin_scope:
            daily = self._fetch(
                "daily_results",
                lambda: self.store.list_daily_results(interval),
                allow_partial,
                missing,
            )
            if daily is None:
                daily = normalize_daily_results(None)
            result_count, results_with_winners = count_results(daily, interval)

        top = frame[frame["depth"] == 0]
        sales = float(top["sales"].sum())
        prizes = float(top["prizes"].sum())
        missing_streams = tuple(missing)
        totals_metrics = NodeMetrics(
            node_id=None,
            name="Admin",
            kind=ADMIN,
            sales=sales,
            prizes=prizes,
            balance=sales - prizes,
            profit=sales - prizes,
            bets_count=int(top["bets_count"].sum()),
            winners_count=int(top["winners_count"].sum()),
            result_count=result_count,
            results_with_winners_count=results_with_winners,
            has_children=not top.empty,
            incomplete=bool(missing_streams),
            missing_streams=missing_streams,
        )
        logger.debug(
            "Rolled up %d nodes for %s: sales=%s prizes=%s", len(frame), interval, sales, prizes
        )
        return RollupResult(
            frame=frame,
            totals=totals_metrics,
            interval=interval,
            incomplete=bool(missing_streams),
            missing_streams=missing_streams,
        )

    # ------------------------------------------------------- node-level API

    def compute_node_metrics(
        self, node_id: str | None, interval: Interval, allow_partial: bool = False
    ) -> NodeMetrics:
        """Metrics for one node (None for the whole-network admin total)."""
        if node_id is None:
            return self.rollup(None, interval, allow_partial).totals
        return self.rollup(node_id, interval, allow_partial).metrics(node_id)

    def compute_metrics_for(
        self, node_ids: Iterable[str], interval: Interval, allow_partial: bool = False
    ) -> dict[str, NodeMetrics]:
        """Metrics for several nodes from a single rollup, keyed in input order."""
        ids = list(dict.fromkeys(node_ids))
        if not ids:
            return {}
        result = self.rollup(ids, interval, allow_partial)
        return {node_id: result.metrics(node_id) for node_id in ids}

    def compute_children_metrics(
        self, parent_id: str | None, interval: Interval, allow_partial: bool = False
    ) -> dict[str, NodeMetrics]:
        """Metrics for the direct children of a node (None for the top level)."""
        ids = self.top_level_ids() if parent_id is None else self.tree.children(parent_id)
        return self.compute_metrics_for(ids, interval, allow_partial)
