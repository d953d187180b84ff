"""Hierarchical view: one drillable level of the reseller tree per request.

The dashboard shows, for the current user, one row per entity below them
(comercializadoras for an admin, subdistribuidores for a comercializadora,
and so on) with figures for four windows: today, week, month and the
applied custom range. Each row can be expanded lazily into its children.

Example:
    >>> from lotto_core.facts import CsvFactStore
    >>> from lotto_core.config import DataPaths
    >>> engine = RollupEngine(CsvFactStore(DataPaths.from_root("data")))  # doctest: +SKIP
    >>> view = HierarchyView(engine, CurrentUser("admin-1", "admin"))  # doctest: +SKIP
    >>> root = view.compute_hierarchy_root(("2025-01-01", "2025-01-31"))  # doctest: +SKIP
    >>> [row.name for row in root.rows]  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from lotto_core.config import DEFAULT_MAX_WORKERS
from lotto_core.exceptions import FactStoreError
from lotto_core.hierarchy import ADMIN, COMERCIALIZADORA, ResellerTree
from lotto_core.periods import PERIOD_TOKENS, DateLike, Interval, resolve_all_periods
from lotto_core.rollup import NodeMetrics, RollupEngine

logger = logging.getLogger(__name__)

CustomRange = Optional[tuple[DateLike, Optional[DateLike]]]


@dataclass(frozen=True)
class CurrentUser:
    """The user the view is rendered for.

    Attributes:
        user_id: Id of the user's node in the reseller tree.
        user_type: Node kind of the user; None when unknown.
        permissions: Permission names; ``"*"`` marks a super admin.
    """

    user_id: str
    user_type: str | None = None
    permissions: tuple[str, ...] = ()

    @property
    def is_super_admin(self) -> bool:
        return "*" in self.permissions


def resolve_root(current_user: CurrentUser, tree: ResellerTree) -> tuple[str, str | None, list[str]]:
    """Decide which entities the user sees at the top of the view.

    Returns:
        ``(root_type, parent_id, entity_ids)``. ``parent_id`` is the node the
        entities hang from, or None when they are the network's top level.

    """
    top_level = tree.top_level(COMERCIALIZADORA)
    if current_user.is_super_admin:
        return ADMIN, None, top_level
    if current_user.user_id not in tree:
        if current_user.user_type in (None, ADMIN):
            return ADMIN, None, top_level
        logger.warning("User %s has no node in the reseller tree", current_user.user_id)
        return current_user.user_type, None, []

    node = tree.get(current_user.user_id)
    root_type = node.kind or current_user.user_type or ADMIN
    children = tree.children(node.node_id)
    if root_type == ADMIN and not children:
        return ADMIN, None, top_level
    return root_type, node.node_id, children


@dataclass(frozen=True)
class HierarchyRow:
    """One entity of the view with figures for every period variant."""

    node_id: str
    name: str
    kind: str
    has_children: bool
    periods: dict[str, NodeMetrics] = field(default_factory=dict)

    @property
    def metrics(self) -> NodeMetrics:
        """Figures for the applied (custom) range."""
        return self.periods["custom"]


@dataclass(frozen=True)
class HierarchyRoot:
    root_type: str
    root_entities: list[NodeMetrics]
    rows: list[HierarchyRow]
    result_count: int = 0
    results_with_winners_count: int = 0
    incomplete: bool = False


def compute_hierarchy_root(
    engine: RollupEngine, current_user: CurrentUser, interval: Interval
) -> HierarchyRoot:
    """Single-interval version of HierarchyView.compute_hierarchy_root.

    Rows carry only the ``custom`` variant, computed for ``interval``.
    """
    root_type, _, entity_ids = resolve_root(current_user, engine.tree)
    metrics = engine.compute_metrics_for(entity_ids, interval)
    rows = [_row({"custom": metrics[node_id]}) for node_id in entity_ids]
    result_count = with_winners = 0
    if root_type == ADMIN:
        totals = engine.compute_node_metrics(None, interval)
        result_count, with_winners = totals.result_count, totals.results_with_winners_count
    return HierarchyRoot(
        root_type=root_type,
        root_entities=list(metrics.values()),
        rows=rows,
        result_count=result_count,
        results_with_winners_count=with_winners,
        incomplete=any(m.incomplete for m in metrics.values()),
    )


def _row(periods: dict[str, NodeMetrics]) -> HierarchyRow:
    any_metrics = next(iter(periods.values()))
    return HierarchyRow(
        node_id=any_metrics.node_id,
        name=any_metrics.name,
        kind=any_metrics.kind,
        has_children=any_metrics.has_children,
        periods=periods,
    )


class HierarchyView:
    """Stateful drill-down view over a RollupEngine.

    Holds the last rendered root, the expanded children per row and the last
    error. Period variants are computed concurrently, each with its own
    engine call; intervals are re-resolved on every call.

    Args:
        engine: Rollup engine (one render cycle per refresh).
        current_user: User the view is rendered for.
        now: Fixed reference instant; None uses the current time per call.
        max_workers: Thread pool size for variants and expansions.
    """

    def __init__(
        self,
        engine: RollupEngine,
        current_user: CurrentUser,
        now: DateLike | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.engine = engine
        self.current_user = current_user
        self.now = now
        self.max_workers = max_workers
        self.root: HierarchyRoot | None = None
        self.children: dict[str, list[HierarchyRow]] = {}
        self.error: Exception | None = None
        self._pending: dict[str, tuple[object, Future]] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    def close(self) -> None:
        """Shut the worker pool down, cancelling pending expansions."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> HierarchyView:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _intervals(self, custom_range: CustomRange = None) -> dict[str, Interval]:
        return resolve_all_periods(self.now, custom_range)

    def _rows_for(self, node_ids: list[str], intervals: dict[str, Interval]) -> list[HierarchyRow]:
        if not node_ids:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {
                token: pool.submit(self.engine.compute_metrics_for, node_ids, interval)
                for token, interval in intervals.items()
            }
            variants = {token: future.result() for token, future in futures.items()}
        return [
            _row({token: variants[token][node_id] for token in PERIOD_TOKENS})
            for node_id in node_ids
        ]

    def compute_hierarchy_root(self, custom_range: CustomRange = None) -> HierarchyRoot:
        """Compute the top level of the view for all four period variants.

        Args:
            custom_range: ``(from, to)`` for the applied range; None covers today.

        Returns:
            HierarchyRoot; also stored in ``self.root``.

        Raises:
            InvalidRangeError: If the custom range ends before it starts.
            FactStoreError: If facts cannot be fetched.

        """
        intervals = self._intervals(custom_range)
        root_type, _, entity_ids = resolve_root(self.current_user, self.engine.tree)
        logger.info(
            "Computing %s hierarchy with %d entities for %s",
            root_type,
            len(entity_ids),
            intervals["custom"],
        )
        rows = self._rows_for(entity_ids, intervals)

        result_count = with_winners = 0
        if root_type == ADMIN:
            totals = self.engine.compute_node_metrics(None, intervals["custom"])
            result_count, with_winners = totals.result_count, totals.results_with_winners_count

        root = HierarchyRoot(
            root_type=root_type,
            root_entities=[row.metrics for row in rows],
            rows=rows,
            result_count=result_count,
            results_with_winners_count=with_winners,
            incomplete=any(m.incomplete for row in rows for m in row.periods.values()),
        )
        self.root = root
        return root

    def _child_rows(self, node_id: str, custom_range: CustomRange = None) -> list[HierarchyRow]:
        child_ids = self.engine.tree.children(node_id)
        return self._rows_for(child_ids, self._intervals(custom_range))

    def expand(self, node_id: str, custom_range: CustomRange = None) -> list[HierarchyRow]:
        """Compute and store the children rows of one row.

        A pending background expansion of the same row is superseded.

        Raises:
            MissingNodeError: If the node is not in the tree.
        """
        rows = self._child_rows(node_id, custom_range)
        with self._lock:
            self._pending.pop(node_id, None)
            self.children[node_id] = rows
        return rows

    def expand_async(self, node_id: str, custom_range: CustomRange = None) -> Future:
        """Start expanding a row in the background.

        Expanding a row that is already being expanded returns the pending
        future. The rows are stored before the future resolves, and only if
        the expansion is still the current one for that row.
        """
        with self._lock:
            pending = self._pending.get(node_id)
            if pending is not None and not pending[1].done():
                return pending[1]
            token = object()
            future = self._executor.submit(self._expand_job, node_id, custom_range, token)
            self._pending[node_id] = (token, future)
        return future

    def _expand_job(self, node_id: str, custom_range: CustomRange, token: object) -> list[HierarchyRow]:
        rows = self._child_rows(node_id, custom_range)
        with self._lock:
            current = self._pending.get(node_id)
            # Collapsed, re-expanded or refreshed while running: leave the view alone.
            if current is None or current[0] is not token:
                return rows
            del self._pending[node_id]
            self.children[node_id] = rows
        return rows

    def collapse(self, node_id: str) -> bool:
        """Collapse a row: cancel its pending expansion and drop its children.

        An expansion that is already running still finishes, but its rows
        are never stored. Sibling rows are left untouched.

        Returns:
            True if the row was expanded or being expanded.
        """
        with self._lock:
            pending = self._pending.pop(node_id, None)
            rows = self.children.pop(node_id, None)
        if pending is not None:
            pending[1].cancel()
        return pending is not None or rows is not None

    def refresh(self, custom_range: CustomRange = None) -> HierarchyRoot | None:
        """Start a new render cycle and recompute the root.

        Expanded rows are dropped once the new root is computed. On a fact
        store failure the previous root and its expanded rows stay in place,
        the error is kept in ``self.error`` and re-raised.
        """
        self.engine.reset()
        try:
            root = self.compute_hierarchy_root(custom_range)
        except FactStoreError as e:
            logger.error("Refresh failed, keeping previous view: %s", e)
            self.error = e
            raise
        with self._lock:
            stale = list(self._pending.values())
            self._pending.clear()
            self.children.clear()
        for _, future in stale:
            future.cancel()
        self.error = None
        return root
