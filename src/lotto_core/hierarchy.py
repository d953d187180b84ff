"""Reseller tree: nodes and their parent/child adjacency.

The reseller network is a forest of nodes linked by ``parent_id``:

    admin → comercializadora → subdistribuidor → agencia → taquilla

Only taquillas record bets. The tree is built once per request from the
node listing of a fact store and is read-only afterwards. Integrity
problems degrade instead of failing:

- a ``parent_id`` that names no node makes the node a root (warning)
- a parent cycle is broken by promoting one of its members to root (warning)
- a repeated ``node_id`` keeps the first occurrence (warning)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import pandas as pd

from lotto_core.exceptions import MissingNodeError

logger = logging.getLogger(__name__)

ADMIN = "admin"
COMERCIALIZADORA = "comercializadora"
SUBDISTRIBUIDOR = "subdistribuidor"
AGENCIA = "agencia"
TAQUILLA = "taquilla"

NODE_KINDS = (ADMIN, COMERCIALIZADORA, SUBDISTRIBUIDOR, AGENCIA, TAQUILLA)

NODE_COLUMNS = [
    "node_id",
    "name",
    "kind",
    "parent_id",
    "share_on_sales",
    "share_on_profits",
    "is_active",
]


def _clean_id(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


def _clean_share(value: object) -> float | None:
    if value is None:
        return None
    try:
        share = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(share) else share


@dataclass(frozen=True)
class ResellerNode:
    """One node of the reseller tree.

    Attributes:
        node_id: Unique identifier.
        kind: One of NODE_KINDS.
        parent_id: Identifier of the parent node, None for roots.
        name: Display name.
        share_on_sales: Percentage (0-100) of gross sales kept as commission.
            None when the node has no contract (e.g. admin).
        share_on_profits: Percentage (0-100) of positive balance.
        is_active: Whether the node is active. Inactive nodes still roll up.
    """

    node_id: str
    kind: str
    parent_id: str | None = None
    name: str = ""
    share_on_sales: float | None = None
    share_on_profits: float | None = None
    is_active: bool = True

    @property
    def is_taquilla(self) -> bool:
        return self.kind == TAQUILLA


class ResellerTree:
    """Adjacency structure over ResellerNode objects.

    Holds ``id -> node`` and ``id -> [child ids]`` maps. Child lists keep the
    order in which nodes were listed, so traversals are stable; no other
    ordering is implied.

    Example:
        >>> tree = ResellerTree([
        ...     ResellerNode("c1", COMERCIALIZADORA),
        ...     ResellerNode("a1", AGENCIA, parent_id="c1", share_on_sales=10),
        ...     ResellerNode("t1", TAQUILLA, parent_id="a1"),
        ... ])
        >>> tree.children("c1")
        ['a1']
        >>> list(tree.descendant_taquillas("c1"))
        ['t1']

    """

    def __init__(self, nodes: Iterable[ResellerNode]) -> None:
        self._nodes: dict[str, ResellerNode] = {}
        for node in nodes:
            if node.node_id in self._nodes:
                logger.warning("Duplicate node id %s in reseller listing; keeping first", node.node_id)
                continue
            self._nodes[node.node_id] = node

        self._children: dict[str, list[str]] = {node_id: [] for node_id in self._nodes}
        self._roots: list[str] = []
        self._dangling: set[str] = set()

        for node in self._nodes.values():
            parent_id = node.parent_id
            if parent_id is None:
                self._roots.append(node.node_id)
            elif parent_id not in self._nodes:
                logger.warning(
                    "Node %s references missing parent %s; rolling it up as a root",
                    node.node_id,
                    parent_id,
                )
                self._dangling.add(node.node_id)
                self._roots.append(node.node_id)
            else:
                self._children[parent_id].append(node.node_id)

        self._break_cycles()

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> ResellerTree:
        """Build a tree from a node frame with NODE_COLUMNS."""
        nodes = []
        for row in frame.to_dict("records"):
            node_id = _clean_id(row.get("node_id"))
            if node_id is None:
                logger.warning("Skipping reseller row without node_id: %s", row)
                continue
            is_active = row.get("is_active", True)
            nodes.append(
                ResellerNode(
                    node_id=node_id,
                    kind=str(row.get("kind") or "").strip().lower(),
                    parent_id=_clean_id(row.get("parent_id")),
                    name=str(row.get("name") or ""),
                    share_on_sales=_clean_share(row.get("share_on_sales")),
                    share_on_profits=_clean_share(row.get("share_on_profits")),
                    is_active=True if pd.isna(is_active) else bool(is_active),
                )
            )
        return cls(nodes)

    def _break_cycles(self) -> None:
        reachable = set()
        for root_id in self._roots:
            reachable.update(self._walk(root_id))
        for node_id in self._nodes:
            if node_id in reachable:
                continue
            # Unreachable from any root: following parents must end in a cycle.
            seen: set[str] = set()
            cycle_id = node_id
            while cycle_id not in seen:
                seen.add(cycle_id)
                cycle_id = self._nodes[cycle_id].parent_id
            logger.warning("Parent cycle detected at node %s; rolling it up as a root", cycle_id)
            self._children[self._nodes[cycle_id].parent_id].remove(cycle_id)
            self._dangling.add(cycle_id)
            self._roots.append(cycle_id)
            reachable.update(self._walk(cycle_id))

    def _walk(self, node_id: str) -> Iterator[str]:
        stack = [node_id]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self._children[current]))

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ResellerNode]:
        return iter(self._nodes.values())

    def get(self, node_id: str) -> ResellerNode:
        """Return a node by id.

        Raises:
            MissingNodeError: If the node is not in the tree.
        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise MissingNodeError(node_id) from None

    def children(self, node_id: str) -> list[str]:
        """Direct child ids of a node, in listing order."""
        if node_id not in self._children:
            raise MissingNodeError(node_id)
        return list(self._children[node_id])

    def has_children(self, node_id: str) -> bool:
        return bool(self._children.get(node_id))

    def roots(self) -> list[str]:
        """Top-level node ids, including nodes promoted because of bad parents."""
        return list(self._roots)

    def is_dangling(self, node_id: str) -> bool:
        """True when the node was promoted to root because of a missing parent or a cycle."""
        return node_id in self._dangling

    def iter_subtree(self, node_id: str) -> Iterator[str]:
        """Pre-order walk of a subtree, starting at ``node_id``."""
        if node_id not in self._nodes:
            raise MissingNodeError(node_id)
        return self._walk(node_id)

    def post_order(self, root_ids: Iterable[str]) -> list[tuple[str, int]]:
        """Children-before-parent order of the subtrees under ``root_ids``.

        Returns:
            List of ``(node_id, depth)`` pairs, depth 0 for the given roots.
        """
        ordered: list[tuple[str, int]] = []
        for root_id in root_ids:
            if root_id not in self._nodes:
                raise MissingNodeError(root_id)
            stack: list[tuple[str, int, bool]] = [(root_id, 0, False)]
            while stack:
                node_id, depth, expanded = stack.pop()
                if expanded:
                    ordered.append((node_id, depth))
                    continue
                stack.append((node_id, depth, True))
                for child_id in reversed(self._children[node_id]):
                    stack.append((child_id, depth + 1, False))
        return ordered

    def descendant_taquillas(self, node_id: str) -> Iterator[str]:
        """Taquilla ids in the subtree of ``node_id`` (itself included)."""
        for current in self.iter_subtree(node_id):
            if self._nodes[current].is_taquilla:
                yield current

    def top_level(self, kind: str) -> list[str]:
        """Nodes of ``kind`` whose parent is absent, dangling, or an admin."""
        result = []
        for node in self._nodes.values():
            if node.kind != kind:
                continue
            parent = self._nodes.get(node.parent_id) if node.parent_id else None
            if parent is None or parent.kind == ADMIN or node.node_id in self._dangling:
                result.append(node.node_id)
        return result

    def to_frame(self) -> pd.DataFrame:
        """Node listing as a frame with NODE_COLUMNS."""
        rows = [
            {
                "node_id": node.node_id,
                "name": node.name,
                "kind": node.kind,
                "parent_id": node.parent_id,
                "share_on_sales": node.share_on_sales,
                "share_on_profits": node.share_on_profits,
                "is_active": node.is_active,
            }
            for node in self._nodes.values()
        ]
        return pd.DataFrame(rows, columns=NODE_COLUMNS)
