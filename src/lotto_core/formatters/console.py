"""Console output formatting utilities."""

from __future__ import annotations

import re
import unicodedata

from lotto_core.periods import PERIOD_TOKENS
from lotto_core.pots import format_currency
from lotto_core.rollup import NodeMetrics, RollupResult
from lotto_core.views import HierarchyRoot

PERIOD_LABELS = {
    "today": "Hoy",
    "week": "Semana",
    "month": "Mes",
    "custom": "Rango",
}


def sanitize_for_console(text: str) -> str:
    """Make text safe for consoles without UTF-8 (e.g. cp1252 on Windows).

    Accents are dropped from letters ("León" becomes "Leon") and any other
    non-ASCII character is removed.

    Args:
        text: Text that may contain accented names

    Returns:
        ASCII-only text
    """
    text = unicodedata.normalize("NFKD", text)
    return re.sub(r"[^\x00-\x7F]+", "", text)


def _label(metrics: NodeMetrics) -> str:
    name = metrics.name or metrics.node_id or "Admin"
    return f"{name} ({metrics.kind})"


def _figures(metrics: NodeMetrics) -> str:
    return (
        f"ventas {format_currency(metrics.sales)} | "
        f"premios {format_currency(metrics.prizes)} | "
        f"comision {format_currency(metrics.commission)} | "
        f"balance {format_currency(metrics.balance)}"
    )


def format_rollup_for_console(result: RollupResult) -> str:
    """Build an indented, one-line-per-node view of a rollup.

    Args:
        result: RollupResult from RollupEngine.rollup

    Returns:
        Human-readable text string for console output
    """
    if result.frame.empty:
        return f"No data for {result.interval}."

    lines = []
    lines.append(f"Reporte de ventas - {result.interval}")
    lines.append("=" * 60)
    if result.incomplete:
        lines.append(f"INCOMPLETO: faltan datos de {', '.join(result.missing_streams)}")
    lines.append("")

    # The frame is post-order; print parents before their children.
    for node_id in _pre_order(result):
        m = result.metrics(node_id)
        depth = int(result.frame.at[node_id, "depth"])
        indent = "  " * depth
        lines.append(f"{indent}{_label(m)}")
        lines.append(f"{indent}  {_figures(m)}")

    totals = result.totals
    lines.append("")
    lines.append("-" * 60)
    lines.append(f"Total: {_figures(totals)}")
    if totals.result_count:
        lines.append(
            f"Resultados: {totals.result_count} ({totals.results_with_winners_count} con ganadores)"
        )
    return "\n".join(lines)


def _pre_order(result: RollupResult) -> list[str]:
    frame = result.frame
    children: dict[str | None, list[str]] = {}
    roots: list[str] = []
    for node_id, depth, parent_id in zip(frame.index, frame["depth"], frame["parent_id"]):
        if depth == 0:
            roots.append(node_id)
        else:
            children.setdefault(parent_id, []).append(node_id)
    ordered: list[str] = []
    stack = list(reversed(roots))
    while stack:
        node_id = stack.pop()
        ordered.append(node_id)
        stack.extend(reversed(children.get(node_id, [])))
    return ordered


def format_hierarchy_for_console(root: HierarchyRoot) -> str:
    """Build a table of the view's top level with all four period variants.

    Args:
        root: HierarchyRoot from HierarchyView.compute_hierarchy_root

    Returns:
        Human-readable text string for console output
    """
    if not root.rows:
        return f"No entities to show for {root.root_type}."

    lines = []
    lines.append(f"Vista jerarquica ({root.root_type})")
    lines.append("=" * 60)
    if root.incomplete:
        lines.append("INCOMPLETO: algunos datos no pudieron cargarse")
    lines.append("")

    for row in root.rows:
        marker = "+" if row.has_children else "-"
        lines.append(f"{marker} {row.name or row.node_id} ({row.kind})")
        for token in PERIOD_TOKENS:
            metrics = row.periods.get(token)
            if metrics is None:
                continue
            lines.append(f"    {PERIOD_LABELS[token]:<7} {_figures(metrics)}")
        lines.append("")

    if root.result_count:
        lines.append(
            f"Resultados: {root.result_count} ({root.results_with_winners_count} con ganadores)"
        )
    return "\n".join(lines)
