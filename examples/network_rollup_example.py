"""Example: Revenue rollup of the reseller network

This example shows how to roll bets and prizes up the reseller tree for a
period and read the commission split of each node.

Prerequisites:
- data/ directory with bets.csv, winners.csv and nodes.csv
  (daily_results.csv is optional)
"""

from pathlib import Path

from lotto_core import DataPaths, RollupEngine, resolve_period
from lotto_core.facts import CsvFactStore
from lotto_core.formatters import format_rollup_for_console

paths = DataPaths.from_root(Path("data"))
engine = RollupEngine(CsvFactStore(paths))

# Whole network, current month
month = resolve_period("month")
result = engine.rollup(None, month)

print(format_rollup_for_console(result))
print(f"\nNodes in rollup: {len(result.frame)}")

# Flat per-node summary (one row per node, children before parents)
print(result.frame[["name", "kind", "sales", "prizes", "commission", "balance"]].head(20))

# One agency and everything below it, for a custom range
january = resolve_period("custom", custom_range=("2025-01-01", "2025-01-31"))
agency_id = "agencia-7"  # MODIFY AS NEEDED
agency = engine.compute_node_metrics(agency_id, january)
print(f"\n{agency.name}: ventas={agency.sales} comision={agency.commission} balance={agency.balance}")

# Direct children of the agency (its taquillas)
for node_id, metrics in engine.compute_children_metrics(agency_id, january).items():
    print(f"  {node_id}: {metrics.sales} / {metrics.prizes}")
