"""Example: Dashboard statistics

Sales per window, the most played animals and today's draw summary for a
set of visible taquillas.

Prerequisites:
- data/ directory with bets.csv, nodes.csv and (optionally) winners.csv
  and daily_results.csv
"""

from pathlib import Path

from lotto_core import DataPaths, resolve_period
from lotto_core.facts import CsvFactStore
from lotto_core.pots import INITIAL_POTS, distribute_to_pots, format_currency
from lotto_core.stats import compute_bet_number_stats, compute_daily_summary, compute_sales_stats

store = CsvFactStore(DataPaths.from_root(Path("data")))
visible = None  # or a list of taquilla ids, e.g. ["taquilla-1", "taquilla-2"]

sales = compute_sales_stats(store, visible_taquilla_ids=visible)
print(f"Hoy:    {format_currency(sales.today_sales)} ({sales.today_bets_count} jugadas)")
print(f"Semana: {format_currency(sales.week_sales)} ({sales.week_bets_count} jugadas)")
print(f"Mes:    {format_currency(sales.month_sales)} ({sales.month_bets_count} jugadas)")
for taquilla in sales.sales_by_taquilla[:5]:
    print(f"  {taquilla.taquilla_name}: {format_currency(taquilla.sales)}")

bets = store.list_bets(visible, resolve_period("week"))
numbers = compute_bet_number_stats(bets, limit=5)
print("\nMas jugados esta semana:")
for n in numbers.most_played:
    print(f"  {n.number} {n.animal_name}: {n.times_played}")

summary = compute_daily_summary(store, visible_taquilla_ids=visible)
print(f"\nResultados hoy: {summary.result_count} ({summary.results_with_winners} con ganadores)")
print(f"Recaudado: {format_currency(summary.total_raised)}")

# How today's sales would be split across the pots
for pot in distribute_to_pots(sales.today_sales, INITIAL_POTS):
    print(f"  {pot.name}: {format_currency(pot.balance)}")
