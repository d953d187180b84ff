"""Example: Drillable hierarchical view for a reseller

Renders the top level of the view a comercializadora sees, with today,
week, month and the applied range side by side, then drills down into one
of its entities.

Prerequisites:
- Set LOTTO_REST_URL and LOTTO_REST_KEY environment variables
- Optionally set LOTTO_TZ (e.g. America/Caracas)
"""

from lotto_core import CurrentUser, HierarchyView, RollupEngine, Settings
from lotto_core.facts import RestFactStore
from lotto_core.formatters import format_hierarchy_for_console

settings = Settings.from_env()
engine = RollupEngine(RestFactStore(settings))

user = CurrentUser("comercializadora-1", "comercializadora")  # MODIFY AS NEEDED
applied_range = ("2025-01-01", "2025-01-31")  # MODIFY AS NEEDED

with HierarchyView(engine, user, max_workers=settings.max_workers) as view:
    root = view.compute_hierarchy_root(applied_range)
    print(format_hierarchy_for_console(root))

    # Expand the first entity that has children
    expandable = [row for row in root.rows if row.has_children]
    if expandable:
        node_id = expandable[0].node_id
        print(f"\nExpanding {node_id}...")
        for row in view.expand(node_id, applied_range):
            print(f"  {row.name} ({row.kind}): {row.metrics.sales}")
        view.collapse(node_id)

    # Re-read everything (tree included) after data changes
    view.refresh(applied_range)
