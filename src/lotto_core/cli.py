r"""Revenue and commission report for the reseller network (CLI).

Usage
-----
Hierarchical view for an admin (today, week, month and the applied range):
    lotto-report --data-root ./data --from 2025-01-01 --to 2025-01-31

Flat rollup of one agency for the current month, written to CSV:
    lotto-report --data-root ./data --flat --node agencia-7 --period month -o agencia-7.csv

Remote store (reads LOTTO_REST_URL / LOTTO_REST_KEY):
    lotto-report --remote --user-id c1 --user-type comercializadora

Options:
    --data-root     Directory with bets.csv, winners.csv, daily_results.csv, nodes.csv
    --remote        Read facts from the PostgREST endpoint instead of CSVs
    --period        today | week | month | custom (flat mode, default: month;
                    custom when --from is given)
    --from/--to     Applied range (YYYY-MM-DD); --to defaults to --from
    --node          Root node for flat mode (default: whole network)
    --user-id       Node id of the user the view is rendered for
    --user-type     Kind of that user (default: admin)
    --flat          Print the flat per-node rollup instead of the view
    -o, --output    Also write the flat rollup to this CSV
    -v, --verbose   Debug logging

Exit codes:
    0 on success
    2 on configuration, range, data or fact store errors
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from lotto_core.config import DataPaths, Settings
from lotto_core.exceptions import LottoAPIError
from lotto_core.facts import CsvFactStore, FactStore, RestFactStore
from lotto_core.formatters.console import (
    format_hierarchy_for_console,
    format_rollup_for_console,
    sanitize_for_console,
)
from lotto_core.hierarchy import ADMIN
from lotto_core.periods import PERIOD_TOKENS, resolve_period
from lotto_core.rollup import RollupEngine
from lotto_core.views import CurrentUser, HierarchyView

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Revenue and commission report for the reseller network.")
    p.add_argument("--data-root", default="data", help="Directory with the fact CSVs (default: data)")
    p.add_argument("--remote", action="store_true", help="Use the PostgREST store (LOTTO_REST_*)")
    p.add_argument(
        "--period",
        default="month",
        choices=PERIOD_TOKENS,
        help="Flat mode period (custom when --from is given)",
    )
    p.add_argument("--from", dest="date_from", help="Range start (YYYY-MM-DD)")
    p.add_argument("--to", dest="date_to", help="Range end (YYYY-MM-DD)")
    p.add_argument("--node", help="Root node id for flat mode")
    p.add_argument("--user-id", default=ADMIN, help="Node id of the viewing user")
    p.add_argument("--user-type", default=None, help="Kind of the viewing user")
    p.add_argument("--flat", action="store_true", help="Print the flat per-node rollup")
    p.add_argument("-o", "--output", help="Write the flat rollup to CSV")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def _open_store(args: argparse.Namespace, settings: Settings) -> FactStore:
    if args.remote:
        return RestFactStore(settings)
    return CsvFactStore(DataPaths.from_root(args.data_root), timezone=settings.timezone)


def _print(text: str) -> None:
    encoding = (getattr(sys.stdout, "encoding", None) or "").lower()
    print(text if encoding.startswith("utf") else sanitize_for_console(text))


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
    )

    custom_range = (args.date_from, args.date_to) if args.date_from else None
    try:
        settings = Settings.from_env()
        engine = RollupEngine(_open_store(args, settings))

        if args.flat or args.output:
            # An explicit range always wins over --period.
            period = "custom" if custom_range is not None else args.period
            interval = resolve_period(period, custom_range=custom_range)
            result = engine.rollup(args.node, interval)
            if args.output:
                result.frame.to_csv(args.output, encoding="utf-8")
                logger.info("Wrote %d rows to %s", len(result.frame), args.output)
            if args.flat:
                _print(format_rollup_for_console(result))
            return 0

        user = CurrentUser(args.user_id, args.user_type or ADMIN)
        with HierarchyView(engine, user, max_workers=settings.max_workers) as view:
            root = view.compute_hierarchy_root(custom_range)
        _print(format_hierarchy_for_console(root))
    except LottoAPIError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
