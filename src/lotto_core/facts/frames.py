"""Local fact stores backed by pandas frames.

FrameFactStore keeps the four fact streams in memory; CsvFactStore loads
them from the files described by DataPaths. Both filter with the same
interval semantics as the remote store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from lotto_core.config import DataPaths
from lotto_core.exceptions import FactStoreError
from lotto_core.facts.base import (
    FactStore,
    WinnerScope,
    as_id_set,
    normalize_bets,
    normalize_daily_results,
    normalize_nodes,
    normalize_winners,
)
from lotto_core.periods import Interval

logger = logging.getLogger(__name__)


class FrameFactStore(FactStore):
    """In-memory fact store.

    Args:
        bets: Bet frame (BET_COLUMNS, extra columns dropped).
        winners: Winner frame (WINNER_COLUMNS).
        daily_results: Daily result frame (DAILY_RESULT_COLUMNS).
        nodes: Reseller node frame (NODE_COLUMNS).
        timezone: Timezone that fact timestamps are converted to.

    Example:
        >>> from lotto_core.periods import resolve_period
        >>> store = FrameFactStore(
        ...     bets=pd.DataFrame({"taquilla_id": ["t1"], "amount": [50.0],
        ...                        "created_at": ["2025-01-15 10:00"]}),
        ... )
        >>> store.list_bets("t1", resolve_period("today", now="2025-01-15"))["amount"].sum()
        50.0

    """

    def __init__(
        self,
        bets: pd.DataFrame | None = None,
        winners: pd.DataFrame | None = None,
        daily_results: pd.DataFrame | None = None,
        nodes: pd.DataFrame | None = None,
        timezone: str | None = None,
    ) -> None:
        self._bets = normalize_bets(bets, timezone)
        self._winners = normalize_winners(winners, timezone)
        self._daily_results = normalize_daily_results(daily_results)
        self._nodes = normalize_nodes(nodes)

    def list_bets(
        self,
        taquilla_ids: str | Iterable[str] | None,
        interval: Interval,
    ) -> pd.DataFrame:
        df = self._bets[interval.mask(self._bets["created_at"])]
        ids = as_id_set(taquilla_ids)
        if ids is not None:
            df = df[df["taquilla_id"].isin(ids)]
        logger.debug("Listed %d bets for %s", len(df), interval)
        return df.reset_index(drop=True)

    def list_winners(self, scope: WinnerScope, interval: Interval) -> pd.DataFrame:
        df = self._winners[interval.mask(self._winners["created_at"])]
        if scope.lottery_id is not None:
            df = df[df["lottery_id"] == scope.lottery_id]
        if scope.taquilla_ids is not None:
            df = df[df["taquilla_id"].isin(scope.taquilla_ids)]
        logger.debug("Listed %d winners for %s", len(df), interval)
        return df.reset_index(drop=True)

    def list_daily_results(self, interval: Interval) -> pd.DataFrame:
        df = self._daily_results[interval.date_mask(self._daily_results["result_date"])]
        return df.reset_index(drop=True)

    def list_reseller_nodes(self) -> pd.DataFrame:
        return self._nodes.copy()


# Ids are strings even when they look numeric ("0042", animal "00").
_ID_DTYPES = {
    "node_id": str,
    "parent_id": str,
    "taquilla_id": str,
    "lottery_id": str,
    "animal_number": str,
}


def _read_csv(path: Path, stream: str) -> pd.DataFrame:
    if not path.exists():
        raise FactStoreError(f"No {stream} facts found at {path}", stream=stream)
    try:
        return pd.read_csv(path, encoding="utf-8", dtype=_ID_DTYPES)
    except (OSError, ValueError) as e:
        raise FactStoreError(f"Could not read {stream} facts from {path}: {e}", stream=stream) from e


class CsvFactStore(FrameFactStore):
    """Fact store loading bets/winners/daily_results/nodes CSVs from DataPaths.

    ``winners.csv`` and ``daily_results.csv`` are optional (a network with no
    draws yet has none); ``bets.csv`` and ``nodes.csv`` are required.

    Raises:
        FactStoreError: If a required file is missing or unreadable.
    """

    def __init__(self, paths: DataPaths, timezone: str | None = None) -> None:
        self.paths = paths
        logger.info("Loading facts from %s", paths.data_root)
        bets = _read_csv(paths.bets_csv, "bets")
        nodes = _read_csv(paths.nodes_csv, "nodes")
        winners = (
            _read_csv(paths.winners_csv, "winners") if paths.winners_csv.exists() else None
        )
        daily_results = (
            _read_csv(paths.daily_results_csv, "daily_results")
            if paths.daily_results_csv.exists()
            else None
        )
        super().__init__(
            bets=bets,
            winners=winners,
            daily_results=daily_results,
            nodes=nodes,
            timezone=timezone,
        )
        logger.info(
            "Loaded %d bets, %d winners, %d daily results, %d nodes",
            len(self._bets),
            len(self._winners),
            len(self._daily_results),
            len(self._nodes),
        )
