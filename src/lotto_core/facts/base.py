"""Fact store contract and fact-frame normalization.

Fact grains
-----------
1. **Bets** (``BET_COLUMNS``):
   - Grain: one row per bet placed at a taquilla
   - Key: ``bet_id``
   - ``status == "cancelled"`` rows are not sales

2. **Winners** (``WINNER_COLUMNS``):
   - Grain: one row per bet that matched a daily result
   - ``potential_win = amount x multiplier``
   - ``status`` ("winner" or "paid") is passed through, never interpreted

3. **Daily results** (``DAILY_RESULT_COLUMNS``):
   - Grain: one row per lottery per calendar day
   - ``total_to_pay`` is the payout for the matching bets

4. **Reseller nodes** (``NODE_COLUMNS``): one row per node of the tree.

Every adapter returns frames with exactly these columns, with
``created_at`` as naive timestamps in the configured timezone.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass

import pandas as pd

from lotto_core.exceptions import DataQualityError
from lotto_core.hierarchy import NODE_COLUMNS
from lotto_core.periods import Interval

BET_COLUMNS = [
    "bet_id",
    "taquilla_id",
    "lottery_id",
    "animal_number",
    "amount",
    "created_at",
    "status",
]

WINNER_COLUMNS = [
    "winner_id",
    "taquilla_id",
    "lottery_id",
    "animal_number",
    "amount",
    "potential_win",
    "created_at",
    "status",
]

DAILY_RESULT_COLUMNS = [
    "result_id",
    "lottery_id",
    "result_date",
    "animal_number",
    "animal_name",
    "multiplier",
    "total_to_pay",
    "total_raised",
]

CANCELLED = "cancelled"

_REQUIRED = {
    "bets": ["taquilla_id", "amount", "created_at"],
    "winners": ["taquilla_id", "potential_win", "created_at"],
    "daily_results": ["lottery_id", "result_date"],
    "nodes": ["node_id", "kind"],
}


@dataclass(frozen=True)
class WinnerScope:
    """Which winners to list: global, one lottery, or a set of taquillas.

    Examples:
        >>> WinnerScope.everywhere()
        WinnerScope(lottery_id=None, taquilla_ids=None)
        >>> WinnerScope.for_taquillas(["t1", "t2"]).taquilla_ids
        frozenset({'t1', 't2'})

    """

    lottery_id: str | None = None
    taquilla_ids: frozenset[str] | None = None

    @classmethod
    def everywhere(cls) -> WinnerScope:
        return cls()

    @classmethod
    def for_lottery(cls, lottery_id: str) -> WinnerScope:
        return cls(lottery_id=lottery_id)

    @classmethod
    def for_taquillas(cls, taquilla_ids: Iterable[str]) -> WinnerScope:
        return cls(taquilla_ids=frozenset(taquilla_ids))

    @property
    def is_global(self) -> bool:
        return self.lottery_id is None and self.taquilla_ids is None


def as_id_set(taquilla_ids: str | Iterable[str] | None) -> frozenset[str] | None:
    """Normalize a single id, an iterable of ids, or None (meaning all)."""
    if taquilla_ids is None:
        return None
    if isinstance(taquilla_ids, str):
        return frozenset([taquilla_ids])
    return frozenset(str(t) for t in taquilla_ids)


def to_local_timestamps(values: pd.Series, timezone: str | None = None) -> pd.Series:
    """Parse timestamps and return them naive, in ``timezone`` (UTC when None).

    Values without an offset are taken as UTC.
    """
    parsed = pd.to_datetime(values, utc=True, format="mixed")
    return parsed.dt.tz_convert(timezone or "UTC").dt.tz_localize(None)


def _require(frame: pd.DataFrame, stream: str) -> None:
    missing = set(_REQUIRED[stream]) - set(frame.columns)
    if missing:
        raise DataQualityError(f"{stream} facts are missing required columns: {sorted(missing)}")


def _conform(frame: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    frame = frame.copy()
    for column in columns:
        if column not in frame.columns:
            frame[column] = None
    return frame[columns]


def normalize_bets(frame: pd.DataFrame | None, timezone: str | None = None) -> pd.DataFrame:
    """Conform a bet frame to BET_COLUMNS with typed amounts and timestamps."""
    if frame is None or frame.empty:
        return empty_frame(BET_COLUMNS)
    _require(frame, "bets")
    out = _conform(frame, BET_COLUMNS)
    out["taquilla_id"] = out["taquilla_id"].astype(str)
    out["amount"] = pd.to_numeric(out["amount"], errors="coerce").fillna(0.0).astype(float)
    out["created_at"] = to_local_timestamps(out["created_at"], timezone)
    out["status"] = out["status"].fillna("active").astype(str)
    return out.reset_index(drop=True)


def normalize_winners(frame: pd.DataFrame | None, timezone: str | None = None) -> pd.DataFrame:
    """Conform a winner frame to WINNER_COLUMNS with typed payouts and timestamps."""
    if frame is None or frame.empty:
        return empty_frame(WINNER_COLUMNS)
    _require(frame, "winners")
    out = _conform(frame, WINNER_COLUMNS)
    out["taquilla_id"] = out["taquilla_id"].astype(str)
    for column in ("amount", "potential_win"):
        out[column] = pd.to_numeric(out[column], errors="coerce").fillna(0.0).astype(float)
    out["created_at"] = to_local_timestamps(out["created_at"], timezone)
    return out.reset_index(drop=True)


def normalize_daily_results(frame: pd.DataFrame | None) -> pd.DataFrame:
    """Conform a daily result frame to DAILY_RESULT_COLUMNS."""
    if frame is None or frame.empty:
        return empty_frame(DAILY_RESULT_COLUMNS)
    _require(frame, "daily_results")
    out = _conform(frame, DAILY_RESULT_COLUMNS)
    out["result_date"] = pd.to_datetime(out["result_date"]).dt.normalize()
    for column in ("total_to_pay", "total_raised"):
        out[column] = pd.to_numeric(out[column], errors="coerce").fillna(0.0).astype(float)
    return out.reset_index(drop=True)


def normalize_nodes(frame: pd.DataFrame | None) -> pd.DataFrame:
    """Conform a reseller node frame to NODE_COLUMNS."""
    if frame is None or frame.empty:
        return empty_frame(NODE_COLUMNS)
    _require(frame, "nodes")
    return _conform(frame, NODE_COLUMNS).reset_index(drop=True)


def empty_frame(columns: list[str]) -> pd.DataFrame:
    frame = pd.DataFrame({column: pd.Series(dtype=object) for column in columns})
    for column in ("amount", "potential_win", "total_to_pay", "total_raised"):
        if column in frame.columns:
            frame[column] = frame[column].astype(float)
    for column in ("created_at", "result_date"):
        if column in frame.columns:
            frame[column] = pd.to_datetime(frame[column])
    return frame


class FactStore(ABC):
    """Read-only query contract over the raw fact streams.

    All methods return new frames; implementations never mutate facts. An
    empty result is an empty frame with the documented columns, never None.
    Failures to reach the underlying storage raise FactStoreError.
    """

    @abstractmethod
    def list_bets(
        self,
        taquilla_ids: str | Iterable[str] | None,
        interval: Interval,
    ) -> pd.DataFrame:
        """Bets placed at the given taquilla(s) within the interval.

        Args:
            taquilla_ids: One id, an iterable of ids, or None for every taquilla.
            interval: Resolved interval; ``created_at`` is filtered inclusively.

        Returns:
            Frame with BET_COLUMNS (cancelled bets included; callers filter).
        """

    @abstractmethod
    def list_winners(self, scope: WinnerScope, interval: Interval) -> pd.DataFrame:
        """Winners in scope whose ``created_at`` is within the interval."""

    @abstractmethod
    def list_daily_results(self, interval: Interval) -> pd.DataFrame:
        """Daily results whose ``result_date`` falls on a day of the interval."""

    @abstractmethod
    def list_reseller_nodes(self) -> pd.DataFrame:
        """The full reseller node listing (NODE_COLUMNS)."""
