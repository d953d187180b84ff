"""Fact store adapters.

Read-only access to the four fact streams the engine consumes:

- **Bets**: one row per bet placed at a taquilla
- **Winners**: one row per winning bet, with its ``potential_win``
- **Daily results**: one row per lottery per day
- **Reseller nodes**: the tree the rollup walks

Implementations:
    FrameFactStore: in-memory pandas frames (tests, notebooks)
    CsvFactStore: CSV files under a DataPaths root
    RestFactStore: PostgREST (Supabase-style) HTTP API

Example:
    >>> from lotto_core.config import DataPaths
    >>> from lotto_core.facts import CsvFactStore
    >>>
    >>> store = CsvFactStore(DataPaths.from_root("data"))
    >>> nodes = store.list_reseller_nodes()
"""

from lotto_core.facts.base import (
    BET_COLUMNS,
    DAILY_RESULT_COLUMNS,
    WINNER_COLUMNS,
    FactStore,
    WinnerScope,
)
from lotto_core.facts.frames import CsvFactStore, FrameFactStore
from lotto_core.facts.remote import RestFactStore, make_session

__all__ = [
    "BET_COLUMNS",
    "CsvFactStore",
    "DAILY_RESULT_COLUMNS",
    "FactStore",
    "FrameFactStore",
    "RestFactStore",
    "WINNER_COLUMNS",
    "WinnerScope",
    "make_session",
]
