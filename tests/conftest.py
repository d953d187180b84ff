"""Shared fixtures: a small reseller network with a fortnight of facts.

Network (shares are share_on_sales / share_on_profits):

    adm (admin)
    ├── c1 comercializadora 5 / 50
    │   ├── s1 subdistribuidor 8
    │   │   └── a1 agencia 10
    │   │       ├── t1 taquilla
    │   │       └── t2 taquilla
    │   └── a2 agencia 10
    │       └── t3 taquilla
    └── c2 comercializadora 5 (no taquillas)

Reference instant is Wednesday 2025-01-15 18:00 (week starts Monday the 13th).
"""

from __future__ import annotations

import pandas as pd
import pytest

from lotto_core.facts import FrameFactStore
from lotto_core.rollup import RollupEngine

NOW = "2025-01-15 18:00"


@pytest.fixture
def nodes_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "node_id": ["adm", "c1", "s1", "a1", "t1", "t2", "a2", "t3", "c2"],
            "name": [
                "Admin",
                "Comercial Uno",
                "Sub Uno",
                "Agencia Uno",
                "Taquilla 1",
                "Taquilla 2",
                "Agencia Dos",
                "Taquilla 3",
                "Comercial Dos",
            ],
            "kind": [
                "admin",
                "comercializadora",
                "subdistribuidor",
                "agencia",
                "taquilla",
                "taquilla",
                "agencia",
                "taquilla",
                "comercializadora",
            ],
            "parent_id": [None, "adm", "c1", "s1", "a1", "a1", "c1", "a2", "adm"],
            "share_on_sales": [None, 5, 8, 10, None, None, 10, None, 5],
            "share_on_profits": [None, 50, None, None, None, None, None, None, None],
            "is_active": [True] * 9,
        }
    )


@pytest.fixture
def bets_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "bet_id": ["b1", "b2", "b3", "b4", "b5", "b6", "b7"],
            "taquilla_id": ["t1", "t1", "t2", "t3", "t3", "t2", "t1"],
            "lottery_id": ["L1", "L2", "L1", "L1", "L2", "L1", "L1"],
            "animal_number": ["05", "12", "05", "00", "05", "36", "12"],
            "amount": [40.0, 60.0, 200.0, 50.0, 30.0, 999.0, 500.0],
            "created_at": [
                "2025-01-15 09:00",
                "2025-01-15 10:00",
                "2025-01-15 11:00",
                "2025-01-13 12:00",
                "2025-01-02 08:00",
                "2025-01-15 12:00",
                "2024-12-31 20:00",
            ],
            "status": ["active", "active", "active", "active", "active", "cancelled", "active"],
        }
    )


@pytest.fixture
def winners_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "winner_id": ["w1", "w2"],
            "taquilla_id": ["t1", "t3"],
            "lottery_id": ["L1", "L1"],
            "animal_number": ["05", "00"],
            "amount": [10.0, 1.0],
            "potential_win": [300.0, 20.0],
            "created_at": ["2025-01-15 12:00", "2025-01-13 13:00"],
            "status": ["winner", "paid"],
        }
    )


@pytest.fixture
def daily_results_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "result_id": ["r1", "r2", "r3"],
            "lottery_id": ["L1", "L2", "L1"],
            "result_date": ["2025-01-15", "2025-01-15", "2025-01-13"],
            "animal_number": ["05", "17", "00"],
            "animal_name": ["León", "Pavo", "Delfín"],
            "multiplier": [30, 30, 20],
            "total_to_pay": [300.0, 0.0, 20.0],
            "total_raised": [0.0, 0.0, 0.0],
        }
    )


@pytest.fixture
def store(
    nodes_frame: pd.DataFrame,
    bets_frame: pd.DataFrame,
    winners_frame: pd.DataFrame,
    daily_results_frame: pd.DataFrame,
) -> FrameFactStore:
    return FrameFactStore(
        bets=bets_frame,
        winners=winners_frame,
        daily_results=daily_results_frame,
        nodes=nodes_frame,
    )


@pytest.fixture
def engine(store: FrameFactStore) -> RollupEngine:
    return RollupEngine(store)
