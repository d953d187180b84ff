"""Tests for dashboard statistics."""

import pandas as pd
import pytest

from lotto_core.facts import FrameFactStore
from lotto_core.stats import (
    ANIMALS,
    compute_bet_number_stats,
    compute_daily_summary,
    compute_sales_stats,
)
from lotto_core.stats.sales import UNKNOWN_TAQUILLA

from conftest import NOW


def test_sales_stats_windows(store: FrameFactStore) -> None:
    """Test today/week/month sales against the same reference instant."""
    stats = compute_sales_stats(store, now=NOW)

    # b6 is cancelled; b7 is in December
    assert (stats.today_sales, stats.today_bets_count) == (300.0, 3)
    assert (stats.week_sales, stats.week_bets_count) == (350.0, 4)
    assert (stats.month_sales, stats.month_bets_count) == (380.0, 5)


def test_sales_by_taquilla_sorted_with_names(store: FrameFactStore) -> None:
    """Test today's per-taquilla sales, highest first, named from the tree."""
    stats = compute_sales_stats(store, now=NOW)

    assert [(t.taquilla_id, t.taquilla_name, t.sales) for t in stats.sales_by_taquilla] == [
        ("t2", "Taquilla 2", 200.0),
        ("t1", "Taquilla 1", 100.0),
    ]
    assert stats.sales_by_taquilla[1].bets_count == 2


def test_sales_stats_visible_taquillas(store: FrameFactStore) -> None:
    """Test that only visible taquillas count."""
    stats = compute_sales_stats(store, visible_taquilla_ids=["t3"], now=NOW)

    assert stats.today_sales == 0.0
    assert stats.week_sales == 50.0
    assert stats.month_sales == 80.0
    assert stats.sales_by_taquilla == []


def test_sales_stats_no_visible_taquillas_skips_store() -> None:
    """Test that an empty visible set returns zeros without a query."""

    class ExplodingStore(FrameFactStore):
        def list_bets(self, taquilla_ids, interval):
            raise AssertionError("store must not be queried")

    stats = compute_sales_stats(ExplodingStore(), visible_taquilla_ids=[], now=NOW)

    assert stats.today_sales == 0.0
    assert stats.sales_by_taquilla == []


def test_sales_stats_unknown_taquilla_name(bets_frame: pd.DataFrame) -> None:
    """Test the placeholder name for taquillas missing from the listing."""
    stats = compute_sales_stats(FrameFactStore(bets=bets_frame), now=NOW)

    assert {t.taquilla_name for t in stats.sales_by_taquilla} == {UNKNOWN_TAQUILLA}

    named = compute_sales_stats(FrameFactStore(bets=bets_frame), now=NOW, names={"t1": "Uno"})
    assert {t.taquilla_id: t.taquilla_name for t in named.sales_by_taquilla} == {
        "t1": "Uno",
        "t2": UNKNOWN_TAQUILLA,
    }


def test_animals_table() -> None:
    """Test the 37-animal table."""
    assert len(ANIMALS) == 37
    assert ANIMALS["00"] == "Delfín"
    assert ANIMALS["36"] == "Cucaracha"


def test_bet_number_stats(bets_frame: pd.DataFrame) -> None:
    """Test both rankings and the per-lottery breakdown."""
    stats = compute_bet_number_stats(bets_frame, lottery_names={"L1": "Lotto Activo"})

    assert [(n.number, n.times_played) for n in stats.most_played] == [
        ("05", 3),
        ("12", 2),
        ("00", 1),
    ]
    five = stats.most_played[0]
    assert five.animal_name == "León"
    assert [(c.lottery_id, c.lottery_name, c.count) for c in five.lotteries] == [
        ("L1", "Lotto Activo", 2),
        ("L2", "Desconocida", 1),
    ]

    assert [n.number for n in stats.highest_amount] == ["12", "05", "00"]
    top = stats.highest_amount[0]
    assert top.total_amount == 560.0
    assert top.avg_amount == 280.0
    assert top.total_potential_win == 0.0


def test_bet_number_stats_limit_and_lottery(bets_frame: pd.DataFrame) -> None:
    """Test the ranking length and the single-lottery filter."""
    stats = compute_bet_number_stats(bets_frame, limit=1, lottery_id="L2")

    assert [(n.number, n.times_played) for n in stats.most_played] == [("12", 1)]
    assert [n.number for n in stats.highest_amount] == ["12"]


def test_bet_number_stats_pads_numbers() -> None:
    """Test that "5" and "05" are the same animal while "0" and "00" differ."""
    bets = pd.DataFrame(
        {
            "animal_number": ["5", "05", "0", "00", None],
            "lottery_id": ["L1"] * 5,
            "amount": [1.0] * 5,
        }
    )
    stats = compute_bet_number_stats(bets)

    assert {(n.number, n.times_played) for n in stats.most_played} == {
        ("05", 2),
        ("0", 1),
        ("00", 1),
    }


@pytest.mark.parametrize(
    "frame",
    [
        pd.DataFrame(),
        pd.DataFrame({"animal_number": [None], "amount": [1.0], "lottery_id": ["L1"]}),
    ],
)
def test_bet_number_stats_empty(frame: pd.DataFrame) -> None:
    """Test that no usable bets gives empty rankings."""
    stats = compute_bet_number_stats(frame)

    assert stats.most_played == []
    assert stats.highest_amount == []


def test_daily_summary(store: FrameFactStore) -> None:
    """Test today's summary over the whole network."""
    summary = compute_daily_summary(store, now=NOW)

    assert summary.today_sales == 300.0
    assert summary.total_payout == 300.0
    assert summary.total_raised == 0.0
    assert (summary.result_count, summary.results_with_winners) == (2, 1)


def test_daily_summary_visible_taquillas(store: FrameFactStore) -> None:
    """Test that sales and payout follow visibility while results stay network-wide."""
    summary = compute_daily_summary(store, visible_taquilla_ids=["t1"], now=NOW)

    assert summary.today_sales == 100.0
    assert summary.total_raised == -200.0
    assert summary.result_count == 2

    hidden = compute_daily_summary(store, visible_taquilla_ids=[], now=NOW)
    assert (hidden.today_sales, hidden.total_payout) == (0.0, 0.0)
    assert hidden.results_with_winners == 1
