"""Tests for pots and currency formatting."""

import pytest

from lotto_core.pots import (
    INITIAL_POTS,
    PROFIT,
    Pot,
    deduct_from_pot,
    distribute_to_pots,
    format_currency,
    transfer_between_pots,
)


def test_initial_pots_cover_whole_bet() -> None:
    """Test the default 70/20/10 split."""
    assert [p.percentage for p in INITIAL_POTS] == [70, 20, 10]
    assert sum(p.percentage for p in INITIAL_POTS) == 100
    assert INITIAL_POTS[2].kind == PROFIT


def test_distribute_does_not_mutate_input() -> None:
    """Test that distribution returns new pots."""
    pots = distribute_to_pots(250.0, INITIAL_POTS)

    assert [p.balance for p in pots] == [175.0, 50.0, 25.0]
    assert [p.balance for p in INITIAL_POTS] == [0.0, 0.0, 0.0]


def test_deduct_and_transfer() -> None:
    """Test deductions and transfers between pots."""
    pots = distribute_to_pots(100.0, INITIAL_POTS)

    pots = deduct_from_pot(0, 100.0, pots)
    assert pots[0].balance == -30.0

    moved = transfer_between_pots(1, 0, 20.0, pots)
    assert [p.balance for p in moved] == [-10.0, 0.0, 10.0]
    assert sum(p.balance for p in moved) == sum(p.balance for p in pots)


@pytest.mark.parametrize("index", [-1, 3])
def test_invalid_pot_index(index: int) -> None:
    """Test that out-of-range indices raise."""
    with pytest.raises(IndexError):
        deduct_from_pot(index, 1.0, INITIAL_POTS)
    with pytest.raises(IndexError):
        transfer_between_pots(0, index, 1.0, INITIAL_POTS)


def test_custom_pots() -> None:
    """Test distribution over pots with a custom split."""
    pots = [Pot("A", 50), Pot("B", 50, balance=5.0)]

    assert [p.balance for p in distribute_to_pots(10.0, pots)] == [5.0, 10.0]


@pytest.mark.parametrize(
    "amount, expected",
    [
        (0, "Bs. 0,00"),
        (1234.5, "Bs. 1.234,50"),
        (1234567.891, "Bs. 1.234.567,89"),
        (-10, "-Bs. 10,00"),
    ],
)
def test_format_currency(amount: float, expected: str) -> None:
    """Test es-VE currency formatting."""
    assert format_currency(amount) == expected
