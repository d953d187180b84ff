"""Prize/reserve/profit pots and currency formatting.

Every bet is split across the pots by percentage. The helpers are pure:
they return new lists and never mutate the pots passed in.

Examples:
    >>> pots = distribute_to_pots(100.0, INITIAL_POTS)
    >>> [p.balance for p in pots]
    [70.0, 20.0, 10.0]
    >>> format_currency(1234.5)
    'Bs. 1.234,50'

"""

from __future__ import annotations

from dataclasses import dataclass, replace

PRIZES = "prizes"
RESERVE = "reserve"
PROFIT = "profit"


@dataclass(frozen=True)
class Pot:
    """One pot.

    Attributes:
        name: Display name.
        percentage: Share of every bet that goes into the pot (0-100).
        balance: Current balance.
        kind: One of PRIZES, RESERVE or PROFIT.
        description: Display description.
    """

    name: str
    percentage: float
    balance: float = 0.0
    kind: str = PRIZES
    description: str = ""


INITIAL_POTS: list[Pot] = [
    Pot("Pote de Premios", 70, kind=PRIZES, description="Para pagar premios ganadores"),
    Pot("Pote de Reserva", 20, kind=RESERVE, description="Fondo de respaldo"),
    Pot("Pote de Ganancias", 10, kind=PROFIT, description="Utilidades del negocio"),
]


def _check_index(pots: list[Pot], index: int) -> None:
    if not 0 <= index < len(pots):
        raise IndexError(f"Invalid pot index {index}. Must be between 0 and {len(pots) - 1}.")


def distribute_to_pots(amount: float, pots: list[Pot]) -> list[Pot]:
    """Add ``amount`` to every pot according to its percentage."""
    return [replace(pot, balance=pot.balance + amount * pot.percentage / 100) for pot in pots]


def deduct_from_pot(index: int, amount: float, pots: list[Pot]) -> list[Pot]:
    """Take ``amount`` out of one pot. Balances may go negative."""
    _check_index(pots, index)
    out = list(pots)
    out[index] = replace(out[index], balance=out[index].balance - amount)
    return out


def transfer_between_pots(from_index: int, to_index: int, amount: float, pots: list[Pot]) -> list[Pot]:
    """Move ``amount`` from one pot to another; the total is unchanged."""
    _check_index(pots, from_index)
    _check_index(pots, to_index)
    out = list(pots)
    out[from_index] = replace(out[from_index], balance=out[from_index].balance - amount)
    out[to_index] = replace(out[to_index], balance=out[to_index].balance + amount)
    return out


def format_currency(amount: float) -> str:
    """Format an amount in bolívares, es-VE style (``Bs. 1.234,56``).

    Negative amounts get a leading minus: ``-Bs. 10,00``.
    """
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.2f}"  # 1,234.56
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}Bs. {text}"
