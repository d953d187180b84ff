"""Bet-number statistics: which animals are played most and for how much.

Input grain: one row per bet (or bet item) with ``animal_number``,
``lottery_id`` and ``amount``; ``potential_win`` is summed when the
column is present. Rows without an animal number are skipped.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

import pandas as pd

UNKNOWN_LOTTERY = "Desconocida"

# Number -> animal name of the classic 37-animal draw.
ANIMALS: dict[str, str] = {
    "00": "Delfín",
    "01": "Carnero",
    "02": "Toro",
    "03": "Ciempiés",
    "04": "Alacrán",
    "05": "León",
    "06": "Rana",
    "07": "Perico",
    "08": "Ratón",
    "09": "Águila",
    "10": "Tigre",
    "11": "Gato",
    "12": "Caballo",
    "13": "Mono",
    "14": "Paloma",
    "15": "Zorro",
    "16": "Oso",
    "17": "Pavo",
    "18": "Burro",
    "19": "Chivo",
    "20": "Cochino",
    "21": "Gallo",
    "22": "Camello",
    "23": "Cebra",
    "24": "Iguana",
    "25": "Gallina",
    "26": "Vaca",
    "27": "Perro",
    "28": "Zamuro",
    "29": "Elefante",
    "30": "Caimán",
    "31": "Lapa",
    "32": "Ardilla",
    "33": "Pescado",
    "34": "Venado",
    "35": "Jirafa",
    "36": "Cucaracha",
}


@dataclass(frozen=True)
class LotteryCount:
    lottery_id: str
    lottery_name: str
    count: int


@dataclass(frozen=True)
class TopPlayedNumber:
    number: str
    animal_name: str
    times_played: int
    lotteries: list[LotteryCount] = field(default_factory=list)


@dataclass(frozen=True)
class TopAmountNumber:
    number: str
    animal_name: str
    total_amount: float
    times_played: int
    avg_amount: float
    total_potential_win: float


@dataclass(frozen=True)
class BetNumberStats:
    most_played: list[TopPlayedNumber] = field(default_factory=list)
    highest_amount: list[TopAmountNumber] = field(default_factory=list)


def _animal_number(value: object) -> str | None:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    if not text:
        return None
    # "0" and "00" are different animals; single digits 1-9 are zero-padded.
    return text.zfill(2) if text != "0" else text


def compute_bet_number_stats(
    bets: pd.DataFrame,
    limit: int = 10,
    lottery_names: Mapping[str, str] | None = None,
    lottery_id: str | None = None,
) -> BetNumberStats:
    """Rank animal numbers by times played and by amount bet.

    Args:
        bets: Bet frame (BET_COLUMNS, optionally with ``potential_win``).
        limit: Length of each ranking.
        lottery_names: Optional ``lottery_id -> name`` map for the breakdown.
        lottery_id: Restrict to one lottery.

    Returns:
        BetNumberStats with ``most_played`` (each with its top-3 lotteries)
        and ``highest_amount`` (with average and potential win).

    Examples:
        >>> bets = pd.DataFrame({
        ...     "animal_number": ["05", "05", "12"], "lottery_id": ["L1", "L2", "L1"],
        ...     "amount": [10.0, 20.0, 50.0],
        ... })
        >>> stats = compute_bet_number_stats(bets)
        >>> [(n.number, n.animal_name, n.times_played) for n in stats.most_played]
        [('05', 'León', 2), ('12', 'Caballo', 1)]
        >>> stats.highest_amount[0].number
        '12'

    """
    lottery_names = lottery_names or {}
    if bets.empty:
        return BetNumberStats()

    df = bets.copy()
    if "status" in df.columns:
        df = df[df["status"] != "cancelled"]
    if lottery_id is not None:
        df = df[df["lottery_id"].astype(str) == str(lottery_id)]
    df["number"] = df["animal_number"].map(_animal_number)
    df = df[df["number"].notna()]
    if df.empty:
        return BetNumberStats()
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    if "potential_win" in df.columns:
        df["potential_win"] = pd.to_numeric(df["potential_win"], errors="coerce").fillna(0.0)
    else:
        df["potential_win"] = 0.0
    df["lottery_id"] = df["lottery_id"].fillna("").astype(str)

    # sort=False keeps first-seen order as the tie-break.
    per_number = df.groupby("number", sort=False).agg(
        times_played=("amount", "size"),
        total_amount=("amount", "sum"),
        total_potential_win=("potential_win", "sum"),
    )
    per_lottery = df.groupby(["number", "lottery_id"], sort=False).size()

    def name_of(number: str) -> str:
        return ANIMALS.get(number, number)

    most_played = []
    for number, row in per_number.sort_values(
        "times_played", ascending=False, kind="stable"
    ).head(limit).iterrows():
        breakdown = per_lottery.loc[number].sort_values(ascending=False, kind="stable").head(3)
        most_played.append(
            TopPlayedNumber(
                number=number,
                animal_name=name_of(number),
                times_played=int(row["times_played"]),
                lotteries=[
                    LotteryCount(
                        lottery_id=lid,
                        lottery_name=lottery_names.get(lid, UNKNOWN_LOTTERY),
                        count=int(count),
                    )
                    for lid, count in breakdown.items()
                ],
            )
        )

    highest_amount = [
        TopAmountNumber(
            number=number,
            animal_name=name_of(number),
            total_amount=float(row["total_amount"]),
            times_played=int(row["times_played"]),
            avg_amount=float(row["total_amount"]) / int(row["times_played"]),
            total_potential_win=float(row["total_potential_win"]),
        )
        for number, row in per_number.sort_values(
            "total_amount", ascending=False, kind="stable"
        ).head(limit).iterrows()
    ]
    return BetNumberStats(most_played=most_played, highest_amount=highest_amount)
