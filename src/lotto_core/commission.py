"""Commission split: apply a node's own percentages to its gross figures.

For a node with gross ``sales`` and ``prizes`` rolled up from its subtree:

    commission   = sales * share_on_sales / 100
    balance      = sales - prizes - commission
    profit       = balance
    profit_share = balance * share_on_profits / 100   (only when balance > 0)

Missing percentages (the admin root, nodes without a contract) count as 0.
The split never feeds back into ``sales``/``prizes``; a parent always splits
its own gross totals, not its children's net figures.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import pandas as pd

from lotto_core.exceptions import DataQualityError

SPLIT_COLUMNS = ["commission", "balance", "profit", "profit_share"]


@dataclass(frozen=True)
class CommissionSplit:
    commission: float
    balance: float
    profit: float
    profit_share: float


def _pct(value: float | None) -> float:
    if value is None:
        return 0.0
    value = float(value)
    return 0.0 if math.isnan(value) else value


def validate_share(value: float | None, field: str) -> float | None:
    """Check a percentage is within 0-100 (None passes through).

    Raises:
        DataQualityError: If the value is outside 0-100.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    if not 0 <= float(value) <= 100:
        raise DataQualityError(f"Invalid {field} {value!r}. Must be between 0 and 100.")
    return float(value)


def split_commission(
    sales: float,
    prizes: float,
    share_on_sales: float | None = None,
    share_on_profits: float | None = None,
) -> CommissionSplit:
    """Split a node's gross figures by its own percentages.

    Examples:
        >>> split_commission(100.0, 300.0, share_on_sales=10)
        CommissionSplit(commission=10.0, balance=-210.0, profit=-210.0, profit_share=0.0)
        >>> split_commission(1000.0, 200.0, share_on_sales=10, share_on_profits=50).profit_share
        350.0

    """
    commission = sales * _pct(share_on_sales) / 100
    balance = sales - prizes - commission
    profit_share = balance * _pct(share_on_profits) / 100 if balance > 0 else 0.0
    return CommissionSplit(
        commission=commission,
        balance=balance,
        profit=balance,
        profit_share=profit_share,
    )


def apply_commission(frame: pd.DataFrame) -> pd.DataFrame:
    """Vectorized split over a frame of nodes.

    Args:
        frame: DataFrame with ``sales``, ``prizes``, ``share_on_sales`` and
            ``share_on_profits`` columns.

    Returns:
        Copy of ``frame`` with SPLIT_COLUMNS added. ``sales`` and ``prizes``
        are left untouched.

    """
    out = frame.copy()
    on_sales = pd.to_numeric(out["share_on_sales"], errors="coerce").fillna(0.0)
    on_profits = pd.to_numeric(out["share_on_profits"], errors="coerce").fillna(0.0)
    out["commission"] = out["sales"] * on_sales / 100
    out["balance"] = out["sales"] - out["prizes"] - out["commission"]
    out["profit"] = out["balance"]
    out["profit_share"] = np.where(out["balance"] > 0, out["balance"] * on_profits / 100, 0.0)
    return out
