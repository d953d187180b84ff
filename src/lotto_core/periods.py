"""Period resolution for dashboard and report windows.

Turns a period token (``today``, ``week``, ``month`` or ``custom``) plus a
reference instant into a concrete, inclusive-by-day interval. Weeks start
on Monday. Custom ranges include both endpoints, with the end normalized
to the end of its day.

Examples:
    >>> from lotto_core.periods import resolve_period
    >>> interval = resolve_period("week", now="2025-01-15")
    >>> interval.start, interval.end
    (Timestamp('2025-01-13 00:00:00'), Timestamp('2025-01-15 00:00:00'))
    >>> resolve_period("custom", custom_range=("2025-01-01", "2025-01-31")).end
    Timestamp('2025-01-31 23:59:59.999999')

"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

import pandas as pd

from lotto_core.exceptions import InvalidRangeError

PERIOD_TOKENS = ("today", "week", "month", "custom")

DateLike = Union[str, date, datetime, pd.Timestamp]

_ONE_DAY = pd.Timedelta(days=1)
_ONE_TICK = pd.Timedelta(microseconds=1)


def parse_date(s: str) -> date:
    """Parse a date string in YYYY-MM-DD format.

    Raises:
        ValueError: If the date string is not in YYYY-MM-DD format.

    Examples:
        >>> parse_date("2023-01-15")
        datetime.date(2023, 1, 15)

    """
    return datetime.strptime(s, "%Y-%m-%d").date()


def to_timestamp(value: DateLike) -> pd.Timestamp:
    """Coerce a date-like value into a naive pandas Timestamp."""
    if isinstance(value, str):
        ts = pd.Timestamp(parse_date(value)) if len(value) == 10 else pd.Timestamp(value)
    else:
        ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


def start_of_day(value: DateLike) -> pd.Timestamp:
    return to_timestamp(value).normalize()


def end_of_day(value: DateLike) -> pd.Timestamp:
    return start_of_day(value) + _ONE_DAY - _ONE_TICK


def start_of_week(value: DateLike) -> pd.Timestamp:
    """Monday 00:00 of the week containing ``value``."""
    day = start_of_day(value)
    return day - pd.Timedelta(days=day.weekday())


def start_of_month(value: DateLike) -> pd.Timestamp:
    return start_of_day(value).replace(day=1)


@dataclass(frozen=True)
class Interval:
    """A resolved period, inclusive by day.

    Attributes:
        start: First instant of the period (always a day start).
        end: Last day of the period. For fixed windows this is the start of
            the current day; for custom ranges it is already end-of-day.
        period: Token the interval was resolved from.
    """

    start: pd.Timestamp
    end: pd.Timestamp
    period: str = "custom"

    @property
    def query_start(self) -> pd.Timestamp:
        """Lower bound for fact timestamps (inclusive)."""
        return start_of_day(self.start)

    @property
    def query_end(self) -> pd.Timestamp:
        """Upper bound for fact timestamps (inclusive)."""
        return end_of_day(self.end)

    @property
    def days(self) -> int:
        """Number of calendar days covered."""
        return int((start_of_day(self.end) - self.query_start) / _ONE_DAY) + 1

    def mask(self, timestamps: pd.Series) -> pd.Series:
        """Boolean mask of the timestamps that fall inside the interval."""
        return (timestamps >= self.query_start) & (timestamps <= self.query_end)

    def date_mask(self, days: pd.Series) -> pd.Series:
        """Boolean mask for calendar-day values (e.g. result_date)."""
        normalized = pd.to_datetime(days).dt.normalize()
        return (normalized >= self.query_start) & (normalized <= start_of_day(self.end))

    def __str__(self) -> str:
        return f"{self.period} [{self.query_start.date()} .. {self.query_end.date()}]"


def resolve_period(
    token: str,
    now: DateLike | None = None,
    custom_range: tuple[DateLike, DateLike | None] | None = None,
) -> Interval:
    """Resolve a period token into an Interval.

    Args:
        token: One of "today", "week", "month" or "custom".
        now: Reference instant. Defaults to the current local time; callers
            should pass nothing (or a fresh value) on every evaluation instead
            of reusing an interval across calendar days.
        custom_range: ``(from, to)`` pair for the "custom" token. ``to`` may be
            None, in which case the range covers the single ``from`` day.

    Returns:
        Interval for the token.

    Raises:
        ValueError: If token is not a known period.
        InvalidRangeError: If the custom range is missing, unparsable or ends
            before it starts.

    Examples:
        >>> resolve_period("today", now="2025-01-15 18:30").start
        Timestamp('2025-01-15 00:00:00')

    """
    if token not in PERIOD_TOKENS:
        raise ValueError(f"Invalid period '{token}'. Must be one of {', '.join(PERIOD_TOKENS)}.")

    if token == "custom":
        if custom_range is None or custom_range[0] is None:
            raise InvalidRangeError("A custom period requires a (from, to) range")
        range_from, range_to = custom_range
        try:
            start = start_of_day(range_from)
            end_day = start_of_day(range_to) if range_to is not None else start
        except ValueError as e:
            raise InvalidRangeError(f"Invalid custom range {range_from!r} .. {range_to!r}: {e}") from e
        if end_day < start:
            raise InvalidRangeError(
                f"Custom range ends before it starts: {end_day.date()} < {start.date()}"
            )
        return Interval(start=start, end=end_of_day(end_day), period=token)

    today = start_of_day(now if now is not None else datetime.now())
    if token == "today":
        start = today
    elif token == "week":
        start = start_of_week(today)
    else:  # month
        start = start_of_month(today)
    return Interval(start=start, end=today, period=token)


def resolve_all_periods(
    now: DateLike | None = None,
    custom_range: tuple[DateLike, DateLike | None] | None = None,
) -> dict[str, Interval]:
    """Resolve the four dashboard variants against the same ``now``.

    When no custom range is given, the custom variant covers today.
    """
    reference = to_timestamp(now if now is not None else datetime.now())
    if custom_range is None:
        custom_range = (reference, None)
    return {token: resolve_period(token, reference, custom_range) for token in PERIOD_TOKENS}
