"""Remote fact store over a PostgREST (Supabase-style) HTTP API.

Tables read (all read-only):

- ``users``: reseller nodes (``user_type`` is the node kind)
- ``bets``: one row per bet, ``user_id`` is the taquilla
- ``bets_item_lottery_clasic``: bet items; ``status`` in (winner, paid) are winners
- ``prizes``: animal/lottery lookup for bet items
- ``daily_results``: one row per lottery per day, embeds its prize

Environment (via Settings.from_env):
  LOTTO_REST_URL, LOTTO_REST_KEY, LOTTO_TIMEOUT=60, LOTTO_RETRIES=3, LOTTO_TZ
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from lotto_core.config import DEFAULT_RETRIES, DEFAULT_TIMEOUT, Settings
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

PAGE_SIZE = 1000
# Keeps "in.(...)" filters well under common URL length limits.
ID_CHUNK = 150

WINNER_STATUSES = ("winner", "paid")


def make_session(
    timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES
) -> requests.Session:
    """Create a requests Session with retry logic and default timeout.

    Configures the session with:
    - Retry adapter for HTTP/HTTPS with exponential backoff
    - Retries on 429, 500, 502, 503, 504 status codes
    - Default timeout for all requests

    Args:
        timeout: Default timeout in seconds for all requests.
        retries: Number of retry attempts.

    Returns:
        Configured requests.Session object.

    """
    s = requests.Session()
    s.headers.update({"Accept": "application/json"})
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=0.8,  # 0.8, 1.6, 3.2, ...
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET", "HEAD", "OPTIONS"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    orig_request = s.request

    def timed_request(method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return orig_request(method, url, **kwargs)

    s.request = timed_request  # type: ignore[method-assign,assignment]
    return s


def _in_filter(values: Iterable[str]) -> str:
    return "in.(" + ",".join(values) + ")"


def _chunks(values: list[str], size: int = ID_CHUNK) -> Iterator[list[str]]:
    for i in range(0, len(values), size):
        yield values[i : i + size]


class RestFactStore(FactStore):
    """Fact store reading from a PostgREST endpoint.

    Args:
        settings: Settings with ``rest_url`` and ``rest_key``.
        session: Optional pre-built session (tests inject a fake one).

    Raises:
        ConfigError: If the REST URL or key is missing.

    """

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.base_url, key = settings.require_rest()
        self.timezone = settings.timezone
        self.session = session or make_session(settings.timeout, settings.retries)
        self.session.headers.update({"apikey": key, "Authorization": f"Bearer {key}"})

    # ------------------------------------------------------------------ HTTP

    def _get_page(self, table: str, params: list[tuple[str, str]], stream: str) -> list[dict]:
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            resp = self.session.get(url, params=params)
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", table, e)
            raise FactStoreError(f"Could not reach {table}: {e}", stream=stream) from e
        if not (200 <= resp.status_code < 300):
            logger.error("Query on %s failed with HTTP %s", table, resp.status_code)
            raise FactStoreError(
                f"Query on {table} failed. HTTP {resp.status_code}: {resp.text[:400]}",
                stream=stream,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise FactStoreError(f"Invalid JSON from {table}: {e}", stream=stream) from e

    def _get_all(self, table: str, params: list[tuple[str, str]], stream: str) -> list[dict]:
        """Read every page of a query (PostgREST caps rows per response).

        Pages are ordered by ``id`` so offsets never skip or repeat rows.
        """
        rows: list[dict] = []
        offset = 0
        while True:
            page = self._get_page(
                table,
                params + [("order", "id.asc"), ("limit", str(PAGE_SIZE)), ("offset", str(offset))],
                stream,
            )
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        logger.debug("Fetched %d rows from %s", len(rows), table)
        return rows

    def _get_by_ids(
        self,
        table: str,
        column: str,
        ids: frozenset[str] | None,
        params: list[tuple[str, str]],
        stream: str,
    ) -> list[dict]:
        if ids is None:
            return self._get_all(table, params, stream)
        rows: list[dict] = []
        for chunk in _chunks(sorted(ids)):
            rows.extend(self._get_all(table, params + [(column, _in_filter(chunk))], stream))
        return rows

    def _utc(self, ts: pd.Timestamp) -> str:
        return ts.tz_localize(self.timezone or "UTC").tz_convert("UTC").isoformat()

    def _created_between(self, interval: Interval) -> list[tuple[str, str]]:
        return [
            ("created_at", f"gte.{self._utc(interval.query_start)}"),
            ("created_at", f"lte.{self._utc(interval.query_end)}"),
        ]

    # ----------------------------------------------------------- FactStore

    def list_bets(
        self,
        taquilla_ids: str | Iterable[str] | None,
        interval: Interval,
    ) -> pd.DataFrame:
        ids = as_id_set(taquilla_ids)
        if ids is not None and not ids:
            return normalize_bets(None)
        params = [("select", "id,user_id,lottery_id,amount,created_at,status")]
        params += self._created_between(interval)
        rows = self._get_by_ids("bets", "user_id", ids, params, "bets")
        df = pd.DataFrame(rows).rename(columns={"id": "bet_id", "user_id": "taquilla_id"})
        return normalize_bets(df, self.timezone)

    def _prizes(self, params: list[tuple[str, str]]) -> pd.DataFrame:
        rows = self._get_all("prizes", params, "winners")
        return pd.DataFrame(rows, columns=["id", "animal_number", "lottery_id"])

    def list_winners(self, scope: WinnerScope, interval: Interval) -> pd.DataFrame:
        if scope.taquilla_ids is not None and not scope.taquilla_ids:
            return normalize_winners(None)
        params = [
            ("select", "id,user_id,prize_id,amount,potential_bet_amount,status,created_at"),
            ("status", _in_filter(WINNER_STATUSES)),
        ]
        params += self._created_between(interval)

        if scope.lottery_id is not None:
            lottery_prizes = self._prizes(
                [("select", "id,animal_number,lottery_id"), ("lottery_id", f"eq.{scope.lottery_id}")]
            )
            if lottery_prizes.empty:
                return normalize_winners(None)
            params.append(("prize_id", _in_filter(lottery_prizes["id"].astype(str))))

        rows = self._get_by_ids(
            "bets_item_lottery_clasic", "user_id", scope.taquilla_ids, params, "winners"
        )
        items = pd.DataFrame(rows)
        if items.empty:
            return normalize_winners(None)

        prize_ids = sorted({str(p) for p in items["prize_id"].dropna()})
        frames = [
            self._prizes([("select", "id,animal_number,lottery_id"), ("id", _in_filter(chunk))])
            for chunk in _chunks(prize_ids)
        ]
        prizes = (
            pd.concat(frames, ignore_index=True)
            if frames
            else pd.DataFrame(columns=["id", "animal_number", "lottery_id"])
        )
        prizes = prizes.rename(columns={"id": "prize_id"})
        prizes["prize_id"] = prizes["prize_id"].astype(str)
        items["prize_id"] = items["prize_id"].astype(str)
        df = items.merge(prizes, on="prize_id", how="left").rename(
            columns={
                "id": "winner_id",
                "user_id": "taquilla_id",
                "potential_bet_amount": "potential_win",
            }
        )
        return normalize_winners(df, self.timezone)

    def list_daily_results(self, interval: Interval) -> pd.DataFrame:
        params = [
            (
                "select",
                "id,lottery_id,result_date,total_to_pay,total_raised,"
                "prizes(animal_number,animal_name,multiplier)",
            ),
            ("result_date", f"gte.{interval.query_start.date().isoformat()}"),
            ("result_date", f"lte.{interval.query_end.date().isoformat()}"),
        ]
        rows = self._get_all("daily_results", params, "daily_results")
        flat = []
        for row in rows:
            prize = row.get("prizes") or {}
            flat.append(
                {
                    "result_id": row.get("id"),
                    "lottery_id": row.get("lottery_id"),
                    "result_date": row.get("result_date"),
                    "animal_number": prize.get("animal_number"),
                    "animal_name": prize.get("animal_name"),
                    "multiplier": prize.get("multiplier"),
                    "total_to_pay": row.get("total_to_pay"),
                    "total_raised": row.get("total_raised"),
                }
            )
        return normalize_daily_results(pd.DataFrame(flat))

    def list_reseller_nodes(self) -> pd.DataFrame:
        params = [
            ("select", "id,name,user_type,parent_id,share_on_sales,share_on_profits,is_active"),
        ]
        rows = self._get_all("users", params, "nodes")
        df = pd.DataFrame(rows).rename(columns={"id": "node_id", "user_type": "kind"})
        logger.info("Loaded %d reseller nodes", len(df))
        return normalize_nodes(df)
