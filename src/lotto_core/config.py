"""Unified configuration for lotto_core.

This module provides the two configuration objects used across the package:

- DataPaths: where the local fact files live (used by CsvFactStore and the CLI)
- Settings: remote store credentials, HTTP resiliency, timezone and worker count
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from lotto_core.exceptions import ConfigError

DEFAULT_TIMEOUT = 60.0
DEFAULT_RETRIES = 3
DEFAULT_MAX_WORKERS = 4


@dataclass
class DataPaths:
    """Filesystem paths for the local fact store.

    Attributes:
        data_root: Root directory holding the fact files.

    Directory Structure:
        data_root/
        ├── bets.csv            # one row per bet placed at a taquilla
        ├── winners.csv         # one row per winning bet (with potential_win)
        ├── daily_results.csv   # one row per lottery per day
        └── nodes.csv           # reseller tree (admin ... taquilla)

    """

    data_root: Path

    @classmethod
    def from_root(cls, data_root: str | Path) -> DataPaths:
        """Create DataPaths from a root directory.

        Args:
            data_root: Root directory for the fact files.

        Returns:
            DataPaths instance.

        Examples:
            >>> paths = DataPaths.from_root("data")
            >>> paths.bets_csv
            PosixPath('data/bets.csv')

        """
        if isinstance(data_root, str):
            data_root = Path(data_root)
        return cls(data_root=data_root)

    @property
    def bets_csv(self) -> Path:
        """Bet facts."""
        return self.data_root / "bets.csv"

    @property
    def winners_csv(self) -> Path:
        """Winner facts."""
        return self.data_root / "winners.csv"

    @property
    def daily_results_csv(self) -> Path:
        """Daily draw results."""
        return self.data_root / "daily_results.csv"

    @property
    def nodes_csv(self) -> Path:
        """Reseller tree nodes."""
        return self.data_root / "nodes.csv"

    def ensure_dirs(self) -> None:
        """Create the data root directory."""
        self.data_root.mkdir(parents=True, exist_ok=True)


def _env_number(name: str, default: float, cast: type) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return cast(default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {name}: {raw!r}") from e


@dataclass
class Settings:
    """Runtime settings for the engine and the remote fact store.

    Attributes:
        rest_url: Base URL of the PostgREST endpoint (e.g. https://xyz.supabase.co).
        rest_key: API key sent as ``apikey`` and bearer token.
        timeout: Default HTTP timeout in seconds.
        retries: Number of HTTP retry attempts.
        timezone: IANA timezone that fact timestamps are converted to before
            being compared with day boundaries. None keeps them in UTC.
        max_workers: Thread pool size for concurrent period variants.
    """

    rest_url: str | None = None
    rest_key: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    timezone: str | None = None
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from LOTTO_* environment variables.

        Environment:
            LOTTO_REST_URL, LOTTO_REST_KEY, LOTTO_TIMEOUT (60), LOTTO_RETRIES (3),
            LOTTO_TZ, LOTTO_MAX_WORKERS (4)

        Raises:
            ConfigError: If a numeric variable cannot be parsed.

        """
        return cls(
            rest_url=os.environ.get("LOTTO_REST_URL") or None,
            rest_key=os.environ.get("LOTTO_REST_KEY") or None,
            timeout=_env_number("LOTTO_TIMEOUT", DEFAULT_TIMEOUT, float),
            retries=_env_number("LOTTO_RETRIES", DEFAULT_RETRIES, int),
            timezone=os.environ.get("LOTTO_TZ") or None,
            max_workers=_env_number("LOTTO_MAX_WORKERS", DEFAULT_MAX_WORKERS, int),
        )

    def require_rest(self) -> tuple[str, str]:
        """Return (rest_url, rest_key), raising ConfigError if either is missing."""
        if not self.rest_url or not self.rest_key:
            raise ConfigError("LOTTO_REST_URL and LOTTO_REST_KEY are required for the remote store")
        return self.rest_url.rstrip("/"), self.rest_key
