"""Domain-specific exceptions for lotto_core.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from LottoAPIError for easy catching.
"""


class LottoAPIError(Exception):
    """Base exception for all lotto_core errors.

    Users can catch this exception to handle any error raised by the
    rollup engine, the period resolver or the fact store adapters.
    """

    pass


class ConfigError(LottoAPIError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid configuration values are provided (e.g. LOTTO_TIMEOUT=abc)
    - Required configuration is missing (e.g. no REST URL for the remote store)
    """

    pass


class DataQualityError(LottoAPIError):
    """Raised when fact data fails validation.

    This exception is raised when:
    - Required columns are missing from a fact frame
    - A share percentage is outside the 0-100 range
    """

    pass


class InvalidRangeError(LottoAPIError, ValueError):
    """Raised when a custom date range ends before it starts.

    The check happens in the period resolver, before any aggregation runs.
    """

    pass


class MissingNodeError(LottoAPIError, KeyError):
    """Raised when an explicitly requested node is not in the reseller tree.

    Dangling references found while building the tree are not raised;
    those nodes are rolled up as isolated roots and logged instead.
    """

    def __init__(self, node_id: object) -> None:
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Node {self.node_id!r} not found in reseller tree"


class FactStoreError(LottoAPIError):
    """Raised when a fact store adapter cannot deliver facts.

    This exception is raised when:
    - The remote store returns an HTTP error or cannot be reached
    - A local fact file is missing or cannot be parsed

    The ``stream`` attribute names the fact stream that failed
    ("bets", "winners", "daily_results" or "nodes") when known.
    """

    def __init__(self, message: str, stream: str | None = None) -> None:
        super().__init__(message)
        self.stream = stream
