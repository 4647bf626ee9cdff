"""Search settings read from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from archive_query.query.parser import DEFAULT_MAX_DEPTH, MAX_DEPTH_CEILING

logger = logging.getLogger(__name__)


def _int_from_env(name: str, default: int, maximum: int | None = None) -> int:
    """Read a positive integer env var. Falls back to default when unset or invalid.

    Values above ``maximum`` are capped to it.
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        logger.warning("Invalid %s %r; defaulting to %d", name, raw, default)
        return default
    if maximum is not None and value > maximum:
        logger.warning("%s=%d exceeds %d; capping", name, value, maximum)
        return maximum
    return value


@dataclass
class SearchConfig:
    """Page-size limits and parser depth for search requests."""

    default_limit: int = 10
    max_limit: int = 100
    max_depth: int = DEFAULT_MAX_DEPTH

    @classmethod
    def from_env(cls) -> SearchConfig:
        """Build SearchConfig from environment variables."""
        return cls(
            default_limit=_int_from_env("SEARCH_DEFAULT_LIMIT", 10),
            max_limit=_int_from_env("SEARCH_MAX_LIMIT", 100),
            max_depth=_int_from_env(
                "QUERY_MAX_DEPTH", DEFAULT_MAX_DEPTH, maximum=MAX_DEPTH_CEILING
            ),
        )
