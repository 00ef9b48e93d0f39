"""Error taxonomy for lookups against the bibliographic source."""

from __future__ import annotations


class BookGraphError(Exception):
    """Base class for bookgraph errors."""


class LookupFailure(BookGraphError):
    """A single external call failed (network, HTTP status, or parse error).

    Aggregation recovers from it locally by treating the call as empty.
    """


class NotFound(BookGraphError):
    """A requested work id (or title) does not resolve to a work."""

    def __init__(self, key: str):
        super().__init__(f"work not found: {key}")
        self.key = key
