"""Lookup port: the abstract bibliographic source used by aggregation."""

from __future__ import annotations

from abc import ABC, abstractmethod

from bookgraph.errors import NotFound
from bookgraph.models import Work


class WorkLookup(ABC):
    """Abstraction over the bibliographic data source.

    Implementations raise `LookupFailure` for transport/parse problems and
    `NotFound` when a work id does not resolve.
    """

    @abstractmethod
    async def get_work(self, work_id: str) -> Work:
        """Fetch one fully resolved work by id."""
        ...

    @abstractmethod
    async def search_by_subject(
        self, subject: str, *, language: str | None = None, limit: int = 5
    ) -> list[Work]:
        """Return works tagged with `subject`."""
        ...

    @abstractmethod
    async def search_by_title(
        self, title: str, *, language: str | None = None, limit: int = 5
    ) -> list[Work]:
        """Return works whose title matches `title`."""
        ...

    async def suggest(self, query: str, limit: int = 5) -> list[Work]:
        """Autocomplete hits for a partially typed title."""
        query = query.strip()
        if not query:
            return []
        return await self.search_by_title(query, limit=limit)

    async def resolve_title(self, title: str) -> Work:
        """Resolve the best title hit into a full work.

        Raises NotFound when the title search has no hits.
        """
        hits = await self.search_by_title(title, limit=1)
        if not hits:
            raise NotFound(title)
        return await self.get_work(hits[0].id)
