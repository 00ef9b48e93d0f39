from __future__ import annotations

import asyncio
import bisect
import itertools
import logging

from bookgraph.graph import GraphData, build_graph
from bookgraph.lookup import WorkLookup
from bookgraph.models import Work
from bookgraph.reco import RecommendationAggregator

logger = logging.getLogger(__name__)


class BookSession:
    """Ordered root books plus the graph derived from them.

    Roots are only ever appended, in the order `add` / `add_title` were called
    even when their lookups finish out of order. Every addition rebuilds
    recommendations and the graph from scratch; a rebuild still running when
    the next book is added is cancelled and its waiters get the newer graph.
    """

    def __init__(self, lookup: WorkLookup, aggregator: RecommendationAggregator | None = None):
        self.lookup = lookup
        self.aggregator = aggregator or RecommendationAggregator(lookup)
        self._roots: list[tuple[int, Work]] = []
        self._seq = itertools.count()
        self._graph = GraphData()
        self._build_task: asyncio.Task[GraphData] | None = None

    @property
    def roots(self) -> tuple[Work, ...]:
        return tuple(w for _, w in self._roots)

    @property
    def graph(self) -> GraphData:
        return self._graph

    async def add(self, work_id: str) -> GraphData:
        """Resolve `work_id` and add it as a root. NotFound leaves the session unchanged."""
        seq = next(self._seq)
        work = await self.lookup.get_work(work_id)
        return await self._add_work(seq, work)

    async def add_title(self, title: str) -> GraphData:
        """Resolve the best match for `title` and add it as a root."""
        seq = next(self._seq)
        work = await self.lookup.resolve_title(title)
        return await self._add_work(seq, work)

    async def _add_work(self, seq: int, work: Work) -> GraphData:
        if any(r.id == work.id for _, r in self._roots):
            logger.info(f"{work.id} ({work.title!r}) is already a root")
            if self._build_task is None:
                return self._graph
        else:
            bisect.insort(self._roots, (seq, work), key=lambda entry: entry[0])
            logger.info(f"added root {work.id} ({work.title!r}); {len(self._roots)} roots")
            self._start_rebuild()

        while True:
            task = self._build_task
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                # superseded by a newer rebuild: wait for that one instead
                if not task.cancelled() or self._build_task in (None, task):
                    raise

    def _start_rebuild(self) -> None:
        if self._build_task is not None and not self._build_task.done():
            logger.debug("cancelling superseded rebuild")
            self._build_task.cancel()
        self._build_task = asyncio.create_task(self._rebuild(self.roots))

    async def _rebuild(self, roots: tuple[Work, ...]) -> GraphData:
        recs = await self.aggregator.aggregate(roots)
        graph = build_graph(roots, recs)
        self._graph = graph
        return graph

    async def aclose(self) -> None:
        task, self._build_task = self._build_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
