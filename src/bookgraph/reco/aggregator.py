"""Multi-strategy recommendation aggregation.

Given resolved root works, the aggregator queries the lookup port with three
strategies, in order:

1. subjects shared by every root (only with two or more roots),
2. each root's own subjects,
3. a title search for any root that nothing has tagged yet.

Every discovery is merged into one working map keyed by work id. Provenance
(`matching_root_ids`) is unioned and the intersection flag is OR'd, so a work
found by several strategies ends up as a single recommendation. The global cap
stops new queries from being issued once enough distinct works were found.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from bookgraph.errors import LookupFailure
from bookgraph.lookup import WorkLookup
from bookgraph.models import Recommendation, Work
from bookgraph.settings import DEFAULT_GENERIC_SUBJECTS, BookGraphSettings, settings

from .ranking import rank_recommendations
from .subjects import filter_subjects, shared_subjects

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregatorConfig:
    """Constants controlling query fan-out and the result cap."""

    cap: int = 10
    per_query_limit: int = 5
    max_concurrency: int = 4
    intersection_language: str | None = "eng"
    generic_subjects: frozenset[str] = DEFAULT_GENERIC_SUBJECTS

    @classmethod
    def from_settings(cls, s: BookGraphSettings | None = None) -> AggregatorConfig:
        s = s or settings
        return cls(
            cap=s.recommendation_cap,
            per_query_limit=s.per_query_limit,
            max_concurrency=s.max_concurrency,
            intersection_language=s.intersection_language,
            generic_subjects=s.generic_subjects,
        )


@dataclass(frozen=True)
class _Query:
    kind: Literal["subject", "title"]
    text: str
    root_ids: tuple[str, ...]
    language: str | None = None
    intersection: bool = False


@dataclass
class _Candidate:
    id: str
    title: str
    subjects: tuple[str, ...]
    languages: frozenset[str]
    root_ids: list[str] = field(default_factory=list)
    is_intersection: bool = False

    def tag(self, root_ids: Sequence[str], intersection: bool) -> None:
        for rid in root_ids:
            if rid not in self.root_ids:
                self.root_ids.append(rid)
        self.is_intersection = self.is_intersection or intersection

    def freeze(self) -> Recommendation:
        return Recommendation(
            id=self.id,
            title=self.title,
            subjects=self.subjects,
            languages=self.languages,
            matching_root_ids=frozenset(self.root_ids),
            is_intersection=self.is_intersection,
        )


class _Accumulator:
    """Working result map owned by a single aggregate() call."""

    def __init__(self, root_ids: Sequence[str], cap: int):
        self._root_ids = frozenset(root_ids)
        self._cap = cap
        self._by_id: dict[str, _Candidate] = {}

    @property
    def full(self) -> bool:
        return len(self._by_id) >= self._cap

    def merge(self, works: Sequence[Work], query: _Query) -> None:
        for w in works:
            if not w.id or w.id in self._root_ids:
                continue
            cand = self._by_id.get(w.id)
            if cand is None:
                cand = self._by_id[w.id] = _Candidate(
                    id=w.id,
                    title=w.title,
                    subjects=tuple(w.subjects),
                    languages=frozenset(w.languages),
                )
            cand.tag(query.root_ids, query.intersection)

    def tags(self, root_id: str) -> bool:
        return any(root_id in c.root_ids for c in self._by_id.values())

    def finalize(self) -> list[Recommendation]:
        return [c.freeze() for c in self._by_id.values()]


class RecommendationAggregator:
    """Ranked, de-duplicated, provenance-tagged recommendations for root works."""

    def __init__(self, lookup: WorkLookup, config: AggregatorConfig | None = None):
        self.lookup = lookup
        self.config = config or AggregatorConfig.from_settings()

    async def aggregate(self, roots: Sequence[Work]) -> list[Recommendation]:
        """Run all strategies for `roots` and return at most `config.cap` results.

        Individual lookup failures count as empty results; this never raises
        for external errors. Cancelling the call cancels in-flight lookups.
        """
        unique: dict[str, Work] = {}
        for r in roots:
            unique.setdefault(r.id, r)
        roots = list(unique.values())
        if not roots:
            return []

        cfg = self.config
        root_ids = tuple(unique)
        acc = _Accumulator(root_ids, cfg.cap)
        filtered = [filter_subjects(r.subjects, cfg.generic_subjects) for r in roots]

        if len(roots) >= 2:
            shared = shared_subjects(filtered)
            logger.debug(f"intersection subjects for {len(roots)} roots: {shared}")
            await self._run(
                [
                    _Query("subject", s, root_ids, language=cfg.intersection_language, intersection=True)
                    for s in shared
                ],
                acc,
            )

        await self._run(
            [
                _Query("subject", s, (root.id,))
                for root, subjects in zip(roots, filtered)
                for s in subjects
            ],
            acc,
        )

        # any tagging, including the intersection pass, spares a root the fallback
        await self._run(
            [_Query("title", root.title, (root.id,)) for root in roots if root.title and not acc.tags(root.id)],
            acc,
        )

        return rank_recommendations(acc.finalize(), cfg.cap)

    async def _run(self, queries: list[_Query], acc: _Accumulator) -> None:
        """Issue queries in bounded windows, merging in issue order.

        The cap is checked after every merged query; once reached, the rest of
        the window is cancelled and nothing further is issued.
        """
        pending = list(queries)
        while pending and not acc.full:
            window, pending = pending[: self.config.max_concurrency], pending[self.config.max_concurrency :]
            tasks = [asyncio.create_task(self._fetch(q)) for q in window]
            try:
                for query, task in zip(window, tasks):
                    acc.merge(await task, query)
                    if acc.full:
                        logger.debug(f"recommendation cap {self.config.cap} reached")
                        break
            finally:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)

    async def _fetch(self, query: _Query) -> list[Work]:
        limit = self.config.per_query_limit
        try:
            if query.kind == "title":
                return await self.lookup.search_by_title(query.text, language=query.language, limit=limit)
            return await self.lookup.search_by_subject(query.text, language=query.language, limit=limit)
        except LookupFailure as e:
            logger.warning(f"{query.kind} query {query.text!r} failed: {e}")
            return []
