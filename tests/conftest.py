from __future__ import annotations

import asyncio
from collections.abc import Iterable

import pytest

from bookgraph.errors import LookupFailure, NotFound
from bookgraph.lookup import WorkLookup
from bookgraph.models import Work
from bookgraph.reco import AggregatorConfig


def work(work_id: str, title: str | None = None, subjects: Iterable[str] = ()) -> Work:
    """Helper to create a Work with minimal fields."""
    return Work(id=work_id, title=title or work_id, subjects=list(subjects))


class FakeLookup(WorkLookup):
    """In-memory lookup port that records every query it receives."""

    def __init__(self, *, delay: float = 0.0):
        self.works: dict[str, Work] = {}
        self.by_subject: dict[str, list[Work]] = {}
        self.by_subject_lang: dict[tuple[str, str], list[Work]] = {}
        self.by_title: dict[str, list[Work]] = {}
        self.failing: set[str] = set()
        self.delays: dict[str, float] = {}
        self.delay = delay
        self.calls: list[tuple[str, str, str | None]] = []
        self.cancelled = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    def add_work(self, w: Work) -> Work:
        self.works[w.id] = w
        return w

    async def _pause(self, text: str) -> None:
        try:
            await asyncio.sleep(self.delays.get(text, self.delay))
        except asyncio.CancelledError:
            self.cancelled += 1
            raise

    async def get_work(self, work_id: str) -> Work:
        self.calls.append(("work", work_id, None))
        await self._pause(work_id)
        if work_id not in self.works:
            raise NotFound(work_id)
        return self.works[work_id]

    async def search_by_subject(self, subject, *, language=None, limit=5):
        self.calls.append(("subject", subject, language))
        await self._pause(subject)
        if subject in self.failing:
            raise LookupFailure(f"boom: {subject}")
        if language and (subject, language) in self.by_subject_lang:
            return self.by_subject_lang[(subject, language)][:limit]
        return self.by_subject.get(subject, [])[:limit]

    async def search_by_title(self, title, *, language=None, limit=5):
        self.calls.append(("title", title, language))
        await self._pause(title)
        if title in self.failing:
            raise LookupFailure(f"boom: {title}")
        return self.by_title.get(title, [])[:limit]

    def queried(self, kind: str) -> list[str]:
        return [text for k, text, _ in self.calls if k == kind]


@pytest.fixture
def lookup() -> FakeLookup:
    return FakeLookup()


@pytest.fixture
def config() -> AggregatorConfig:
    return AggregatorConfig(max_concurrency=1)
