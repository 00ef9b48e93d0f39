"""Deterministic ordering for merged recommendations."""

from __future__ import annotations

from collections.abc import Iterable

from bookgraph.models import Recommendation


def _rank_key(rec: Recommendation) -> tuple[int, str, str]:
    # bridging recommendations (more roots) first, then title; id keeps equal titles stable
    return (-len(rec.matching_root_ids), rec.title, rec.id)


def rank_recommendations(recs: Iterable[Recommendation], cap: int | None = None) -> list[Recommendation]:
    """Sort by matching-root count descending, then title ascending, and cap."""
    ranked = sorted(recs, key=_rank_key)
    return ranked[:cap] if cap is not None else ranked
