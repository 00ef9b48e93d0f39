from __future__ import annotations

from collections.abc import Iterable, Sequence

from bookgraph.models import normalize_subjects

__all__ = ["filter_subjects", "normalize_subjects", "shared_subjects"]


def filter_subjects(subjects: Iterable[str], generic: frozenset[str] | set[str]) -> list[str]:
    """Normalized subjects minus the overly broad ones."""
    return [s for s in normalize_subjects(subjects) if s not in generic]


def shared_subjects(subject_lists: Sequence[Sequence[str]]) -> list[str]:
    """Subjects present in every list, in the order of the first list."""
    if not subject_lists:
        return []
    rest = [set(x) for x in subject_lists[1:]]
    return [s for s in subject_lists[0] if all(s in other for other in rest)]
