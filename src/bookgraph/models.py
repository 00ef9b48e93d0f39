from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import BaseModel, Field, field_validator


def normalize_subjects(raw: Iterable[object], limit: int | None = None) -> list[str]:
    """Lower-case, strip and de-duplicate subjects, keeping source order.

    A bare string is a single subject, never a sequence of characters.
    """
    if isinstance(raw, str):
        raw = [raw]
    out: list[str] = []
    for s in raw:
        if not isinstance(s, str):
            continue
        s = s.strip().lower()
        if s and s not in out:
            out.append(s)
    return out[:limit] if limit is not None else out


class Work(BaseModel):
    """A bibliographic work as returned by the lookup source.

    `id` is the Open Library work key, e.g. "/works/OL45883W".
    """

    id: str
    title: str = ""
    subjects: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)

    @field_validator("subjects")
    @classmethod
    def _normalize_subjects(cls, v: list[str]) -> list[str]:
        return normalize_subjects(v)


@dataclass(frozen=True)
class Recommendation:
    """A discovered related work plus the roots that produced it."""

    id: str
    title: str
    subjects: tuple[str, ...]
    languages: frozenset[str]
    matching_root_ids: frozenset[str]
    is_intersection: bool = False
