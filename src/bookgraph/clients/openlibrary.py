from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from bookgraph.errors import LookupFailure, NotFound
from bookgraph.http import HttpClientFactory, transient_retry
from bookgraph.lookup import WorkLookup
from bookgraph.models import Work, normalize_subjects
from bookgraph.settings import settings

logger = logging.getLogger(__name__)

_SEARCH_FIELDS = "key,title,subject,language"
_MAX_REDIRECTS = 3


def work_path(work_id: str) -> str:
    """Normalize "OL45883W", "works/OL45883W" or "/works/OL45883W" to a work key."""
    key = work_id.strip().removesuffix(".json").strip("/")
    if not key:
        raise ValueError("empty work id")
    if not key.startswith("works/"):
        key = f"works/{key}"
    return f"/{key}"


class OpenLibraryClient(WorkLookup):
    """Open Library API client.

    Docs: https://openlibrary.org/developers/api

    Work records come from /works/{id}.json; subject and title queries go
    through /search.json so that language filtering is available.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        subject_limit: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"User-Agent": settings.user_agent}
        self._client = HttpClientFactory.client(
            base_url=base_url or settings.openlibrary_url, headers=headers, transport=transport
        )
        self._subject_limit = subject_limit or settings.subject_limit

    async def __aenter__(self) -> OpenLibraryClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    @transient_retry()
    async def _request(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return await self._client.get(path, params=params)

    async def _get_json(
        self, path: str, params: dict[str, Any] | None = None, *, not_found: str | None = None
    ) -> dict:
        try:
            r = await self._request(path, params)
        except httpx.HTTPError as e:
            raise LookupFailure(f"GET {path} failed: {e}") from e

        if r.status_code == 404 and not_found is not None:
            raise NotFound(not_found)
        try:
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPStatusError, ValueError) as e:
            raise LookupFailure(f"GET {path} failed: {e}") from e
        if not isinstance(data, dict):
            raise LookupFailure(f"GET {path} returned {type(data).__name__}, expected object")
        return data

    async def get_work(self, work_id: str) -> Work:
        try:
            path = work_path(work_id)
        except ValueError:
            raise NotFound(work_id) from None

        for _ in range(_MAX_REDIRECTS + 1):
            d = await self._get_json(f"{path}.json", not_found=work_id)
            rtype = d.get("type")
            type_key = rtype.get("key") if isinstance(rtype, dict) else None
            if type_key == "/type/redirect" and isinstance(d.get("location"), str):
                logger.debug(f"{path} redirects to {d['location']}")
                path = work_path(d["location"])
                continue
            if type_key == "/type/delete" or not d.get("title"):
                raise NotFound(work_id)
            return self._to_work(d, fallback_id=path)
        raise LookupFailure(f"too many redirects resolving {work_id}")

    async def search_by_subject(
        self, subject: str, *, language: str | None = None, limit: int = 5
    ) -> list[Work]:
        return await self._search({"subject": subject}, language=language, limit=limit)

    async def search_by_title(
        self, title: str, *, language: str | None = None, limit: int = 5
    ) -> list[Work]:
        return await self._search({"title": title}, language=language, limit=limit)

    async def _search(self, query: dict[str, str], *, language: str | None, limit: int) -> list[Work]:
        params: dict[str, Any] = {**query, "limit": limit, "fields": _SEARCH_FIELDS}
        if language:
            params["language"] = language
        d = await self._get_json("/search.json", params)

        docs = d.get("docs")
        if not isinstance(docs, list):
            raise LookupFailure(f"search {query} returned no docs list")

        works = []
        for doc in docs[:limit]:
            if not isinstance(doc, dict):
                continue
            key, title = doc.get("key"), doc.get("title")
            if not isinstance(key, str) or not key or not isinstance(title, str) or not title:
                logger.debug(f"skipping malformed search doc {doc!r}")
                continue
            works.append(self._to_work(doc))
        return works

    def _to_work(self, d: dict, fallback_id: str | None = None) -> Work:
        key = d.get("key")
        # work records use "subjects"; search docs use "subject"
        raw_subjects = _str_list(d.get("subjects") or d.get("subject"))
        try:
            return Work(
                id=key if isinstance(key, str) and key else fallback_id or "",
                title=str(d.get("title") or ""),
                subjects=normalize_subjects(raw_subjects, self._subject_limit),
                languages=_str_list(d.get("language")),
            )
        except ValidationError as e:
            raise LookupFailure(f"invalid work record {key!r}: {e}") from e


def _str_list(value: Any) -> list[str]:
    """String items of a list field; a bare string counts as one item."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [x for x in value if isinstance(x, str)]
    return []
