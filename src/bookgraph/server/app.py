from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from bookgraph import __version__
from bookgraph.clients.openlibrary import OpenLibraryClient, work_path
from bookgraph.errors import LookupFailure, NotFound
from bookgraph.graph import build_graph
from bookgraph.lookup import WorkLookup
from bookgraph.models import Work
from bookgraph.reco import AggregatorConfig, RecommendationAggregator

from .auth import require_api_key

logger = logging.getLogger(__name__)


class GraphRequest(BaseModel):
    work_ids: list[str] = Field(min_length=1, description="Root work ids in search order")


def create_app(lookup: WorkLookup | None = None, config: AggregatorConfig | None = None) -> FastAPI:
    owned = OpenLibraryClient() if lookup is None else None
    lookup = lookup or owned
    aggregator = RecommendationAggregator(lookup, config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if owned is not None:
            await owned.aclose()

    app = FastAPI(title="bookgraph", version=__version__, lifespan=lifespan)

    async def resolve(work_id: str) -> Work:
        try:
            return await lookup.get_work(work_id)
        except NotFound as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except LookupFailure as e:
            logger.warning(f"resolving {work_id} failed: {e}")
            raise HTTPException(status_code=502, detail="bibliographic source unavailable") from e

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/suggest")
    async def suggest(
        q: str,
        limit: int = Query(default=5, ge=1, le=20),
        _auth: None = Depends(require_api_key),
    ):
        try:
            hits = await lookup.suggest(q, limit=limit)
        except LookupFailure as e:
            logger.warning(f"suggest {q!r} failed: {e}")
            hits = []
        return {"count": len(hits), "results": [{"id": h.id, "title": h.title} for h in hits]}

    @app.get("/works/{work_id:path}")
    async def get_work(work_id: str, _auth: None = Depends(require_api_key)):
        try:
            key = work_path(work_id)
        except ValueError as e:
            raise HTTPException(status_code=404, detail="empty work id") from e
        return (await resolve(key)).model_dump()

    @app.post("/graph")
    async def graph(payload: GraphRequest, _auth: None = Depends(require_api_key)):
        roots: list[Work] = []
        for work_id in payload.work_ids:
            work = await resolve(work_id)
            if all(r.id != work.id for r in roots):
                roots.append(work)
        recs = await aggregator.aggregate(roots)
        return build_graph(roots, recs).to_dict()

    return app
