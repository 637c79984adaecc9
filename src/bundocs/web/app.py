"""FastAPI application exposing the documentation index over HTTP."""

from __future__ import annotations

import logging
from typing import Any, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from bundocs import __version__
from bundocs.config import DEFAULT_SEARCH_LIMIT
from bundocs.errors import InvalidQueryError
from bundocs.server import DocsService

LOGGER = logging.getLogger(__name__)


class SearchPayload(BaseModel):
    pattern: str
    path: str | None = None
    limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=1)
    flags: str | None = None


class SearchHit(BaseModel):
    uri: str
    matchCount: int


class ReadResponse(BaseModel):
    uri: str
    mimeType: str
    text: str


def create_app(service: DocsService) -> FastAPI:
    app = FastAPI(title="bundocs", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.service = service

    @app.get("/resources")
    async def list_resources() -> dict[str, Any]:
        entries = [resource.to_listing() for resource in service.index.root_entries()]
        return {"resources": entries}

    @app.get("/resources/{path:path}")
    async def read_resource(path: str) -> ReadResponse:
        uri = service.index.uri_for(path)
        mime_type, text = service.resolver.resolve(path).render()
        return ReadResponse(uri=uri, mimeType=mime_type, text=text)

    @app.post("/search")
    async def search_documents(payload: SearchPayload) -> dict[str, List[SearchHit]]:
        try:
            results = service.searcher.search(
                payload.pattern,
                path=payload.path,
                limit=payload.limit,
                flags=payload.flags,
            )
        except InvalidQueryError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "results": [SearchHit(uri=result.uri, matchCount=result.match_count) for result in results]
        }

    return app
