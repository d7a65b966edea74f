"""FastAPI application exposing the viewer controller to HTTP frontends.

A browser (or any other renderer) posts commands and polls ``/state`` on its
own cadence; the controller is the single owner of the view state.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException

from .config import settings
from .controller import SelectProduct, ViewController
from .errors import InvalidCommand
from .http_client import HttpFetcher
from .models import SearchQuery, SearchRequest, SelectRequest, Snapshot

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# ``force=True`` replaces uvicorn's default handlers so our request/decode
# statements share one format.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx", "httpcore"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)


def create_app(controller: Optional[ViewController] = None) -> FastAPI:
    app = FastAPI(title="OpenFoodFacts Viewer")
    fetcher: Optional[HttpFetcher] = None
    if controller is None:
        fetcher = HttpFetcher(settings=settings)
        controller = ViewController(fetcher, settings=settings)
    app.state.controller = controller
    app.state.fetcher = fetcher

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        controller.close()
        if fetcher is not None:
            fetcher.close()

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.get("/state", response_model=Snapshot)
    async def state() -> Snapshot:
        return controller.snapshot()

    @app.post("/search", response_model=Snapshot)
    async def search(request: SearchRequest) -> Snapshot:
        if SearchQuery.parse(request.q) is None:
            raise HTTPException(status_code=400, detail="Query must not be empty")
        return controller.search(request.q)

    @app.post("/select", response_model=Snapshot)
    async def select(request: SelectRequest) -> Snapshot:
        try:
            command = SelectProduct(request.code)
        except InvalidCommand as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return controller.dispatch(command)

    @app.post("/back", response_model=Snapshot)
    async def back() -> Snapshot:
        return controller.go_back()

    logger.info("Viewer API ready (search endpoint %s)", settings.search_url)
    return app


app = create_app()
