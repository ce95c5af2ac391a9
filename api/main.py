# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-02-03
# Description: main.py
# -----------------------------------------------------------------------------
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

import settings
from api.dependencies import get_container
from api.routers import health, search

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",)


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    # close the shared embedding client only if a request ever built it
    if get_container.cache_info().currsize:
        await get_container().aclose()


app = FastAPI(title="qabrew API", lifespan=lifespan)
app.include_router(health.router)
app.include_router(search.router)


def run() -> None:
    """Serve the API (qabrew-api); host/port from QABREW_API_HOST / QABREW_API_PORT."""
    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="info",
        reload=False,
    )


if __name__ == "__main__":
    run()
