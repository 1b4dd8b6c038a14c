from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docrouter.core.config import settings
from docrouter.modules.routing.agents.router_agent import RouterAgent
from docrouter.modules.routing.memory import HistoryStore
from docrouter.modules.routing.oracle import LLMOracle, Oracle
from docrouter.modules.routing.router import agents_router, memory_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "Starting Document Router API",
        provider=getattr(app.state.oracle, "provider", None),
        history_capacity=app.state.history.capacity,
    )
    yield
    logger.info("Shutting down Document Router API")


def create_app(
    oracle: Oracle | None = None,
    history: HistoryStore | None = None,
) -> FastAPI:
    """Build the API with its own oracle, history store and router agent."""
    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Process-lifetime state, owned by this app instance
    app.state.oracle = oracle if oracle is not None else LLMOracle()
    app.state.history = (
        history if history is not None else HistoryStore(capacity=settings.history_capacity)
    )
    app.state.router_agent = RouterAgent(app.state.oracle, app.state.history)

    # Mount routers
    app.include_router(agents_router, prefix=settings.api_prefix)
    app.include_router(memory_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
