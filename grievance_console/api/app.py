from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from grievance_console.api.dependencies import CONSOLE_HEADER
from grievance_console.api.routers.console import router as console_router
from grievance_console.api.routers.messages import router as messages_router
from grievance_console.api.routers.session import router as session_router
from grievance_console.config import settings
from grievance_console.console.shell import ConsoleRegistry
from grievance_console.grievance.client import lifespan_grievance_client
from grievance_console.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A registry injected by create_app already owns its client
    if getattr(app.state, "consoles", None) is not None:
        yield
        return

    # Keep a single Grievance API client alive for the process lifetime
    async with lifespan_grievance_client() as client:
        app.state.consoles = ConsoleRegistry(
            client,
            settings.storage.session_dir,
            max_consoles=settings.consoles.max_consoles,
            idle_timeout=settings.consoles.idle_timeout,
        )
        yield


def create_app(grievance_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Grievance Console API",
        description="Server-driven console for the Grievance request-tracking API",
        version="0.1.0",
        lifespan=lifespan,
        root_path=settings.app_root_path,
        root_path_in_servers=False,
        servers=[
            {"url": settings.app_root_path, "description": "Current"},
        ],
    )
    if grievance_client is not None:
        app.state.consoles = ConsoleRegistry(
            grievance_client,
            settings.storage.session_dir,
            max_consoles=settings.consoles.max_consoles,
            idle_timeout=settings.consoles.idle_timeout,
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CONSOLE_HEADER],
    )

    app.include_router(session_router)
    app.include_router(console_router)
    app.include_router(messages_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
