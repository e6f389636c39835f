from __future__ import annotations

import logging
from threading import Thread

import uvicorn
from fastapi import FastAPI

from app.api import router
from services.orchestrator import Orchestrator

logger = logging.getLogger(__name__)


def create_app(orchestrator: Orchestrator) -> FastAPI:
    app = FastAPI(
        title="Canary",
        description="Control surface for the synthetic-monitoring agent.",
        version="0.1.0",
    )
    app.state.orchestrator = orchestrator
    app.include_router(router)
    return app


def start_control_server(orchestrator: Orchestrator, host: str, port: int) -> Thread:
    """Serve the control API from a daemon thread so it never blocks shutdown."""
    config = uvicorn.Config(create_app(orchestrator), host=host, port=port, log_config=None)
    server = uvicorn.Server(config)
    thread = Thread(target=server.run, name="canary-control-api", daemon=True)
    thread.start()
    logger.info("Control API listening on http://%s:%d", host, port)
    return thread
