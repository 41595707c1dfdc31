"""
Content platform core — application entry point.

Run with ``uvicorn main:create_app --factory``.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_middleware
from api.routes import build_router
from config.settings import config
from connectors.registry import ConnectorRegistry
from core.environment import Environment, bootstrap
from database.environment import SqlEnvironment
from database.session import engine, init_db
from endpoints.connect import connect_callback, connect_init

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "urllib3", "sqlalchemy.engine"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def register_connectors(environment: Environment) -> None:
    logger.info("Discovering connectors…")
    ConnectorRegistry().discover(environment)


def register_core_endpoints(environment: Environment) -> None:
    environment.register_endpoint(connect_init())
    environment.register_endpoint(connect_callback())


def create_app(environment: Optional[SqlEnvironment] = None) -> FastAPI:
    """Bootstrap ``environment`` (default: SQL store from config) and build the app."""
    if environment is None:
        init_db(engine)
        environment = SqlEnvironment()

    bootstrap(environment)
    register_connectors(environment)
    register_core_endpoints(environment)

    app = FastAPI(
        title="Content Platform Core",
        version="1.0.0",
        description="Endpoint dispatch, OAuth connectors and persistence contracts.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)

    app.include_router(build_router(environment.endpoints), prefix="/api/v1")

    logger.info("Application ready to accept requests (%d endpoints).", len(environment.endpoints))
    return app


if __name__ == "__main__":
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
