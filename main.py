"""
GA4 Dashboard backend — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_exception_handlers, register_middleware
from api.routes import router as api_router
from auth.routes import router as auth_router
from config.settings import config
from connectors.token_store import TokenStore
from core.service_factory import Services, build_services

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "urllib3", "sqlalchemy.engine"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(
    services: Optional[Services] = None,
    *,
    store: Optional[TokenStore] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    ``services`` / ``store`` let tests inject in-memory collaborators; with
    neither, the Postgres-backed token store is used and its table is
    created on startup.
    """
    app = FastAPI(
        title="GA4 Dashboard",
        version="1.0.0",
        description="Aggregated Google Analytics 4 metrics across a user's properties.",
    )

    uses_database = services is None and store is None
    app.state.services = services or build_services(config, store=store)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(api_router, prefix="/api")

    @app.on_event("startup")
    async def on_startup():
        if uses_database:
            from database.session import init_models

            logger.info("Ensuring credential table exists…")
            await init_models()

        if not app.state.services.connector.is_configured():
            logger.warning("GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET not set — Google sign-in disabled")
        logger.info(
            "Report fan-out: batch size %d, retry delay %.1fs",
            config.report_batch_size, config.report_retry_delay_seconds,
        )
        logger.info("Application ready to accept requests.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
