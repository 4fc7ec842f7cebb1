"""
Discovery Engine API — FastAPI app factory.

Use: uvicorn server.app:app
Or:  from server import app
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_config
from .routes import register_routes
from .state import get_state

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, and startup."""
    config = get_config()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = FastAPI(
        title="Discovery Engine API",
        description="Personalized content feeds, people suggestions and interaction signals",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)

    @app.on_event("startup")
    def initialize_stores():
        state = get_state()
        _, errors = state.config.validate()
        for error in errors:
            logger.warning("[startup] %s", error)
        state.initialize()
        logger.info(
            "[startup] Discovery Engine API ready (database=%s, catalog=%s)",
            state.config.database_url.split("://", 1)[0],
            type(state.repository).__name__,
        )

    return app


app = create_app()
