"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .root import router as root_router
from .config import router as config_router
from .interactions import router as interactions_router
from .feed import router as feed_router
from .people import router as people_router
from .not_interested import router as not_interested_router
from .maintenance import router as maintenance_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(config_router, prefix="/api/config", tags=["config"])
    app.include_router(interactions_router, prefix="/api/interactions", tags=["interactions"])
    app.include_router(feed_router, prefix="/api", tags=["feed"])
    app.include_router(people_router, prefix="/api/people", tags=["people"])
    app.include_router(not_interested_router, prefix="/api/not-interested", tags=["exclusions"])
    app.include_router(maintenance_router, prefix="/api/maintenance", tags=["maintenance"])
