from __future__ import annotations

from fastapi import FastAPI

from metaserv._version import __version__
from metaserv.api.health import router as health_router
from metaserv.api.metadata import router as metadata_router
from metaserv.api.metrics import router as metrics_router
from metaserv.config import Settings, get_settings
from metaserv.observability.middleware import RequestContextMiddleware
from metaserv.services.identity import new_instance_identity


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the service with its configuration and instance identity fixed for its lifetime."""
    settings = settings or get_settings()

    app = FastAPI(title="metaserv", version=__version__, redirect_slashes=False)
    app.state.settings = settings
    app.state.identity = new_instance_identity()

    app.add_middleware(RequestContextMiddleware, excluded_metric_paths={"/metrics"})
    app.include_router(metadata_router)
    app.include_router(health_router)
    app.include_router(metrics_router)
    return app


app = create_app()
