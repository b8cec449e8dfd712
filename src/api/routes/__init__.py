
from fastapi import FastAPI

from . import health, role_changes, training


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the FastAPI application."""
    app.include_router(health.router)
    app.include_router(role_changes.router)
    app.include_router(training.router)
