"""FastAPI application factory."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import SQLModel

from hydration.db.engine import get_engine
from hydration.api.routes import hydration as hydration_routes, reminders


def create_app() -> FastAPI:
    """Build and return the FastAPI app."""

    engine = get_engine()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables on startup (idempotent)
        SQLModel.metadata.create_all(engine)
        yield

    app = FastAPI(
        title="Hydration API",
        description="Hydration tracking and reminder scheduling backend",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(reminders.router, prefix="/reminders", tags=["reminders"])
    app.include_router(hydration_routes.router, prefix="/hydration", tags=["hydration"])

    return app


# Module-level app instance for uvicorn
app = create_app()
