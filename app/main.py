# app/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import appointments, health, internal, occurrences, reports
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create missing tables before the first request is served.
    await init_db()
    yield


def create_app() -> FastAPI:
    """
    Application factory for the Agent CRM Calendar service.
    """
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Backend for an insurance sales agent's CRM dashboard: stores one-off\n"
            "and recurring appointments (including lunar yearly events) and expands\n"
            "them into concrete calendar occurrences for any date window."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Routers
    app.include_router(health.router)
    app.include_router(appointments.router)
    app.include_router(occurrences.router)
    app.include_router(reports.router)
    app.include_router(internal.router)

    return app


app = create_app()
