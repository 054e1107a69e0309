import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .config import Settings, get_settings
from .database import create_engine, create_schema, create_session_factory
from .routers import admin, reservations, slots
from .utils.logging_config import setup_logging
from .utils.request_id import request_id_middleware

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with its own engine; nothing is shared between app instances."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    engine = create_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if settings.create_schema:
            await create_schema(engine)
            logger.info("database schema ensured")
        yield
        await engine.dispose()

    app = FastAPI(title="Interview Reservation API", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.middleware("http")(request_id_middleware)
    app.include_router(slots.router)
    app.include_router(reservations.router)
    app.include_router(admin.router)
    return app
