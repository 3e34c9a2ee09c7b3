"""ClubBook availability API application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clubbook.core.config import settings
from clubbook.core.database import create_engine, create_session_factory
from clubbook.core.exceptions import DomainError
from clubbook.core.logging import configure_logging
from clubbook.repositories.blackouts import BlackoutRepository
from clubbook.repositories.reservations import ReservationRepository
from clubbook.repositories.resources import ResourceRepository
from clubbook.routes import availability
from clubbook.services.availability import AvailabilityService, EngineConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine, repositories and availability service; dispose on shutdown."""
    configure_logging(settings.log_level)
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    app.state.availability = AvailabilityService(
        resources=ResourceRepository(session_factory),
        reservations=ReservationRepository(session_factory),
        blackouts=BlackoutRepository(session_factory),
        config=EngineConfig.from_settings(settings),
    )
    logger.info("%s started (timezone=%s)", settings.app_name, settings.timezone)
    yield
    await engine.dispose()
    logger.info("%s stopped", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    docs_url=f"{settings.api_prefix}/docs",
    openapi_url=f"{settings.api_prefix}/openapi.json",
    lifespan=lifespan,
)

# CORS - permissive in dev, lock down in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


app.include_router(availability.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.app_name}
