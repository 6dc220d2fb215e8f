"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from filite.api import auth, entries
from filite.config import Settings, get_settings
from filite.database import Database
from filite.exceptions import FiliteError
from filite.services.auth import AuthenticationGate
from filite.services.hasher import CredentialHasher

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send filite's logs to stderr at the given level."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("filite").setLevel(level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store handle and hasher pool, and release them on shutdown."""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    database = Database.from_settings(settings)
    database.create_all()
    hasher = CredentialHasher(max_workers=settings.hash_workers)

    app.state.database = database
    app.state.hasher = hasher
    app.state.gate = AuthenticationGate(hasher, settings.hash_params)
    logger.info(f"filite started ({settings.environment})")

    yield

    hasher.shutdown()
    database.dispose()


async def handle_internal_error(request: Request, exc: Exception) -> JSONResponse:
    """Log store and hashing failures without leaking details to the client."""
    logger.exception(f"Internal error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the application for the given settings."""
    settings = settings or get_settings()

    app = FastAPI(
        title="filite",
        description="Minimal file, link and text hosting",
        version="0.1.0",
        lifespan=lifespan,
        # /docs and /redoc would shadow entry ids of the same name
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings

    app.add_exception_handler(FiliteError, handle_internal_error)
    app.add_exception_handler(SQLAlchemyError, handle_internal_error)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "environment": settings.environment}

    # Register routers; entries last since it matches any /{entry_id}
    app.include_router(auth.router)
    app.include_router(entries.router)

    return app


app = create_app()
