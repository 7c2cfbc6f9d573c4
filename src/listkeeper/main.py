"""FastAPI application factory.

create_app() returns a configured FastAPI instance. Lifespan handles
startup/shutdown, and middleware, CORS, exception handlers and routers
are all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listkeeper import __version__
from listkeeper.api import api_router
from listkeeper.config import settings
from listkeeper.errors import ListkeeperError, ValidationError
from listkeeper.validation import errors_from_pydantic

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "listkeeper.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("listkeeper.shutdown")

    # Close database engine
    from listkeeper.db.engine import engine
    await engine.dispose()


async def _handle_app_error(request: Request, exc: ListkeeperError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    err = ValidationError(errors_from_pydantic(exc.errors()))
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="listkeeper",
        description="Multi-user to-do lists with session auth",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from listkeeper.middleware.request_id import RequestIdMiddleware
    from listkeeper.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error mapping ─────────────────────────────────────────
    app.add_exception_handler(ListkeeperError, _handle_app_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)

    # Mount routes
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: listkeeper.main:app)
app = create_app()
