"""
FastAPI application factory.

* Registers routes for auth, vehicles, ride requests, ratings and admin
  under ``/api``.
* Maps the domain error taxonomy onto HTTP status codes.
* Starts / stops the background completion worker via lifespan events.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from rideshare.api.middleware import limiter
from rideshare.api.routes import admin, auth, ratings, ride_requests, vehicles
from rideshare.api.schemas import ErrorResponse
from rideshare.domain.errors import AuthError, RideshareError
from rideshare.infrastructure.redis_client import close_redis
from rideshare.workers import completer as _completer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409)
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the completion worker on startup; stop on shutdown."""
    await _completer.start_completion_loop()
    yield
    await _completer.stop_completion_loop()
    await close_redis()


async def _domain_error_handler(request: Request, exc: RideshareError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "errors": exc.errors},
        headers=headers,
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Rideshare API",
        description=(
            "Drivers post rides with seats to share; passengers request "
            "seats, drivers accept or reject, and passengers rate completed "
            "rides.  Seat accounting is atomic under concurrent accepts."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(RideshareError, _domain_error_handler)

    # Routers
    for module in (auth, vehicles, ride_requests, ratings, admin):
        app.include_router(module.router, prefix="/api", responses=_ERROR_RESPONSES)

    return app
