"""FastAPI application wiring for Myrefell."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from myrefell.api.deps import UNPROCESSABLE
from myrefell.api.routes import ROUTERS
from myrefell.api.runtime import ApiState, build_state
from myrefell.config import get_settings
from myrefell.services.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _forbidden(request: Request, exc: ForbiddenError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": str(exc)})


async def _rejected(request: Request, exc: ValueError) -> JSONResponse:
    logger.debug("Request rejected", extra={"path": request.url.path, "reason": str(exc)})
    return JSONResponse(status_code=UNPROCESSABLE, content={"detail": str(exc)})


def create_app(*, state_factory: Callable[[], ApiState] = build_state) -> FastAPI:
    """Instantiate the FastAPI application with routing and lifecycle hooks."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = state_factory()
        app.state.api_state = state
        try:
            yield
        finally:
            await state.shutdown()

    app = FastAPI(title="Myrefell API", version="1.0.0", lifespan=lifespan)
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(ForbiddenError, _forbidden)
    app.add_exception_handler(ValueError, _rejected)
    for router in ROUTERS:
        app.include_router(router)
    return app


app = create_app()
