import logging
import sys
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from dashboard.config import settings
from dashboard.errors import NotFoundError, RemoteError, ValidationError
from dashboard.metrics import get_metrics_bytes, get_metrics_content_type
from dashboard.routes import inventory, notifications, orders
from dashboard.session import DashboardSession

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def create_app(session_factory: Callable[[], DashboardSession] = DashboardSession.from_settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session = session_factory()
        app.state.session = session
        try:
            await session.start()
            yield
        finally:
            await session.close()

    app = FastAPI(title="Operator Dashboard", lifespan=lifespan)
    app.include_router(orders.router)
    app.include_router(notifications.router)
    app.include_router(inventory.router)

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(RemoteError)
    async def remote_error(request: Request, exc: RemoteError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content={"detail": exc.message, "upstream_status": exc.status_code},
        )

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus scrape endpoint."""
        return Response(
            content=get_metrics_bytes(),
            media_type=get_metrics_content_type(),
        )

    return app


app = create_app()
