"""FastAPI application for the Redmine ticket gateway."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .errors import GatewayError
from .routers import catalog, tickets
from .services.audit import AuditSink, LoggingAuditSink
from .services.redmine_client import RedmineClient
from .services.ticket_composer import TicketComposer

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    audit: Optional[AuditSink] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use; read from the environment when omitted
        transport: httpx transport for upstream calls (tests pass a mock)
        audit: Audit sink; defaults to logging
    """
    settings = settings or get_settings()
    client = RedmineClient(settings, transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Redmine URL configurado: %s", settings.redmine_url or "(none)")
        if not settings.has_credentials:
            logger.error("REDMINE_URL y REDMINE_API_KEY no están configuradas")
        yield
        await client.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.redmine_client = client
    app.state.ticket_composer = TicketComposer(settings, client, audit or LoggingAuditSink())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error, "details": exc.details},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": GatewayError.error, "details": "Error inesperado al procesar la solicitud"},
        )

    @app.get("/health")
    async def health():
        return {"status": "ok", "message": "Servidor funcionando correctamente"}

    app.include_router(catalog.router, prefix="/api", tags=["catalog"])
    app.include_router(tickets.router, prefix="/api/tickets", tags=["tickets"])

    return app


def run() -> None:
    """Serve the application with uvicorn on the configured port."""
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
