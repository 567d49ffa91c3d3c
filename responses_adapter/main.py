"""Main FastAPI application for the responses adapter."""

import socket
from typing import Optional

import httpx
from fastapi import FastAPI

from .api.routes import (
    catch_all,
    chat_completions,
    embeddings,
    list_models,
    responses_endpoint,
)
from .config_loader import AdapterSettings, load_settings
from .core.registry import set_upstream
from .core.upstream import UpstreamClient
from .logging import log_requests, setup_logging

# Initialize logging
logger = setup_logging()

PASSTHROUGH_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def create_app(
    settings: Optional[AdapterSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Factory function to create the FastAPI application.

    Args:
        settings: Resolved settings; loaded from config and environment when omitted.
        transport: Optional httpx transport for the backend client.

    Returns:
        The configured FastAPI application instance.
    """
    if settings is None:
        settings = load_settings()

    app = FastAPI(title="Responses Adapter")
    app.state.settings = settings
    app.middleware("http")(log_requests)

    @app.on_event("startup")
    async def startup_event():
        """Handle application startup."""
        upstream = UpstreamClient(settings.build_backend(), transport=transport)
        app.state.upstream = upstream
        set_upstream(upstream)

        logger.info("Responses adapter starting up...")
        logger.info("Configured bind address %s:%s", settings.host, settings.port)
        if settings.host == "0.0.0.0":
            hostname = socket.gethostname()
            logger.info("Reachable on local network at http://%s:%s", hostname, settings.port)
        logger.info("Backend: %s", settings.backend_url)
        logger.info("Responses adapter ready to handle requests")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Handle application shutdown."""
        upstream = getattr(app.state, "upstream", None)
        if upstream is not None:
            await upstream.aclose()
            set_upstream(None)
            logger.info("Backend client closed")

    # Register routes; the catch-all must come last
    app.post("/v1/responses")(responses_endpoint)
    app.get("/v1/models")(list_models)
    app.post("/v1/chat/completions")(chat_completions)
    app.post("/v1/embeddings")(embeddings)
    app.api_route("/{path:path}", methods=PASSTHROUGH_METHODS)(catch_all)

    return app


# Create FastAPI application
app = create_app()
logger.info("FastAPI application created")


# Export for external use
__all__ = ["app", "create_app"]
