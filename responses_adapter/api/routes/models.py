"""Models listing endpoint - OpenAI compatible."""

import logging
import time

from fastapi import Response
from fastapi.responses import JSONResponse

from ...core.exceptions import UpstreamConnectionError, UpstreamError
from ...core.registry import get_upstream

logger = logging.getLogger("responses-adapter")


async def list_models() -> Response:
    """List the backend's models in OpenAI API format.

    GET /v1/models

    Returns:
        ``{"object": "list", "data": [...]}`` built from the backend's native
        model listing.
    """
    logger.info("Received models list request")
    upstream = get_upstream()

    try:
        entries = await upstream.list_models()
    except UpstreamError as exc:
        logger.error(f"Backend model listing failed: {exc.status_code}")
        return JSONResponse(
            {"error": f"Failed to fetch models from backend: {exc.body_excerpt}"},
            status_code=exc.status_code if exc.status_code and exc.status_code >= 400 else 502,
        )
    except UpstreamConnectionError as exc:
        logger.error(f"Error fetching models: {exc.message}")
        return JSONResponse(
            {
                "error": exc.message,
                "details": "Failed to connect to the backend. Make sure it is running.",
            },
            status_code=500,
        )

    created = int(time.time())
    owned_by = upstream.backend.owned_by
    models = [
        {
            "id": entry.get("name"),
            "object": "model",
            "created": created,
            "owned_by": owned_by,
        }
        for entry in entries
    ]
    logger.info("Returning models: %s", [model["id"] for model in models])

    return JSONResponse({
        "object": "list",
        "data": models,
    })
