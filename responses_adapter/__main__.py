"""Entry point for running the adapter: ``python -m responses_adapter``."""

import logging

import uvicorn

from .main import app

logger = logging.getLogger("responses-adapter")


def main():
    """Run the adapter."""
    settings = app.state.settings

    logger.info(f"Starting responses adapter on {settings.host}:{settings.port}")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
