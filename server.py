"""Run the trace search translation API with uvicorn."""

import logging
import os

import uvicorn

from trace_search_ai.api import create_app
from trace_search_ai.telemetry import setup_logging

setup_logging()

logger = logging.getLogger(__name__)

app = create_app()


if __name__ == "__main__":
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8001"))
    logger.info(f"Starting trace search API on {host}:{port}")
    uvicorn.run(app, host=host, port=port)
