"""Middleware configuration for the translation API."""

import logging
import os
import time
import uuid
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace

logger = logging.getLogger(__name__)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global handler for unhandled exceptions."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": str(exc)},
    )


async def tracing_middleware(request: Request, call_next: Any) -> Any:
    """Log each request with a correlation ID and echo the ID back."""
    correlation_id = (
        request.headers.get("X-Correlation-ID")
        or request.headers.get("X-Request-ID")
        or str(uuid.uuid4())
    )

    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute("http.correlation_id", correlation_id)

    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        duration = (time.time() - start_time) * 1000
        logger.error(
            f"Request Failed: {request.method} {request.url.path} - {e} "
            f"({duration:.2f}ms) [Correlation-ID: {correlation_id}]"
        )
        raise

    duration = (time.time() - start_time) * 1000
    if request.url.path != "/health":
        logger.info(
            f"Request End: {request.method} {request.url.path} - {response.status_code} "
            f"({duration:.2f}ms) [Correlation-ID: {correlation_id}]"
        )
    response.headers["X-Correlation-ID"] = correlation_id
    return response


def configure_cors(app: FastAPI) -> None:
    """Allow the trace UI dev servers to call the API."""
    cors_origins = [
        "http://localhost:16686",
        "http://localhost:5173",
        "http://127.0.0.1:16686",
        "http://127.0.0.1:5173",
    ]
    if os.getenv("CORS_ALLOW_ALL", "").lower() == "true":
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application."""
    app.add_exception_handler(Exception, global_exception_handler)
    configure_cors(app)
    app.middleware("http")(tracing_middleware)
