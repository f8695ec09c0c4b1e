"""Translation API application factory.

This module creates and configures the FastAPI application with all routers
and middleware.
"""

import logging

from fastapi import FastAPI

from trace_search_ai.api.middleware import configure_middleware
from trace_search_ai.api.routers import health_router, translate_router
from trace_search_ai.config import TranslatorConfig
from trace_search_ai.translator import Translator

logger = logging.getLogger(__name__)


def create_app(
    title: str = "Trace Search AI API",
    translator: Translator | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        title: Application title
        translator: Translator to serve; built from the environment if omitted

    Returns:
        Configured FastAPI application
    """
    if translator is None:
        config = TranslatorConfig.from_env()
        logger.info(
            f"Translator configured: metadata={config.metadata_url} "
            f"generation={config.generation_url} model={config.generation_model} "
            f"route_validation={config.route_validation}"
        )
        translator = Translator.from_config(config)

    app = FastAPI(title=title)
    app.state.translator = translator

    configure_middleware(app)

    app.include_router(health_router)
    app.include_router(translate_router)

    return app
