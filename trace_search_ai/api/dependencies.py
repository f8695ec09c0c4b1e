"""Shared dependencies for API endpoints."""

from fastapi import Request

from trace_search_ai.translator import Translator


def get_translator(request: Request) -> Translator:
    """Return the translator owned by the running application."""
    translator: Translator = request.app.state.translator
    return translator
