"""Natural-language translation endpoints used by the trace search form."""

import logging

from fastapi import APIRouter, Depends

from trace_search_ai.api.dependencies import get_translator
from trace_search_ai.schema import TranslateRequest, TranslateResponse
from trace_search_ai.translator import Translator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/translate", tags=["translate"])

# Shown under the search box as clickable starting points.
EXAMPLE_QUERIES = [
    "show me errors from the last hour",
    "find slow requests taking more than 5s",
    "show failed payment transactions from yesterday",
]


@router.post("", response_model=TranslateResponse, response_model_by_alias=True)
async def translate(
    payload: TranslateRequest,
    translator: Translator = Depends(get_translator),
) -> TranslateResponse:
    """Translate a natural-language search into a structured trace query.

    Pipeline failures are TranslationError subclasses, which FastAPI renders
    as ``{"detail": <message>}`` with the error's status code.
    """
    result = await translator.translate_query(payload.query, payload.context())
    return TranslateResponse(
        query=result.to_wire(),
        search_params=result.to_search_params(),
    )


@router.get("/examples")
async def list_examples() -> dict[str, list[str]]:
    """Example queries for the search form."""
    return {"examples": EXAMPLE_QUERIES}
