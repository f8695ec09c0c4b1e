"""Extraction of a JSON object from free-form generated text.

Models are told to answer with bare JSON but often wrap it in prose or a
markdown fence. Extraction tries the whole text first and then the widest
``{ ... }`` span.
"""

import json
import logging
import re
from typing import Any

from .exceptions import MalformedResponseError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if "```" in text:
        text = _FENCE_RE.sub("", text).strip("`").strip()
    return text


def _as_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def parse_whole(text: str) -> dict[str, Any] | None:
    """Strictly parse the entire text as one JSON object."""
    return _as_object(strip_code_fences(text))


def parse_brace_span(text: str) -> dict[str, Any] | None:
    """Parse the span from the first ``{`` to the last ``}``."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return _as_object(text[start : end + 1])


def extract(text: str) -> dict[str, Any]:
    """Return the JSON object carried by the generated text.

    Raises:
        MalformedResponseError: If neither the whole text nor its widest
            brace span parses as a JSON object.
    """
    result = parse_whole(text)
    if result is not None:
        return result

    result = parse_brace_span(text)
    if result is not None:
        logger.debug("Recovered JSON object from surrounding prose")
        return result

    logger.debug(f"No JSON object in generated text: {text[:500]!r}")
    raise MalformedResponseError(text)
