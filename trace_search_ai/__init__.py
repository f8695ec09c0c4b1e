"""Natural-language search for distributed traces.

Translates a free-form description of a trace search into a validated
structured query for a Jaeger-style trace backend, using a local text
generation model and the backend's live service metadata.
"""

from .clients import GenerationClient, ServiceCatalog
from .config import TranslatorConfig
from .exceptions import (
    BackendUnavailableError,
    EmptyQueryError,
    GenerationRequestError,
    InvalidServiceError,
    MalformedResponseError,
    MetadataFetchError,
    TranslationError,
)
from .schema import StructuredQuery, TranslationContext
from .translator import Translator
from .validation import QueryValidator
from .version import VERSION

__all__ = [
    "VERSION",
    "BackendUnavailableError",
    "EmptyQueryError",
    "GenerationClient",
    "GenerationRequestError",
    "InvalidServiceError",
    "MalformedResponseError",
    "MetadataFetchError",
    "QueryValidator",
    "ServiceCatalog",
    "StructuredQuery",
    "TranslationContext",
    "TranslationError",
    "Translator",
    "TranslatorConfig",
]
