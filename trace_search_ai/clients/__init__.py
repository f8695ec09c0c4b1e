"""Network clients for the trace backend and the generation endpoint."""

from .catalog import ServiceCatalog
from .generation import GenerationClient

__all__ = [
    "GenerationClient",
    "ServiceCatalog",
]
