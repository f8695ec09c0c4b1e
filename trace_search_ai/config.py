"""Configuration for the trace search translator.

All settings come from environment variables so the same code runs against a
local Jaeger + Ollama pair or against remote endpoints without changes.
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_METADATA_URL = "http://localhost:16686/api"
DEFAULT_GENERATION_URL = "http://localhost:11434"
DEFAULT_GENERATION_MODEL = "llama3.1"

# Liveness must fail fast, inference is slow.
DEFAULT_HEALTH_TIMEOUT_SECONDS = 5.0
DEFAULT_GENERATION_TIMEOUT_SECONDS = 30.0
DEFAULT_METADATA_TIMEOUT_SECONDS = 10.0


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using {default}")
        return default
    return value


def _get_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class TranslatorConfig:
    """Endpoints, model and timeouts used by the translation pipeline."""

    metadata_url: str = DEFAULT_METADATA_URL
    generation_url: str = DEFAULT_GENERATION_URL
    generation_model: str = DEFAULT_GENERATION_MODEL
    health_timeout: float = DEFAULT_HEALTH_TIMEOUT_SECONDS
    generation_timeout: float = DEFAULT_GENERATION_TIMEOUT_SECONDS
    metadata_timeout: float = DEFAULT_METADATA_TIMEOUT_SECONDS
    route_validation: bool = True

    @classmethod
    def from_env(cls) -> "TranslatorConfig":
        """Build a configuration from environment variables.

        Recognized variables: TRACE_METADATA_URL, GENERATION_URL,
        GENERATION_MODEL, GENERATION_HEALTH_TIMEOUT, GENERATION_TIMEOUT,
        METADATA_TIMEOUT and ROUTE_VALIDATION.
        """
        return cls(
            metadata_url=os.environ.get("TRACE_METADATA_URL", DEFAULT_METADATA_URL),
            generation_url=os.environ.get("GENERATION_URL", DEFAULT_GENERATION_URL),
            generation_model=os.environ.get(
                "GENERATION_MODEL", DEFAULT_GENERATION_MODEL
            ),
            health_timeout=_get_float(
                "GENERATION_HEALTH_TIMEOUT", DEFAULT_HEALTH_TIMEOUT_SECONDS
            ),
            generation_timeout=_get_float(
                "GENERATION_TIMEOUT", DEFAULT_GENERATION_TIMEOUT_SECONDS
            ),
            metadata_timeout=_get_float(
                "METADATA_TIMEOUT", DEFAULT_METADATA_TIMEOUT_SECONDS
            ),
            route_validation=_get_bool("ROUTE_VALIDATION", True),
        )
