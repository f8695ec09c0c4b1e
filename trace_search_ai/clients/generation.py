"""Async client for the local text-generation endpoint (Ollama API)."""

import logging

import httpx

from ..config import (
    DEFAULT_GENERATION_MODEL,
    DEFAULT_GENERATION_TIMEOUT_SECONDS,
    DEFAULT_GENERATION_URL,
    DEFAULT_HEALTH_TIMEOUT_SECONDS,
)
from ..exceptions import BackendUnavailableError, GenerationRequestError

logger = logging.getLogger(__name__)


class GenerationClient:
    """Liveness probe and non-streaming completion against a generation endpoint.

    Both calls carry their own hard timeout. The liveness probe is short so a
    stopped service is reported quickly; the completion timeout is long enough
    for a full model inference.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_GENERATION_URL,
        model: str = DEFAULT_GENERATION_MODEL,
        health_timeout: float = DEFAULT_HEALTH_TIMEOUT_SECONDS,
        generation_timeout: float = DEFAULT_GENERATION_TIMEOUT_SECONDS,
    ) -> None:
        base_url = base_url.rstrip("/")
        self.health_url = f"{base_url}/api/version"
        self.generate_url = f"{base_url}/api/generate"
        self.model = model
        self.health_timeout = health_timeout
        self.generation_timeout = generation_timeout

    async def check_health(self) -> None:
        """Probe the liveness endpoint.

        Raises:
            BackendUnavailableError: On timeout, connection failure or a
                non-2xx status.
        """
        try:
            async with httpx.AsyncClient(timeout=self.health_timeout) as client:
                resp = await client.get(self.health_url)
        except httpx.HTTPError as e:
            raise BackendUnavailableError(self.health_url, repr(e)) from e

        if not 200 <= resp.status_code < 300:
            raise BackendUnavailableError(self.health_url, f"HTTP {resp.status_code}")

    async def generate(self, prompt: str) -> str:
        """Submit a prompt and return the raw generated text.

        Raises:
            GenerationRequestError: On timeout, transport failure, a non-2xx
                status or a body without a ``response`` string.
        """
        body = {"model": self.model, "prompt": prompt, "stream": False}
        try:
            async with httpx.AsyncClient(timeout=self.generation_timeout) as client:
                resp = await client.post(self.generate_url, json=body)
        except httpx.TimeoutException as e:
            raise GenerationRequestError(
                f"timed out after {self.generation_timeout:g}s"
            ) from e
        except httpx.HTTPError as e:
            raise GenerationRequestError(str(e) or type(e).__name__) from e

        if not 200 <= resp.status_code < 300:
            logger.debug(
                f"Generation returned HTTP {resp.status_code}: {resp.text[:500]}"
            )
            raise GenerationRequestError(f"HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise GenerationRequestError("response body is not JSON") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise GenerationRequestError("response body has no generated text")

        logger.debug(f"Raw generation output ({len(text)} chars): {text[:500]}")
        return text
