from fastapi import HTTPException


class TranslationError(HTTPException):
    """Base exception for trace query translation.

    Every failure of the translation pipeline is raised as a subclass of this
    error. The message is always human readable so the search form can show
    it as-is and let the user resubmit.
    """

    def __init__(self, message: str, user_facing: bool = True, status_code: int = 500):
        """Initialize the translation error.

        Args:
            message: The error message.
            user_facing: Whether the message is safe to show to the user.
            status_code: The HTTP status code to return.
        """
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.user_facing = user_facing
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class EmptyQueryError(TranslationError):
    """Raised when the natural-language query is blank."""

    def __init__(self) -> None:
        """Initialize an empty query error."""
        super().__init__(
            "Please describe the traces you are looking for.", status_code=400
        )


class BackendUnavailableError(TranslationError):
    """Raised when the generation endpoint fails its liveness check."""

    def __init__(self, url: str, reason: str = "") -> None:
        """Initialize with the health URL that was probed."""
        message = (
            f"The text generation service is not available at {url}. "
            "Please ensure Ollama is installed and running "
            "(see https://ollama.ai for installation instructions)."
        )
        super().__init__(message, status_code=503)
        self.url = url
        self.reason = reason


class MetadataFetchError(TranslationError):
    """Raised when the trace backend's service list cannot be fetched."""

    def __init__(self, reason: str = "") -> None:
        """Initialize a metadata fetch error."""
        super().__init__(
            "Failed to fetch available services. Please try again later.",
            status_code=502,
        )
        self.reason = reason


class GenerationRequestError(TranslationError):
    """Raised when the generation call fails or times out."""

    def __init__(self, reason: str) -> None:
        """Initialize with the underlying failure reason."""
        super().__init__(f"Generation request failed: {reason}", status_code=502)
        self.reason = reason


class MalformedResponseError(TranslationError):
    """Raised when no JSON object can be found in the generated text."""

    def __init__(self, raw_text: str) -> None:
        """Initialize with the offending generated text."""
        preview = raw_text.strip()
        if len(preview) > 200:
            preview = preview[:200] + "..."
        super().__init__(
            f"Could not understand the generated query: {preview!r}",
            status_code=422,
        )
        self.raw_text = raw_text


class InvalidServiceError(TranslationError):
    """Raised when the generated query names a service the backend does not know."""

    def __init__(self, service: object, valid_services: list[str]) -> None:
        """Initialize with the offending service and the known services."""
        super().__init__(
            f'Invalid service "{service}". '
            f"Available services are: {', '.join(valid_services)}",
            status_code=422,
        )
        self.service = service
        self.valid_services = valid_services
