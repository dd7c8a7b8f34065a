"""Exception hierarchy shared by the ingestion and retrieval pipelines.

Transient provider failures never leave the embed client; only the
exhausted or non-retryable outcomes below are surfaced to callers.
Storage failures are plain ``sqlite3.Error`` and propagate unchanged.
"""


class VectDbError(Exception):
    """Base class for all vectdb errors."""


class InvalidInputError(VectDbError):
    """Raised for unsupported, missing or unreadable input files and malformed values."""


class ProviderUnavailableError(VectDbError):
    """Raised when the embedding provider cannot be reached after all retries."""


class EmbeddingFailedError(VectDbError):
    """Raised when the provider rejected a request or returned an unusable response.

    Attributes:
        status_code (int | None): Last HTTP status reported by the provider, if any.
        body (str | None): Last response body reported by the provider, if any.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ModelNotFoundError(EmbeddingFailedError):
    """Raised when the provider does not know the requested model (HTTP 404)."""

    def __init__(self, model: str, body: str | None = None) -> None:
        super().__init__(f"Model '{model}' not found. {body or ''}".strip(), status_code=404, body=body)
        self.model = model


class EmbeddingCountMismatchError(EmbeddingFailedError):
    """Raised when the provider returned a different number of vectors than texts sent."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected {expected} embeddings but got {actual}")
        self.expected = expected
        self.actual = actual
