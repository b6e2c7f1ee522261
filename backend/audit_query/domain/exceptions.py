"""Domain-specific exceptions: framework-independent."""

from typing import Any


class ChatProviderError(Exception):
    """Raised when a chat provider returns an error.

    Provider-agnostic; carries the HTTP status reported by the provider.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


class EmbeddingProviderError(Exception):
    """Raised when the embedding backend rejects or fails a request."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Embedding API error {status_code}: {message}")


class PatternValidationError(Exception):
    """Raised when a query pattern is malformed or collides with a registered one."""

    def __init__(self, pattern_id: str, errors: list[str], conflicts: list[str] | None = None):
        self.pattern_id = pattern_id
        self.errors = errors
        self.conflicts = conflicts or []
        parts = list(errors)
        if self.conflicts:
            parts.append(f"conflicts with {', '.join(self.conflicts)}")
        super().__init__(f"Invalid pattern '{pattern_id}': {'; '.join(parts)}")


class RecordStoreError(Exception):
    """Raised when the structured record store fails a query.

    ``partial_results`` holds records fetched by earlier sub-queries (e.g.
    other department variants) before the failure.
    """

    def __init__(self, message: str, partial_results: list[Any] | None = None):
        self.message = message
        self.partial_results = partial_results or []
        super().__init__(message)


class AIServiceError(Exception):
    """Raised when the AI analysis call fails for any reason."""

    def __init__(self, message: str, *, provider: str = "", status_code: int | None = None):
        self.message = message
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)
