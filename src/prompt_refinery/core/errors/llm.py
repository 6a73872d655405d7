"""Generation oracle error classes.

These are raised by oracle adapters and propagate unchanged through the
compression and refinement layers; the core never retries them.
"""

from typing import Optional


class LLMError(Exception):
    """Base exception for generation oracle operations.

    Attributes:
        message: Human-readable error description
        provider: Name of the provider that raised the error
        retryable: Whether the operation can be retried
        status_code: HTTP status code if applicable
    """

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        retryable: bool = False,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.retryable = retryable
        self.status_code = status_code


class RateLimitError(LLMError):
    """Rate limit or quota exceeded.

    Attributes:
        retry_after: Seconds to wait before retrying
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        provider: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, provider=provider, retryable=True, status_code=429)
        self.retry_after = retry_after


class AuthenticationError(LLMError):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication failed",
        *,
        provider: Optional[str] = None,
        status_code: int = 401,
    ):
        super().__init__(message, provider=provider, retryable=False, status_code=status_code)


class InvalidRequestError(LLMError):
    """Invalid request (bad parameters, oversized prompt, etc.)."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        param: Optional[str] = None,
        status_code: int = 400,
    ):
        super().__init__(message, provider=provider, retryable=False, status_code=status_code)
        self.param = param


class ModelNotFoundError(LLMError):
    """Requested model not found or not accessible."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ):
        super().__init__(message, provider=provider, retryable=False, status_code=404)
        self.model = model


class ContentFilterError(LLMError):
    """Content was blocked by the provider's content policy."""

    def __init__(
        self,
        message: str = "Content filtered",
        *,
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider, retryable=False, status_code=400)


class OracleResponseError(LLMError):
    """The oracle answered but its payload could not be interpreted."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        payload_excerpt: Optional[str] = None,
    ):
        super().__init__(message, provider=provider, retryable=True)
        self.payload_excerpt = payload_excerpt
