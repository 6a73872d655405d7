"""Transport-level provider error classes."""

from typing import Optional


class ProviderError(RuntimeError):
    """Base exception for provider transport errors."""

    def __init__(self, message: str, *, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(ProviderError):
    """Raised when a provider endpoint cannot be reached or is not configured."""


class ProviderTimeoutError(ProviderError):
    """Raised when a provider exceeds its allotted time.

    Attributes:
        provider: Provider that timed out
        elapsed: Actual elapsed time in seconds before timeout
        timeout: Configured timeout value in seconds
    """

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        elapsed: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(message, provider=provider)
        self.elapsed = elapsed
        self.timeout = timeout
