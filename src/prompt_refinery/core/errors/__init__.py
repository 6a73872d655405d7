"""Centralized error classes for prompt-refinery.

Oracle errors (``LLMError`` family) and provider transport errors
(``ProviderError`` family) are the only exceptions the core lets through;
non-convergence and over-budget compression are reported as data.
"""

from prompt_refinery.core.errors.llm import (
    AuthenticationError,
    ContentFilterError,
    InvalidRequestError,
    LLMError,
    ModelNotFoundError,
    OracleResponseError,
    RateLimitError,
)
from prompt_refinery.core.errors.provider import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)

# Exceptions a caller should treat as an oracle failure.
ORACLE_ERRORS = (LLMError, ProviderError)

__all__ = [
    "ORACLE_ERRORS",
    # LLM
    "AuthenticationError",
    "ContentFilterError",
    "InvalidRequestError",
    "LLMError",
    "ModelNotFoundError",
    "OracleResponseError",
    "RateLimitError",
    # Provider
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
]
