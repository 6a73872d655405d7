"""OpenAI-compatible chat completions oracle.

Speaks the ``POST {base_url}/chat/completions`` protocol shared by OpenAI
and most self-hosted gateways. No retries happen here: every failure is
translated into the ``prompt_refinery.core.errors`` hierarchy and raised.

Error mapping:
    - 401/403: AuthenticationError
    - 404: ModelNotFoundError
    - 429: RateLimitError (honours Retry-After)
    - other 4xx: InvalidRequestError
    - 5xx: LLMError (retryable)
    - timeouts: ProviderTimeoutError
    - connection failures: ProviderUnavailableError
    - finish_reason "content_filter": ContentFilterError
    - malformed success payloads: OracleResponseError
"""

import logging
import time
from typing import Any, Optional, Sequence

import httpx

from prompt_refinery.config import OracleConfig
from prompt_refinery.core.errors import (
    AuthenticationError,
    ContentFilterError,
    InvalidRequestError,
    LLMError,
    ModelNotFoundError,
    OracleResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitError,
)
from prompt_refinery.core.llm_provider import ChatMessage, GenerationOracle, GenerationResult

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_ENDPOINT = "/chat/completions"
PROVIDER_NAME = "openai_compatible"


class OpenAICompatibleOracle(GenerationOracle):
    """Generation oracle backed by an OpenAI-compatible HTTP endpoint.

    Example:
        oracle = OpenAICompatibleOracle.from_config(get_config().oracle)
        result = await oracle.generate(instruction_pair(system, user), 0.7, 600)

    Args:
        base_url: API base URL (``/chat/completions`` is appended)
        model: Model identifier sent with every request
        api_key: Bearer token; omitted from requests when None
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    provider_name = PROVIDER_NAME

    def __init__(
        self,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not model:
            raise ValueError("An oracle model identifier is required")
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: OracleConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "OpenAICompatibleOracle":
        """Build an oracle from the ``[oracle]`` configuration table."""
        return cls(
            base_url=config.base_url,
            model=config.model,
            api_key=config.api_key,
            timeout=config.timeout,
            transport=transport,
        )

    @property
    def model(self) -> str:
        return self._model

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def generate(
        self,
        messages: Sequence[ChatMessage],
        temperature: float,
        max_tokens: int,
    ) -> GenerationResult:
        self.validate_request(messages, max_tokens)
        url = f"{self._base_url}{CHAT_COMPLETIONS_ENDPOINT}"
        payload = {
            "model": self._model,
            "messages": [message.to_dict() for message in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            elapsed = time.perf_counter() - start
            raise ProviderTimeoutError(
                f"Oracle request timed out after {elapsed:.1f}s",
                provider=self.provider_name,
                elapsed=elapsed,
                timeout=self._timeout,
            ) from e
        except httpx.RequestError as e:
            raise ProviderUnavailableError(
                f"Oracle endpoint unreachable: {e}",
                provider=self.provider_name,
            ) from e

        self._raise_for_status(response)
        result = self._parse_response(response, messages)
        logger.debug(
            f"Oracle generated {len(result.text)} chars",
            extra={
                "model": result.model_id,
                "tokens_used": result.tokens_used,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return result

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        error_msg = self._extract_error_message(response)
        if status in (401, 403):
            raise AuthenticationError(
                f"Oracle rejected credentials: {error_msg}",
                provider=self.provider_name,
                status_code=status,
            )
        if status == 404:
            raise ModelNotFoundError(
                f"Model or endpoint not found: {error_msg}",
                provider=self.provider_name,
                model=self._model,
            )
        if status == 429:
            raise RateLimitError(
                f"Oracle rate limit exceeded: {error_msg}",
                provider=self.provider_name,
                retry_after=self._parse_retry_after(response),
            )
        if status < 500:
            raise InvalidRequestError(
                f"Oracle rejected request ({status}): {error_msg}",
                provider=self.provider_name,
                status_code=status,
            )
        raise LLMError(
            f"Oracle server error {status}: {error_msg}",
            provider=self.provider_name,
            retryable=True,
            status_code=status,
        )

    def _parse_retry_after(self, response: httpx.Response) -> Optional[float]:
        """Parse the Retry-After header, or None if absent or not numeric."""
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return None

    def _extract_error_message(self, response: httpx.Response) -> str:
        """Pull a readable message out of an error response body."""
        try:
            data = response.json()
        except ValueError:
            return response.text[:200] if response.text else "Unknown error"
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict):
            return str(error.get("message") or error)[:200]
        if error:
            return str(error)[:200]
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])[:200]
        return response.text[:200] or "Unknown error"

    def _parse_response(self, response: httpx.Response, messages: Sequence[ChatMessage]) -> GenerationResult:
        try:
            data: Any = response.json()
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise OracleResponseError(
                f"Malformed completion payload: {e}",
                provider=self.provider_name,
                payload_excerpt=response.text[:200],
            ) from e
        if choice.get("finish_reason") == "content_filter":
            raise ContentFilterError(
                "Completion blocked by the provider's content filter",
                provider=self.provider_name,
            )
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise OracleResponseError(
                "Completion content is not text",
                provider=self.provider_name,
                payload_excerpt=response.text[:200],
            )

        usage = data.get("usage") or {}
        tokens_used = usage.get("total_tokens") if isinstance(usage, dict) else None
        if not isinstance(tokens_used, int):
            prompt_tokens = sum(self.count_tokens(message.content) for message in messages)
            tokens_used = prompt_tokens + self.count_tokens(content)
        return GenerationResult(
            text=content,
            tokens_used=tokens_used,
            model_id=str(data.get("model") or self._model),
        )
