"""Tests for the OpenAI-compatible oracle adapter.

Tests cover:
1. Request shape (endpoint, payload, authorization header)
2. Response parsing and token accounting
3. HTTP status to error mapping
4. Transport failures (timeouts, connection errors)
"""

import json

import httpx
import pytest

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
from prompt_refinery.core.llm_provider import instruction_pair
from prompt_refinery.core.providers import OpenAICompatibleOracle

MESSAGES = instruction_pair("You write prompts.", "A prompt for a sales email.")


def completion(content="**RÔLE**: expert.", **extra):
    body = {"model": "served-model", "choices": [{"message": {"role": "assistant", "content": content}}]}
    body.update(extra)
    return body


def make_oracle(handler, **kwargs) -> OpenAICompatibleOracle:
    kwargs.setdefault("base_url", "https://oracle.test/v1/")
    kwargs.setdefault("model", "test-model")
    return OpenAICompatibleOracle(transport=httpx.MockTransport(handler), **kwargs)


# =============================================================================
# Test: Requests and responses
# =============================================================================


class TestGenerate:
    """Tests for successful generations."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion(usage={"total_tokens": 42}))

        oracle = make_oracle(handler, api_key="sk-test")
        result = await oracle.generate(MESSAGES, temperature=0.3, max_tokens=600)

        assert seen["url"] == "https://oracle.test/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"] == {
            "model": "test-model",
            "messages": [
                {"role": "system", "content": "You write prompts."},
                {"role": "user", "content": "A prompt for a sales email."},
            ],
            "temperature": 0.3,
            "max_tokens": 600,
        }
        assert result.text == "**RÔLE**: expert."
        assert result.tokens_used == 42
        assert result.model_id == "served-model"

    @pytest.mark.asyncio
    async def test_no_api_key_no_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=completion())

        await make_oracle(handler).generate(MESSAGES, 0.7, 100)
        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_missing_usage_is_estimated(self):
        oracle = make_oracle(lambda request: httpx.Response(200, json=completion("abcdefgh")))
        result = await oracle.generate(MESSAGES, 0.7, 100)
        expected = sum(oracle.count_tokens(m.content) for m in MESSAGES) + oracle.count_tokens("abcdefgh")
        assert result.tokens_used == expected

    @pytest.mark.asyncio
    async def test_null_content_is_empty_text(self):
        oracle = make_oracle(lambda request: httpx.Response(200, json=completion(None)))
        assert (await oracle.generate(MESSAGES, 0.7, 100)).text == ""

    @pytest.mark.asyncio
    async def test_model_falls_back_to_configured(self):
        body = {"choices": [{"message": {"content": "ok."}}]}
        oracle = make_oracle(lambda request: httpx.Response(200, json=body))
        assert (await oracle.generate(MESSAGES, 0.7, 100)).model_id == "test-model"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"choices": []}, {"unexpected": True}, {"choices": [{"message": {"content": ["parts"]}}]}],
    )
    async def test_malformed_payload(self, body):
        oracle = make_oracle(lambda request: httpx.Response(200, json=body))
        with pytest.raises(OracleResponseError):
            await oracle.generate(MESSAGES, 0.7, 100)

    @pytest.mark.asyncio
    async def test_non_json_payload(self):
        oracle = make_oracle(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(OracleResponseError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 100)
        assert exc_info.value.payload_excerpt == "<html>oops</html>"


# =============================================================================
# Test: Error mapping
# =============================================================================


class TestErrorMapping:
    """Tests for HTTP status translation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_authentication(self, status):
        oracle = make_oracle(lambda request: httpx.Response(status, json={"error": {"message": "bad key"}}))
        with pytest.raises(AuthenticationError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 100)
        assert exc_info.value.status_code == status
        assert "bad key" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_model_not_found(self):
        oracle = make_oracle(lambda request: httpx.Response(404, json={"error": "no such model"}))
        with pytest.raises(ModelNotFoundError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 100)
        assert exc_info.value.model == "test-model"

    @pytest.mark.asyncio
    async def test_rate_limit_with_retry_after(self):
        oracle = make_oracle(
            lambda request: httpx.Response(429, headers={"Retry-After": "12"}, json={"message": "slow down"})
        )
        with pytest.raises(RateLimitError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 100)
        assert exc_info.value.retry_after == 12.0
        assert "slow down" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_rate_limit_without_retry_after(self):
        oracle = make_oracle(lambda request: httpx.Response(429, text="busy"))
        with pytest.raises(RateLimitError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 100)
        assert exc_info.value.retry_after is None

    @pytest.mark.asyncio
    async def test_bad_request(self):
        oracle = make_oracle(lambda request: httpx.Response(400, json={"error": {"message": "max_tokens too large"}}))
        with pytest.raises(InvalidRequestError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 100)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_server_error_is_retryable(self):
        oracle = make_oracle(lambda request: httpx.Response(503, text="maintenance"))
        with pytest.raises(LLMError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 100)
        assert exc_info.value.retryable is True
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_content_filter_finish_reason(self):
        body = {"choices": [{"message": {"role": "assistant", "content": None}, "finish_reason": "content_filter"}]}
        oracle = make_oracle(lambda request: httpx.Response(200, json=body))
        with pytest.raises(ContentFilterError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 100)
        assert exc_info.value.retryable is False
        assert exc_info.value.provider == "openai_compatible"


# =============================================================================
# Test: Transport failures and validation
# =============================================================================


class TestTransport:
    """Tests for network failures and request validation."""

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        oracle = make_oracle(handler, timeout=5.0)
        with pytest.raises(ProviderTimeoutError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 100)
        assert exc_info.value.timeout == 5.0
        assert exc_info.value.provider == "openai_compatible"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderUnavailableError):
            await make_oracle(handler).generate(MESSAGES, 0.7, 100)

    @pytest.mark.asyncio
    async def test_empty_messages_rejected_before_sending(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=completion())

        with pytest.raises(InvalidRequestError):
            await make_oracle(handler).generate([], 0.7, 100)
        assert calls == []

    @pytest.mark.asyncio
    async def test_non_positive_max_tokens_rejected(self):
        oracle = make_oracle(lambda request: httpx.Response(200, json=completion()))
        with pytest.raises(InvalidRequestError) as exc_info:
            await oracle.generate(MESSAGES, 0.7, 0)
        assert exc_info.value.param == "max_tokens"


class TestConstruction:
    """Tests for building the adapter."""

    def test_from_config(self):
        config = OracleConfig(base_url="https://gateway.local/v1", model="local-model", api_key="k", timeout=9.0)
        oracle = OpenAICompatibleOracle.from_config(config)
        assert oracle.model == "local-model"
        assert oracle.provider_name == "openai_compatible"

    def test_model_required(self):
        with pytest.raises(ValueError):
            OpenAICompatibleOracle(model="")
