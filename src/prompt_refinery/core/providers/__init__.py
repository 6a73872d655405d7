"""Concrete generation oracle adapters."""

from prompt_refinery.core.providers.openai_compatible import (
    CHAT_COMPLETIONS_ENDPOINT,
    OpenAICompatibleOracle,
)

__all__ = [
    "CHAT_COMPLETIONS_ENDPOINT",
    "OpenAICompatibleOracle",
]
