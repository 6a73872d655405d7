"""
Generation oracle abstraction for prompt-refinery.

The refinement loops treat the text-generation service as an opaque,
possibly-failing collaborator. Concrete adapters implement
``GenerationOracle.generate`` and translate provider failures into the
``prompt_refinery.core.errors`` hierarchy.

Example:
    from prompt_refinery.core.llm_provider import (
        ChatMessage, ChatRole, GenerationOracle, GenerationResult
    )

    class EchoOracle(GenerationOracle):
        provider_name = "echo"

        async def generate(self, messages, temperature, max_tokens):
            return GenerationResult(text=messages[-1].content, tokens_used=0, model_id="echo")
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence

from prompt_refinery.core.errors import InvalidRequestError
from prompt_refinery.core.token_management import estimate_tokens

logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================


class ChatRole(str, Enum):
    """Role of a message in a chat conversation.

    SYSTEM: System instructions/context
    USER: User input
    ASSISTANT: Model response
    """

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ChatMessage:
    """A message sent to the oracle.

    Attributes:
        role: The role of the message sender
        content: The text content of the message
    """

    role: ChatRole
    content: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API calls."""
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class GenerationResult:
    """Text returned by a generation oracle.

    Attributes:
        text: Generated text
        tokens_used: Tokens billed for the call (provider-reported or estimated)
        model_id: Model that produced the text
    """

    text: str
    tokens_used: int = 0
    model_id: str = ""


def instruction_pair(system_instruction: str, user_instruction: str) -> List[ChatMessage]:
    """Build the two-message conversation used by the refinement loops."""
    return [
        ChatMessage(role=ChatRole.SYSTEM, content=system_instruction),
        ChatMessage(role=ChatRole.USER, content=user_instruction),
    ]


# =============================================================================
# Oracle Interface
# =============================================================================


class GenerationOracle(ABC):
    """Abstract base class for text-generation oracles.

    Implementations must not retry internally unless they own the retry
    policy; whatever they raise reaches the caller of the refinement loop.

    Attributes:
        provider_name: Identifier used in errors and trace records
    """

    provider_name: str = "unknown"

    @abstractmethod
    async def generate(
        self,
        messages: Sequence[ChatMessage],
        temperature: float,
        max_tokens: int,
    ) -> GenerationResult:
        """Generate a completion for a conversation.

        Args:
            messages: Conversation to complete
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            GenerationResult with the generated text

        Raises:
            LLMError: On provider-side failures
            ProviderError: On transport failures
        """
        pass

    def count_tokens(self, text: str) -> int:
        """Count tokens in text using the package-wide estimate."""
        return estimate_tokens(text)

    def validate_request(self, messages: Sequence[ChatMessage], max_tokens: int) -> None:
        """Validate a request before sending.

        Raises:
            InvalidRequestError: If the request is invalid
        """
        if not messages:
            raise InvalidRequestError("At least one message is required", provider=self.provider_name, param="messages")
        if max_tokens < 1:
            raise InvalidRequestError("max_tokens must be positive", provider=self.provider_name, param="max_tokens")
