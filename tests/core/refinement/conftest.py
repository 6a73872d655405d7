"""Shared fixtures for refinement loop tests."""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import pytest

from prompt_refinery.config import RefineryConfig
from prompt_refinery.core.llm_provider import ChatMessage, GenerationOracle, GenerationResult

ANALYSIS_MARKER = "demanding reviewer"


@dataclass
class RecordedCall:
    """One request seen by the scripted oracle."""

    system: str
    user: str
    temperature: float
    max_tokens: int

    @property
    def is_analysis(self) -> bool:
        return ANALYSIS_MARKER in self.system


class ScriptedOracle(GenerationOracle):
    """Oracle replaying canned answers.

    Generation and analysis requests draw from separate scripts; the last
    entry of a script repeats once it is exhausted.
    """

    provider_name = "scripted"

    def __init__(
        self,
        outputs: Optional[Sequence[str]] = None,
        *,
        analyses: Optional[Sequence[str]] = None,
        tokens_per_call: int = 10,
    ) -> None:
        self.outputs = list(outputs or [""])
        self.analyses = list(analyses or ['{"failures": []}'])
        self.tokens_per_call = tokens_per_call
        self.calls: List[RecordedCall] = []

    @property
    def generation_calls(self) -> List[RecordedCall]:
        return [call for call in self.calls if not call.is_analysis]

    @property
    def analysis_calls(self) -> List[RecordedCall]:
        return [call for call in self.calls if call.is_analysis]

    @staticmethod
    def _next(script: List[str], used: int) -> str:
        return script[min(used, len(script) - 1)]

    async def generate(
        self,
        messages: Sequence[ChatMessage],
        temperature: float,
        max_tokens: int,
    ) -> GenerationResult:
        call = RecordedCall(
            system=messages[0].content,
            user=messages[-1].content,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if call.is_analysis:
            text = self._next(self.analyses, len(self.analysis_calls))
        else:
            text = self._next(self.outputs, len(self.generation_calls))
        self.calls.append(call)
        return GenerationResult(text=text, tokens_used=self.tokens_per_call, model_id="scripted")


@pytest.fixture
def scripted_oracle():
    """Factory fixture building a ScriptedOracle."""

    def _factory(outputs=None, **kwargs) -> ScriptedOracle:
        return ScriptedOracle(outputs, **kwargs)

    return _factory


@pytest.fixture
def default_config() -> RefineryConfig:
    """Built-in defaults, unaffected by the environment or config files."""
    return RefineryConfig()
