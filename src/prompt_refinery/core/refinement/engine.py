"""Generic bounded refinement loop.

Both orchestrators share one control skeleton::

    [GENERATE] -> ASSESS -> converged? -> DONE
                    |
                    +-> cap reached? -> DONE (degraded, best iteration kept)
                    |
                    +-> BUILD_CORRECTION -> GENERATE -> ASSESS ...

What "assess" means is delegated to a ``ScoringStrategy``: deterministic
structural scoring, or oracle-judged failure analysis. The loop never
retries or swallows oracle errors; trace-sink failures are swallowed by
``emit_trace``.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Optional

from prompt_refinery.core.llm_provider import GenerationOracle, instruction_pair
from prompt_refinery.core.observability import TraceEvent, TraceEventType, TraceSink, emit_trace

from .correction import InstructionPair
from .models import DEGRADED_NOTE_PREFIX, Assessment, LoopOutcome, RefinementIteration

logger = logging.getLogger(__name__)


class ScoringStrategy(ABC):
    """Pluggable assessment for the bounded loop.

    Attributes:
        name: Identifier used in logs and trace records
        threshold: Score at or above which a text counts as converged
    """

    name: str = "strategy"
    threshold: float = 0.0

    @abstractmethod
    async def assess(self, text: str) -> Assessment:
        """Score ``text`` and list what is wrong with it."""

    @abstractmethod
    def build_correction(self, text: str, assessment: Assessment) -> InstructionPair:
        """Build the instruction asking the oracle to fix ``assessment``'s defects."""

    def describe(self, iteration_number: int, assessment: Assessment) -> str:
        """One improvement-log line for an assessed iteration."""
        note = f"Iteration {iteration_number}: score {assessment.overall:.2f}"
        if assessment.corrections:
            note += f"; outstanding: {'; '.join(assessment.corrections)}"
        return note


def render_instruction(request: InstructionPair) -> str:
    """Flatten an instruction pair for the iteration record."""
    return f"[system]\n{request.system}\n\n[user]\n{request.user}"


def _best_index(assessments: list[Assessment]) -> int:
    """Index of the highest score; the earliest wins ties."""
    best = 0
    for index, assessment in enumerate(assessments):
        if assessment.overall > assessments[best].overall:
            best = index
    return best


class BoundedRefinementLoop:
    """Score -> correct -> retry loop capped at ``max_iterations`` assessments.

    Example:
        loop = BoundedRefinementLoop(
            oracle,
            StructuralScoringStrategy(Tier.BASIC),
            max_iterations=3,
            max_tokens=600,
        )
        outcome = await loop.run(initial_request=InstructionPair(system, user))

    Args:
        oracle: Generation oracle used for initial and corrective generations
        strategy: Scoring strategy
        max_iterations: Assessment cap (one generation per assessment when
            starting from a request)
        max_tokens: Token budget passed to every generation
        generation_temperature: Temperature for the initial generation
        correction_temperature: Temperature for corrective generations
        trace_sink: Optional fire-and-forget observability hook
        postprocess: Optional rewrite applied to every generated text
        loop_name: Name recorded in trace records
    """

    def __init__(
        self,
        oracle: GenerationOracle,
        strategy: ScoringStrategy,
        *,
        max_iterations: int = 3,
        max_tokens: int = 1000,
        generation_temperature: float = 0.7,
        correction_temperature: float = 0.3,
        trace_sink: Optional[TraceSink] = None,
        postprocess: Optional[Callable[[str], str]] = None,
        loop_name: str = "refinement",
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.oracle = oracle
        self.strategy = strategy
        self.max_iterations = max_iterations
        self.max_tokens = max_tokens
        self.generation_temperature = generation_temperature
        self.correction_temperature = correction_temperature
        self.trace_sink = trace_sink
        self.postprocess = postprocess
        self.loop_name = loop_name
        self._tokens_used = 0

    async def _generate(self, request: InstructionPair, temperature: float) -> str:
        result = await self.oracle.generate(
            instruction_pair(request.system, request.user),
            temperature=temperature,
            max_tokens=self.max_tokens,
        )
        self._tokens_used += result.tokens_used
        text = result.text or ""
        return self.postprocess(text) if self.postprocess else text

    async def run(
        self,
        *,
        initial_request: Optional[InstructionPair] = None,
        initial_text: Optional[str] = None,
    ) -> LoopOutcome:
        """Run the loop from an instruction pair or from caller-supplied text.

        Raises:
            ValueError: If neither or both starting points are given
            LLMError, ProviderError: Propagated unchanged from the oracle
        """
        if (initial_request is None) == (initial_text is None):
            raise ValueError("Provide exactly one of initial_request or initial_text")

        trace_id = uuid.uuid4().hex
        self._tokens_used = 0
        if initial_request is not None:
            prompt_sent: Optional[str] = render_instruction(initial_request)
            text = await self._generate(initial_request, self.generation_temperature)
        else:
            prompt_sent = None
            text = initial_text or ""

        iterations: list[RefinementIteration] = []
        assessments: list[Assessment] = []
        improvement_log: list[str] = []
        applied: tuple[str, ...] = ()
        converged = False

        for number in range(1, self.max_iterations + 1):
            assessment = await self.strategy.assess(text)
            iterations.append(
                RefinementIteration(
                    iteration_number=number,
                    prompt_sent_to_oracle=prompt_sent,
                    oracle_output=text,
                    score=assessment.overall,
                    applied_corrections=applied,
                )
            )
            assessments.append(assessment)
            improvement_log.append(self.strategy.describe(number, assessment))
            logger.debug(
                f"{self.loop_name} iteration {number}: score {assessment.overall:.3f}",
                extra={"trace_id": trace_id, "converged": assessment.converged},
            )
            await emit_trace(
                self.trace_sink,
                TraceEvent(
                    event_type=TraceEventType.ITERATION,
                    trace_id=trace_id,
                    loop=self.loop_name,
                    details={
                        "iteration": number,
                        "score": assessment.overall,
                        "threshold": self.strategy.threshold,
                        "corrections": list(assessment.corrections),
                        "output_chars": len(text),
                        "tokens_used": self._tokens_used,
                    },
                ),
            )

            if assessment.converged:
                converged = True
                break
            if number == self.max_iterations:
                break

            request = self.strategy.build_correction(text, assessment)
            prompt_sent = render_instruction(request)
            applied = request.corrections
            text = await self._generate(request, self.correction_temperature)

        best = len(assessments) - 1 if converged else _best_index(assessments)
        if not converged:
            improvement_log.append(
                f"{DEGRADED_NOTE_PREFIX}: threshold {self.strategy.threshold} not reached after "
                f"{len(iterations)} iteration(s); returning iteration {best + 1} "
                f"(score {assessments[best].overall:.2f})"
            )
            logger.info(
                f"{self.loop_name} did not converge, keeping iteration {best + 1}",
                extra={"trace_id": trace_id, "iterations": len(iterations)},
            )

        await emit_trace(
            self.trace_sink,
            TraceEvent(
                event_type=TraceEventType.RUN_COMPLETED,
                trace_id=trace_id,
                loop=self.loop_name,
                details={
                    "iterations": len(iterations),
                    "converged": converged,
                    "selected_iteration": best + 1,
                    "final_score": assessments[best].overall,
                    "tokens_used": self._tokens_used,
                },
            ),
        )

        return LoopOutcome(
            final_text=iterations[best].oracle_output,
            final_assessment=assessments[best],
            iterations=tuple(iterations),
            assessments=tuple(assessments),
            converged=converged,
            improvement_log=tuple(improvement_log),
            trace_id=trace_id,
        )
