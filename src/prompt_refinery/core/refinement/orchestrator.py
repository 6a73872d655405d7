"""Refinement orchestrators.

``optimize_until_complete`` generates a prompt from a system/user
instruction pair and repairs it until it is structurally complete.
``optimize_with_reflection`` starts from an existing prompt and repairs
the weaknesses the oracle itself reports.

Both run the same ``BoundedRefinementLoop`` with a different
``ScoringStrategy``; both return the best iteration (not merely the last)
when the iteration cap is reached first.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Optional, Union

from prompt_refinery.config import RefineryConfig, get_config, log_call, timed
from prompt_refinery.core.compression import compress_to_budget
from prompt_refinery.core.llm_provider import GenerationOracle
from prompt_refinery.core.observability import TraceSink
from prompt_refinery.core.token_management import Tier, coerce_tier

from .correction import InstructionPair
from .engine import BoundedRefinementLoop
from .models import FailureAnalysis, LoopOutcome, RefinementResult, ReflectiveResult
from .strategies import ReflectiveScoringStrategy, StructuralScoringStrategy

logger = logging.getLogger(__name__)


def _budget_postprocess(tier: Tier, token_budget: int, text: str) -> str:
    return compress_to_budget(text, tier, token_budget).compressed_text


def _applied_failures(outcome: LoopOutcome) -> list[FailureAnalysis]:
    """Failures of every assessment that was followed by a correction."""
    applied: list[FailureAnalysis] = []
    for assessment in outcome.assessments[: len(outcome.iterations) - 1]:
        applied.extend(assessment.payload or ())
    return applied


def _dedupe(items: list[str]) -> tuple[str, ...]:
    seen: dict[str, str] = {}
    for item in items:
        key = " ".join(item.lower().split())
        if key and key not in seen:
            seen[key] = item
    return tuple(seen.values())


def summarize_reflection(outcome: LoopOutcome, improvements: tuple[str, ...]) -> str:
    """Short narrative of a reflective run."""
    reported: dict[str, int] = {}
    for assessment in outcome.assessments:
        for failure in assessment.payload or ():
            reported[failure.failure_type] = max(failure.severity, reported.get(failure.failure_type, 0))
    ranked = sorted(reported, key=lambda name: reported[name], reverse=True)

    parts = [f"Reflective analysis ran {len(outcome.iterations)} iteration(s)."]
    if ranked:
        parts.append(f"Main weaknesses: {', '.join(ranked[:3])}.")
    else:
        parts.append("No weaknesses were reported.")
    if improvements:
        parts.append(f"Applied {len(improvements)} distinct recommendation(s).")
    status = "converged" if outcome.converged else "did not converge"
    parts.append(f"Final quality {outcome.final_assessment.overall:.1f}/10, {status}.")
    return " ".join(parts)


class RefinementOrchestrator:
    """Runs both refinement loops against one oracle.

    Example:
        orchestrator = RefinementOrchestrator(oracle, trace_sink=LoggingTraceSink())
        result = await orchestrator.optimize_until_complete(system, user, 600, "basic")
        print(result.final_score.overall, result.improvement_log)

    Args:
        oracle: Generation oracle
        trace_sink: Optional observability hook
        config: Engine configuration (defaults to the global one)
    """

    def __init__(
        self,
        oracle: GenerationOracle,
        *,
        trace_sink: Optional[TraceSink] = None,
        config: Optional[RefineryConfig] = None,
    ) -> None:
        self.oracle = oracle
        self.trace_sink = trace_sink
        self.config = config or get_config()

    @log_call()
    @timed("refinement.until_complete")
    async def optimize_until_complete(
        self,
        system_instruction: str,
        user_instruction: str,
        token_budget: int,
        tier: Union[Tier, str],
    ) -> RefinementResult:
        """Generate, score and correct until the prompt is structurally complete.

        Args:
            system_instruction: System message for the first generation
            user_instruction: User message for the first generation
            token_budget: Max tokens per generation
            tier: Tier whose required sections apply

        Returns:
            RefinementResult holding the converged or best-scoring output

        Raises:
            ValueError: If ``token_budget`` is not positive
            LLMError, ProviderError: Propagated unchanged from the oracle
        """
        if token_budget < 1:
            raise ValueError(f"token_budget must be positive, got {token_budget}")
        tier = coerce_tier(tier)
        settings = self.config.refinement
        postprocess = partial(_budget_postprocess, tier, token_budget) if settings.enforce_budget else None

        loop = BoundedRefinementLoop(
            self.oracle,
            StructuralScoringStrategy(
                tier,
                threshold=settings.completeness_threshold,
                scoring=self.config.scoring,
            ),
            max_iterations=settings.max_iterations,
            max_tokens=token_budget,
            generation_temperature=settings.generation_temperature,
            correction_temperature=settings.correction_temperature,
            trace_sink=self.trace_sink,
            postprocess=postprocess,
            loop_name="until_complete",
        )
        outcome = await loop.run(initial_request=InstructionPair(system_instruction, user_instruction))

        logger.info(
            f"Completeness refinement finished after {len(outcome.iterations)} iteration(s)",
            extra={
                "trace_id": outcome.trace_id,
                "converged": outcome.converged,
                "score": outcome.final_assessment.overall,
            },
        )
        return RefinementResult(
            final_text=outcome.final_text,
            iteration_count=len(outcome.iterations),
            final_score=outcome.final_assessment.payload,
            improvement_log=outcome.improvement_log,
            iterations=outcome.iterations,
            converged=outcome.converged,
            trace_id=outcome.trace_id,
        )

    @log_call()
    @timed("refinement.reflection")
    async def optimize_with_reflection(
        self,
        initial_text: str,
        failure_context: str,
        tier: Union[Tier, str],
    ) -> ReflectiveResult:
        """Let the oracle critique ``initial_text`` and apply its fixes.

        Args:
            initial_text: Prompt to improve (assessed as iteration 1)
            failure_context: Problems the caller has already observed
            tier: Service tier

        Returns:
            ReflectiveResult holding the converged or best-scoring output

        Raises:
            LLMError, ProviderError: Propagated unchanged from the oracle
        """
        tier = coerce_tier(tier)
        settings = self.config.reflection
        loop = BoundedRefinementLoop(
            self.oracle,
            ReflectiveScoringStrategy(self.oracle, tier, failure_context, config=settings),
            max_iterations=settings.max_iterations,
            max_tokens=settings.apply_max_tokens,
            correction_temperature=settings.apply_temperature,
            trace_sink=self.trace_sink,
            loop_name="reflection",
        )
        outcome = await loop.run(initial_text=initial_text or "")

        improvements = _dedupe(
            [item for failure in _applied_failures(outcome) for item in failure.recommendations]
        )
        logger.info(
            f"Reflective refinement finished after {len(outcome.iterations)} iteration(s)",
            extra={
                "trace_id": outcome.trace_id,
                "converged": outcome.converged,
                "score": outcome.final_assessment.overall,
            },
        )
        return ReflectiveResult(
            final_text=outcome.final_text,
            iterations=outcome.iterations,
            total_improvements=improvements,
            convergence_score=outcome.final_assessment.overall,
            reflective_insights=summarize_reflection(outcome, improvements),
            improvement_log=outcome.improvement_log,
            converged=outcome.converged,
            trace_id=outcome.trace_id,
            failures=tuple(outcome.final_assessment.payload or ()),
        )


async def optimize_until_complete(
    oracle: GenerationOracle,
    system_instruction: str,
    user_instruction: str,
    token_budget: int,
    tier: Union[Tier, str],
    *,
    trace_sink: Optional[TraceSink] = None,
    config: Optional[RefineryConfig] = None,
) -> RefinementResult:
    """Functional form of ``RefinementOrchestrator.optimize_until_complete``."""
    orchestrator = RefinementOrchestrator(oracle, trace_sink=trace_sink, config=config)
    return await orchestrator.optimize_until_complete(system_instruction, user_instruction, token_budget, tier)


async def optimize_with_reflection(
    oracle: GenerationOracle,
    initial_text: str,
    failure_context: str,
    tier: Union[Tier, str],
    *,
    trace_sink: Optional[TraceSink] = None,
    config: Optional[RefineryConfig] = None,
) -> ReflectiveResult:
    """Functional form of ``RefinementOrchestrator.optimize_with_reflection``."""
    orchestrator = RefinementOrchestrator(oracle, trace_sink=trace_sink, config=config)
    return await orchestrator.optimize_with_reflection(initial_text, failure_context, tier)
