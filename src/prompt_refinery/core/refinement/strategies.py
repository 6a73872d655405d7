"""Scoring strategies for the bounded refinement loop.

- StructuralScoringStrategy: deterministic 0-1 completeness scoring
- ReflectiveScoringStrategy: oracle-judged failure analysis with a 0-10
  heuristic quality score
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence, Union

from prompt_refinery.config import ReflectionConfig, ScoringConfig
from prompt_refinery.core.completeness import CompletenessScorer
from prompt_refinery.core.llm_provider import GenerationOracle, instruction_pair
from prompt_refinery.core.token_management import Tier, coerce_tier

from .correction import (
    InstructionPair,
    build_analysis_request,
    build_correction_request,
    build_reflective_correction,
    describe_issues,
    order_by_severity,
)
from .engine import ScoringStrategy
from .models import Assessment, FailureAnalysis
from .parsing import parse_failure_analysis

logger = logging.getLogger(__name__)

UNPARSEABLE_ANALYSIS_TYPE = "unparseable_analysis"
SEVERITY_PENALTY = 0.3

_BOLD_RE = re.compile(r"\*\*[^*\n]+\*\*")
_BULLET_RE = re.compile(r"^\s*[-•*]\s", re.MULTILINE)
_GOAL_RE = re.compile(r"objectif|goal|mission", re.IGNORECASE)
_STRUCTURE_RE = re.compile(r"format|structure", re.IGNORECASE)


def quality_score(text: str, failures: Sequence[FailureAnalysis]) -> float:
    """Heuristic 0-10 quality score for the reflective loop.

    Starts at 10, loses 0.3 per severity point reported, and earns small
    bonuses for visible structure (bold headings, paragraphs, bullets) and
    clarity (reasonable length, a stated goal, a stated format).
    """
    score = 10.0 - SEVERITY_PENALTY * sum(failure.severity for failure in failures)
    if len(_BOLD_RE.findall(text)) >= 3:
        score += 0.5
    if "\n\n" in text:
        score += 0.3
    if len(_BULLET_RE.findall(text)) >= 2:
        score += 0.4
    if 100 < len(text) < 1000:
        score += 0.5
    if _GOAL_RE.search(text):
        score += 0.3
    if _STRUCTURE_RE.search(text):
        score += 0.3
    return round(min(10.0, max(0.0, score)), 2)


class StructuralScoringStrategy(ScoringStrategy):
    """Score candidates with the structural completeness scorer.

    Converges when the completeness score reaches ``threshold``.
    """

    name = "structural"

    def __init__(
        self,
        tier: Union[Tier, str],
        *,
        threshold: float = 0.9,
        scoring: Optional[ScoringConfig] = None,
    ) -> None:
        self.tier = coerce_tier(tier)
        self.threshold = threshold
        self.scorer = CompletenessScorer(scoring)

    async def assess(self, text: str) -> Assessment:
        score = self.scorer.evaluate(text, self.tier)
        return Assessment(
            overall=score.overall,
            corrections=tuple(describe_issues(score)),
            converged=score.overall >= self.threshold,
            payload=score,
        )

    def build_correction(self, text: str, assessment: Assessment) -> InstructionPair:
        return build_correction_request(text, assessment.payload, self.tier)


class ReflectiveScoringStrategy(ScoringStrategy):
    """Ask the oracle what is wrong with a candidate and score the answer.

    An empty failure list converges immediately. An unparseable analysis is
    recorded as one generic severity-5 failure and never converges.

    Args:
        oracle: Oracle that performs the analysis
        tier: Service tier mentioned to the reviewer
        failure_context: Problems already reported by the caller
        config: Analysis temperatures, token caps and threshold
    """

    name = "reflective"

    def __init__(
        self,
        oracle: GenerationOracle,
        tier: Union[Tier, str],
        failure_context: str = "",
        *,
        config: Optional[ReflectionConfig] = None,
    ) -> None:
        self.oracle = oracle
        self.tier = coerce_tier(tier)
        self.failure_context = failure_context or ""
        self.config = config or ReflectionConfig()
        self.threshold = self.config.convergence_threshold

    async def analyze(self, text: str) -> tuple[list[FailureAnalysis], bool]:
        """Run one oracle analysis.

        Returns:
            ``(failures, parsed)`` where ``parsed`` is False when the oracle's
            answer could not be read and a generic failure stands in for it
        """
        request = build_analysis_request(text, self.failure_context, self.tier)
        result = await self.oracle.generate(
            instruction_pair(request.system, request.user),
            temperature=self.config.analysis_temperature,
            max_tokens=self.config.analysis_max_tokens,
        )
        failures = parse_failure_analysis(result.text or "")
        if failures is None:
            logger.warning(
                "Could not parse failure analysis from oracle response",
                extra={"response_chars": len(result.text or "")},
            )
            generic = FailureAnalysis(
                failure_type=UNPARSEABLE_ANALYSIS_TYPE,
                severity=5,
                recommendations=["Clarify the structure, objective and expected output of the prompt"],
            )
            return [generic], False
        return order_by_severity(failures), True

    async def assess(self, text: str) -> Assessment:
        failures, parsed = await self.analyze(text)
        overall = quality_score(text, failures)
        if not failures:
            converged = True
        else:
            converged = parsed and overall >= self.threshold
        return Assessment(
            overall=overall,
            corrections=tuple(f"{failure.failure_type} (severity {failure.severity})" for failure in failures),
            converged=converged,
            payload=tuple(failures),
        )

    def build_correction(self, text: str, assessment: Assessment) -> InstructionPair:
        return build_reflective_correction(text, assessment.payload)

    def describe(self, iteration_number: int, assessment: Assessment) -> str:
        if not assessment.payload:
            return f"Iteration {iteration_number}: no failures reported (quality {assessment.overall:.2f}/10)"
        worst = assessment.payload[0]
        return (
            f"Iteration {iteration_number}: {len(assessment.payload)} failure(s), "
            f"worst {worst.failure_type} (severity {worst.severity}), quality {assessment.overall:.2f}/10"
        )
