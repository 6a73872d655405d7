"""Models for the refinement loops.

``FailureAnalysis`` is a pydantic model because it is parsed from oracle
output; everything else is an immutable dataclass built by the loops.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from prompt_refinery.core.completeness import CompletenessScore

DEGRADED_NOTE_PREFIX = "DEGRADED"


class FailureAnalysis(BaseModel):
    """One weakness reported by the oracle during reflective analysis."""

    failure_type: str = Field(..., alias="failureType", description="Short category of the weakness")
    severity: int = Field(5, description="Severity from 1 (cosmetic) to 10 (blocking)")
    recommendations: List[str] = Field(default_factory=list, description="Concrete fixes, most useful first")

    model_config = {"populate_by_name": True}

    @field_validator("failure_type")
    @classmethod
    def validate_failure_type(cls, value: str) -> str:
        normalized = str(value).strip()
        return normalized or "unspecified"

    @field_validator("severity", mode="before")
    @classmethod
    def clamp_severity(cls, value: Any) -> int:
        try:
            severity = round(float(value))
        except (TypeError, ValueError):
            return 5
        return min(10, max(1, severity))

    @field_validator("recommendations", mode="before")
    @classmethod
    def normalize_recommendations(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(item).strip() for item in value if str(item).strip()]


@dataclass(frozen=True)
class Assessment:
    """What a scoring strategy concluded about one candidate text.

    Attributes:
        overall: Strategy-specific score (0-1 structural, 0-10 reflective)
        corrections: Human-readable defects to fix, in priority order
        converged: Whether the loop may stop here
        payload: Strategy-specific detail (CompletenessScore, failure list)
    """

    overall: float
    corrections: tuple[str, ...] = ()
    converged: bool = False
    payload: Any = None


@dataclass(frozen=True)
class RefinementIteration:
    """One pass of a refinement loop.

    Attributes:
        iteration_number: 1-based position in the run
        prompt_sent_to_oracle: Instruction that produced ``oracle_output``
            (None when the text was supplied by the caller)
        oracle_output: Text produced for this iteration
        score: Assessment score of ``oracle_output``
        applied_corrections: Defects the instruction asked the oracle to fix
    """

    iteration_number: int
    prompt_sent_to_oracle: Optional[str]
    oracle_output: str
    score: float
    applied_corrections: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "iteration_number": self.iteration_number,
            "prompt_sent_to_oracle": self.prompt_sent_to_oracle,
            "oracle_output": self.oracle_output,
            "score": self.score,
            "applied_corrections": list(self.applied_corrections),
        }


@dataclass(frozen=True)
class LoopOutcome:
    """Raw result of the generic bounded loop."""

    final_text: str
    final_assessment: Assessment
    iterations: tuple[RefinementIteration, ...]
    assessments: tuple[Assessment, ...]
    converged: bool
    improvement_log: tuple[str, ...]
    trace_id: str

    @property
    def degraded(self) -> bool:
        return not self.converged


@dataclass(frozen=True)
class RefinementResult:
    """Outcome of ``optimize_until_complete``.

    Attributes:
        final_text: Best output (the converged one, or the best-scoring one)
        iteration_count: Number of generations performed
        final_score: Completeness score of ``final_text``
        improvement_log: Per-iteration notes, ending with a degraded note on
            non-convergence
        iterations: Full iteration trail
        converged: Threshold reached before the cap
        trace_id: Identifier shared by every trace record of the run
    """

    final_text: str
    iteration_count: int
    final_score: CompletenessScore
    improvement_log: tuple[str, ...]
    iterations: tuple[RefinementIteration, ...] = ()
    converged: bool = False
    trace_id: str = ""

    @property
    def degraded(self) -> bool:
        return not self.converged

    @property
    def score_trajectory(self) -> list[float]:
        return [iteration.score for iteration in self.iterations]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "final_text": self.final_text,
            "iteration_count": self.iteration_count,
            "final_score": self.final_score.to_dict(),
            "improvement_log": list(self.improvement_log),
            "iterations": [iteration.to_dict() for iteration in self.iterations],
            "converged": self.converged,
            "degraded": self.degraded,
            "trace_id": self.trace_id,
        }


@dataclass(frozen=True)
class ReflectiveResult:
    """Outcome of ``optimize_with_reflection``.

    Attributes:
        final_text: Best output
        iterations: Full iteration trail
        total_improvements: De-duplicated recommendations applied across the run
        convergence_score: Heuristic quality score (0-10) of ``final_text``
        reflective_insights: Short narrative of what the loop found and fixed
        improvement_log: Per-iteration notes, with a degraded note on non-convergence
        converged: Threshold reached (or no failures reported) before the cap
        trace_id: Identifier shared by every trace record of the run
    """

    final_text: str
    iterations: tuple[RefinementIteration, ...]
    total_improvements: tuple[str, ...]
    convergence_score: float
    reflective_insights: str
    improvement_log: tuple[str, ...] = ()
    converged: bool = False
    trace_id: str = ""
    failures: tuple[FailureAnalysis, ...] = field(default_factory=tuple)

    @property
    def degraded(self) -> bool:
        return not self.converged

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "final_text": self.final_text,
            "iterations": [iteration.to_dict() for iteration in self.iterations],
            "total_improvements": list(self.total_improvements),
            "convergence_score": self.convergence_score,
            "reflective_insights": self.reflective_insights,
            "improvement_log": list(self.improvement_log),
            "converged": self.converged,
            "degraded": self.degraded,
            "trace_id": self.trace_id,
            "failures": [failure.model_dump(by_alias=True) for failure in self.failures],
        }
