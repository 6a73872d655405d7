"""Bounded, oracle-driven prompt refinement.

Key Components:
    - optimize_until_complete(): generate and repair until structurally complete
    - optimize_with_reflection(): repair the weaknesses the oracle reports
    - BoundedRefinementLoop: the shared score -> correct -> retry skeleton
    - StructuralScoringStrategy / ReflectiveScoringStrategy: interchangeable scorers

Usage:
    from prompt_refinery.core.refinement import optimize_until_complete

    result = await optimize_until_complete(oracle, system, user, 600, "basic")
    if result.degraded:
        print(result.improvement_log[-1])
"""

from .correction import (
    FIX_ALL_FOOTER,
    InstructionPair,
    build_analysis_request,
    build_correction_request,
    build_reflective_correction,
    describe_issues,
    order_by_severity,
)
from .engine import BoundedRefinementLoop, ScoringStrategy, render_instruction
from .models import (
    DEGRADED_NOTE_PREFIX,
    Assessment,
    FailureAnalysis,
    LoopOutcome,
    RefinementIteration,
    RefinementResult,
    ReflectiveResult,
)
from .orchestrator import (
    RefinementOrchestrator,
    optimize_until_complete,
    optimize_with_reflection,
    summarize_reflection,
)
from .parsing import find_json_object, parse_failure_analysis
from .strategies import (
    UNPARSEABLE_ANALYSIS_TYPE,
    ReflectiveScoringStrategy,
    StructuralScoringStrategy,
    quality_score,
)

__all__ = [
    # Models
    "DEGRADED_NOTE_PREFIX",
    "Assessment",
    "FailureAnalysis",
    "LoopOutcome",
    "RefinementIteration",
    "RefinementResult",
    "ReflectiveResult",
    # Instructions
    "FIX_ALL_FOOTER",
    "InstructionPair",
    "build_analysis_request",
    "build_correction_request",
    "build_reflective_correction",
    "describe_issues",
    "order_by_severity",
    # Parsing
    "find_json_object",
    "parse_failure_analysis",
    # Loop and strategies
    "BoundedRefinementLoop",
    "ReflectiveScoringStrategy",
    "ScoringStrategy",
    "StructuralScoringStrategy",
    "UNPARSEABLE_ANALYSIS_TYPE",
    "quality_score",
    "render_instruction",
    # Orchestrators
    "RefinementOrchestrator",
    "optimize_until_complete",
    "optimize_with_reflection",
    "summarize_reflection",
]
