"""Structural completeness scoring.

Key Components:
    - evaluate_completeness(): 0-1 weighted score for a text and tier
    - CompletenessScorer: scorer bound to a ScoringConfig
    - SectionName / SECTION_MATCHERS: section vocabulary and ordered matchers
    - CompletenessScore, SectionRecord, QualitySignals: result models

Usage:
    from prompt_refinery.core.completeness import evaluate_completeness

    score = evaluate_completeness(text, "basic")
    if not score.has_all_sections:
        print(score.details.missing_sections)
"""

from .models import (
    CompletenessDetails,
    CompletenessScore,
    QualitySignals,
    SectionRecord,
)
from .scorer import (
    CompletenessScorer,
    collect_signals,
    detect_truncation,
    evaluate_completeness,
    has_proper_ending,
    is_section_complete,
    split_annex,
)
from .sections import (
    REQUIRED_SECTIONS,
    SECTION_MATCHERS,
    SectionMatcher,
    SectionName,
    find_section,
    required_sections,
)

__all__ = [
    # Models
    "CompletenessDetails",
    "CompletenessScore",
    "QualitySignals",
    "SectionRecord",
    # Sections
    "REQUIRED_SECTIONS",
    "SECTION_MATCHERS",
    "SectionMatcher",
    "SectionName",
    "find_section",
    "required_sections",
    # Scoring
    "CompletenessScorer",
    "collect_signals",
    "detect_truncation",
    "evaluate_completeness",
    "has_proper_ending",
    "is_section_complete",
    "split_annex",
]
