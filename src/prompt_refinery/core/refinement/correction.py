"""Correction and analysis instruction builders.

Every builder returns an ``InstructionPair``; the refinement loops send it
to the oracle as a system + user conversation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from prompt_refinery.core.completeness import CompletenessScore, SectionName, required_sections
from prompt_refinery.core.token_management import Tier

from .models import FailureAnalysis

FIX_ALL_FOOTER = "Fix all the above, return only the corrected text."


@dataclass(frozen=True)
class InstructionPair:
    """System and user messages for one oracle call."""

    system: str
    user: str
    corrections: tuple[str, ...] = ()


def _label(section: str) -> str:
    return SectionName(section).label


def describe_issues(score: CompletenessScore) -> list[str]:
    """Name every defect behind a completeness score, most structural first."""
    issues = [f"Missing section: {_label(name)}" for name in score.details.missing_sections]
    issues += [
        f"Incomplete section: {_label(name)} (give it substance and end it with punctuation)"
        for name in score.details.incomplete_sections
    ]
    if not score.no_truncation:
        offset = score.details.truncation_offset
        where = f" near character {offset}" if offset is not None else ""
        issues.append(f"Truncated text{where}: finish the cut-off content")
    if not score.proper_ending:
        issues.append("Improper ending: the text must end with a complete sentence")
    return issues


def build_correction_request(previous_output: str, score: CompletenessScore, tier: Tier) -> InstructionPair:
    """Ask the oracle to repair exactly the defects found in ``previous_output``."""
    issues = describe_issues(score)
    sections = ", ".join(name.label for name in required_sections(tier))
    defect_lines = "\n".join(f"- {issue}" for issue in issues) or "- No structural defect detected"
    system = (
        "You repair prompts that failed a structural completeness check.\n"
        f"Defects found:\n{defect_lines}\n"
        f"Required sections, each as a bold heading (**ROLE**, ...): {sections}.\n"
        "Keep the original intent and language. Every section must end with terminal punctuation."
    )
    user = f"{previous_output.rstrip()}\n\n{FIX_ALL_FOOTER}"
    return InstructionPair(system=system, user=user, corrections=tuple(issues))


def build_analysis_request(text: str, failure_context: str, tier: Tier) -> InstructionPair:
    """Ask the oracle to list the prompt's weaknesses as severity-ranked JSON."""
    system = (
        "You are a demanding reviewer of prompts written for text-generation models.\n"
        "List the prompt's weaknesses. Respond with JSON only, in this shape:\n"
        '{"failures": [{"failureType": "short category", "severity": 1-10, '
        '"recommendations": ["concrete fix", "..."]}]}\n'
        'Severity 10 blocks the prompt from working; 1 is cosmetic. Return {"failures": []} '
        "when nothing needs fixing."
    )
    context = failure_context.strip() or "none reported"
    user = f"Service tier: {tier.value}\nReported problems: {context}\n\nPrompt to review:\n{text}"
    return InstructionPair(system=system, user=user)


def order_by_severity(failures: Sequence[FailureAnalysis]) -> list[FailureAnalysis]:
    """Sort failures by descending severity, keeping report order on ties."""
    return sorted(failures, key=lambda failure: failure.severity, reverse=True)


def build_reflective_correction(text: str, failures: Sequence[FailureAnalysis]) -> InstructionPair:
    """Ask the oracle to fix failures in descending severity order."""
    ordered = order_by_severity(failures)
    corrections = []
    blocks = []
    for index, failure in enumerate(ordered, 1):
        corrections.append(f"{failure.failure_type} (severity {failure.severity})")
        fixes = "\n".join(f"   - {item}" for item in failure.recommendations) or "   - Address this weakness"
        blocks.append(f"{index}. {failure.failure_type} [severity {failure.severity}/10]\n{fixes}")
    system = (
        "You improve prompts. Apply the corrections below in the order given; "
        "higher severity comes first.\n\n" + "\n".join(blocks) + "\n\n"
        "Keep the original intent and language."
    )
    user = f"{text.rstrip()}\n\n{FIX_ALL_FOOTER}"
    return InstructionPair(system=system, user=user, corrections=tuple(corrections))
