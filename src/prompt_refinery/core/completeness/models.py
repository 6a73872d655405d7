"""Result models for the structural completeness scorer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from prompt_refinery.core.token_management import Tier

# Score weights: presence ratio, completeness ratio, no truncation, proper ending.
PRESENCE_WEIGHT = 0.4
COMPLETENESS_WEIGHT = 0.4
NO_TRUNCATION_WEIGHT = 0.1
PROPER_ENDING_WEIGHT = 0.1


@dataclass(frozen=True)
class SectionRecord:
    """Detection outcome for one expected section.

    Attributes:
        present: A heading variant matched with non-empty content
        complete: Content is long enough and properly terminated
        raw_content: Captured section body
        variant: Heading style that matched (``bold``, ``emoji``, ``heading``)
    """

    present: bool
    complete: bool
    raw_content: str = ""
    variant: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "present": self.present,
            "complete": self.complete,
            "raw_content": self.raw_content,
            "variant": self.variant,
        }


@dataclass(frozen=True)
class QualitySignals:
    """Diagnostics reported alongside the score; they never change it.

    Attributes:
        orphan_lines: Single-word lines that are neither headings nor list items
        incomplete_table: A markdown table is cut off or has no data rows
        empty_list_items: Bullet markers with no text
        has_substantial_example: An example block of meaningful size exists
        has_quantified_constraints: Constraints carry numbers (words, lines, %)
    """

    orphan_lines: tuple[str, ...] = ()
    incomplete_table: bool = False
    empty_list_items: int = 0
    has_substantial_example: bool = False
    has_quantified_constraints: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "orphan_lines": list(self.orphan_lines),
            "incomplete_table": self.incomplete_table,
            "empty_list_items": self.empty_list_items,
            "has_substantial_example": self.has_substantial_example,
            "has_quantified_constraints": self.has_quantified_constraints,
        }


@dataclass(frozen=True)
class CompletenessDetails:
    """Why a text lost points.

    Attributes:
        missing_sections: Required sections not found
        incomplete_sections: Required sections found but not complete
        truncation_offset: Character offset where truncation was detected
    """

    missing_sections: tuple[str, ...] = ()
    incomplete_sections: tuple[str, ...] = ()
    truncation_offset: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "missing_sections": list(self.missing_sections),
            "incomplete_sections": list(self.incomplete_sections),
        }
        if self.truncation_offset is not None:
            result["truncation_offset"] = self.truncation_offset
        return result


@dataclass(frozen=True)
class CompletenessScore:
    """Weighted 0-1 structural completeness score.

    ``overall`` = 0.4 x presence ratio + 0.4 x completeness ratio
    + 0.1 x no-truncation + 0.1 x proper-ending, over the tier's required
    sections.
    """

    overall: float
    has_all_sections: bool
    all_sections_complete: bool
    no_truncation: bool
    proper_ending: bool
    details: CompletenessDetails = field(default_factory=CompletenessDetails)
    sections: Mapping[str, SectionRecord] = field(default_factory=dict)
    signals: QualitySignals = field(default_factory=QualitySignals)
    tier: Optional[Tier] = None

    @property
    def is_complete(self) -> bool:
        return self.has_all_sections and self.all_sections_complete and self.no_truncation and self.proper_ending

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "overall": self.overall,
            "has_all_sections": self.has_all_sections,
            "all_sections_complete": self.all_sections_complete,
            "no_truncation": self.no_truncation,
            "proper_ending": self.proper_ending,
            "details": self.details.to_dict(),
            "sections": {name: record.to_dict() for name, record in self.sections.items()},
            "signals": self.signals.to_dict(),
            "tier": self.tier.value if self.tier else None,
        }
