"""Structural completeness scoring.

Scores a candidate prompt in six steps:
1. Split off a trailing "changes applied" annex (metadata, not scored)
2. Detect each expected section through its ordered matchers
3. Judge each captured section complete or incomplete
4. Detect truncation at the end of the scored text
5. Check the text ends like a finished sentence
6. Assemble the 40/40/10/10 weighted score

The result is a pure function of the text, the tier and the scoring
thresholds.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Union

from prompt_refinery.config import ScoringConfig
from prompt_refinery.core.token_management import Tier, coerce_tier

from .models import (
    COMPLETENESS_WEIGHT,
    NO_TRUNCATION_WEIGHT,
    PRESENCE_WEIGHT,
    PROPER_ENDING_WEIGHT,
    CompletenessDetails,
    CompletenessScore,
    QualitySignals,
    SectionRecord,
)
from .sections import SectionName, find_section, required_sections

logger = logging.getLogger(__name__)

SECTION_TERMINALS = ".!?:"
SENTENCE_TERMINALS = ".!?"

_SEPARATOR_RE = re.compile(r"^[ \t]*-{3,}[ \t]*$", re.MULTILINE)
_ANNEX_MARKER_RE = re.compile(
    r"am[ée]liorations\s+apport[ée]es|modifications\s+apport[ée]es|changes\s+applied|improvements\s+(?:made|applied)",
    re.IGNORECASE,
)
_LIST_LINE_RE = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s")
_LIST_LINE_TERMINATED_RE = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s.*[.!?]\s*$")
_TRUNCATION_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("ellipsis", re.compile(r"(?:\.{3}|…)$")),
    ("dangling_punctuation", re.compile(r"[,;]$")),
    ("unclosed_parenthesis", re.compile(r"\([^)]*$")),
    ("unclosed_bracket", re.compile(r"\[[^\]]*$")),
    ("bare_list_item", re.compile(r"^[-•*]\s+\w+$")),
)
_TABLE_ROW_RE = re.compile(r"^\s*\|")
_TABLE_RULE_RE = re.compile(r"^\s*\|?\s*:?-{3,}")
_EMPTY_LIST_ITEM_RE = re.compile(r"^\s*[-•*]\s*$")
_EXAMPLE_RE = re.compile(r"(?:exemples?|examples?)\b[^\n]*\n?([\s\S]{0,400})", re.IGNORECASE)
_QUANTIFIED_RE = re.compile(
    r"\d+\s*(?:mots|words|caract[eè]res|characters|lignes|lines|phrases|sentences|paragraphes|paragraphs|tokens|%)",
    re.IGNORECASE,
)
_SUBSTANTIAL_EXAMPLE_CHARS = 50


# ---------------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------------


def split_annex(text: str) -> tuple[str, Optional[str]]:
    """Separate the scored body from a trailing "changes applied" annex.

    Only a separator line (``---``) whose following text names the applied
    changes counts; other separators are ordinary content.

    Returns:
        ``(body, annex)`` with ``annex`` None when no annex is present
    """
    for separator in _SEPARATOR_RE.finditer(text):
        annex = text[separator.end():]
        if _ANNEX_MARKER_RE.search(annex):
            return text[: separator.start()].rstrip(), annex.strip()
    return text, None


def is_section_complete(section: str, content: str, *, min_chars: int = 10) -> bool:
    """Decide whether a captured section is finished.

    The captured section (heading plus body) must reach ``min_chars``, and
    the body must end in terminal punctuation, end on a list item, or be a
    list with at least one punctuated item.
    """
    if len(section.strip()) < min_chars:
        return False
    body = content.strip()
    if not body:
        return False
    if body[-1] in SECTION_TERMINALS:
        return True
    lines = [line for line in body.split("\n") if line.strip()]
    if _LIST_LINE_RE.match(lines[-1]):
        return True
    list_lines = [line for line in lines if _LIST_LINE_RE.match(line)]
    return any(line.rstrip()[-1] in SENTENCE_TERMINALS for line in list_lines)


def detect_truncation(text: str, annex: Optional[str] = None, config: Optional[ScoringConfig] = None) -> Optional[int]:
    """Return the offset where the text looks cut off, or None.

    A substantial annex (longer than ``annex_min_chars``) after the
    separator exempts the body from truncation checks.
    """
    config = config or ScoringConfig()
    if annex is not None and len(annex.strip()) > config.annex_min_chars:
        return None

    stripped = text.rstrip()
    if not stripped:
        return 0
    last_line = stripped.split("\n")[-1].strip()
    last_line_offset = len(stripped) - len(last_line)
    tail_offset = max(0, len(stripped) - config.truncation_window)
    tail = stripped[tail_offset:]

    for name, pattern in _TRUNCATION_PATTERNS:
        if pattern.search(last_line):
            logger.debug(f"Truncation ({name}) on last line at offset {last_line_offset}")
            return last_line_offset
        if pattern.search(tail):
            logger.debug(f"Truncation ({name}) in tail at offset {tail_offset}")
            return tail_offset

    if (
        len(last_line) < config.short_line_chars
        and last_line[-1] not in SECTION_TERMINALS
        and not last_line.endswith("---")
    ):
        return last_line_offset
    return None


def has_proper_ending(text: str) -> bool:
    """True when the text ends like a finished sentence or punctuated list item."""
    stripped = text.rstrip()
    if not stripped:
        return False
    if stripped[-1] in SENTENCE_TERMINALS:
        return True
    return bool(_LIST_LINE_TERMINATED_RE.match(stripped.split("\n")[-1]))


def collect_signals(text: str) -> QualitySignals:
    """Gather diagnostic signals that do not influence the score."""
    lines = text.split("\n")
    orphans = tuple(
        line.strip()
        for line in lines
        if len(line.split()) == 1
        and not _LIST_LINE_RE.match(line)
        and "**" not in line
        and not line.strip().startswith(("#", "|", "-"))
        and line.strip()[-1] not in SECTION_TERMINALS
    )

    table_lines = [line for line in lines if _TABLE_ROW_RE.match(line)]
    incomplete_table = False
    if table_lines:
        last = table_lines[-1].rstrip()
        data_rows = [line for line in table_lines[1:] if not _TABLE_RULE_RE.match(line)]
        incomplete_table = not last.endswith("|") or not data_rows

    example = _EXAMPLE_RE.search(text)
    substantial = bool(example and len(example.group(1).strip()) >= _SUBSTANTIAL_EXAMPLE_CHARS)

    return QualitySignals(
        orphan_lines=orphans,
        incomplete_table=incomplete_table,
        empty_list_items=sum(1 for line in lines if _EMPTY_LIST_ITEM_RE.match(line)),
        has_substantial_example=substantial,
        has_quantified_constraints=bool(_QUANTIFIED_RE.search(text)),
    )


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------


class CompletenessScorer:
    """Structural completeness scorer.

    Example:
        scorer = CompletenessScorer()
        score = scorer.evaluate(candidate, Tier.BASIC)
        if score.overall < 0.9:
            print(score.details.missing_sections)

    Args:
        config: Thresholds (section minimum length, annex size, tail window)
    """

    def __init__(self, config: Optional[ScoringConfig] = None) -> None:
        self.config = config or ScoringConfig()

    def detect_sections(self, text: str) -> dict[str, SectionRecord]:
        """Build a fresh record for every known section."""
        records: dict[str, SectionRecord] = {}
        for name in SectionName:
            found = find_section(text, name)
            if found is None:
                records[name.value] = SectionRecord(present=False, complete=False)
                continue
            variant, section, content = found
            records[name.value] = SectionRecord(
                present=True,
                complete=is_section_complete(section, content, min_chars=self.config.min_section_chars),
                raw_content=content,
                variant=variant,
            )
        return records

    def evaluate(self, text: str, tier: Union[Tier, str]) -> CompletenessScore:
        """Score ``text`` against the sections ``tier`` requires."""
        tier = coerce_tier(tier)
        body, annex = split_annex(text or "")

        sections = self.detect_sections(body)
        required = required_sections(tier)
        missing = tuple(name.value for name in required if not sections[name.value].present)
        incomplete = tuple(
            name.value for name in required if sections[name.value].present and not sections[name.value].complete
        )
        presence_ratio = (len(required) - len(missing)) / len(required)
        completeness_ratio = sum(1 for name in required if sections[name.value].complete) / len(required)

        truncation_offset = detect_truncation(body, annex, self.config)
        no_truncation = truncation_offset is None
        proper_ending = has_proper_ending(body)

        overall = (
            PRESENCE_WEIGHT * presence_ratio
            + COMPLETENESS_WEIGHT * completeness_ratio
            + NO_TRUNCATION_WEIGHT * float(no_truncation)
            + PROPER_ENDING_WEIGHT * float(proper_ending)
        )
        overall = min(1.0, max(0.0, round(overall, 4)))

        return CompletenessScore(
            overall=overall,
            has_all_sections=not missing,
            all_sections_complete=not missing and not incomplete,
            no_truncation=no_truncation,
            proper_ending=proper_ending,
            details=CompletenessDetails(
                missing_sections=missing,
                incomplete_sections=incomplete,
                truncation_offset=truncation_offset,
            ),
            sections=sections,
            signals=collect_signals(body),
            tier=tier,
        )


def evaluate_completeness(
    text: str,
    tier: Union[Tier, str],
    *,
    config: Optional[ScoringConfig] = None,
) -> CompletenessScore:
    """Score the structural completeness of ``text`` for ``tier``.

    Args:
        text: Candidate prompt (a trailing "changes applied" annex is ignored)
        tier: Tier whose required sections apply
        config: Optional scoring thresholds

    Returns:
        CompletenessScore with ``overall`` in [0, 1]

    Example:
        >>> evaluate_completeness("**RÔLE**: expert.", "free").details.missing_sections
        ('context', 'format')
    """
    return CompletenessScorer(config).evaluate(text, tier)
