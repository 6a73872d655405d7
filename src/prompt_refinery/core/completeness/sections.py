"""Section vocabulary and ordered named matchers.

Each expected section has an ordered tuple of ``SectionMatcher`` variants
(bold label, emoji-prefixed heading, markdown heading). The first variant
that captures non-empty content wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from prompt_refinery.core.token_management import Tier


class SectionName(str, Enum):
    """Sections the completeness scorer knows about."""

    ROLE = "role"
    CONTEXT = "context"
    OBJECTIVE = "objective"
    FORMAT = "format"
    CONSTRAINTS = "constraints"

    @property
    def label(self) -> str:
        return self.value.capitalize()


REQUIRED_SECTIONS: Mapping[Tier, tuple[SectionName, ...]] = MappingProxyType(
    {
        Tier.PREMIUM: (SectionName.ROLE, SectionName.CONTEXT, SectionName.FORMAT, SectionName.CONSTRAINTS),
        Tier.BASIC: (SectionName.ROLE, SectionName.CONTEXT, SectionName.FORMAT, SectionName.CONSTRAINTS),
        Tier.FREE: (SectionName.ROLE, SectionName.CONTEXT, SectionName.FORMAT),
    }
)

# Heading labels (French and English) per section.
_LABELS: Mapping[SectionName, str] = MappingProxyType(
    {
        SectionName.ROLE: r"r[oô]le(?:\s+de\s+l['’]ia)?|persona",
        SectionName.CONTEXT: r"contexte?(?:\s*(?:&|et|and)\s*objectifs?)?|background",
        SectionName.OBJECTIVE: r"objectifs?|objectives?|mission|goal|t[aâ]che|task",
        SectionName.FORMAT: (
            r"format(?:\s+de\s+sortie)?|structure\s+du\s+livrable|livrable|deliverable|output|sortie"
        ),
        SectionName.CONSTRAINTS: r"contraintes?|constraints?|r[eè]gles?|rules",
    }
)

_EMOJI = r"[\U0001F300-\U0001FAFF\u2600-\u27BF\u2B00-\u2BFF]"
_SYMBOL_PREFIX = r"(?:[^\w\s*#\-•>]+[ \t]*)"

# A section body ends at the next heading (bold, markdown or emoji-led line),
# a separator line, two blank lines, or the end of the text.
_TERMINATOR = (
    r"(?="
    rf"\n[ \t]*{_SYMBOL_PREFIX}?\*\*[^*\n]+\*\*"
    r"|\n[ \t]*#{1,6}[ \t]"
    rf"|\n[ \t]*{_EMOJI}"
    r"|\n[ \t]*-{3,}[ \t]*(?:\n|\Z)"
    r"|\n[ \t]*\n[ \t]*\n"
    r"|\Z)"
)


@dataclass(frozen=True)
class SectionMatcher:
    """One heading variant for a section.

    Attributes:
        variant: Name of the heading style (``bold``, ``emoji``, ``heading``)
        pattern: Compiled pattern with a ``content`` group
    """

    variant: str
    pattern: re.Pattern

    def match(self, text: str) -> Optional[tuple[str, str]]:
        """Return ``(whole_section, content)`` or None when nothing non-empty matched."""
        for found in self.pattern.finditer(text):
            content = found.group("content").strip()
            if content:
                return found.group(0).strip(), content
        return None


def _build_matchers(labels: str) -> tuple[SectionMatcher, ...]:
    flags = re.IGNORECASE
    bold = re.compile(
        rf"(?:^|\n)[ \t]*(?:[-•][ \t]*)?{_SYMBOL_PREFIX}?\*\*[ \t]*(?:{labels})\b[^*\n]{{0,30}}\*\*"
        rf"[ \t]*:?[ \t]*(?P<content>[\s\S]*?){_TERMINATOR}",
        flags,
    )
    emoji = re.compile(
        rf"(?:^|\n)[ \t]*{_EMOJI}\S*[ \t]*(?:{labels})\b[^\n:]*:?[ \t]*(?P<content>[\s\S]*?){_TERMINATOR}",
        flags,
    )
    heading = re.compile(
        rf"(?:^|\n)[ \t]*#{{1,6}}[ \t]*{_SYMBOL_PREFIX}?(?:{labels})\b[^\n:]*:?[ \t]*"
        rf"(?P<content>[\s\S]*?){_TERMINATOR}",
        flags,
    )
    return (
        SectionMatcher("bold", bold),
        SectionMatcher("emoji", emoji),
        SectionMatcher("heading", heading),
    )


SECTION_MATCHERS: Mapping[SectionName, tuple[SectionMatcher, ...]] = MappingProxyType(
    {name: _build_matchers(labels) for name, labels in _LABELS.items()}
)


def find_section(text: str, name: SectionName) -> Optional[tuple[str, str, str]]:
    """Locate a section in ``text``.

    Returns:
        ``(variant, whole_section, content)`` for the first matching variant,
        or None when the section is absent
    """
    for matcher in SECTION_MATCHERS[name]:
        found = matcher.match(text)
        if found is not None:
            return matcher.variant, found[0], found[1]
    return None


def required_sections(tier: Tier) -> tuple[SectionName, ...]:
    """Sections a tier must contain."""
    return REQUIRED_SECTIONS[tier]
