"""Ultra compression into a fixed four-field template.

The ultra variant rewrites a prompt into::

    [Role]: ...
    [Objective]: ...
    [Context]: ...
    [Deliverable]: ...        (only when the prompt names one)
    [Constraints]: ≤150 words; ...

under a hard 150-word / 20-line ceiling, then self-validates on a 0-100
scale. Passes run in the order elimination -> syntax compaction ->
structuring -> word limit.
"""

from __future__ import annotations

import logging
import re

from prompt_refinery.core.token_management import Tier

from .models import UltraCompressionResult, UltraValidation, reduction_percent
from .passes import compact, eliminate_noise, remove_fluff, remove_redundancy, seal_ending

logger = logging.getLogger(__name__)

ULTRA_MAX_WORDS = 150
ULTRA_MAX_LINES = 20
ULTRA_REQUIRED_SCORE = 85

TEMPLATE_FIELDS = ("Role", "Objective", "Context", "Constraints")
DELIVERABLE_FIELD = "Deliverable"

# Words kept per field before the global word limit applies.
FIELD_WORD_CAPS = {
    "Role": 5,
    "Objective": 15,
    "Context": 12,
    "Deliverable": 10,
    "Constraints": 16,
}

FIELD_DEFAULTS = {
    "Role": "domain expert",
    "Context": "general audience",
}

# First matching field wins, in this order.
_FIELD_KEYWORDS: tuple[tuple[str, re.Pattern], ...] = (
    ("Role", re.compile(r"\b(?:r[oô]le|expert|persona|you are|tu es|vous [eê]tes)\b", re.IGNORECASE)),
    ("Objective", re.compile(r"\b(?:objectif|objective|goal|mission|t[aâ]che|task)\b", re.IGNORECASE)),
    ("Context", re.compile(r"\b(?:contexte|context|secteur|audience|cible|background)\b", re.IGNORECASE)),
    ("Deliverable", re.compile(r"\b(?:livrable|deliverable|format|sortie|output)\b", re.IGNORECASE)),
    (
        "Constraints",
        re.compile(
            r"\b(?:contraintes?|constraints?|r[eè]gles?|rules?|tone|style|limite|limit)\b|\bton\s*:",
            re.IGNORECASE,
        ),
    ),
)

_FLUFF_PHRASES = (
    "il est important de",
    "veillez à",
    "assurez-vous de",
    "pensez à",
    "n'oubliez pas de",
    "il convient de",
    "vous devriez",
    "il serait souhaitable de",
    "it is important to",
    "make sure to",
    "remember to",
    "you should",
)
_INTENSIFIERS = (
    "très",
    "extrêmement",
    "absolument",
    "vraiment",
    "particulièrement",
    "very",
    "extremely",
    "absolutely",
    "really",
    "particularly",
)
_NOTE_PAREN_RE = re.compile(r"\s*\((?:note|rappel|remarque|reminder)\s*:[^)]*\)", re.IGNORECASE)
_LINE_DECORATION_RE = re.compile(r"^\s*(?:[-•*#>]+|\d+[.)])\s*")
_LABEL_PREFIX_RE = re.compile(r"^[^:]{0,40}:\s*")
_FIELD_LINE_RE = re.compile(r"^\[(\w+)\]:\s*(.*)$")
_WORD_LIMIT_RE = re.compile(r"≤\s*\d+\s*(?:words|mots)", re.IGNORECASE)


def _word_count(text: str) -> int:
    return len(text.split())


def _clean_content(line: str) -> str:
    line = _LINE_DECORATION_RE.sub("", line).replace("**", "").strip()
    line = _LABEL_PREFIX_RE.sub("", line, count=1)
    return line.strip().rstrip(".;:,!?").strip()


def _cap_words(text: str, limit: int) -> str:
    words = text.split()
    return " ".join(words[:limit])


class UltraCompressor:
    """Template compressor with a hard word ceiling and self-validation.

    Example:
        compressor = UltraCompressor()
        result = compressor.compress(long_prompt)
        if result.validation_score < ULTRA_REQUIRED_SCORE:
            print(compressor.validate(result.compressed_text).warnings)

    Args:
        max_words: Hard word ceiling
        max_lines: Hard line ceiling
        required_score: Self-score below which the elimination and word-limit
            passes are re-run once
    """

    def __init__(
        self,
        *,
        max_words: int = ULTRA_MAX_WORDS,
        max_lines: int = ULTRA_MAX_LINES,
        required_score: int = ULTRA_REQUIRED_SCORE,
    ) -> None:
        self.max_words = max_words
        self.max_lines = max_lines
        self.required_score = required_score

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _eliminate(self, text: str) -> str:
        text = remove_redundancy(text)
        text = eliminate_noise(text, Tier.FREE)
        text = _NOTE_PAREN_RE.sub("", text)
        text = remove_fluff(text, _FLUFF_PHRASES)
        return remove_fluff(text, _INTENSIFIERS)

    def _classify(self, text: str) -> dict[str, list[str]]:
        fields: dict[str, list[str]] = {name: [] for name in (*TEMPLATE_FIELDS, DELIVERABLE_FIELD)}
        unclassified: list[str] = []
        for raw_line in text.split("\n"):
            content = _clean_content(raw_line)
            if not content:
                continue
            for name, pattern in _FIELD_KEYWORDS:
                if pattern.search(raw_line):
                    fields[name].append(content)
                    break
            else:
                unclassified.append(content)

        # Leftover prose: first line states the objective, the rest is context.
        if unclassified:
            if not fields["Objective"]:
                fields["Objective"].append(unclassified.pop(0))
            fields["Context"].extend(unclassified)
        return fields

    def _structure(self, text: str) -> str:
        fields = self._classify(text)
        lines = []
        for name in ("Role", "Objective", "Context", DELIVERABLE_FIELD, "Constraints"):
            content = _cap_words(" ; ".join(fields[name]), FIELD_WORD_CAPS[name])
            if name == DELIVERABLE_FIELD and not content:
                continue
            if name == "Constraints":
                limit = f"≤{self.max_words} words"
                content = f"{limit}; {content}" if content else limit
            elif not content:
                content = FIELD_DEFAULTS.get(name, "unspecified")
            lines.append(f"[{name}]: {seal_ending(content)}")
        return "\n".join(lines)

    def _limit_words(self, text: str) -> str:
        lines = [line for line in text.split("\n") if line.strip()][: self.max_lines]
        while sum(_word_count(line) for line in lines) > self.max_words:
            longest = max(range(len(lines)), key=lambda i: _word_count(lines[i]))
            words = lines[longest].split()
            if len(words) <= 2:
                break
            lines[longest] = seal_ending(" ".join(words[:-1]))
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compress(self, text: str) -> UltraCompressionResult:
        """Rewrite ``text`` into the template and self-score it."""
        original_words = _word_count(text or "")
        if not text or not text.strip():
            return UltraCompressionResult("", 0, 0, 0, 0)

        techniques = ["elimination", "syntax_compaction", "structuring", "word_limit"]
        current = self._eliminate(text)
        current = compact(current)
        current = self._structure(current)
        current = self._limit_words(current)

        score = self.score(current)
        if score < self.required_score:
            logger.debug(f"Ultra score {score} below {self.required_score}, re-running elimination")
            current = self._limit_words(self._eliminate(current))
            score = self.score(current)
            techniques.append("revalidation")

        compressed_words = _word_count(current)
        return UltraCompressionResult(
            compressed_text=current,
            original_words=original_words,
            compressed_words=compressed_words,
            reduction_rate_percent=reduction_percent(original_words, compressed_words),
            validation_score=score,
            applied_techniques=tuple(techniques),
        )

    def _present_fields(self, text: str) -> set[str]:
        present = set()
        for line in text.split("\n"):
            match = _FIELD_LINE_RE.match(line.strip())
            if match and match.group(2).strip():
                present.add(match.group(1))
        return present

    def score(self, text: str) -> int:
        """Score a template text from 0 to 100.

        40 points under the word limit (2 lost per extra word), 30 for all
        four template fields, 15 for a deliverable field, 15 for an explicit
        word-limit constraint.
        """
        words = _word_count(text)
        score = 40 if words <= self.max_words else max(0, 40 - (words - self.max_words) * 2)
        present = self._present_fields(text)
        if all(name in present for name in TEMPLATE_FIELDS):
            score += 30
        if DELIVERABLE_FIELD in present:
            score += 15
        if _WORD_LIMIT_RE.search(text):
            score += 15
        return min(100, score)

    def validate(self, text: str) -> UltraValidation:
        """List the ways ``text`` falls short of the template contract."""
        errors: list[str] = []
        warnings: list[str] = []
        words = _word_count(text)
        lines = [line for line in text.split("\n") if line.strip()]
        if words > self.max_words:
            errors.append(f"{words} words exceeds the {self.max_words}-word limit")
        if len(lines) > self.max_lines:
            errors.append(f"{len(lines)} lines exceeds the {self.max_lines}-line limit")
        present = self._present_fields(text)
        for name in TEMPLATE_FIELDS:
            if name not in present:
                errors.append(f"Missing field [{name}]")
        if DELIVERABLE_FIELD not in present:
            warnings.append("No explicit deliverable")
        if not _WORD_LIMIT_RE.search(text):
            warnings.append("No explicit word-limit constraint")
        return UltraValidation(score=self.score(text), errors=tuple(errors), warnings=tuple(warnings))
