"""Rewrite passes of the compression pipeline.

Every pass is a pure ``str -> str`` function (parameterized by tier/length
where caps differ) and is idempotent: feeding a pass its own output returns
that output unchanged. Passes are not commutative; ``CompressionPipeline``
fixes their order.

Provides:
    - remove_redundancy(): greeting/politeness/instruction-verb prefixes, repeated words
    - eliminate_repetition(): fingerprint-based duplicate sentence removal
    - trim_examples(): example block caps
    - eliminate_noise(): justification clauses, style lists, decoration, duplicate format sections
    - compact(): connective rewriting, bullet compaction, whitespace/format clean-up
    - enforce_budget(): structural-skeleton fill for over-budget text
    - seal_ending(): end-of-text guarantee (no dangling punctuation, ellipsis or bracket)
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable

from prompt_refinery.core.token_management import (
    EXAMPLE_MAX_CHARS,
    STYLE_LIST_CAPS,
    Length,
    Tier,
    estimate_tokens,
    get_example_cap,
    max_chars_for_tokens,
)

logger = logging.getLogger(__name__)

# Safety bound for passes that iterate to a fixpoint; every rewrite in those
# loops shortens the text, so real inputs settle in two or three rounds.
_MAX_ROUNDS = 16


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------

# Optional emoji/symbol prefix, then a **BOLD** label and an optional colon.
_BOLD_HEADER_RE = re.compile(r"^\s*(?:[^\w\s*#]\s*)*\*\*[^*\n]+\*\*\s*:?\s*")
_MD_HEADER_RE = re.compile(r"^\s*#{1,6}\s+\S")
# "Role: ..." style label: capitalised, short, colon-terminated.
_LABEL_LINE_RE = re.compile(r"^\s*[A-ZÀ-Ý][^:\n]{0,30}:(?!//)")
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-•]|\*(?!\*))\s+\S")
_NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s+\S")
_BARE_MARKER_RE = re.compile(r"(?:[-•*+]|#{1,6}|\d+[.)])")


def is_header(line: str) -> bool:
    """Return True for section-heading lines (bold label, markdown heading, ``Label:``)."""
    return bool(_BOLD_HEADER_RE.match(line) or _MD_HEADER_RE.match(line) or _LABEL_LINE_RE.match(line))


def is_list_item(line: str) -> bool:
    """Return True for bullet or numbered list lines."""
    return bool(_LIST_ITEM_RE.match(line) or _NUMBERED_RE.match(line))


def is_structural(line: str) -> bool:
    """Return True for lines kept by the aggressive budget pass."""
    return is_header(line) or is_list_item(line)


def is_bare_header(line: str) -> bool:
    """Return True for a heading line that carries no content of its own."""
    if _MD_HEADER_RE.match(line):
        return True
    bold = _BOLD_HEADER_RE.match(line)
    if bold:
        return not line[bold.end():].strip()
    label = _LABEL_LINE_RE.match(line)
    if label:
        return not line[label.end():].strip()
    return False


def _until_stable(rewrite: Callable[[str], str], text: str) -> str:
    """Apply ``rewrite`` until the text stops changing."""
    current = text
    for _ in range(_MAX_ROUNDS):
        updated = rewrite(current)
        if updated == current:
            return updated
        current = updated
    logger.debug(f"Rewrite {rewrite.__name__} did not settle after {_MAX_ROUNDS} rounds")
    return current


# ---------------------------------------------------------------------------
# 1. Redundancy removal
# ---------------------------------------------------------------------------

_PREFIX_RE = re.compile(
    r"^\s*(?:"
    r"bonjour|salut|hello|hey|hi|"
    r"s['’]il (?:vous|te) pla[iî]t|please|kindly|merci de|veuillez|"
    r"je voudrais que|je voudrais|je veux que|je veux|j['’]aimerais que|j['’]aimerais|"
    r"i would like you to|i would like|i['’]d like you to|i['’]d like|i want you to|i want|"
    r"pouvez-vous|pourriez-vous|peux-tu|pourrais-tu|can you|could you|"
    r"créez|crée|créer|générez|génère|générer|rédigez|rédige|écrivez|écris|"
    r"create|generate|write"
    r")(?=[\s,.!:;]|$)[\s,.!:;]*",
    re.IGNORECASE,
)
_POLITENESS_RE = re.compile(r"[ \t]*,?[ \t]*\b(?:please|s['’]il (?:vous|te) pla[iî]t)\b,?", re.IGNORECASE)
_REPEATED_WORD_RE = re.compile(r"\b(\w+)(?:[ \t]+\1\b)+", re.IGNORECASE)


def _redundancy_round(text: str) -> str:
    text = _PREFIX_RE.sub("", text, count=1)
    text = _POLITENESS_RE.sub("", text)
    text = _REPEATED_WORD_RE.sub(r"\1", text)
    return text.strip()


def remove_redundancy(text: str) -> str:
    """Strip leading greetings, politeness and instruction verbs; collapse repeated words.

    Example:
        >>> remove_redundancy("Bonjour, créez un article sur les les chatbots")
        'un article sur les chatbots'
    """
    return _until_stable(_redundancy_round, text)


# ---------------------------------------------------------------------------
# 2. Repetition elimination
# ---------------------------------------------------------------------------

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_FINGERPRINT_CHARS = 40
# Shorter units (headings, table rules, "1.") are structural, never deduplicated.
_MIN_FINGERPRINT_CHARS = 12


def _fingerprint(unit: str, size: int) -> str:
    normalized = re.sub(r"\s+", " ", unit).strip().lower()
    return normalized.rstrip(".!?;:, ")[:size]


def eliminate_repetition(text: str, *, fingerprint_chars: int = _FINGERPRINT_CHARS) -> str:
    """Drop sentence-like units whose fingerprint was already seen.

    Units are split on sentence punctuation within each line; first-seen
    order and line structure are preserved. A line whose units are all
    duplicates disappears.

    Args:
        text: Text to deduplicate
        fingerprint_chars: Number of normalized leading characters compared

    Returns:
        Text with repeated units removed
    """
    seen: set[str] = set()
    out_lines: list[str] = []
    for line in text.split("\n"):
        content = line.strip()
        if not content:
            out_lines.append("")
            continue
        indent = line[: len(line) - len(line.lstrip())]
        kept_units = []
        for unit in _SENTENCE_SPLIT_RE.split(content):
            fingerprint = _fingerprint(unit, fingerprint_chars)
            if len(fingerprint) >= _MIN_FINGERPRINT_CHARS:
                if fingerprint in seen:
                    continue
                seen.add(fingerprint)
            kept_units.append(unit)
        if kept_units:
            out_lines.append(indent + " ".join(kept_units))
    return "\n".join(out_lines)


# ---------------------------------------------------------------------------
# 3. Example trimming
# ---------------------------------------------------------------------------

_EXAMPLE_MARKER_RE = re.compile(
    r"^\s*(?:[-•>]\s*)?(?:[^\w\s*]\s*)?\**\s*"
    r"(?:exemples?|examples?|ex)(?:\s+(?:de sortie|output))?\s*\d*\s*\**\s*:",
    re.IGNORECASE,
)


def _is_example_marker(line: str) -> bool:
    return bool(_EXAMPLE_MARKER_RE.match(line))


def trim_examples(text: str, tier: Tier, length: Length) -> str:
    """Cap the number and size of example blocks.

    An example block starts at a line carrying an example marker
    (``Exemple 2:``, ``**Example**:``) and runs until a blank line, the next
    example marker or a heading. Blocks are kept in order until the
    tier/length cap is reached; blocks longer than the tier's character
    ceiling are always dropped.
    """
    cap = get_example_cap(tier, length)
    max_chars = EXAMPLE_MAX_CHARS[tier]
    lines = text.split("\n")
    out: list[str] = []
    kept = dropped = 0
    i = 0
    while i < len(lines):
        if not _is_example_marker(lines[i]):
            out.append(lines[i])
            i += 1
            continue
        j = i + 1
        while j < len(lines) and lines[j].strip() and not _is_example_marker(lines[j]) and not is_header(lines[j]):
            j += 1
        block = lines[i:j]
        if kept < cap and len("\n".join(block).strip()) <= max_chars:
            out.extend(block)
            kept += 1
        else:
            dropped += 1
        i = j
    if dropped:
        logger.debug(f"Dropped {dropped} example block(s), kept {kept} (cap {cap})")
    return "\n".join(out)


# ---------------------------------------------------------------------------
# 4. Noise elimination
# ---------------------------------------------------------------------------

_JUSTIFICATION_RE = re.compile(
    r"[ \t]*(?:,[ \t]*car\b|,?[ \t]*\b(?:parce que|parce qu['’]|puisque|because|given that|as this)\b)"
    r"[^.!?\n]{20,}(?=[.!?])",
    re.IGNORECASE,
)
_WHY_LABEL_RE = re.compile(r"\*\*\s*(?:pourquoi|why|justification)\s*\**", re.IGNORECASE)
_STYLE_LIST_RE = re.compile(
    r"^([ \t]*(?:[-•][ \t]*)?\**[ \t]*(?:styles?|tons?|tones?|références?|references?)[ \t]*\**[ \t]*:[ \t]*)(.+)$",
    re.IGNORECASE | re.MULTILINE,
)
_DECORATIVE_RE = re.compile("[\U0001F300-\U0001FAFF\u2600-\u27bf\u2b00-\u2bff\ufe0f\u200d]+[ \t]?")
_FORMAT_LABEL_RE = re.compile(
    r"^\s*(?:[^\w\s*#]\s*)*(?:\*\*|#{1,6}\s+)?\s*(?:format|livrable|deliverable|output|sortie|structure du livrable)\b",
    re.IGNORECASE,
)


def _drop_sections(lines: list[str], should_drop: Callable[[int, str], bool]) -> list[str]:
    """Remove heading lines selected by ``should_drop`` together with their body.

    A body runs until the next heading or blank line.
    """
    out: list[str] = []
    i = 0
    while i < len(lines):
        if is_header(lines[i]) and should_drop(i, lines[i]):
            i += 1
            while i < len(lines) and lines[i].strip() and not is_header(lines[i]):
                i += 1
            continue
        out.append(lines[i])
        i += 1
    return out


def _cap_style_list(match: re.Match, cap: int) -> str:
    label, body = match.group(1), match.group(2)
    stripped = body.rstrip()
    terminal = stripped[-1] if stripped and stripped[-1] in ".!?" else ""
    items = [item for item in re.split(r"[ \t]*[,;][ \t]*", stripped.rstrip(".!?")) if item]
    if len(items) <= cap:
        return match.group(0)
    return label + ", ".join(items[:cap]) + terminal


def eliminate_noise(text: str, tier: Tier) -> str:
    """Remove justification clauses, over-long style lists and duplicate format sections.

    Decorative symbols are stripped for ``Tier.FREE`` only. Of several
    format/deliverable sections only the first survives.
    """
    text = _JUSTIFICATION_RE.sub("", text)

    seen_format = False

    def _drop(_: int, line: str) -> bool:
        nonlocal seen_format
        if _WHY_LABEL_RE.match(line.strip()):
            return True
        if _FORMAT_LABEL_RE.match(line):
            if seen_format:
                return True
            seen_format = True
        return False

    text = "\n".join(_drop_sections(text.split("\n"), _drop))

    cap = STYLE_LIST_CAPS[tier]
    text = _STYLE_LIST_RE.sub(lambda m: _cap_style_list(m, cap), text)

    if tier == Tier.FREE:
        text = _DECORATIVE_RE.sub("", text)
    return text


# ---------------------------------------------------------------------------
# 5. Compaction
# ---------------------------------------------------------------------------

_CONNECTIVES: tuple[tuple[re.Pattern, str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), replacement)
    for pattern, replacement in (
        # English
        (r"\bdue to the fact that\b", "because"),
        (r"\bin order to\b", "to"),
        (r"\bso as to\b", "to"),
        (r"\bwith (?:regard|respect) to\b", "about"),
        (r"\bin the event that\b", "if"),
        (r"\ba large number of\b", "many"),
        (r"\bat this point in time\b", "now"),
        (r"\bit is (?:important|essential) to\b", ""),
        (r"\bmake sure (?:to|that)\b", ""),
        (r"\bplease note that\b", ""),
        (r"\bfor example\b", "e.g."),
        (r"\bas well as\b", "and"),
        # French
        (r"\ben tenant compte de\b", "avec"),
        (r"\bil est (?:important|essentiel) de\b", ""),
        (r"\bassurez-vous (?:de|que)\b", ""),
        (r"\bveillez à\b", ""),
        (r"\bn['’]oubliez pas de\b", ""),
        (r"\bil faut\b", ""),
        (r"\bvous devez\b", ""),
        (r"\bc['’]est-à-dire\b", ":"),
        (r"\bpar exemple\b", "ex:"),
        (r"\bainsi que\b", "et"),
        (r"\b(?:de manière à|afin de|dans le but de|en ce qui concerne|dans le cadre de)\b", "pour"),
        (r"\ben fonction de\b", "selon"),
    )
)
_RELATIVE_PRONOUN_RE = re.compile(r"(?<!\w)(?:qui|que|dont|où|which|that|who|whom)(?!\w)[ \t]*", re.IGNORECASE)
_BULLET_MARKER_RE = re.compile(r"^(\s*)(?:[•]|\*(?!\*))(\s+)")
_EXCESS_ASTERISKS_RE = re.compile(r"\*{3,}")
_INNER_SPACES_RE = re.compile(r"(?<=\S)[ \t]{2,}")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"(?<=\S)[ \t]+([,.])(?=\s|$)")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def _compact_bullet(line: str) -> str:
    if not _LIST_ITEM_RE.match(line):
        return line
    line = _BULLET_MARKER_RE.sub(r"\1-\2", line, count=1)
    marker_end = len(line) - len(line.lstrip()) + 1
    return line[:marker_end] + _RELATIVE_PRONOUN_RE.sub("", line[marker_end:])


def _compaction_round(text: str) -> str:
    for pattern, replacement in _CONNECTIVES:
        text = pattern.sub(replacement, text)
    text = _EXCESS_ASTERISKS_RE.sub("**", text)
    lines = [_compact_bullet(line) for line in text.split("\n")]
    lines = [_INNER_SPACES_RE.sub(" ", line).rstrip() for line in lines]
    text = "\n".join(lines)
    text = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


def compact(text: str) -> str:
    """Rewrite verbose connectives, compact bullets and normalize whitespace.

    Bullet markers become ``-`` and lose relative pronouns; line breaks are
    kept (only runs of three or more collapse) so structure survives for the
    budget pass and the scorer.
    """
    return _until_stable(_compaction_round, text)


# ---------------------------------------------------------------------------
# 6. Ending guarantee and budget enforcement
# ---------------------------------------------------------------------------

_DANGLING_TAIL_RE = re.compile(r"(?:\.{2,}|…|[,;:\-–—(\[{/&]|\s)+$")
_BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}"}


def _unclosed_brackets(text: str) -> str:
    """Return the closers needed to balance brackets still open at the end."""
    stack: list[str] = []
    closers = set(_BRACKET_PAIRS.values())
    for char in text:
        if char in _BRACKET_PAIRS:
            stack.append(char)
        elif char in closers and stack and _BRACKET_PAIRS[stack[-1]] == char:
            stack.pop()
    return "".join(_BRACKET_PAIRS[opener] for opener in reversed(stack))


def seal_ending(text: str) -> str:
    """Guarantee the text does not stop mid-sentence.

    Drops trailing content-less headings, strips dangling commas,
    semicolons, colons, dashes and ellipses, closes brackets left open and
    appends a full stop when the text does not end in ``.``, ``!`` or ``?``.

    Example:
        >>> seal_ending("Points clés (prix, délais,")
        'Points clés (prix, délais).'
    """
    sealed = text.strip()
    if not sealed:
        return ""
    lines = sealed.split("\n")
    while len(lines) > 1 and (not lines[-1].strip() or is_bare_header(lines[-1])):
        lines.pop()
    sealed = _DANGLING_TAIL_RE.sub("", "\n".join(lines).rstrip())
    if not sealed:
        return ""
    sealed += _unclosed_brackets(sealed)
    if sealed[-1] not in ".!?":
        sealed += "."
    return sealed


def _fit_words(line: str, room: int) -> str:
    """Longest word prefix of ``line`` that still fits ``room`` once sealed."""
    fitted = ""
    for word in line.split(" "):
        candidate = f"{fitted} {word}" if fitted else word
        # One character reserved for the closing full stop.
        if len(candidate) + 1 > room:
            break
        fitted = candidate
    return fitted


def _shorten(kept: list[str]) -> None:
    """Drop the last word of the last kept line, or the line itself."""
    words = kept[-1].split(" ")
    if len(words) > 1:
        kept[-1] = " ".join(words[:-1])
    else:
        kept.pop()


def enforce_budget(text: str, token_budget: int) -> str:
    """Reduce over-budget text to its structural skeleton.

    Keeps section headings, bullet items and numbered steps in source order
    (all lines when the text has none), filling the budget word by word and
    sealing the last retained line. Text already within budget is returned
    unchanged.

    If not even the first word of the skeleton fits, that word (skipping
    bare list markers) is returned anyway and the caller sees an over-budget estimate.

    Args:
        text: Compacted text
        token_budget: Maximum estimated tokens

    Returns:
        Text whose estimate fits ``token_budget`` except in the edge case above
    """
    if estimate_tokens(text) <= token_budget:
        return text
    max_chars = max_chars_for_tokens(token_budget)
    lines = [re.sub(r"\s+", " ", line.strip()) for line in text.split("\n") if line.strip()]
    skeleton = [line for line in lines if is_structural(line)] or lines

    kept: list[str] = []
    used = 0
    for line in skeleton:
        separator = 1 if kept else 0
        if used + separator + len(line) <= max_chars:
            kept.append(line)
            used += separator + len(line)
            continue
        partial = _fit_words(line, max_chars - used - separator)
        if partial:
            kept.append(partial)
        break

    result = seal_ending("\n".join(kept))
    while kept and len(result) > max_chars:
        _shorten(kept)
        result = seal_ending("\n".join(kept))

    if not result and skeleton:
        for word in " ".join(skeleton).split():
            if not _BARE_MARKER_RE.fullmatch(word) and seal_ending(word):
                result = seal_ending(word)
                break
        logger.warning(
            "Structural skeleton exceeds budget",
            extra={"token_budget": token_budget, "estimated_tokens": estimate_tokens(result)},
        )
    return result


def remove_fluff(text: str, phrases: Iterable[str]) -> str:
    """Delete each phrase (case-insensitive, whole words) and tidy spacing."""
    for phrase in phrases:
        text = re.sub(rf"\b{re.escape(phrase)}\b[ \t]*", "", text, flags=re.IGNORECASE)
    return _INNER_SPACES_RE.sub(" ", text)
