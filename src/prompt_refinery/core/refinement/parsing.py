"""Parsing of reflective analysis output.

The oracle is asked for ``{"failures": [...]}`` JSON; a markdown layout
(``**FAILURE 1**`` / ``**ÉCHEC 1**`` blocks) is accepted as a fallback.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from .models import FailureAnalysis

logger = logging.getLogger(__name__)

_CODE_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_MARKDOWN_BLOCK_RE = re.compile(r"\*\*\s*(?:failure|échec|echec)\s*\d+\s*\**\s*:?", re.IGNORECASE)
_TYPE_RE = re.compile(r"^\s*[-*]?\s*\**(?:type|failure\s*type)\**\s*:\s*(.+)$", re.IGNORECASE | re.MULTILINE)
_SEVERITY_RE = re.compile(r"(?:severity|sévérité|severite)\**\s*:\s*\**\s*(\d+)", re.IGNORECASE)
_RECOMMENDATIONS_RE = re.compile(r"(?:recommendations?|recommandations?)\**\s*:?\s*\n?([\s\S]*)", re.IGNORECASE)
_BULLET_RE = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s+(.+)$", re.MULTILINE)
_DECODER = json.JSONDecoder()


def find_json_object(content: str, key: Optional[str] = None) -> Optional[dict[str, Any]]:
    """Return the first JSON object embedded in ``content``.

    Fenced code blocks are searched before the surrounding prose. Each
    ``{`` is tried as the start of an object, so stray braces in the prose
    do not hide a later valid object.

    Args:
        content: Raw oracle output
        key: When given, objects without this top-level key are skipped

    Returns:
        The decoded object, or None if no candidate decodes
    """
    candidates = [block.strip() for block in _CODE_BLOCK_RE.findall(content)]
    candidates.append(content)
    for candidate in candidates:
        start = candidate.find("{")
        while start != -1:
            try:
                value, _ = _DECODER.raw_decode(candidate, start)
            except json.JSONDecodeError:
                value = None
            if isinstance(value, dict) and (key is None or key in value):
                return value
            start = candidate.find("{", start + 1)
    return None


def _validate_entries(entries: Any) -> list[FailureAnalysis]:
    failures = []
    for entry in entries if isinstance(entries, list) else []:
        if not isinstance(entry, dict):
            continue
        try:
            failures.append(FailureAnalysis.model_validate(entry))
        except ValidationError as exc:
            logger.debug(f"Skipping malformed failure entry: {exc}")
    return failures


def _parse_markdown(content: str) -> Optional[list[FailureAnalysis]]:
    starts = [match.start() for match in _MARKDOWN_BLOCK_RE.finditer(content)]
    if not starts:
        return None
    failures = []
    for start, end in zip(starts, starts[1:] + [len(content)]):
        block = content[start:end]
        failure_type = _TYPE_RE.search(block)
        severity = _SEVERITY_RE.search(block)
        recommendations_block = _RECOMMENDATIONS_RE.search(block)
        recommendations = (
            [item.strip() for item in _BULLET_RE.findall(recommendations_block.group(1))]
            if recommendations_block
            else []
        )
        failures.append(
            FailureAnalysis(
                failure_type=failure_type.group(1).strip().strip("*") if failure_type else "unspecified",
                severity=severity.group(1) if severity else 5,
                recommendations=recommendations,
            )
        )
    return failures


def parse_failure_analysis(content: str) -> Optional[list[FailureAnalysis]]:
    """Parse oracle analysis output into failures.

    Returns:
        The failures (possibly an empty list, meaning "nothing to fix"), or
        None when the content follows neither the JSON nor the markdown layout
    """
    data = find_json_object(content or "", key="failures")
    if data is not None and isinstance(data["failures"], list):
        failures = _validate_entries(data["failures"])
        if data["failures"] and not failures:
            logger.debug("Every failure entry was malformed")
            return None
        return failures
    logger.debug("No failures object in analysis output, trying markdown layout")
    return _parse_markdown(content or "")
