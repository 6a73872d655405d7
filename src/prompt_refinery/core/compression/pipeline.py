"""Ordered compression pipeline.

Implements the budget-fit chain:
REDUNDANCY -> REPETITION -> EXAMPLES -> NOISE -> COMPACTION -> SEAL -> BUDGET

Each pass consumes the previous pass's output. The order is part of the
contract: passes are idempotent individually but not commutative.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional, Union

from prompt_refinery.config.decorators import timed
from prompt_refinery.core.token_management import (
    Length,
    Tier,
    coerce_length,
    coerce_tier,
    estimate_tokens,
    get_token_budget,
    looser_neighbors,
)

from .models import CompressionResult
from .passes import (
    compact,
    eliminate_noise,
    eliminate_repetition,
    enforce_budget,
    remove_redundancy,
    seal_ending,
    trim_examples,
)

logger = logging.getLogger(__name__)

PassFn = Callable[[str], str]


class CompressionPipeline:
    """Rule-based compression for one tier/length pair.

    Example:
        pipeline = CompressionPipeline(Tier.BASIC, Length.MEDIUM)
        result = pipeline.run(prompt_text)
        if not result.within_budget:
            logger.warning("Skeleton still over budget")

    Args:
        tier: Service tier (drives example/style caps and decoration removal)
        length: Verbosity class (drives the example cap)
        token_budget: Explicit budget overriding the tier/length table
    """

    def __init__(
        self,
        tier: Union[Tier, str],
        length: Union[Length, str],
        *,
        token_budget: Optional[int] = None,
    ) -> None:
        self.tier = coerce_tier(tier)
        self.length = coerce_length(length)
        self.token_budget = token_budget if token_budget is not None else get_token_budget(self.tier, self.length)

    def passes(self) -> list[tuple[str, PassFn]]:
        """Named passes in execution order."""
        return [
            ("redundancy_removal", remove_redundancy),
            ("repetition_elimination", eliminate_repetition),
            ("example_trimming", lambda text: trim_examples(text, self.tier, self.length)),
            ("noise_elimination", lambda text: eliminate_noise(text, self.tier)),
            ("compaction", compact),
            ("ending_seal", seal_ending),
            ("aggressive_compaction", lambda text: enforce_budget(text, self.token_budget)),
        ]

    def run(self, text: str) -> CompressionResult:
        """Compress ``text``; techniques list only the passes that changed it."""
        if not text or not text.strip():
            # Blank input has nothing to compress; report no reduction.
            empty = CompressionResult.build(
                text, "", tier=self.tier, length=self.length, token_budget=self.token_budget
            )
            return replace(empty, compression_rate_percent=0)

        current = text
        applied: list[str] = []
        for name, apply_pass in self.passes():
            updated = apply_pass(current)
            if updated != current:
                applied.append(name)
                logger.debug(
                    f"Pass {name}: {len(current)} -> {len(updated)} chars",
                    extra={"pass": name, "tier": self.tier.value, "length": self.length.value},
                )
            current = updated

        result = CompressionResult.build(
            text,
            current,
            tuple(applied),
            tier=self.tier,
            length=self.length,
            token_budget=self.token_budget,
        )
        if not result.within_budget:
            logger.warning(
                f"Compressed text still over budget ({result.estimated_tokens} > {self.token_budget} tokens)",
                extra={"tier": self.tier.value, "length": self.length.value},
            )
        return result


def _compress_monotonic(
    text: str,
    tier: Tier,
    length: Length,
    memo: dict[tuple[Tier, Length], CompressionResult],
) -> CompressionResult:
    """Compress, never returning more tokens than any looser tier/length would."""
    key = (tier, length)
    if key in memo:
        return memo[key]
    result = CompressionPipeline(tier, length).run(text)
    for looser_tier, looser_length in looser_neighbors(tier, length):
        looser = _compress_monotonic(text, looser_tier, looser_length, memo)
        if looser.estimated_tokens < result.estimated_tokens:
            logger.debug(
                f"Using {looser_tier.value}/{looser_length.value} output for {tier.value}/{length.value}",
            )
            result = replace(
                looser,
                tier=tier,
                length=length,
                token_budget=result.token_budget,
                applied_techniques=looser.applied_techniques + ("budget_cascade",),
            )
    memo[key] = result
    return result


@timed("compression.compress")
def compress(text: str, tier: Union[Tier, str], length: Union[Length, str]) -> CompressionResult:
    """Compress a prompt to the token budget of a tier/length pair.

    A tighter pair never yields a longer result than a looser one: when a
    looser pair's output is shorter (its aggressive pass kept a smaller
    skeleton, say), that output is used instead.

    Args:
        text: Prompt text; empty input yields an empty result with rate 0
        tier: Service tier
        length: Verbosity class

    Returns:
        CompressionResult whose text never ends mid-sentence

    Example:
        result = compress("Bonjour, créez un article sur les chatbots", "free", "short")
        result.compressed_text  # 'un article sur les chatbots.'
    """
    return _compress_monotonic(text or "", coerce_tier(tier), coerce_length(length), {})


def compress_to_budget(text: str, tier: Union[Tier, str], token_budget: int) -> CompressionResult:
    """Compress against an explicit token budget (used by the refinement loop)."""
    if estimate_tokens(text) <= token_budget:
        return CompressionResult.build(text, text, tier=coerce_tier(tier), token_budget=token_budget)
    return CompressionPipeline(tier, Length.VERY_LONG, token_budget=token_budget).run(text)
