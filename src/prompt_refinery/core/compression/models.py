"""Result models for the compression pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from prompt_refinery.core.token_management import Length, Tier, estimate_tokens


def reduction_percent(original: int, compressed: int) -> int:
    """Percentage of ``original`` removed; 0 when there was nothing to compress."""
    if original <= 0:
        return 0
    return round((original - compressed) / original * 100)


@dataclass(frozen=True)
class CompressionResult:
    """Outcome of one ``compress`` call.

    ``estimated_tokens`` is derived from ``compressed_text`` on access, so it
    can never disagree with the text it describes.

    Attributes:
        compressed_text: Rewritten text
        original_length: Character count of the input
        compressed_length: Character count of ``compressed_text``
        compression_rate_percent: Share of characters removed (0 for empty input)
        applied_techniques: Names of the passes that changed the text, in order
        tier: Tier the result was produced for
        length: Length class the result was produced for
        token_budget: Budget the pipeline targeted
    """

    compressed_text: str
    original_length: int
    compressed_length: int
    compression_rate_percent: int
    applied_techniques: tuple[str, ...] = field(default_factory=tuple)
    tier: Optional[Tier] = None
    length: Optional[Length] = None
    token_budget: Optional[int] = None

    @property
    def estimated_tokens(self) -> int:
        return estimate_tokens(self.compressed_text)

    @property
    def within_budget(self) -> bool:
        """False only when even the structural skeleton exceeded the budget."""
        return self.token_budget is None or self.estimated_tokens <= self.token_budget

    @classmethod
    def build(
        cls,
        original: str,
        compressed: str,
        techniques: tuple[str, ...] = (),
        *,
        tier: Optional[Tier] = None,
        length: Optional[Length] = None,
        token_budget: Optional[int] = None,
    ) -> "CompressionResult":
        return cls(
            compressed_text=compressed,
            original_length=len(original),
            compressed_length=len(compressed),
            compression_rate_percent=reduction_percent(len(original), len(compressed)),
            applied_techniques=tuple(techniques),
            tier=tier,
            length=length,
            token_budget=token_budget,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "compressed_text": self.compressed_text,
            "original_length": self.original_length,
            "compressed_length": self.compressed_length,
            "compression_rate_percent": self.compression_rate_percent,
            "estimated_tokens": self.estimated_tokens,
            "applied_techniques": list(self.applied_techniques),
            "tier": self.tier.value if self.tier else None,
            "length": self.length.value if self.length else None,
            "token_budget": self.token_budget,
            "within_budget": self.within_budget,
        }


@dataclass(frozen=True)
class UltraCompressionResult:
    """Outcome of the ultra (template) compressor.

    Attributes:
        compressed_text: Four-field template text
        original_words: Word count of the input
        compressed_words: Word count of the output
        reduction_rate_percent: Share of words removed
        validation_score: Self-validation score, 0-100
        applied_techniques: Passes applied, in order
    """

    compressed_text: str
    original_words: int
    compressed_words: int
    reduction_rate_percent: int
    validation_score: int
    applied_techniques: tuple[str, ...] = field(default_factory=tuple)

    @property
    def estimated_tokens(self) -> int:
        return estimate_tokens(self.compressed_text)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "compressed_text": self.compressed_text,
            "original_words": self.original_words,
            "compressed_words": self.compressed_words,
            "reduction_rate_percent": self.reduction_rate_percent,
            "validation_score": self.validation_score,
            "estimated_tokens": self.estimated_tokens,
            "applied_techniques": list(self.applied_techniques),
        }


@dataclass(frozen=True)
class UltraValidation:
    """Errors and warnings for a template-compressed text."""

    score: int
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors
