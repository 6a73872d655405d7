"""Rule-based prompt compression.

Key Components:
    - compress(): budget-fit compression for a tier/length pair
    - CompressionPipeline: the ordered pass chain, with optional explicit budget
    - UltraCompressor: four-field template compression with self-validation
    - individual passes (remove_redundancy, eliminate_repetition, ...)

Usage:
    from prompt_refinery.core.compression import compress

    result = compress(prompt, "basic", "medium")
    print(result.compressed_text, result.estimated_tokens)
"""

from .models import CompressionResult, UltraCompressionResult, UltraValidation
from .passes import (
    compact,
    eliminate_noise,
    eliminate_repetition,
    enforce_budget,
    remove_redundancy,
    seal_ending,
    trim_examples,
)
from .pipeline import CompressionPipeline, compress, compress_to_budget
from .ultra import UltraCompressor

__all__ = [
    "CompressionPipeline",
    "CompressionResult",
    "UltraCompressionResult",
    "UltraCompressor",
    "UltraValidation",
    "compact",
    "compress",
    "compress_to_budget",
    "eliminate_noise",
    "eliminate_repetition",
    "enforce_budget",
    "remove_redundancy",
    "seal_ending",
    "trim_examples",
]
