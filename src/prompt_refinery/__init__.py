"""prompt-refinery: budgeted prompt compression and completeness-driven refinement.

Usage:
    from prompt_refinery import Length, Tier, compress, evaluate_completeness

    result = compress("Please create an article about chatbots", Tier.FREE, Length.SHORT)
    score = evaluate_completeness(result.compressed_text, Tier.FREE)
"""

from prompt_refinery.core.completeness import evaluate_completeness
from prompt_refinery.core.compression import compress
from prompt_refinery.core.refinement import (
    optimize_until_complete,
    optimize_with_reflection,
)
from prompt_refinery.core.token_management import Length, Tier, estimate_tokens

__version__ = "0.3.0"

__all__ = [
    "Length",
    "Tier",
    "compress",
    "estimate_tokens",
    "evaluate_completeness",
    "optimize_until_complete",
    "optimize_with_reflection",
    "__version__",
]
