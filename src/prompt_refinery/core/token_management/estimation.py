"""Token estimation.

Every length comparison in the package goes through ``estimate_tokens`` so
that budget checks in the compression pipeline, the scorer and the
refinement loop all agree.
"""

import math

# Characters per token for the heuristic estimate.
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text``.

    Uses a fixed characters-per-token ratio; the result is an approximation,
    not a tokenizer count.

    Args:
        text: Text to measure

    Returns:
        ``ceil(len(text) / 4)``; 0 for an empty string

    Example:
        >>> estimate_tokens("Hello, world!")
        4
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def max_chars_for_tokens(tokens: int) -> int:
    """Largest character count whose estimate fits within ``tokens``."""
    return max(0, tokens) * CHARS_PER_TOKEN
