"""Token estimation and budget tables.

Key Components:
    - Tier / Length: str enums for service level and verbosity
    - estimate_tokens(): the single length measure used across the package
    - BUDGET_TABLE / get_token_budget(): max tokens per (tier, length)
    - EXAMPLE_CAPS, EXAMPLE_MAX_CHARS, STYLE_LIST_CAPS: compression caps

Usage:
    from prompt_refinery.core.token_management import (
        Length,
        Tier,
        estimate_tokens,
        get_token_budget,
    )

    budget = get_token_budget(Tier.BASIC, Length.MEDIUM)
    if estimate_tokens(text) > budget:
        ...
"""

from .budget import (
    BUDGET_TABLE,
    EXAMPLE_CAPS,
    EXAMPLE_MAX_CHARS,
    STYLE_LIST_CAPS,
    coerce_length,
    coerce_tier,
    get_example_cap,
    get_token_budget,
    looser_neighbors,
)
from .estimation import CHARS_PER_TOKEN, estimate_tokens, max_chars_for_tokens
from .models import LENGTH_ORDER, TIER_ORDER, Length, Tier

__all__ = [
    # Models
    "Length",
    "Tier",
    "LENGTH_ORDER",
    "TIER_ORDER",
    # Estimation
    "CHARS_PER_TOKEN",
    "estimate_tokens",
    "max_chars_for_tokens",
    # Budgets
    "BUDGET_TABLE",
    "EXAMPLE_CAPS",
    "EXAMPLE_MAX_CHARS",
    "STYLE_LIST_CAPS",
    "coerce_length",
    "coerce_tier",
    "get_example_cap",
    "get_token_budget",
    "looser_neighbors",
]
