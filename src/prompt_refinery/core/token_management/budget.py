"""Budget tables keyed by tier and length.

Provides:
    - BUDGET_TABLE: max tokens per (tier, length)
    - EXAMPLE_CAPS: max retained example blocks per (tier, length)
    - EXAMPLE_MAX_CHARS: per-tier ceiling on a single example block
    - STYLE_LIST_CAPS: per-tier cap on style/tone reference lists
    - get_token_budget(), get_example_cap(): typed accessors
    - looser_neighbors(): the next-larger (tier, length) pairs
"""

from types import MappingProxyType
from typing import Mapping, Union

from .models import LENGTH_ORDER, TIER_ORDER, Length, Tier

TierLike = Union[Tier, str]
LengthLike = Union[Length, str]

BUDGET_TABLE: Mapping[tuple[Tier, Length], int] = MappingProxyType(
    {
        (Tier.FREE, Length.SHORT): 100,
        (Tier.FREE, Length.MEDIUM): 150,
        (Tier.FREE, Length.LONG): 200,
        (Tier.FREE, Length.VERY_LONG): 250,
        (Tier.BASIC, Length.SHORT): 150,
        (Tier.BASIC, Length.MEDIUM): 300,
        (Tier.BASIC, Length.LONG): 450,
        (Tier.BASIC, Length.VERY_LONG): 600,
        (Tier.PREMIUM, Length.SHORT): 300,
        (Tier.PREMIUM, Length.MEDIUM): 600,
        (Tier.PREMIUM, Length.LONG): 900,
        (Tier.PREMIUM, Length.VERY_LONG): 1200,
    }
)

EXAMPLE_CAPS: Mapping[tuple[Tier, Length], int] = MappingProxyType(
    {
        (Tier.FREE, Length.SHORT): 0,
        (Tier.FREE, Length.MEDIUM): 1,
        (Tier.FREE, Length.LONG): 1,
        (Tier.FREE, Length.VERY_LONG): 2,
        (Tier.BASIC, Length.SHORT): 1,
        (Tier.BASIC, Length.MEDIUM): 1,
        (Tier.BASIC, Length.LONG): 2,
        (Tier.BASIC, Length.VERY_LONG): 3,
        (Tier.PREMIUM, Length.SHORT): 1,
        (Tier.PREMIUM, Length.MEDIUM): 2,
        (Tier.PREMIUM, Length.LONG): 3,
        (Tier.PREMIUM, Length.VERY_LONG): 5,
    }
)

EXAMPLE_MAX_CHARS: Mapping[Tier, int] = MappingProxyType(
    {
        Tier.FREE: 200,
        Tier.BASIC: 400,
        Tier.PREMIUM: 800,
    }
)

STYLE_LIST_CAPS: Mapping[Tier, int] = MappingProxyType(
    {
        Tier.FREE: 2,
        Tier.BASIC: 3,
        Tier.PREMIUM: 4,
    }
)


def coerce_tier(tier: TierLike) -> Tier:
    """Accept a Tier or its string value."""
    return tier if isinstance(tier, Tier) else Tier(str(tier).strip().lower())


def coerce_length(length: LengthLike) -> Length:
    """Accept a Length or its string value (``very-long`` is accepted too)."""
    if isinstance(length, Length):
        return length
    return Length(str(length).strip().lower().replace("-", "_"))


def get_token_budget(tier: TierLike, length: LengthLike) -> int:
    """Return the token budget for a tier/length pair.

    Args:
        tier: Service tier
        length: Requested verbosity

    Returns:
        Maximum estimated tokens for compressed output

    Raises:
        ValueError: If tier or length is not a known value
    """
    return BUDGET_TABLE[(coerce_tier(tier), coerce_length(length))]


def get_example_cap(tier: TierLike, length: LengthLike) -> int:
    """Return how many example blocks a tier/length pair may keep."""
    return EXAMPLE_CAPS[(coerce_tier(tier), coerce_length(length))]


def looser_neighbors(tier: Tier, length: Length) -> list[tuple[Tier, Length]]:
    """Return the pairs one step looser than (tier, length) along each axis."""
    neighbors = []
    length_idx = LENGTH_ORDER.index(length)
    if length_idx + 1 < len(LENGTH_ORDER):
        neighbors.append((tier, LENGTH_ORDER[length_idx + 1]))
    tier_idx = TIER_ORDER.index(tier)
    if tier_idx + 1 < len(TIER_ORDER):
        neighbors.append((TIER_ORDER[tier_idx + 1], length))
    return neighbors
