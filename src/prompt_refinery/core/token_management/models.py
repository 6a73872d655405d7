"""Tier and length enums shared by the budget tables."""

from enum import Enum


class Tier(str, Enum):
    """Service level determining token budgets and required sections.

    FREE: Tightest budgets, fewest required sections
    BASIC: Intermediate budgets
    PREMIUM: Largest budgets
    """

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


class Length(str, Enum):
    """Requested verbosity class, orthogonal to tier.

    SHORT: Terse output
    MEDIUM: Default verbosity
    LONG: Extended output
    VERY_LONG: Most detailed output
    """

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    VERY_LONG = "very_long"


# Tightest first; budgets are non-decreasing along both orders.
TIER_ORDER: tuple[Tier, ...] = (Tier.FREE, Tier.BASIC, Tier.PREMIUM)
LENGTH_ORDER: tuple[Length, ...] = (Length.SHORT, Length.MEDIUM, Length.LONG, Length.VERY_LONG)
