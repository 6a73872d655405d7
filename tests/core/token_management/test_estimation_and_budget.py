"""Tests for token estimation and the tier/length budget tables.

Tests cover:
1. estimate_tokens ceiling arithmetic and empty input
2. Budget lookups, string coercion and rejection of unknown values
3. Monotonic budget table along both axes
4. looser_neighbors ordering
"""

import pytest

from prompt_refinery.core.token_management import (
    BUDGET_TABLE,
    EXAMPLE_CAPS,
    LENGTH_ORDER,
    TIER_ORDER,
    Length,
    Tier,
    coerce_length,
    estimate_tokens,
    get_example_cap,
    get_token_budget,
    looser_neighbors,
    max_chars_for_tokens,
)

# =============================================================================
# Test: estimate_tokens
# =============================================================================


class TestEstimateTokens:
    """Tests for the four-characters-per-token estimate."""

    def test_empty_string_is_zero(self):
        assert estimate_tokens("") == 0

    def test_exact_multiple(self):
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("a" * 400) == 100

    def test_partial_token_rounds_up(self):
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("Hello, world!") == 4

    def test_max_chars_inverse(self):
        """The largest text allowed by a budget estimates exactly to it."""
        assert max_chars_for_tokens(25) == 100
        assert estimate_tokens("x" * max_chars_for_tokens(25)) == 25
        assert estimate_tokens("x" * (max_chars_for_tokens(25) + 1)) == 26

    def test_negative_budget_allows_nothing(self):
        assert max_chars_for_tokens(-3) == 0


# =============================================================================
# Test: Budget table
# =============================================================================


class TestTokenBudget:
    """Tests for get_token_budget and coercion."""

    @pytest.mark.parametrize(
        "tier,length,expected",
        [
            (Tier.FREE, Length.SHORT, 100),
            (Tier.FREE, Length.MEDIUM, 150),
            (Tier.BASIC, Length.MEDIUM, 300),
            (Tier.PREMIUM, Length.MEDIUM, 600),
            (Tier.PREMIUM, Length.VERY_LONG, 1200),
        ],
    )
    def test_known_values(self, tier, length, expected):
        assert get_token_budget(tier, length) == expected

    def test_accepts_strings(self):
        assert get_token_budget("basic", "long") == 450
        assert get_token_budget("PREMIUM", "short") == 300

    def test_hyphenated_length(self):
        assert coerce_length("very-long") is Length.VERY_LONG
        assert get_token_budget("free", "very-long") == 250

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValueError):
            get_token_budget("enterprise", "short")

    def test_unknown_length_rejected(self):
        with pytest.raises(ValueError):
            get_token_budget("free", "huge")

    def test_every_pair_has_a_budget(self):
        assert len(BUDGET_TABLE) == len(TIER_ORDER) * len(LENGTH_ORDER)
        assert set(EXAMPLE_CAPS) == set(BUDGET_TABLE)

    def test_budgets_non_decreasing_with_length(self):
        for tier in TIER_ORDER:
            budgets = [get_token_budget(tier, length) for length in LENGTH_ORDER]
            assert budgets == sorted(budgets)

    def test_budgets_non_decreasing_with_tier(self):
        for length in LENGTH_ORDER:
            budgets = [get_token_budget(tier, length) for tier in TIER_ORDER]
            assert budgets == sorted(budgets)

    def test_example_caps_within_range(self):
        assert get_example_cap("free", "short") == 0
        assert get_example_cap("premium", "very_long") == 5
        assert all(0 <= cap <= 5 for cap in EXAMPLE_CAPS.values())


class TestLooserNeighbors:
    """Tests for looser_neighbors."""

    def test_tightest_pair_has_two_neighbors(self):
        assert looser_neighbors(Tier.FREE, Length.SHORT) == [
            (Tier.FREE, Length.MEDIUM),
            (Tier.BASIC, Length.SHORT),
        ]

    def test_loosest_pair_has_none(self):
        assert looser_neighbors(Tier.PREMIUM, Length.VERY_LONG) == []

    def test_edge_of_length_axis(self):
        assert looser_neighbors(Tier.BASIC, Length.VERY_LONG) == [(Tier.PREMIUM, Length.VERY_LONG)]
