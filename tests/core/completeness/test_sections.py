"""Tests for the section vocabulary and ordered matchers."""

import pytest

from prompt_refinery.core.completeness import (
    REQUIRED_SECTIONS,
    SECTION_MATCHERS,
    SectionName,
    find_section,
    required_sections,
)
from prompt_refinery.core.token_management import Tier


class TestSectionVocabulary:
    """Tests for SectionName and required sections."""

    def test_labels(self):
        assert SectionName.CONTEXT.label == "Context"
        assert SectionName.CONSTRAINTS.value == "constraints"

    def test_free_tier_skips_constraints(self):
        assert required_sections(Tier.FREE) == (SectionName.ROLE, SectionName.CONTEXT, SectionName.FORMAT)

    @pytest.mark.parametrize("tier", [Tier.BASIC, Tier.PREMIUM])
    def test_paid_tiers_require_four_sections(self, tier):
        assert required_sections(tier) == (
            SectionName.ROLE,
            SectionName.CONTEXT,
            SectionName.FORMAT,
            SectionName.CONSTRAINTS,
        )

    def test_every_tier_listed(self):
        assert set(REQUIRED_SECTIONS) == set(Tier)

    def test_matchers_ordered_bold_first(self):
        for matchers in SECTION_MATCHERS.values():
            assert [matcher.variant for matcher in matchers] == ["bold", "emoji", "heading"]


class TestFindSection:
    """Tests for find_section."""

    def test_bold_label(self):
        assert find_section("**RÔLE**: expert.", SectionName.ROLE) == ("bold", "**RÔLE**: expert.", "expert.")

    def test_english_bold_label(self):
        found = find_section("**Constraints**: under 200 words.", SectionName.CONSTRAINTS)
        assert found is not None
        assert found[2] == "under 200 words."

    def test_emoji_heading(self):
        found = find_section("\U0001F3AF Objectif : augmenter les ventes.", SectionName.OBJECTIVE)
        assert found is not None
        assert found[0] == "emoji"
        assert found[2] == "augmenter les ventes."

    def test_markdown_heading(self):
        found = find_section("## Format\nUne liste à puces.\n", SectionName.FORMAT)
        assert found is not None
        assert found[0] == "heading"
        assert found[2] == "Une liste à puces."

    def test_content_stops_at_next_heading(self):
        found = find_section("**Rôle**: expert.\n**Contexte**: vente.", SectionName.ROLE)
        assert found[2] == "expert."

    def test_content_stops_at_separator(self):
        found = find_section("**Format**: liste.\n---\nNotes diverses.", SectionName.FORMAT)
        assert found[2] == "liste."

    def test_multi_line_content(self):
        found = find_section("**Format**:\n- titre\n- corps.\n\n\nFin.", SectionName.FORMAT)
        assert found[2] == "- titre\n- corps."

    def test_empty_content_is_absent(self):
        assert find_section("**Rôle**:\n**Contexte**: vente.", SectionName.ROLE) is None

    def test_absent(self):
        assert find_section("Plain text without any heading.", SectionName.ROLE) is None
