"""Tests for reflective analysis parsing."""

import json

import pytest

from prompt_refinery.core.refinement import FailureAnalysis, find_json_object, parse_failure_analysis


class TestFindJsonObject:
    """Tests for find_json_object."""

    def test_code_block(self):
        content = 'Here you go:\n```json\n{"failures": []}\n```\nThanks.'
        assert find_json_object(content) == {"failures": []}

    def test_bare_object_with_prose(self):
        content = 'Analysis follows {"a": {"b": 1}} and that is all.'
        assert find_json_object(content) == {"a": {"b": 1}}

    def test_braces_inside_strings(self):
        content = '{"text": "use {curly} braces", "n": 1} trailing'
        assert find_json_object(content) == {"text": "use {curly} braces", "n": 1}

    def test_escaped_quotes(self):
        content = '{"text": "say \\"hi\\" {"} tail'
        assert find_json_object(content) == {"text": 'say "hi" {'}

    def test_stray_brace_before_object(self):
        content = 'Use {placeholders} sparingly. {"failures": []}'
        assert find_json_object(content) == {"failures": []}

    def test_key_skips_other_objects(self):
        content = '{"note": "draft"} then {"failures": [{"failureType": "x"}]}'
        assert find_json_object(content, key="failures") == {"failures": [{"failureType": "x"}]}

    @pytest.mark.parametrize("content", ["", "no json here", '{"unterminated": 1'])
    def test_not_found(self, content):
        assert find_json_object(content) is None


class TestParseFailureAnalysis:
    """Tests for parse_failure_analysis."""

    def test_json_failures(self):
        content = json.dumps(
            {"failures": [{"failureType": "vague goal", "severity": 7, "recommendations": ["State the goal"]}]}
        )
        failures = parse_failure_analysis(content)
        assert failures == [FailureAnalysis(failure_type="vague goal", severity=7, recommendations=["State the goal"])]

    def test_explicit_empty_list(self):
        assert parse_failure_analysis('```json\n{"failures": []}\n```') == []

    def test_malformed_entries_skipped(self):
        content = json.dumps({"failures": [{"severity": 3}, {"failure_type": "tone", "severity": 2}]})
        failures = parse_failure_analysis(content)
        assert [failure.failure_type for failure in failures] == ["tone"]

    def test_all_entries_malformed(self):
        assert parse_failure_analysis(json.dumps({"failures": [{"severity": 3}, "oops"]})) is None

    def test_markdown_layout(self):
        content = (
            "**ÉCHEC 1**\n"
            "Type: ton\n"
            "Sévérité: 4\n"
            "Recommandations:\n"
            "- Adopter un ton formel\n"
            "- Éviter le jargon\n"
            "**ÉCHEC 2**\n"
            "Type: longueur\n"
            "Sévérité: 6\n"
        )
        failures = parse_failure_analysis(content)
        assert [(failure.failure_type, failure.severity) for failure in failures] == [("ton", 4), ("longueur", 6)]
        assert failures[0].recommendations == ["Adopter un ton formel", "Éviter le jargon"]
        assert failures[1].recommendations == []

    @pytest.mark.parametrize("content", ["", "Looks fine to me.", '{"verdict": "ok"}'])
    def test_unreadable(self, content):
        assert parse_failure_analysis(content) is None


class TestFailureAnalysisModel:
    """Tests for FailureAnalysis validation."""

    @pytest.mark.parametrize("raw,expected", [(15, 10), (0, 1), ("high", 5), ("7", 7), (6.6, 7), (None, 5)])
    def test_severity_clamped(self, raw, expected):
        assert FailureAnalysis(failure_type="x", severity=raw).severity == expected

    def test_recommendation_string_becomes_list(self):
        failure = FailureAnalysis.model_validate({"failureType": "x", "recommendations": "Be concise"})
        assert failure.recommendations == ["Be concise"]

    def test_blank_recommendations_dropped(self):
        failure = FailureAnalysis(failure_type="x", recommendations=["  ", "Keep it", ""])
        assert failure.recommendations == ["Keep it"]

    def test_blank_type_normalized(self):
        assert FailureAnalysis(failure_type="   ").failure_type == "unspecified"

    def test_dump_uses_alias(self):
        dumped = FailureAnalysis(failure_type="x", severity=2).model_dump(by_alias=True)
        assert dumped == {"failureType": "x", "severity": 2, "recommendations": []}
