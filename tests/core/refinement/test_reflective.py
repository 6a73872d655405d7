"""Tests for the reflective (failure-severity) refinement loop.

Tests cover:
1. Immediate convergence when no failures are reported
2. Analysis/apply call sequence, temperatures and severity ordering
3. The iteration cap and degraded results
4. Unparseable analyses
5. The heuristic quality score
"""

import json
import logging

import pytest

from prompt_refinery.config import RefineryConfig, ReflectionConfig
from prompt_refinery.core.refinement import (
    DEGRADED_NOTE_PREFIX,
    FailureAnalysis,
    UNPARSEABLE_ANALYSIS_TYPE,
    optimize_with_reflection,
    quality_score,
)

INITIAL = "Écris un email."
IMPROVED = "Improved prompt text."
RICH = (
    "**Rôle**: expert.\n\n"
    "**Objectif**: rédiger un email de relance clair.\n\n"
    "**Format**: liste à puces.\n"
    "- point un\n"
    "- point deux\n"
)

TWO_FAILURES = json.dumps(
    {
        "failures": [
            {"failureType": "clarity", "severity": 3, "recommendations": ["State the goal", "Add an example"]},
            {"failureType": "format", "severity": 8, "recommendations": ["Specify bullet format", "state the goal"]},
        ]
    }
)
NO_FAILURES = '{"failures": []}'
SEVERE = json.dumps({"failures": [{"failureType": "ambiguity", "severity": 9, "recommendations": ["Be precise"]}]})


# =============================================================================
# Test: Convergence
# =============================================================================


class TestReflectiveConvergence:
    """Tests for runs that converge."""

    @pytest.mark.asyncio
    async def test_no_failures_converges_immediately(self, scripted_oracle, default_config):
        oracle = scripted_oracle(analyses=[NO_FAILURES])
        result = await optimize_with_reflection(oracle, INITIAL, "", "basic", config=default_config)

        assert result.converged is True
        assert len(oracle.calls) == 1
        assert oracle.generation_calls == []
        assert result.final_text == INITIAL
        assert result.iterations[0].prompt_sent_to_oracle is None
        assert result.total_improvements == ()
        assert result.failures == ()
        assert result.improvement_log[0].startswith("Iteration 1: no failures reported")

    @pytest.mark.asyncio
    async def test_analysis_apply_sequence(self, scripted_oracle, default_config):
        oracle = scripted_oracle([IMPROVED], analyses=[TWO_FAILURES, NO_FAILURES])
        result = await optimize_with_reflection(
            oracle, INITIAL, "readers ignore the call to action", "premium", config=default_config
        )

        assert [call.is_analysis for call in oracle.calls] == [True, False, True]
        analysis, apply, _ = oracle.calls
        assert (analysis.temperature, analysis.max_tokens) == (0.6, 4000)
        assert (apply.temperature, apply.max_tokens) == (0.7, 8000)
        assert "readers ignore the call to action" in analysis.user
        assert apply.system.index("format [severity 8/10]") < apply.system.index("clarity [severity 3/10]")
        assert apply.user.startswith(INITIAL)

        assert result.converged is True
        assert result.final_text == IMPROVED
        assert len(result.iterations) == 2
        assert result.iterations[1].applied_corrections == ("format (severity 8)", "clarity (severity 3)")
        assert result.convergence_score == 10.0

    @pytest.mark.asyncio
    async def test_improvements_deduplicated(self, scripted_oracle, default_config):
        oracle = scripted_oracle([IMPROVED], analyses=[TWO_FAILURES, NO_FAILURES])
        result = await optimize_with_reflection(oracle, INITIAL, "", "basic", config=default_config)

        assert result.total_improvements == ("Specify bullet format", "state the goal", "Add an example")

    @pytest.mark.asyncio
    async def test_insights_summarize_run(self, scripted_oracle, default_config):
        oracle = scripted_oracle([IMPROVED], analyses=[TWO_FAILURES, NO_FAILURES])
        result = await optimize_with_reflection(oracle, INITIAL, "", "basic", config=default_config)

        assert result.reflective_insights == (
            "Reflective analysis ran 2 iteration(s). Main weaknesses: format, clarity. "
            "Applied 3 distinct recommendation(s). Final quality 10.0/10, converged."
        )

    @pytest.mark.asyncio
    async def test_high_quality_with_minor_failures_converges(self, scripted_oracle, default_config):
        minor = json.dumps(
            {
                "failures": [
                    {"failureType": "tone", "severity": 5, "recommendations": []},
                    {"failureType": "length", "severity": 5, "recommendations": []},
                ]
            }
        )
        oracle = scripted_oracle(analyses=[minor])
        result = await optimize_with_reflection(oracle, RICH, "", "basic", config=default_config)

        assert result.converged is True
        assert result.convergence_score == pytest.approx(9.3)
        assert len(result.failures) == 2


# =============================================================================
# Test: Iteration cap
# =============================================================================


class TestReflectiveCap:
    """Tests for runs that never converge."""

    @pytest.mark.asyncio
    async def test_cap_reached(self, scripted_oracle, default_config):
        oracle = scripted_oracle([IMPROVED], analyses=[SEVERE])
        result = await optimize_with_reflection(oracle, INITIAL, "", "basic", config=default_config)

        assert len(oracle.calls) == 5
        assert len(oracle.analysis_calls) == 3
        assert result.degraded is True
        assert len(result.iterations) == 3
        assert result.improvement_log[-1].startswith(DEGRADED_NOTE_PREFIX)
        assert result.convergence_score == pytest.approx(7.3)
        assert result.failures[0].failure_type == "ambiguity"
        assert result.reflective_insights.endswith("did not converge.")

    @pytest.mark.asyncio
    async def test_cap_from_config(self, scripted_oracle):
        config = RefineryConfig(reflection=ReflectionConfig(max_iterations=1))
        oracle = scripted_oracle([IMPROVED], analyses=[SEVERE])
        result = await optimize_with_reflection(oracle, INITIAL, "", "basic", config=config)

        assert len(oracle.calls) == 1
        assert result.degraded is True
        assert result.total_improvements == ()


# =============================================================================
# Test: Unparseable analyses
# =============================================================================


class TestUnparseableAnalysis:
    """Tests for analyses the parser cannot read."""

    @pytest.mark.asyncio
    async def test_never_converges(self, scripted_oracle, default_config, caplog):
        oracle = scripted_oracle([RICH], analyses=["I would rather not say."])
        with caplog.at_level(logging.WARNING, logger="prompt_refinery.core.refinement.strategies"):
            result = await optimize_with_reflection(oracle, RICH, "", "basic", config=default_config)

        assert result.converged is False
        assert len(oracle.calls) == 5
        assert result.failures[0].failure_type == UNPARSEABLE_ANALYSIS_TYPE
        assert result.failures[0].severity == 5
        assert "Could not parse failure analysis" in caplog.text

    @pytest.mark.asyncio
    async def test_markdown_analysis_accepted(self, scripted_oracle, default_config):
        markdown = (
            "**FAILURE 1**\n"
            "Type: missing audience\n"
            "Severity: 7\n"
            "Recommendations:\n"
            "- Name the target readers\n"
        )
        oracle = scripted_oracle([IMPROVED], analyses=[markdown, NO_FAILURES])
        result = await optimize_with_reflection(oracle, INITIAL, "", "basic", config=default_config)

        assert result.converged is True
        assert result.total_improvements == ("Name the target readers",)


# =============================================================================
# Test: Quality score
# =============================================================================


class TestQualityScore:
    """Tests for quality_score."""

    def test_no_failures_plain_text(self):
        assert quality_score("x", []) == 10.0

    def test_severity_penalty(self):
        assert quality_score("x", [FailureAnalysis(failure_type="a", severity=10)]) == pytest.approx(7.0)

    def test_structure_bonuses(self):
        failures = [FailureAnalysis(failure_type="a", severity=10)]
        assert quality_score(RICH, failures) == pytest.approx(9.3)

    def test_clamped_to_bounds(self):
        failures = [FailureAnalysis(failure_type="a", severity=10)] * 4
        assert quality_score("x", failures) == 0.0
        assert quality_score(RICH, []) == 10.0
