"""Oracle commands: completeness refinement and reflective refinement."""

import asyncio

import click

from prompt_refinery.cli.inputs import TIER_CHOICE, read_text_argument
from prompt_refinery.cli.output import emit_error, emit_oracle_error, emit_success
from prompt_refinery.config import RefineryConfig
from prompt_refinery.core.errors import ORACLE_ERRORS
from prompt_refinery.core.llm_provider import GenerationOracle
from prompt_refinery.core.observability import LoggingTraceSink
from prompt_refinery.core.providers import OpenAICompatibleOracle
from prompt_refinery.core.refinement import optimize_until_complete, optimize_with_reflection


def build_oracle(config: RefineryConfig) -> GenerationOracle:
    """Oracle used by the refinement commands."""
    return OpenAICompatibleOracle.from_config(config.oracle)


@click.command("refine")
@click.option("--system", "system_instruction", required=True, help="System instruction (or '-' for stdin).")
@click.option("--user", "user_instruction", required=True, help="User instruction.")
@click.option("--tier", type=TIER_CHOICE, default="basic", show_default=True, help="Service tier.")
@click.option("--budget", type=int, default=1000, show_default=True, help="Max tokens per generation.")
@click.pass_obj
def refine_cmd(config: RefineryConfig, system_instruction: str, user_instruction: str, tier: str, budget: int) -> None:
    """Generate a prompt and correct it until it is structurally complete."""
    if budget < 1:
        emit_error(
            f"Budget must be positive, got {budget}",
            code="VALIDATION_ERROR",
            error_type="validation",
            remediation="Pass --budget with a positive token count",
        )
    oracle = build_oracle(config)
    try:
        result = asyncio.run(
            optimize_until_complete(
                oracle,
                read_text_argument(system_instruction),
                user_instruction,
                budget,
                tier,
                trace_sink=LoggingTraceSink(),
                config=config,
            )
        )
    except ORACLE_ERRORS as e:
        emit_oracle_error(e)

    warnings = [result.improvement_log[-1]] if result.degraded else None
    emit_success(result.to_dict(), warnings=warnings)


@click.command("reflect")
@click.argument("text")
@click.option("--failure-context", default="", help="Problems already observed with the prompt.")
@click.option("--tier", type=TIER_CHOICE, default="basic", show_default=True, help="Service tier.")
@click.pass_obj
def reflect_cmd(config: RefineryConfig, text: str, failure_context: str, tier: str) -> None:
    """Let the oracle critique TEXT (or stdin with '-') and apply its fixes."""
    oracle = build_oracle(config)
    try:
        result = asyncio.run(
            optimize_with_reflection(
                oracle,
                read_text_argument(text),
                failure_context,
                tier,
                trace_sink=LoggingTraceSink(),
                config=config,
            )
        )
    except ORACLE_ERRORS as e:
        emit_oracle_error(e)

    warnings = [result.improvement_log[-1]] if result.degraded else None
    emit_success(result.to_dict(), warnings=warnings)
