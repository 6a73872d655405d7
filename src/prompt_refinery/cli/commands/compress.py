"""Local commands: budgeted compression and completeness scoring."""

import logging

import click

from prompt_refinery.cli.inputs import LENGTH_CHOICE, TIER_CHOICE, read_text_argument
from prompt_refinery.cli.output import emit_success
from prompt_refinery.config import RefineryConfig
from prompt_refinery.core.completeness import evaluate_completeness
from prompt_refinery.core.compression import UltraCompressor, compress

logger = logging.getLogger(__name__)


@click.command("compress")
@click.argument("text")
@click.option("--tier", type=TIER_CHOICE, default="basic", show_default=True, help="Service tier.")
@click.option("--length", type=LENGTH_CHOICE, default="medium", show_default=True, help="Verbosity class.")
@click.option("--ultra", is_flag=True, help="Rewrite into the four-field template instead.")
def compress_cmd(text: str, tier: str, length: str, ultra: bool) -> None:
    """Compress TEXT (or stdin with '-') to the token budget of a tier/length pair."""
    source = read_text_argument(text)
    if ultra:
        compressor = UltraCompressor()
        result = compressor.compress(source)
        validation = compressor.validate(result.compressed_text)
        data = result.to_dict()
        data["validation"] = {
            "valid": validation.valid,
            "errors": list(validation.errors),
            "warnings": list(validation.warnings),
        }
        emit_success(data, warnings=list(validation.warnings) or None)
        return

    result = compress(source, tier, length)
    warnings = None
    if not result.within_budget:
        warnings = [f"Result uses {result.estimated_tokens} tokens, over the {result.token_budget}-token budget"]
    emit_success(result.to_dict(), warnings=warnings)


@click.command("score")
@click.argument("text")
@click.option("--tier", type=TIER_CHOICE, default="basic", show_default=True, help="Service tier.")
@click.pass_obj
def score_cmd(config: RefineryConfig, text: str, tier: str) -> None:
    """Score the structural completeness of TEXT (or stdin with '-')."""
    score = evaluate_completeness(read_text_argument(text), tier, config=config.scoring)
    logger.debug(f"Completeness {score.overall:.3f} for tier {tier}")
    emit_success(score.to_dict())
