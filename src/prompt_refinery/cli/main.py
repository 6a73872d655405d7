"""prompt-refinery command-line entry point."""

from typing import Optional

import click

from prompt_refinery import __version__
from prompt_refinery.cli.commands import compress_cmd, refine_cmd, reflect_cmd, score_cmd
from prompt_refinery.config import RefineryConfig, set_config

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="TOML config file (overrides the layered lookup).",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override the configured log level.",
)
@click.version_option(__version__, prog_name="prompt-refinery")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str]) -> None:
    """Compress prompts to a token budget and refine them until complete."""
    config = RefineryConfig.from_env(config_file)
    if log_level:
        config.log_level = log_level.upper()
    config.setup_logging()
    set_config(config)
    ctx.obj = config


cli.add_command(compress_cmd)
cli.add_command(score_cmd)
cli.add_command(refine_cmd)
cli.add_command(reflect_cmd)


if __name__ == "__main__":
    cli()
