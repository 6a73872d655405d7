"""Argument helpers shared by CLI commands."""

import click

from prompt_refinery.core.token_management import Length, Tier

TIER_CHOICE = click.Choice([tier.value for tier in Tier], case_sensitive=False)
LENGTH_CHOICE = click.Choice([length.value for length in Length], case_sensitive=False)


def read_text_argument(value: str) -> str:
    """Return ``value``, or all of stdin when ``value`` is ``-``."""
    if value == "-":
        return click.get_text_stream("stdin").read()
    return value
