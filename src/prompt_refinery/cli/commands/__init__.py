"""CLI commands.

Local commands (``compress``, ``score``) never touch the network; oracle
commands (``refine``, ``reflect``) call the configured endpoint.
"""

from prompt_refinery.cli.commands.compress import compress_cmd, score_cmd
from prompt_refinery.cli.commands.refine import refine_cmd, reflect_cmd

__all__ = [
    "compress_cmd",
    "refine_cmd",
    "reflect_cmd",
    "score_cmd",
]
