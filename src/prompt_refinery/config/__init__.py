"""Configuration for prompt-refinery.

Usage:
    from prompt_refinery.config import get_config

    config = get_config()
    threshold = config.refinement.completeness_threshold
"""

from prompt_refinery.config.decorators import log_call, timed
from prompt_refinery.config.domains import (
    OracleConfig,
    RefinementConfig,
    ReflectionConfig,
    ScoringConfig,
)
from prompt_refinery.config.settings import RefineryConfig, get_config, set_config

__all__ = [
    "OracleConfig",
    "RefinementConfig",
    "ReflectionConfig",
    "RefineryConfig",
    "ScoringConfig",
    "get_config",
    "log_call",
    "set_config",
    "timed",
]
