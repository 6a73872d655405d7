"""RefineryConfig dataclass and global configuration state.

Loading logic lives in the ``_RefineryConfigLoader`` mixin (``loader.py``)
which ``RefineryConfig`` inherits from.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from prompt_refinery.config.domains import (
    OracleConfig,
    RefinementConfig,
    ReflectionConfig,
    ScoringConfig,
)
from prompt_refinery.config.loader import _RefineryConfigLoader


@dataclass
class RefineryConfig(_RefineryConfigLoader):
    """Engine configuration with support for env vars and TOML overrides."""

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = False

    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    refinement: RefinementConfig = field(default_factory=RefinementConfig)
    reflection: ReflectionConfig = field(default_factory=ReflectionConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        root_logger = logging.getLogger("prompt_refinery")
        root_logger.setLevel(level)
        for existing in list(root_logger.handlers):
            root_logger.removeHandler(existing)
        root_logger.addHandler(handler)


# Global configuration instance
_config: Optional[RefineryConfig] = None


def get_config() -> RefineryConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = RefineryConfig.from_env()
    return _config


def set_config(config: Optional[RefineryConfig]) -> None:
    """Set (or with ``None``, reset) the global configuration instance."""
    global _config
    _config = config
