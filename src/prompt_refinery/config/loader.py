"""RefineryConfig loading logic.

Provides ``_RefineryConfigLoader``, a mixin whose methods are inherited by
``RefineryConfig`` (defined in ``settings.py``).
"""

from __future__ import annotations

import logging
import os
from dataclasses import fields, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:
    from prompt_refinery.config.settings import RefineryConfig

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from prompt_refinery.config.parsing import _coerce_like, _parse_bool

logger = logging.getLogger(__name__)

ENV_PREFIX = "PROMPT_REFINERY_"
CONFIG_FILE_ENV_VAR = "PROMPT_REFINERY_CONFIG_FILE"
PROJECT_CONFIG_NAMES = ("prompt-refinery.toml", ".prompt-refinery.toml")

# TOML table / env infix for each sub-config attribute.
_SECTIONS = ("scoring", "refinement", "reflection", "oracle")
# Never read from TOML files.
_SECRET_FIELDS = {("oracle", "api_key")}


def _override(section: str, current: Any, values: Mapping[str, Any]) -> Any:
    """Return ``current`` with known keys from ``values`` applied.

    Values the sub-config rejects as out of range are logged and skipped,
    keeping the previous value for that field.
    """
    changes: Dict[str, Any] = {}
    for item in fields(current):
        if item.name not in values:
            continue
        default = getattr(current, item.name)
        value = _coerce_like(default, values[item.name], name=f"{section}.{item.name}")
        try:
            replace(current, **{item.name: value})
        except ValueError as exc:
            logger.warning(f"Ignoring invalid value for {section}.{item.name}: {exc}")
            continue
        changes[item.name] = value
    unknown = set(values) - {item.name for item in fields(current)}
    if unknown:
        logger.warning(f"Unknown keys in [{section}]: {', '.join(sorted(unknown))}")
    return replace(current, **changes) if changes else current


class _RefineryConfigLoader:
    """Mixin providing config-loading methods for ``RefineryConfig``."""

    if TYPE_CHECKING:
        log_level: str
        structured_logging: bool
        scoring: Any
        refinement: Any
        reflection: Any
        oracle: Any

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "RefineryConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. Project TOML config (./prompt-refinery.toml or ./.prompt-refinery.toml)
        3. User TOML config (~/.prompt-refinery.toml)
        4. XDG config (~/.config/prompt-refinery/config.toml)
        5. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get(CONFIG_FILE_ENV_VAR)
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "prompt-refinery" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug(f"Loaded XDG config from {xdg_config}")

            home_config = Path.home() / ".prompt-refinery.toml"
            if home_config.exists():
                config._load_toml(home_config)
                logger.debug(f"Loaded user config from {home_config}")

            for name in PROJECT_CONFIG_NAMES:
                project_config = Path(name)
                if project_config.exists():
                    config._load_toml(project_config)
                    logger.debug(f"Loaded project config from {project_config}")
                    break

        config._load_env()
        return config  # type: ignore[return-value]

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            return

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = _parse_bool(log["structured"])

        for section in _SECTIONS:
            table = data.get(section)
            if not isinstance(table, dict):
                continue
            table = {k: v for k, v in table.items() if (section, k) not in _SECRET_FIELDS}
            setattr(self, section, _override(section, getattr(self, section), table))

    def _load_env(self) -> None:
        """Load configuration from ``PROMPT_REFINERY_*`` environment variables."""
        if level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
            self.log_level = level.upper()

        if structured := os.environ.get(f"{ENV_PREFIX}STRUCTURED_LOGGING"):
            self.structured_logging = _parse_bool(structured)

        for section in _SECTIONS:
            current = getattr(self, section)
            prefix = f"{ENV_PREFIX}{section.upper()}_"
            values = {
                item.name: os.environ[prefix + item.name.upper()]
                for item in fields(current)
                if prefix + item.name.upper() in os.environ
            }
            if values:
                setattr(self, section, _override(section, current, values))
