"""Parsing helpers for configuration values read from TOML or the environment."""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _try_parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off"}:
        return False
    return None


def _coerce_like(default: Any, value: Any, *, name: str) -> Any:
    """Convert ``value`` to the type of ``default``.

    Returns ``default`` (and logs a warning) when the value cannot be
    converted, so a bad override never takes the process down.
    """
    try:
        if isinstance(default, bool):
            parsed = _try_parse_bool(value)
            if parsed is None:
                raise ValueError(f"not a boolean: {value!r}")
            return parsed
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
        if default is None or isinstance(default, str):
            return None if value is None else str(value)
    except (TypeError, ValueError) as exc:
        logger.warning(f"Ignoring invalid value for {name}: {exc}")
        return default
    return value
