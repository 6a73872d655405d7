"""Sub-config dataclasses grouped by engine component.

Each group maps to one TOML table (``[scoring]``, ``[refinement]``,
``[reflection]``, ``[oracle]``) and one environment prefix
(``PROMPT_REFINERY_SCORING_*`` and so on). Every group validates its
fields in ``__post_init__`` and raises ``ValueError`` on out-of-range
values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# Sampling temperatures accepted by OpenAI-compatible endpoints.
_TEMPERATURE_RANGE = (0.0, 2.0)


def _check_at_least(name: str, value: float, minimum: float) -> None:
    if value < minimum:
        raise ValueError(f"Invalid {name}: {value!r}. Must be >= {minimum}.")


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if not (low <= value <= high):
        raise ValueError(f"Invalid {name}: {value!r}. Must be in [{low}, {high}].")


@dataclass(frozen=True)
class ScoringConfig:
    """Thresholds for the structural completeness scorer.

    ``annex_min_chars`` decides when a trailing "changes applied" annex is
    substantial enough to exempt the text from truncation flags.
    """

    min_section_chars: int = 10
    annex_min_chars: int = 20
    truncation_window: int = 50
    short_line_chars: int = 20

    def __post_init__(self) -> None:
        _check_at_least("min_section_chars", self.min_section_chars, 0)
        _check_at_least("annex_min_chars", self.annex_min_chars, 0)
        _check_at_least("truncation_window", self.truncation_window, 1)
        _check_at_least("short_line_chars", self.short_line_chars, 0)


@dataclass(frozen=True)
class RefinementConfig:
    """Completeness-driven refinement loop settings."""

    completeness_threshold: float = 0.9
    max_iterations: int = 3
    generation_temperature: float = 0.7
    correction_temperature: float = 0.3
    enforce_budget: bool = False

    def __post_init__(self) -> None:
        """Validate configuration fields after initialization."""
        _check_range("completeness_threshold", self.completeness_threshold, 0.0, 1.0)
        _check_at_least("max_iterations", self.max_iterations, 1)
        _check_range("generation_temperature", self.generation_temperature, *_TEMPERATURE_RANGE)
        _check_range("correction_temperature", self.correction_temperature, *_TEMPERATURE_RANGE)


@dataclass(frozen=True)
class ReflectionConfig:
    """Failure-severity reflective loop settings."""

    convergence_threshold: float = 8.5
    max_iterations: int = 3
    analysis_temperature: float = 0.6
    analysis_max_tokens: int = 4000
    apply_temperature: float = 0.7
    apply_max_tokens: int = 8000

    def __post_init__(self) -> None:
        """Validate configuration fields after initialization."""
        _check_range("convergence_threshold", self.convergence_threshold, 0.0, 10.0)
        _check_at_least("max_iterations", self.max_iterations, 1)
        _check_range("analysis_temperature", self.analysis_temperature, *_TEMPERATURE_RANGE)
        _check_at_least("analysis_max_tokens", self.analysis_max_tokens, 1)
        _check_range("apply_temperature", self.apply_temperature, *_TEMPERATURE_RANGE)
        _check_at_least("apply_max_tokens", self.apply_max_tokens, 1)


@dataclass(frozen=True)
class OracleConfig:
    """OpenAI-compatible oracle endpoint.

    ``api_key`` is only ever read from ``PROMPT_REFINERY_ORACLE_API_KEY``.
    """

    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    timeout: float = 60.0

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"Invalid timeout: {self.timeout!r}. Must be > 0.")
