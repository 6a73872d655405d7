"""JSON envelope output for CLI commands.

Every command writes exactly one JSON object to stdout::

    {"success": true, "data": {...}, "error": null}
    {"success": false, "data": {"error_code": "...", "error_type": "..."}, "error": "..."}

Errors exit with status 1.
"""

import json
import sys
from typing import Any, Mapping, NoReturn, Optional

import click

from prompt_refinery.core.errors import (
    AuthenticationError,
    LLMError,
    ProviderError,
    RateLimitError,
)


def _write(envelope: Mapping[str, Any]) -> None:
    click.echo(json.dumps(envelope, ensure_ascii=False, indent=2))


def emit_success(data: Mapping[str, Any], *, warnings: Optional[list[str]] = None) -> None:
    """Write a success envelope."""
    envelope: dict[str, Any] = {"success": True, "data": dict(data), "error": None}
    if warnings:
        envelope["meta"] = {"warnings": list(warnings)}
    _write(envelope)


def emit_error(
    message: str,
    *,
    code: str,
    error_type: str,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> NoReturn:
    """Write an error envelope and exit with status 1."""
    data: dict[str, Any] = {"error_code": code, "error_type": error_type}
    if remediation:
        data["remediation"] = remediation
    if details:
        data["details"] = dict(details)
    _write({"success": False, "data": data, "error": message})
    sys.exit(1)


def emit_oracle_error(error: Exception) -> NoReturn:
    """Translate an oracle failure into an error envelope."""
    provider = getattr(error, "provider", None)
    if isinstance(error, AuthenticationError):
        emit_error(
            str(error),
            code="AUTHENTICATION_ERROR",
            error_type="authentication",
            remediation="Set PROMPT_REFINERY_ORACLE_API_KEY to a valid key",
            details={"provider": provider},
        )
    if isinstance(error, RateLimitError):
        emit_error(
            str(error),
            code="RATE_LIMITED",
            error_type="rate_limit",
            remediation="Wait before retrying",
            details={"provider": provider, "retry_after": error.retry_after},
        )
    if isinstance(error, ProviderError):
        emit_error(
            str(error),
            code="ORACLE_UNAVAILABLE",
            error_type="unavailable",
            remediation="Check PROMPT_REFINERY_ORACLE_BASE_URL and network access",
            details={"provider": provider},
        )
    if isinstance(error, LLMError):
        emit_error(
            str(error),
            code="ORACLE_ERROR",
            error_type="oracle",
            details={"provider": provider, "status_code": error.status_code, "retryable": error.retryable},
        )
    raise error
