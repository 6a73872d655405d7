"""Shared fixtures for CLI command tests."""

import logging
import os

import pytest
from click.testing import CliRunner

from prompt_refinery.config import set_config
from prompt_refinery.core.llm_provider import GenerationOracle, GenerationResult


class CannedOracle(GenerationOracle):
    """Oracle answering from fixed scripts, or raising a fixed error."""

    provider_name = "canned"

    def __init__(self, outputs=None, analyses=None, error=None):
        self.outputs = list(outputs or [""])
        self.analyses = list(analyses or ['{"failures": []}'])
        self.error = error
        self.calls = []
        self._served = {"analysis": 0, "generation": 0}

    async def generate(self, messages, temperature, max_tokens):
        self.calls.append((messages[0].content, temperature, max_tokens))
        if self.error is not None:
            raise self.error
        kind = "analysis" if "demanding reviewer" in messages[0].content else "generation"
        script = self.analyses if kind == "analysis" else self.outputs
        text = script[min(self._served[kind], len(script) - 1)]
        self._served[kind] += 1
        return GenerationResult(text=text, tokens_used=5, model_id="canned")


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path, monkeypatch):
    """Run every command without user config files, env overrides or leaked log handlers."""
    for key in list(os.environ):
        if key.startswith("PROMPT_REFINERY_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    package_logger = logging.getLogger("prompt_refinery")
    handlers, level = list(package_logger.handlers), package_logger.level
    yield
    package_logger.handlers = handlers
    package_logger.setLevel(level)
    set_config(None)


@pytest.fixture
def install_oracle(monkeypatch):
    """Make the oracle commands use a CannedOracle."""

    def _install(**kwargs) -> CannedOracle:
        oracle = CannedOracle(**kwargs)
        monkeypatch.setattr("prompt_refinery.cli.commands.refine.build_oracle", lambda config: oracle)
        return oracle

    return _install
