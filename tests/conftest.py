"""Shared pytest fixtures for composectl tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from composectl.config.models import ContextConfig
from composectl.config.settings import ComposeSettings
from composectl.plugins.manager import PluginManager
from tests.fakes import COMPOSE_YAML, FakeBackend, FakeBackendsPlugin, LocalFakePlugin


@pytest.fixture(autouse=True)
def _reset_fakes() -> None:
    FakeBackend.reset()


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """CLI invocations reconfigure logging; put the root logger back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    app_level = logging.getLogger("composectl").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("composectl").setLevel(app_level)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's compose and composectl variables out of tests."""
    for var in ("COMPOSE_FILE", "COMPOSE_PROJECT_NAME", "COMPOSECTL_CONFIG", "DB_PASSWORD", "TAG"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings() -> ComposeSettings:
    return ComposeSettings(context=ContextConfig(name="test", type="fake"))


@pytest.fixture
def fake_backend(settings: ComposeSettings) -> FakeBackend:
    return FakeBackend(settings)


@pytest.fixture
def plugin_manager() -> PluginManager:
    """PluginManager with the built-in docker plugin and the fake backends."""
    pm = PluginManager()
    pm.register_plugin(FakeBackendsPlugin(), name="fakes")
    pm.discover_and_load()
    return pm


@pytest.fixture
def compose_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory holding compose.yaml; also the working directory."""
    project_dir = tmp_path / "shop"
    project_dir.mkdir()
    (project_dir / "compose.yaml").write_text(COMPOSE_YAML, encoding="utf-8")
    monkeypatch.chdir(project_dir)
    return project_dir


@pytest.fixture
def run_cli(cli_runner: CliRunner, plugin_manager: PluginManager):
    """Invoke the CLI built for a context type: ``run_cli("fake", "ps", "-q")``."""
    from composectl.cli import create_cli

    def run(context_type: str, *args: str) -> Result:
        return cli_runner.invoke(create_cli(context_type, plugins=plugin_manager), list(args))

    return run


@pytest.fixture
def run_local(cli_runner: CliRunner, plugin_manager: PluginManager):
    """Like ``run_cli`` for the local context, with FakeBackend instead of docker."""
    from composectl.cli import create_cli

    plugin_manager.register_plugin(LocalFakePlugin(), name="local-fake")

    def run(*args: str) -> Result:
        return cli_runner.invoke(create_cli("local", plugins=plugin_manager), list(args))

    return run
