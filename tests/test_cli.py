"""Tests for the root CLI group and per-context command registration."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from composectl import __version__
from composectl.cli import create_cli, main
from composectl.plugins.manager import PluginManager

_COMMON = {"up", "down", "ps", "list", "logs", "convert"}
_LOCAL_ONLY = {"create", "build", "push", "pull"}


class TestRegistration:
    def test_local_context_has_every_command(self, plugin_manager: PluginManager) -> None:
        cli = create_cli("local", plugins=plugin_manager)
        assert set(cli.commands) == _COMMON | _LOCAL_ONLY

    @pytest.mark.parametrize("context_type", ["fake", "cloud", "registry", "kubernetes"])
    def test_other_contexts_have_common_commands(
        self, plugin_manager: PluginManager, context_type: str
    ) -> None:
        cli = create_cli(context_type, plugins=plugin_manager)
        assert set(cli.commands) == _COMMON

    def test_domainname_only_with_capability(self, plugin_manager: PluginManager) -> None:
        def up_options(context_type: str) -> set[str]:
            up = create_cli(context_type, plugins=plugin_manager).commands["up"]
            return {opt for param in up.params for opt in param.opts}

        assert "--domainname" in up_options("cloud")
        assert "--domainname" not in up_options("fake")
        assert "--domainname" not in up_options("local")

    def test_default_manager_loads_builtins(self) -> None:
        assert "create" in create_cli().commands


class TestRootGroup:
    def test_version(self, run_cli) -> None:
        result = run_cli("fake", "--version")
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_subcommand_shows_help(self, run_cli) -> None:
        result = run_cli("fake")
        assert result.exit_code == 0
        assert "Usage" in result.output
        assert "convert" in result.output

    def test_examples(self, run_cli) -> None:
        result = run_cli("fake", "--examples")
        assert result.exit_code == 0
        assert "composectl up --detach" in result.output


@pytest.mark.usefixtures("compose_dir")
class TestBackendGate:
    def test_not_implemented(self, run_cli) -> None:
        result = run_cli("registry", "ps")
        assert result.exit_code == 1
        assert "not implemented for context type 'registry'" in result.output

    def test_not_implemented_json(self, run_cli) -> None:
        result = run_cli("kubernetes", "list", "--format", "json")
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["ok"] is False
        assert payload["op"] == "list"
        assert payload["error"]["code"] == "NOT_IMPLEMENTED"

    def test_help_skips_gate(self, run_cli) -> None:
        result = run_cli("registry", "up", "--help")
        assert result.exit_code == 0
        assert "--detach" in result.output

    def test_examples_skip_gate(self, run_cli) -> None:
        result = run_cli("registry", "ps", "--examples")
        assert result.exit_code == 0
        assert "composectl ps -q" in result.output

    def test_gate_runs_before_backend_calls(self, run_cli) -> None:
        from tests.fakes import FakeBackend

        run_cli("registry", "down", "-p", "shop")
        assert FakeBackend.calls == []


class TestSettingsFlags:
    def test_config_flag_and_context_pinning(
        self, cli_runner: CliRunner, plugin_manager: PluginManager, compose_dir: Path
    ) -> None:
        config = compose_dir / "other.toml"
        config.write_text('[context]\ntype = "registry"\n', encoding="utf-8")
        # The tree was built for "fake"; the config file cannot swap its backend.
        cli = create_cli("fake", plugins=plugin_manager)
        result = cli_runner.invoke(cli, ["-c", str(config), "ps", "-q"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["c0ffee01", "c0ffee02"]

    def test_invalid_config(self, cli_runner: CliRunner, plugin_manager: PluginManager, compose_dir: Path) -> None:
        config = compose_dir / "bad.toml"
        config.write_text("[context\n", encoding="utf-8")
        result = cli_runner.invoke(create_cli("fake", plugins=plugin_manager), ["-c", str(config), "ps"])
        assert result.exit_code == 1
        assert "Invalid TOML" in result.output


class TestMain:
    def test_bad_config_file_is_a_clean_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        (tmp_path / "composectl.toml").write_text("[context\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("sys.argv", ["composectl", "ps"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert err.startswith("Error: Invalid TOML")
        assert "Traceback" not in err
