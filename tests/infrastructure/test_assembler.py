"""Tests for ProjectAssembler — files, environment and overrides to Project."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from composectl.domain.errors import AssemblyError
from composectl.infrastructure.assembler import (
    ProjectAssembler,
    ProjectOptions,
    find_default_files,
    normalize_project_name,
)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestDiscovery:
    def test_default_file_in_cwd(self, compose_dir: Path) -> None:
        project = ProjectAssembler(environ={}).load(ProjectOptions())
        assert project.config_files == [compose_dir / "compose.yaml"]
        assert project.working_dir == compose_dir

    def test_walks_up_from_subdirectory(self, compose_dir: Path) -> None:
        nested = compose_dir / "src" / "pkg"
        nested.mkdir(parents=True)
        assert find_default_files(nested) == [compose_dir / "compose.yaml"]

    def test_override_sibling(self, tmp_path: Path) -> None:
        _write(tmp_path / "docker-compose.yml", "services:\n  web:\n    image: nginx\n")
        _write(tmp_path / "docker-compose.override.yml", "services:\n  web:\n    ports: ['80:80']\n")
        files = find_default_files(tmp_path)
        assert [f.name for f in files] == ["docker-compose.yml", "docker-compose.override.yml"]

        project = ProjectAssembler(environ={}).load(ProjectOptions(working_dir=str(tmp_path)))
        assert project.get_service("web").ports == ["80:80"]
        assert project.get_service("web").image == "nginx"

    def test_nothing_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(AssemblyError, match="no configuration file found"):
            ProjectAssembler(environ={}).load(ProjectOptions())

    def test_compose_file_env(self, tmp_path: Path) -> None:
        base = _write(tmp_path / "a.yml", "services:\n  web:\n    image: nginx\n")
        extra = _write(tmp_path / "b.yml", "services:\n  db:\n    image: postgres\n")
        env = {"COMPOSE_FILE": os.pathsep.join([str(base), str(extra)])}
        project = ProjectAssembler(environ=env).load(ProjectOptions())
        assert project.service_names == ["web", "db"]


class TestExplicitFiles:
    def test_files_merge_in_order(self, tmp_path: Path) -> None:
        base = _write(
            tmp_path / "base.yml",
            "services:\n  web:\n    image: nginx\n    environment:\n      A: '1'\n      B: '2'\n",
        )
        override = _write(
            tmp_path / "prod.yml",
            "services:\n  web:\n    image: nginx:prod\n    environment:\n      B: '3'\n",
        )
        project = ProjectAssembler(environ={}).load(
            ProjectOptions(config_paths=[str(base), str(override)])
        )
        web = project.get_service("web")
        assert web.image == "nginx:prod"
        assert web.environment == {"A": "1", "B": "3"}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(AssemblyError, match="no such file") as exc_info:
            ProjectAssembler(environ={}).load(ProjectOptions(config_paths=[str(tmp_path / "nope.yml")]))
        assert exc_info.value.path == str((tmp_path / "nope.yml").resolve())

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        bad = _write(tmp_path / "bad.yml", "services: [unclosed\n")
        with pytest.raises(AssemblyError, match="invalid YAML"):
            ProjectAssembler(environ={}).load(ProjectOptions(config_paths=[str(bad)]))

    def test_service_without_image_or_build(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "c.yml", "services:\n  web:\n    ports: ['80:80']\n")
        with pytest.raises(AssemblyError, match="neither an image nor a build"):
            ProjectAssembler(environ={}).load(ProjectOptions(config_paths=[str(path)]))


class TestProjectName:
    def test_flag_wins(self, compose_dir: Path) -> None:
        assembler = ProjectAssembler(environ={"COMPOSE_PROJECT_NAME": "fromenv"})
        assert assembler.load(ProjectOptions(name="Flag.Name")).name == "flagname"

    def test_env_before_document(self, compose_dir: Path) -> None:
        assembler = ProjectAssembler(environ={"COMPOSE_PROJECT_NAME": "fromenv"})
        assert assembler.load(ProjectOptions()).name == "fromenv"

    def test_document_name(self, compose_dir: Path) -> None:
        assert ProjectAssembler(environ={}).load(ProjectOptions()).name == "shop"

    def test_working_dir_basename(self, tmp_path: Path) -> None:
        project_dir = tmp_path / "My App"
        _write(project_dir / "compose.yml", "services:\n  web:\n    image: nginx\n")
        project = ProjectAssembler(environ={}).load(ProjectOptions(working_dir=str(project_dir)))
        assert project.name == "myapp"

    def test_project_name_skips_loading(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert ProjectAssembler(environ={}).project_name(ProjectOptions(name="shop")) == "shop"

    def test_normalize(self) -> None:
        assert normalize_project_name("My_Project-2.0!") == "my_project-20"


class TestInterpolation:
    def test_defaults_and_overlay(self, compose_dir: Path) -> None:
        project = ProjectAssembler(environ={}).load(ProjectOptions(environment=["TAG=1.4"]))
        assert project.get_service("db").environment == {"POSTGRES_PASSWORD": "secret"}
        assert project.get_service("worker").image == "shop/worker:1.4"

    def test_process_environment(self, compose_dir: Path) -> None:
        project = ProjectAssembler(environ={"DB_PASSWORD": "hunter2"}).load(ProjectOptions())
        assert project.get_service("db").environment["POSTGRES_PASSWORD"] == "hunter2"

    @pytest.mark.parametrize(
        ("template", "env", "expected"),
        [
            ("$$HOME", {}, "$HOME"),
            ("${A}-$B", {"A": "x", "B": "y"}, "x-y"),
            ("${A:-dflt}", {"A": ""}, "dflt"),
            ("${A-dflt}", {"A": ""}, ""),
            ("${A-dflt}", {}, "dflt"),
            ("$UNSET", {}, ""),
        ],
    )
    def test_forms(self, tmp_path: Path, template: str, env: dict[str, str], expected: str) -> None:
        path = _write(tmp_path / "c.yml", f"services:\n  web:\n    image: nginx\n    labels:\n      v: '{template}'\n")
        project = ProjectAssembler(environ=env).load(ProjectOptions(config_paths=[str(path)]))
        assert project.get_service("web").labels["v"] == expected

    def test_required_variable(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "c.yml", "services:\n  web:\n    image: 'nginx:${TAG:?set TAG}'\n")
        with pytest.raises(AssemblyError, match="set TAG"):
            ProjectAssembler(environ={}).load(ProjectOptions(config_paths=[str(path)]))


class TestNormalization:
    def test_compose_project_shapes(self, compose_dir: Path) -> None:
        project = ProjectAssembler(environ={}).load(ProjectOptions())
        assert project.service_names == ["web", "api", "db", "cache", "worker"]
        api = project.get_service("api")
        assert api.build is not None and api.build.context == "./api"
        assert api.depends_on == ["db"]
        assert api.dependencies() == ["db", "cache"]
        assert project.get_service("worker").volumes_from == ["api:ro"]

    def test_list_environment_and_string_command(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "c.yml",
            "services:\n  app:\n    image: app\n    command: python -m app --port 80\n"
            "    environment:\n      - MODE=prod\n      - HOME\n"
            "    volumes:\n      - type: bind\n        source: ./data\n        target: /data\n",
        )
        app = ProjectAssembler(environ={"HOME": "/root"}).load(
            ProjectOptions(config_paths=[str(path)])
        ).get_service("app")
        assert app.command == ["python", "-m", "app", "--port", "80"]
        assert app.environment == {"MODE": "prod", "HOME": "/root"}
        assert app.volumes == ["./data:/data"]
