"""Tests for ComposeService — project preparation and operations."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from composectl.config.settings import ComposeSettings
from composectl.domain.errors import AssemblyError, UnsupportedBackendError
from composectl.infrastructure.assembler import ProjectAssembler, ProjectOptions
from composectl.infrastructure.context import ExecutionContext
from composectl.services.compose import ComposeService, apply_domain_name
from tests.fakes import FakeBackend, NoComposeBackend, make_project


@pytest.fixture
def svc(fake_backend: FakeBackend) -> ComposeService:
    return ComposeService(fake_backend, ProjectAssembler(environ={}))


class TestPrepare:
    def test_selection_with_dependencies(self, svc: ComposeService, compose_dir: Path) -> None:
        project = svc.prepare(ProjectOptions(), ["web"])
        assert project.service_names == ["web", "api", "db", "cache"]

    def test_domain_name_applies_to_first_selected(self, svc: ComposeService, compose_dir: Path) -> None:
        project = svc.prepare(ProjectOptions(), ["db"], domain_name="shop.example.com")
        assert project.services[0].name == "db"
        assert project.services[0].domainname == "shop.example.com"

    def test_domain_name_requires_services(self) -> None:
        with pytest.raises(AssemblyError):
            apply_domain_name(make_project("empty"), "x.example.com")


class TestUp:
    def test_up_detached(self, svc: ComposeService, compose_dir: Path) -> None:
        result = svc.up(ExecutionContext(), ProjectOptions(), ["db"], detach=True)
        assert result.ok
        assert result.data["project"] == "shop"
        assert FakeBackend.calls == [("create", ["db"]), ("start", False)]

    def test_detach_never_passes_writer(self, svc: ComposeService, compose_dir: Path) -> None:
        svc.up(ExecutionContext(), ProjectOptions(), detach=True, writer=io.StringIO())
        assert ("start", False) in FakeBackend.calls

    def test_unknown_service_makes_no_backend_calls(self, svc: ComposeService, compose_dir: Path) -> None:
        result = svc.up(ExecutionContext(), ProjectOptions(), ["nope"], detach=True)
        assert not result.ok
        assert result.error.code == "SERVICE_NOT_FOUND"
        assert FakeBackend.calls == []

    def test_assembly_error(self, svc: ComposeService, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = svc.up(ExecutionContext(), ProjectOptions())
        assert not result.ok
        assert result.error.code == "ASSEMBLY_ERROR"

    def test_create(self, svc: ComposeService, compose_dir: Path) -> None:
        result = svc.create(ExecutionContext(), ProjectOptions(), ["cache"])
        assert result.ok
        assert FakeBackend.calls == [("create", ["cache"])]


class TestOperations:
    def test_down_uses_project_name(self, svc: ComposeService, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = svc.down(ExecutionContext(), ProjectOptions(name="shop"))
        assert result.ok
        assert FakeBackend.calls == [("down", "shop")]

    def test_ps(self, svc: ComposeService, compose_dir: Path) -> None:
        result = svc.ps(ExecutionContext(), ProjectOptions())
        assert result.data["count"] == 2
        assert result.data["items"][0]["name"] == "shop_web_1"

    def test_list_filtered_by_name(self, svc: ComposeService) -> None:
        result = svc.list_stacks(ExecutionContext(), "shop")
        assert [item["name"] for item in result.data["items"]] == ["shop"]

    def test_logs(self, svc: ComposeService, compose_dir: Path) -> None:
        out = io.StringIO()
        assert svc.logs(ExecutionContext(), ProjectOptions(), out).ok
        assert out.getvalue() == "web  | GET / 200\n"

    def test_logs_collected(self, svc: ComposeService, compose_dir: Path) -> None:
        result = svc.logs(ExecutionContext(), ProjectOptions())
        assert result.data == {"project": "shop", "lines": ["web  | GET / 200"]}

    def test_convert_yaml(self, svc: ComposeService, compose_dir: Path) -> None:
        result = svc.convert(ExecutionContext(), ProjectOptions(), ["db"])
        assert result.ok
        assert "postgres:16" in result.data["content"]
        assert "web" not in result.data["content"]

    def test_convert_json(self, svc: ComposeService, compose_dir: Path) -> None:
        result = svc.convert(ExecutionContext(), ProjectOptions(), fmt="json")
        assert result.data["content"].startswith("{")

    def test_images(self, svc: ComposeService, compose_dir: Path) -> None:
        ctx = ExecutionContext()
        assert svc.build(ctx, ProjectOptions()).data["images"] == ["shop_api"]
        pulled = svc.pull(ctx, ProjectOptions(), ["worker"]).data["images"]
        assert pulled == ["postgres:16", "redis:7", "shop/worker:latest"]
        assert svc.push(ctx, ProjectOptions(), ["db"]).data["count"] == 1

    def test_unsupported_primitive(self, settings: ComposeSettings, compose_dir: Path) -> None:
        svc = ComposeService(NoComposeBackend(settings), ProjectAssembler(environ={}))
        result = svc.ps(ExecutionContext(), ProjectOptions())
        assert not result.ok
        assert result.error.code == UnsupportedBackendError.code
        assert result.error.detail == {"context_type": "fake", "operation": "ps"}
