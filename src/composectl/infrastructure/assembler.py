"""ProjectAssembler — compose files + environment + overrides -> Project.

Resolution order:

* config files: explicit ``-f`` paths, else ``COMPOSE_FILE``, else the
  first default file name found walking up from the working directory
  (plus its ``.override`` sibling when present);
* working dir: ``--workdir``, else the directory of the first file;
* project name: ``-p``, else ``COMPOSE_PROJECT_NAME``, else the top-level
  ``name`` key, else the working dir's basename.

Files are parsed with ruamel.yaml (safe loader), interpolated against the
environment and merged in order before services are normalized.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from composectl.domain.errors import AssemblyError
from composectl.domain.project import BuildConfig, Project, Service

logger = logging.getLogger(__name__)

DEFAULT_FILENAMES = ("compose.yaml", "compose.yml", "docker-compose.yml", "docker-compose.yaml")
COMPOSE_FILE_ENV = "COMPOSE_FILE"
PROJECT_NAME_ENV = "COMPOSE_PROJECT_NAME"

_VARIABLE = re.compile(
    r"\$(?:(?P<escaped>\$)|\{(?P<braced>[^}]*)\}|(?P<named>[A-Za-z_][A-Za-z0-9_]*))"
)
_BRACED = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<op>:-|-|:\?|\?)(?P<arg>.*))?$", re.S)
_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9_-]")


class ProjectOptions(BaseModel):
    """What the CLI knows about where the project lives."""

    model_config = {"frozen": True}

    config_paths: list[str] = Field(default_factory=list)
    working_dir: str | None = None
    environment: list[str] = Field(default_factory=list)
    name: str | None = None


def normalize_project_name(name: str) -> str:
    """Lowercase and strip everything outside ``[a-z0-9_-]``."""
    return _INVALID_NAME_CHARS.sub("", name.lower())


class ProjectAssembler:
    """Build a :class:`Project` from :class:`ProjectOptions`."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = dict(os.environ if environ is None else environ)

    def load(self, options: ProjectOptions) -> Project:
        """Assemble the project described by *options*.

        Raises:
            AssemblyError: files missing or malformed, invalid services,
                or no usable project name.
        """
        env = self._resolve_environment(options.environment)
        files = self._resolve_config_files(options, env)
        working_dir = (
            Path(options.working_dir).resolve() if options.working_dir else files[0].parent
        )

        merged: dict[str, Any] = {}
        for path in files:
            document = self._read(path)
            merged = _merge(merged, _interpolate(document, env, path))

        raw_services = merged.get("services") or {}
        if not isinstance(raw_services, Mapping):
            raise AssemblyError("'services' must be a mapping", str(files[0]))

        services = [
            _build_service(str(name), body or {}, env, str(files[0]))
            for name, body in raw_services.items()
        ]
        name = self._resolve_name(options, env, merged, working_dir)
        logger.debug(
            "Assembled project %s: %d services from %s",
            name,
            len(services),
            ", ".join(str(f) for f in files),
        )
        return Project(
            name=name,
            working_dir=working_dir,
            services=services,
            config_files=files,
            environment=env,
        )

    def project_name(self, options: ProjectOptions) -> str:
        """The project name alone; skips loading files when ``-p`` was given."""
        if options.name:
            return normalize_project_name(options.name)
        return self.load(options).name

    # ------------------------------------------------------------------
    # Resolution helpers
    # ------------------------------------------------------------------

    def _resolve_environment(self, entries: list[str]) -> dict[str, str]:
        env = dict(self._environ)
        for entry in entries:
            key, sep, value = entry.partition("=")
            if sep:
                env[key] = value
            elif key not in self._environ:
                logger.debug("Environment entry %s has no value and is unset; ignored", key)
        return env

    def _resolve_config_files(self, options: ProjectOptions, env: dict[str, str]) -> list[Path]:
        paths = list(options.config_paths)
        if not paths and env.get(COMPOSE_FILE_ENV):
            paths = [p for p in env[COMPOSE_FILE_ENV].split(os.pathsep) if p]
        if paths:
            resolved = [Path(p).expanduser().resolve() for p in paths]
            for path in resolved:
                if not path.is_file():
                    raise AssemblyError("no such file", str(path))
            return resolved

        start = Path(options.working_dir) if options.working_dir else Path.cwd()
        found = find_default_files(start)
        if not found:
            raise AssemblyError(
                f"no configuration file found in {start.resolve()} or its parents "
                f"(looked for {', '.join(DEFAULT_FILENAMES)})"
            )
        return found

    def _resolve_name(
        self,
        options: ProjectOptions,
        env: dict[str, str],
        document: Mapping[str, Any],
        working_dir: Path,
    ) -> str:
        candidates = (
            options.name,
            env.get(PROJECT_NAME_ENV),
            document.get("name"),
            working_dir.name,
        )
        for candidate in candidates:
            if candidate:
                name = normalize_project_name(str(candidate))
                if name:
                    return name
        raise AssemblyError("project name must not be empty")

    def _read(self, path: Path) -> dict[str, Any]:
        yaml = YAML(typ="safe", pure=True)
        try:
            data = yaml.load(path.read_text(encoding="utf-8"))
        except YAMLError as exc:
            raise AssemblyError(f"invalid YAML: {exc}", str(path)) from exc
        except OSError as exc:
            raise AssemblyError(f"cannot read file: {exc}", str(path)) from exc
        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise AssemblyError("top-level document must be a mapping", str(path))
        return dict(data)


def find_default_files(start: Path) -> list[Path]:
    """Walk up from *start* to the first directory holding a default compose file.

    Returns the file and its ``<stem>.override.<ext>`` sibling when that exists.
    """
    current = start.resolve()
    while True:
        for filename in DEFAULT_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                files = [candidate]
                stem = candidate.name.rsplit(".", 1)[0]
                for ext in ("yml", "yaml"):
                    override = current / f"{stem}.override.{ext}"
                    if override.is_file():
                        files.append(override)
                        break
                return files
        parent = current.parent
        if parent == current:
            return []
        current = parent


# ---------------------------------------------------------------------------
# Interpolation and merging
# ---------------------------------------------------------------------------


def _interpolate(value: Any, env: Mapping[str, str], path: Path) -> Any:
    if isinstance(value, str):
        return _substitute(value, env, path)
    if isinstance(value, Mapping):
        return {k: _interpolate(v, env, path) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate(v, env, path) for v in value]
    return value


def _substitute(text: str, env: Mapping[str, str], path: Path) -> str:
    def replace(match: re.Match[str]) -> str:
        if match.group("escaped"):
            return "$"
        named = match.group("named")
        if named:
            return _lookup(named, env)
        braced = _BRACED.match(match.group("braced"))
        if braced is None:
            raise AssemblyError(f"invalid interpolation format for '{match.group(0)}'", str(path))
        name, op, arg = braced.group("name", "op", "arg")
        value = env.get(name)
        if op == ":-":
            return value if value else arg
        if op == "-":
            return arg if value is None else value
        if op in (":?", "?") and (value is None or (op == ":?" and not value)):
            message = arg or f"required variable {name} is missing a value"
            raise AssemblyError(message, str(path))
        return _lookup(name, env)

    return _VARIABLE.sub(replace, text)


def _lookup(name: str, env: Mapping[str, str]) -> str:
    if name not in env:
        logger.warning("The %s variable is not set. Defaulting to a blank string.", name)
        return ""
    return env[name]


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *override* into a copy of *base*; mappings merge, the rest replace."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(dict(current), value)
        else:
            merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# Service normalization
# ---------------------------------------------------------------------------


def _build_service(name: str, body: Any, env: Mapping[str, str], source: str) -> Service:
    if not isinstance(body, Mapping):
        raise AssemblyError(f"service '{name}' must be a mapping", source)
    if not body.get("image") and not body.get("build"):
        raise AssemblyError(f"service '{name}' has neither an image nor a build context", source)

    try:
        return Service(
            name=name,
            image=_optional_str(body.get("image")),
            build=_build_config(body.get("build")),
            command=_command(body.get("command")),
            environment=_key_values(body.get("environment"), env),
            ports=[str(p) for p in body.get("ports") or []],
            volumes=[_volume(v) for v in body.get("volumes") or []],
            labels=_key_values(body.get("labels"), env),
            depends_on=_names(body.get("depends_on")),
            links=[str(link) for link in body.get("links") or []],
            network_mode=_optional_str(body.get("network_mode")),
            volumes_from=[str(v) for v in body.get("volumes_from") or []],
            domainname=_optional_str(body.get("domainname")),
        )
    except (ValidationError, TypeError, ValueError) as exc:
        raise AssemblyError(f"invalid service '{name}': {exc}", source) from exc


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _build_config(value: Any) -> BuildConfig | None:
    if value is None:
        return None
    if isinstance(value, str):
        return BuildConfig(context=value)
    if isinstance(value, Mapping):
        return BuildConfig(
            context=str(value.get("context", ".")),
            dockerfile=_optional_str(value.get("dockerfile")),
            args=_key_values(value.get("args"), {}),
        )
    raise TypeError("build must be a string or a mapping")


def _command(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return shlex.split(value)
    return [str(part) for part in value]


def _key_values(value: Any, env: Mapping[str, str]) -> dict[str, str]:
    """Normalize ``KEY=VAL`` lists and mappings; bare keys read from *env*."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {str(k): "" if v is None else str(v) for k, v in value.items()}
    result: dict[str, str] = {}
    for entry in value:
        key, sep, val = str(entry).partition("=")
        if sep:
            result[key] = val
        elif key in env:
            result[key] = env[key]
    return result


def _names(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        return [str(k) for k in value]
    return [str(v) for v in value]


def _volume(value: Any) -> str:
    if isinstance(value, Mapping):
        source = value.get("source")
        target = value.get("target", "")
        return f"{source}:{target}" if source else str(target)
    return str(value)
