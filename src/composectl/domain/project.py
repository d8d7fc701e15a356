"""Project and Service models.

Immutable snapshots built once per invocation by the project assembler.
Service order is the order of declaration in the configuration files;
downstream create/start ordering relies on it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, model_validator

from composectl.domain.errors import AssemblyError, ServiceNotFoundError

_SERVICE_PREFIX = "service:"
_CONTAINER_PREFIX = "container:"


class BuildConfig(BaseModel):
    """``build:`` section of a service."""

    model_config = {"frozen": True}

    context: str = "."
    dockerfile: str | None = None
    args: dict[str, str] = Field(default_factory=dict)


class Service(BaseModel):
    """One named unit of deployment with declared dependencies."""

    model_config = {"frozen": True}

    name: str
    image: str | None = None
    build: BuildConfig | None = None
    command: list[str] | None = None
    environment: dict[str, str] = Field(default_factory=dict)
    ports: list[str] = Field(default_factory=list)
    volumes: list[str] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    depends_on: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)
    network_mode: str | None = None
    volumes_from: list[str] = Field(default_factory=list)
    domainname: str | None = None

    def dependencies(self) -> list[str]:
        """Names of the services this one depends on, in declaration order.

        Collected from ``depends_on``, ``links`` (``name[:alias]``),
        ``network_mode: service:<name>`` and ``volumes_from``
        (``<name>[:mode]``; ``container:<id>`` entries are not services).
        """
        names: list[str] = list(self.depends_on)
        names.extend(link.split(":", 1)[0] for link in self.links)
        if self.network_mode and self.network_mode.startswith(_SERVICE_PREFIX):
            names.append(self.network_mode[len(_SERVICE_PREFIX) :])
        for entry in self.volumes_from:
            if entry.startswith(_CONTAINER_PREFIX):
                continue
            names.append(entry.split(":", 1)[0])
        return list(dict.fromkeys(names))

    def image_name(self, project_name: str) -> str:
        """Image reference used for this service (built images get a project tag)."""
        return self.image or f"{project_name}_{self.name}"


class Project(BaseModel):
    """The fully resolved, named collection of services to operate on."""

    model_config = {"frozen": True}

    name: str
    working_dir: Path = Field(default_factory=Path.cwd)
    services: list[Service] = Field(default_factory=list)
    config_files: list[Path] = Field(default_factory=list)
    environment: dict[str, str] = Field(default_factory=dict, repr=False)

    @model_validator(mode="after")
    def _unique_service_names(self) -> Self:
        seen: set[str] = set()
        for service in self.services:
            if service.name in seen:
                raise AssemblyError(f"duplicate service name '{service.name}'")
            seen.add(service.name)
        return self

    @property
    def service_names(self) -> list[str]:
        return [s.name for s in self.services]

    def get_service(self, name: str) -> Service:
        """Return the service called *name* or raise ServiceNotFoundError."""
        for service in self.services:
            if service.name == name:
                return service
        raise ServiceNotFoundError(name, self.name)

    def with_services(self, services: list[Service]) -> Project:
        """Copy of this project restricted to *services*."""
        return self.model_copy(update={"services": list(services)})

    def to_document(self) -> dict[str, Any]:
        """Compose-style mapping of the resolved project (used by ``convert``)."""
        services: dict[str, Any] = {}
        for service in self.services:
            body = service.model_dump(exclude={"name"}, exclude_none=True, exclude_defaults=True)
            services[service.name] = body
        return {"name": self.name, "services": services}


class ContainerSummary(BaseModel):
    """One row of ``ps`` output."""

    model_config = {"frozen": True}

    id: str
    name: str
    service: str = ""
    state: str = ""
    ports: str = ""


class StackSummary(BaseModel):
    """One row of ``list`` output."""

    model_config = {"frozen": True}

    name: str
    status: str
