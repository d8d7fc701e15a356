"""Service selection — transitive dependency closure over the service graph.

When a command is restricted to named services, the services they depend
on (directly or through any number of hops) must come along. The closure
is computed with an explicit stack and visited set, so cycles terminate
and stack depth does not grow with the length of dependency chains.
"""

from __future__ import annotations

from collections.abc import Iterable

from composectl.domain.errors import ServiceNotFoundError
from composectl.domain.project import Project, Service


def dependency_closure(project: Project, names: Iterable[str]) -> set[str]:
    """Return every name reachable from *names* through dependency edges.

    Raises:
        ServiceNotFoundError: a requested or referenced name is not a
            service of *project*. Nothing partial is returned.
    """
    index = {s.name: s for s in project.services}
    visited: set[str] = set()
    stack = list(names)
    while stack:
        name = stack.pop()
        if name in visited:
            continue
        service = index.get(name)
        if service is None:
            raise ServiceNotFoundError(name, project.name)
        visited.add(name)
        stack.extend(dep for dep in service.dependencies() if dep not in visited)
    return visited


def select_services(project: Project, names: Iterable[str]) -> list[Service]:
    """Services in the closure of *names*, in the project's declared order.

    An empty selection means "all services" and returns them unchanged.
    """
    requested = list(names)
    if not requested:
        return list(project.services)
    closure = dependency_closure(project, requested)
    return [s for s in project.services if s.name in closure]


def filter_project(project: Project, names: Iterable[str]) -> Project:
    """Copy of *project* restricted to the closure of *names*."""
    requested = list(names)
    if not requested:
        return project
    return project.with_services(select_services(project, requested))
