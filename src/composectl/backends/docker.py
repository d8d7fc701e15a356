"""Local backend driving the docker CLI.

Resources created per project:
- one bridge network ``<project>_default``
- one container per service, ``<project>_<service>_1``, labelled with
  the project and service names so ``down``/``ps``/``list`` can find them
  again without any local state.

Create and start follow dependency order (topological, ties broken by
declared order). A foreground start follows every container's logs until
all of them exit or the ExecutionContext is cancelled.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections import Counter
from typing import TYPE_CHECKING, ClassVar, TextIO

import networkx as nx

from composectl.backends.base import BackendCapability, BackendClient
from composectl.config.models import LOCAL_CONTEXT_TYPE
from composectl.domain.errors import BackendOperationError
from composectl.domain.project import ContainerSummary, StackSummary

if TYPE_CHECKING:
    from composectl.config.settings import ComposeSettings
    from composectl.domain.project import Project, Service
    from composectl.infrastructure.context import ExecutionContext

logger = logging.getLogger(__name__)

LABEL_PROJECT = "com.docker.compose.project"
LABEL_SERVICE = "com.docker.compose.service"

_PS_FORMAT = "{{.ID}}\t{{.Names}}\t{{.State}}\t{{.Ports}}\t{{.Label \"" + LABEL_SERVICE + "\"}}"
_LIST_FORMAT = "{{.Label \"" + LABEL_PROJECT + "\"}}\t{{.State}}"
_SERVICE_PREFIX = "service:"


def network_name(project_name: str) -> str:
    return f"{project_name}_default"


def container_name(project_name: str, service_name: str) -> str:
    return f"{project_name}_{service_name}_1"


def start_order(project: Project) -> list[Service]:
    """Services sorted so dependencies come first.

    Ties keep declared order. A cyclic graph has no valid order, so the
    declared order is used as-is.
    """
    index = {s.name: i for i, s in enumerate(project.services)}
    graph: nx.DiGraph = nx.DiGraph()
    graph.add_nodes_from(index)
    for service in project.services:
        for dep in service.dependencies():
            if dep in index:
                graph.add_edge(dep, service.name)
    try:
        names = list(nx.lexicographical_topological_sort(graph, key=index.__getitem__))
    except nx.NetworkXUnfeasible:
        logger.warning("Dependency cycle in project %s; using declared order", project.name)
        return list(project.services)
    by_name = {s.name: s for s in project.services}
    return [by_name[name] for name in names]


class DockerBackend(BackendClient):
    """Backend for the ``local`` context: a docker engine reached via its CLI."""

    context_type: ClassVar[str] = LOCAL_CONTEXT_TYPE
    capabilities: ClassVar[frozenset[BackendCapability]] = frozenset(
        {
            BackendCapability.COMPOSE,
            BackendCapability.CREATE_START,
            BackendCapability.IMAGES,
        }
    )

    def __init__(self, settings: ComposeSettings) -> None:
        super().__init__(settings)
        self._config = settings.docker

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, ctx: ExecutionContext, project: Project) -> None:
        network = network_name(project.name)
        if not self._probe("network", "inspect", network):
            self._run("create", "network", "create", "--label", f"{LABEL_PROJECT}={project.name}", network)
        for service in start_order(project):
            ctx.raise_if_cancelled("create")
            name = container_name(project.name, service.name)
            if self._probe("container", "inspect", name):
                logger.debug("Container %s already exists", name)
                continue
            self._run("create", "create", *self._create_args(project, service))
            logger.debug("Created container %s", name)

    def start(self, ctx: ExecutionContext, project: Project, writer: TextIO | None) -> None:
        for service in start_order(project):
            ctx.raise_if_cancelled("start")
            self._run("start", "start", container_name(project.name, service.name))
            logger.debug("Started service %s", service.name)
        if writer is not None:
            self._follow(ctx, project, writer)

    def down(self, ctx: ExecutionContext, project_name: str) -> None:
        ids = [c.id for c in self.ps(ctx, project_name)]
        if ids:
            self._run("down", "rm", "--force", *ids)
        network = network_name(project_name)
        if self._probe("network", "inspect", network):
            self._run("down", "network", "rm", network)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def ps(self, ctx: ExecutionContext, project_name: str) -> list[ContainerSummary]:
        proc = self._run(
            "ps",
            "ps",
            "--all",
            "--filter",
            f"label={LABEL_PROJECT}={project_name}",
            "--format",
            _PS_FORMAT,
        )
        containers: list[ContainerSummary] = []
        for line in proc.stdout.splitlines():
            if not line.strip():
                continue
            cid, name, state, ports, service = (line.split("\t") + [""] * 5)[:5]
            containers.append(
                ContainerSummary(id=cid, name=name, service=service, state=state, ports=ports)
            )
        return sorted(containers, key=lambda c: c.name)

    def list_stacks(self, ctx: ExecutionContext) -> list[StackSummary]:
        proc = self._run("list", "ps", "--all", "--filter", f"label={LABEL_PROJECT}", "--format", _LIST_FORMAT)
        states: dict[str, Counter[str]] = {}
        for line in proc.stdout.splitlines():
            if not line.strip():
                continue
            project, _, state = line.partition("\t")
            states.setdefault(project, Counter())[state or "unknown"] += 1
        return [
            StackSummary(
                name=project,
                status=", ".join(f"{state}({count})" for state, count in sorted(counts.items())),
            )
            for project, counts in sorted(states.items())
        ]

    def logs(self, ctx: ExecutionContext, project_name: str, writer: TextIO) -> None:
        containers = self.ps(ctx, project_name)
        width = max((len(c.service or c.name) for c in containers), default=0)
        for container in containers:
            ctx.raise_if_cancelled("logs")
            proc = self._run("logs", "logs", container.name)
            prefix = f"{(container.service or container.name).ljust(width)}  | "
            for line in (proc.stdout + proc.stderr).splitlines():
                writer.write(f"{prefix}{line}\n")
        writer.flush()

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def build(self, ctx: ExecutionContext, project: Project) -> list[str]:
        built: list[str] = []
        for service in project.services:
            if service.build is None:
                continue
            ctx.raise_if_cancelled("build")
            image = service.image_name(project.name)
            args = ["build", "--tag", image]
            if service.build.dockerfile:
                args += ["--file", str(project.working_dir / service.build.context / service.build.dockerfile)]
            for key, value in service.build.args.items():
                args += ["--build-arg", f"{key}={value}"]
            args.append(str(project.working_dir / service.build.context))
            self._run("build", *args)
            built.append(image)
        return built

    def push(self, ctx: ExecutionContext, project: Project) -> list[str]:
        pushed: list[str] = []
        for service in project.services:
            if not service.image:
                continue
            ctx.raise_if_cancelled("push")
            self._run("push", "push", service.image)
            pushed.append(service.image)
        return pushed

    def pull(self, ctx: ExecutionContext, project: Project) -> list[str]:
        pulled: list[str] = []
        for service in project.services:
            if not service.image or service.build is not None:
                continue
            ctx.raise_if_cancelled("pull")
            self._run("pull", "pull", service.image)
            pulled.append(service.image)
        return pulled

    # ------------------------------------------------------------------
    # docker CLI helpers
    # ------------------------------------------------------------------

    def _command(self, *args: str) -> list[str]:
        cmd = [self._config.binary]
        if self._config.host:
            cmd += ["--host", self._config.host]
        return [*cmd, *args]

    def _run(self, operation: str, *args: str) -> subprocess.CompletedProcess[str]:
        """Run a docker command. Raises BackendOperationError on failure."""
        cmd = self._command(*args)
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=True)
        except OSError as exc:
            raise BackendOperationError(
                operation, f"cannot run {self._config.binary}: {exc}"
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            raise BackendOperationError(
                operation,
                f"docker {args[0]} failed with exit code {exc.returncode}"
                + (f": {stderr}" if stderr else ""),
                stderr=stderr or None,
            ) from exc

    def _probe(self, *args: str) -> bool:
        """True when the docker command exits 0 (used for existence checks)."""
        try:
            proc = subprocess.run(self._command(*args), capture_output=True, text=True, check=False)
        except OSError as exc:
            raise BackendOperationError(args[0], f"cannot run {self._config.binary}: {exc}") from exc
        return proc.returncode == 0

    def _create_args(self, project: Project, service: Service) -> list[str]:
        args = ["--name", container_name(project.name, service.name)]
        if service.network_mode and service.network_mode.startswith(_SERVICE_PREFIX):
            target = service.network_mode[len(_SERVICE_PREFIX) :]
            args += ["--network", f"container:{container_name(project.name, target)}"]
        elif service.network_mode:
            args += ["--network", service.network_mode]
        else:
            args += ["--network", network_name(project.name), "--network-alias", service.name]
        args += ["--label", f"{LABEL_PROJECT}={project.name}", "--label", f"{LABEL_SERVICE}={service.name}"]
        for key, value in service.labels.items():
            args += ["--label", f"{key}={value}"]
        for key, value in service.environment.items():
            args += ["--env", f"{key}={value}"]
        for port in service.ports:
            args += ["--publish", port]
        for volume in service.volumes:
            args += ["--volume", volume]
        for entry in service.volumes_from:
            source, _, mode = entry.partition(":")
            if source == "container":
                args += ["--volumes-from", mode]
                continue
            ref = container_name(project.name, source)
            args += ["--volumes-from", f"{ref}:{mode}" if mode else ref]
        if service.domainname:
            args += ["--domainname", service.domainname]
        args.append(service.image_name(project.name))
        args.extend(service.command or [])
        return args

    def _follow(self, ctx: ExecutionContext, project: Project, writer: TextIO) -> None:
        """Stream every container's logs until all exit or *ctx* is cancelled.

        The pumps share a context derived from *ctx*: cancelling the
        invocation silences them, and a failure here stops them without
        cancelling the invocation.
        """
        follow = ctx.derive()
        width = max((len(s.name) for s in project.services), default=0)
        lock = threading.Lock()
        procs: list[subprocess.Popen[str]] = []
        pumps: list[threading.Thread] = []
        try:
            for service in project.services:
                cmd = self._command("logs", "--follow", container_name(project.name, service.name))
                try:
                    proc = subprocess.Popen(
                        cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True
                    )
                except OSError as exc:
                    raise BackendOperationError(
                        "start", f"cannot run {self._config.binary}: {exc}"
                    ) from exc
                procs.append(proc)
                pump = threading.Thread(
                    target=_pump,
                    args=(follow, proc, f"{service.name.ljust(width)}  | ", writer, lock),
                    daemon=True,
                )
                pump.start()
                pumps.append(pump)

            while any(proc.poll() is None for proc in procs):
                if follow.wait(self._config.log_poll_interval):
                    logger.debug("Log follow interrupted by cancellation")
                    break
        except BaseException:
            follow.cancel()
            raise
        finally:
            for proc in procs:
                if proc.poll() is None:
                    proc.terminate()
            for proc in procs:
                try:
                    proc.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    proc.kill()
            for pump in pumps:
                pump.join(timeout=1)


def _pump(
    ctx: ExecutionContext,
    proc: subprocess.Popen[str],
    prefix: str,
    writer: TextIO,
    lock: threading.Lock,
) -> None:
    assert proc.stdout is not None
    for line in proc.stdout:
        if ctx.cancelled:
            break
        with lock:
            writer.write(f"{prefix}{line.rstrip()}\n")
            writer.flush()
