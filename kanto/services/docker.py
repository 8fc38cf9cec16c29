"""Docker integration: networks and compose stacks.

Everything goes through the ``docker`` CLI; containers are never managed
directly. Stack activation uses ``docker compose up -d``, which creates or
updates containers idempotently.
"""
import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from kanto.core.errors import ExternalToolError, MissingDependencyError
from kanto.core.logger import get_logger
from kanto.models.stack import Stack
from kanto.services.stacks import StackCatalog

logger = get_logger(__name__)

COMPOSE_NETWORK_LABEL = "com.docker.compose.network"


class DockerCLI:
    """Thin wrapper around the docker command line."""

    def __init__(self, binary: str = "docker"):
        self.binary = binary

    def info(self) -> bool:
        """Return True when the docker daemon answers."""
        try:
            self._run(["info"])
        except (ExternalToolError, MissingDependencyError):
            return False
        return True

    def network_inspect(self, name: str) -> Optional[Dict[str, Any]]:
        """Return network details, or None if the network does not exist."""
        try:
            result = subprocess.run(
                [self.binary, "network", "inspect", name, "--format", "{{json .}}"],
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise MissingDependencyError(
                f"{self.binary} is not installed",
                remediation="Install Docker: https://docs.docker.com/get-docker/",
            ) from exc

        if result.returncode != 0:
            return None
        return json.loads(result.stdout)

    def network_create(self, name: str, driver: str = "bridge") -> None:
        self._run(["network", "create", name, "--driver", driver])

    def network_remove(self, name: str) -> None:
        self._run(["network", "rm", name])

    def compose_up(self, stack: Stack, env_file: Path) -> None:
        """Converge a stack: create, update and start its containers."""
        self._run(
            [
                "compose",
                "--env-file", str(env_file),
                "-f", str(stack.compose_file),
                "up", "-d",
            ],
            cwd=stack.directory,
            capture=False,
        )

    def _run(self, args: List[str], cwd: Optional[Path] = None,
             capture: bool = True) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        try:
            return subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=capture,
                text=True,
                check=True,
            )
        except FileNotFoundError as exc:
            raise MissingDependencyError(
                f"{self.binary} is not installed",
                remediation="Install Docker: https://docs.docker.com/get-docker/",
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip() if capture else ""
            raise ExternalToolError(
                f"Command failed: {' '.join(cmd)}" + (f": {stderr}" if stderr else ""),
                stderr=stderr,
                remediation="Check that the docker daemon is running: sudo systemctl start docker",
            ) from exc


@dataclass
class NetworkAction:
    """What network provisioning did (or would do) for one network."""
    network: str
    action: str  # created, recreated, kept, skipped-attached, planned
    detail: str = ""


class NetworkProvisioner:
    """Ensures the per-server bridge networks exist.

    A network carrying compose labels was created by ``docker compose`` and
    conflicts with external use; it is recreated only when no container is
    attached to it.
    """

    def __init__(self, docker: DockerCLI):
        self.docker = docker

    def provision(self, names: List[str], dry_run: bool = False) -> List[NetworkAction]:
        actions = []
        logger.info("Creating Docker networks...")

        for name in names:
            if dry_run:
                logger.info(f"DRY RUN: Would create network {name}")
                actions.append(NetworkAction(name, "planned"))
                continue
            actions.append(self._ensure(name))

        return actions

    def _ensure(self, name: str) -> NetworkAction:
        details = self.docker.network_inspect(name)

        if details is None:
            self.docker.network_create(name, driver="bridge")
            logger.info(f"Created network: {name}")
            return NetworkAction(name, "created")

        labels = details.get("Labels") or {}
        if not labels.get(COMPOSE_NETWORK_LABEL):
            logger.info(f"Network already exists: {name}")
            return NetworkAction(name, "kept")

        attached = len(details.get("Containers") or {})
        if attached:
            message = (
                f"Network {name} has conflicting Docker Compose labels but "
                f"{attached} container(s) attached, skipping recreation"
            )
            logger.warning(message)
            logger.info(
                f"Stop containers and manually remove network if needed: docker network rm {name}"
            )
            return NetworkAction(name, "skipped-attached", message)

        logger.warning(f"Network {name} has conflicting Docker Compose labels, recreating...")
        self.docker.network_remove(name)
        self.docker.network_create(name, driver="bridge")
        logger.info(f"Recreated network: {name}")
        return NetworkAction(name, "recreated")


class StackActivator:
    """Brings up one stack against a rendered environment file."""

    def __init__(self, docker: DockerCLI, catalog: StackCatalog):
        self.docker = docker
        self.catalog = catalog

    def activate(self, stack_id: str, env_file: Path, dry_run: bool = False) -> Stack:
        """Converge ``stack_id``; no rollback on failure.

        Raises:
            MissingArtifactError: Stack directory or compose file missing
                (raised before docker is touched)
            ExternalToolError: docker compose failed
        """
        stack = self.catalog.get(stack_id)

        logger.info(f"Deploying stack: {stack.name}")
        if dry_run:
            logger.info(f"DRY RUN: Would deploy {stack.name} with env file {env_file}")
            return stack

        self.docker.compose_up(stack, env_file)
        logger.info(f"✓ Stack {stack.name} deployed successfully")
        return stack
