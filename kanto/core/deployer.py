"""Deployment orchestration.

One deployment runs as an ordered pipeline under the per-server lock:

    validate -> render-environment -> tunnel-config -> directories
             -> networks -> stack:<id> ...

The first failing step stops the run. Stacks already brought up stay up;
nothing is rolled back.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from kanto.config.loader import ProfileLoader
from kanto.core.config import KantoConfig
from kanto.core.errors import KantoError, MalformedInputError
from kanto.core.lock import deploy_lock
from kanto.core.logger import get_logger
from kanto.core.pipeline import Pipeline, PipelineResult
from kanto.core.validator import PROFILE_CHECKS, Validator
from kanto.models.environment import RenderedEnvironment
from kanto.models.profile import ServerProfile
from kanto.models.report import Severity
from kanto.services.docker import DockerCLI, NetworkProvisioner, StackActivator
from kanto.services.environment import (
    EnvironmentRenderer,
    SecretSnapshotCache,
    write_environment,
)
from kanto.services.host import HostProvisioner
from kanto.services.secrets.store import SecretStore
from kanto.services.stacks import StackCatalog
from kanto.services.tunnel import TunnelConfigRenderer

logger = get_logger(__name__)


@dataclass
class DeployOptions:
    """Per-run deployment options."""
    stack: Optional[str] = None
    domain: Optional[str] = None
    dry_run: bool = False


@dataclass
class DeploymentResult:
    """Pipeline outcome plus what the run produced."""
    server: str
    pipeline: PipelineResult
    profile: Optional[ServerProfile] = None
    environment: Optional[RenderedEnvironment] = None
    stacks: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.pipeline.ok

    def access_urls(self) -> List[str]:
        if self.profile is None:
            return []
        name, domain = self.profile.name, self.profile.domain
        urls = [
            f"https://home-{name}.{domain}",
            f"https://grafana-{name}.{domain}",
            f"http://home.{name}.local",
        ]
        for host in self.profile.external_service_urls():
            url = f"https://{host}"
            if url not in urls:
                urls.append(url)
        return urls


class Deployer:
    """Deploys a server's enabled stacks (or a single stack)."""

    def __init__(
        self,
        config: KantoConfig,
        docker: Optional[DockerCLI] = None,
        store: Optional[SecretStore] = None,
    ):
        self.config = config
        self.docker = docker or DockerCLI(config.docker_binary)
        self.store = store or SecretStore(config)
        self.loader = ProfileLoader(config)
        self.catalog = StackCatalog(config.stacks_dir)
        self.validator = Validator(config, docker=self.docker, store=self.store)
        self.renderer = EnvironmentRenderer()
        self.cache = SecretSnapshotCache(config, self.store)
        self.tunnel = TunnelConfigRenderer(config)
        self.host = HostProvisioner()
        self.networks = NetworkProvisioner(self.docker)
        self.activator = StackActivator(self.docker, self.catalog)

    def deploy(self, server: str, options: Optional[DeployOptions] = None) -> DeploymentResult:
        """Run the deployment pipeline for ``server``.

        Raises:
            LockError: Another deployment of the same server is running
        """
        options = options or DeployOptions()
        result = DeploymentResult(server=server, pipeline=PipelineResult())

        logger.info(f"Deploying server: {server}")
        if options.dry_run:
            logger.info("DRY RUN: no networks, directories or containers will be touched")

        with deploy_lock(self.config.lock_file(server), self.config.lock_timeout):
            pipeline = self._build_pipeline(server, options, result)
            result.pipeline = pipeline.run()

        if result.ok:
            logger.info(f"✓ Deployment of {server} complete")
        return result

    def _build_pipeline(self, server: str, options: DeployOptions,
                        result: DeploymentResult) -> Pipeline:
        env_file = self.config.env_file(server)
        pipeline = Pipeline()

        def validate():
            report = self.validator.validate(server, checks=PROFILE_CHECKS)
            if not report.ok:
                messages = report.messages(Severity.ERROR)
                raise MalformedInputError(
                    "Validation failed:\n  " + "\n  ".join(messages),
                    issues=messages,
                    remediation=f"kanto validate {server}",
                )
            if options.stack:
                self.catalog.get(options.stack)
            return report

        def render_environment():
            profile = self.loader.load(server)
            secrets = self.cache.load(server)
            env = self.renderer.render(profile, secrets, domain_override=options.domain)
            write_environment(env, env_file)
            logger.info(f"✓ Environment file created: {env_file}")
            result.profile = profile.with_domain(options.domain)
            result.environment = env
            return env

        def tunnel_config():
            return self.tunnel.render(result.profile, dry_run=options.dry_run)

        def directories():
            return self.host.create_directories(result.profile, dry_run=options.dry_run)

        def networks():
            return self.networks.provision(
                list(result.profile.network_names), dry_run=options.dry_run
            )

        pipeline.add("validate", validate)
        pipeline.add("render-environment", render_environment)
        pipeline.add("tunnel-config", tunnel_config)
        pipeline.add("directories", directories)
        pipeline.add("networks", networks)

        for stack_id in self._target_stacks(server, options):
            pipeline.add(f"stack:{stack_id}", self._stack_step(stack_id, env_file, options, result))

        return pipeline

    def _stack_step(self, stack_id: str, env_file, options: DeployOptions,
                    result: DeploymentResult):
        def activate():
            stack = self.activator.activate(stack_id, env_file, dry_run=options.dry_run)
            result.stacks.append(stack.name)
            return stack
        return activate

    def _target_stacks(self, server: str, options: DeployOptions) -> List[str]:
        """Stacks to bring up: ``--stack`` or the profile's enabled list."""
        if options.stack:
            return [options.stack]

        # The profile may be broken; the validate step reports that.
        try:
            return list(self.loader.load(server).enabled_stacks)
        except KantoError:
            return []
