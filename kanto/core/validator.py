"""Pre-deployment validation.

Runs every check in order and aggregates all defects so the operator sees
the complete list in one run. Never mutates anything.
"""
import shutil
from typing import Any, Callable, Dict, List, Optional, Sequence

from kanto.config.loader import ProfileLoader
from kanto.config.validator import ProfileValidator
from kanto.core.config import KantoConfig
from kanto.core.errors import KantoError
from kanto.core.logger import get_logger
from kanto.models.profile import external_service_host
from kanto.models.report import Severity, ValidationIssue, ValidationReport
from kanto.services.docker import DockerCLI
from kanto.services.secrets.store import SecretStore
from kanto.services.stacks import StackCatalog

logger = get_logger(__name__)

INSTALL_GUIDANCE = {
    'docker': "Docker: https://docs.docker.com/get-docker/",
    'age': "Age: apt install age (Ubuntu) or brew install age (macOS)",
    'age-keygen': "Age: apt install age (Ubuntu) or brew install age (macOS)",
}

ALL_CHECKS = (
    'dependencies',
    'yaml',
    'structure',
    'stacks',
    'domains',
    'volumes',
    'docker',
    'secrets',
)

# Checks that only read the profile and stack tree (used by deploy)
PROFILE_CHECKS = ('yaml', 'structure', 'stacks', 'domains')

# Checks that need the parsed profile
_PROFILE_DEPENDENT = {'structure', 'stacks', 'domains', 'volumes'}


class Validator:
    """Read-only consistency checker for one server."""

    def __init__(
        self,
        config: KantoConfig,
        docker: Optional[DockerCLI] = None,
        store: Optional[SecretStore] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        self.config = config
        self.loader = ProfileLoader(config)
        self.profile_validator = ProfileValidator()
        self.catalog = StackCatalog(config.stacks_dir)
        self.docker = docker or DockerCLI(config.docker_binary)
        self.store = store or SecretStore(config)
        self.which = which

    def validate(self, server: str, checks: Optional[Sequence[str]] = None) -> ValidationReport:
        """Run the selected checks (default: all) and return the report."""
        selected = [c for c in ALL_CHECKS if checks is None or c in checks]
        report = ValidationReport(server=server)
        raw: Optional[Dict[str, Any]] = None

        for check in selected:
            if check == 'dependencies':
                report.record(check, self.check_dependencies())
            elif check == 'yaml':
                raw, issues = self.check_yaml(server)
                report.record(check, issues)
            elif check in _PROFILE_DEPENDENT:
                if raw is None:
                    if 'yaml' not in selected:
                        raw, _ = self.check_yaml(server)
                    if raw is None:
                        report.skip(check, "profile could not be loaded")
                        continue
                report.record(check, self._run_profile_check(check, raw))
            elif check == 'docker':
                report.record(check, self.check_docker())
            elif check == 'secrets':
                report.record(check, self.check_secrets(server))

        if isinstance(raw, dict):
            report.summary = self._summary(raw)

        for issue in report.errors:
            logger.debug(f"[{issue.check}] {issue.message}")
        return report

    def check_dependencies(self) -> List[ValidationIssue]:
        binaries = [
            self.config.docker_binary,
            self.config.age_binary,
            self.config.age_keygen_binary,
        ]
        issues = []
        for binary in binaries:
            if self.which(binary) is None:
                issues.append(ValidationIssue(
                    'dependencies',
                    f"Missing dependency: {binary}",
                    remediation=INSTALL_GUIDANCE.get(binary, f"Install {binary}"),
                ))
        return issues

    def check_yaml(self, server: str):
        """Return (parsed profile or None, issues)."""
        try:
            return self.loader.load_raw(server), []
        except KantoError as err:
            return None, [ValidationIssue('yaml', err.message, remediation=err.remediation)]

    def _run_profile_check(self, check: str, raw: Dict[str, Any]) -> List[ValidationIssue]:
        if check == 'structure':
            return self._errors(check, self.profile_validator.validate_structure(raw))

        if check == 'domains':
            return self._errors(check, self.profile_validator.validate_domains(raw))

        if check == 'volumes':
            return [
                ValidationIssue(check, message, Severity.WARNING)
                for message in self.profile_validator.validate_volumes(raw)
            ]

        # stacks
        stacks = raw.get('stacks') if isinstance(raw, dict) else None
        enabled = stacks.get('enabled') if isinstance(stacks, dict) else None
        if not isinstance(enabled, list):
            return []
        return self._errors(check, self.catalog.missing([str(s) for s in enabled]))

    def check_docker(self) -> List[ValidationIssue]:
        if self.docker.info():
            return []
        return [ValidationIssue(
            'docker',
            "Docker daemon is not running",
            remediation="sudo systemctl start docker",
        )]

    def check_secrets(self, server: str) -> List[ValidationIssue]:
        encrypted = self.store.encrypted_path(server)
        if not encrypted.exists():
            return [ValidationIssue(
                'secrets',
                f"No encrypted secrets found: {encrypted}",
                remediation=f"kanto secrets generate {server} && kanto secrets encrypt {server}",
            )]

        try:
            self.store.view(server)
        except KantoError as err:
            return [ValidationIssue(
                'secrets',
                f"Cannot decrypt secrets file: {err.message}",
                remediation=err.remediation or "Check your age key",
            )]
        return []

    @staticmethod
    def _errors(check: str, messages: List[str]) -> List[ValidationIssue]:
        return [ValidationIssue(check, message) for message in messages]

    @staticmethod
    def _summary(raw: Dict[str, Any]) -> Dict[str, Any]:
        server = raw.get('server') if isinstance(raw.get('server'), dict) else {}
        stacks = raw.get('stacks') if isinstance(raw.get('stacks'), dict) else {}
        enabled = stacks.get('enabled') if isinstance(stacks.get('enabled'), list) else []
        external = raw.get('external_services')
        external = external if isinstance(external, list) else []
        name = server.get('name', '?')
        domain = server.get('domain', '?')

        return {
            'server': f"{name} ({server.get('type', '?')})",
            'domain': domain,
            'internal_domain': server.get('internal_domain', '?'),
            'enabled_stacks': [str(s) for s in enabled],
            'external_services': [external_service_host(str(svc), name, domain) for svc in external],
        }
