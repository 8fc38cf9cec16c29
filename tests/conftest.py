"""Shared test fixtures for Kanto tests."""
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import yaml

from kanto.core import logger as kanto_logger
from kanto.core.config import KantoConfig
from kanto.core.errors import DecryptionError, ExternalToolError, MissingArtifactError
from kanto.services.secrets.store import SecretStore

FAKE_MARKER = "FAKE-AGE-ENCRYPTION\n"


def lugia_profile(base: Path) -> Dict:
    """A valid profile whose volumes live under ``base``."""
    return {
        'server': {
            'name': 'lugia',
            'type': 'homelab',
            'domain': 'example.com',
            'internal_domain': 'lugia.local',
        },
        'volumes': {
            'config_base': str(base / 'config'),
            'data_base': str(base / 'data'),
            'downloads_base': str(base / 'downloads'),
        },
        'environment': {
            'TZ': 'Europe/Stockholm',
            'PUID': 1000,
            'PGID': 1000,
        },
        'cloudflare': {'tunnel_name': 'lugia-tunnel'},
        'stacks': {'enabled': ['00-bifrost', '05-fortress']},
        'external_services': ['grafana', 'portainer'],
    }


def write_profile(config: KantoConfig, name: str, data) -> Path:
    path = config.profile_path(name)
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, str):
        path.write_text(data)
    else:
        path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


def write_stack(config: KantoConfig, stack_id: str, services: Optional[Dict] = None) -> Path:
    directory = config.stacks_dir / stack_id
    directory.mkdir(parents=True, exist_ok=True)
    compose = {'services': services or {'hello': {'image': 'nginxdemos/hello'}}}
    path = directory / "docker-compose.yml"
    path.write_text(yaml.safe_dump(compose, sort_keys=False))
    return path


class FakeCipher:
    """Stand-in for AgeCipher that 'encrypts' by prefixing a marker."""

    def __init__(self):
        self.fail_encrypt = False
        self.encrypt_calls = 0
        self.decrypt_calls = 0

    def has_identity(self) -> bool:
        return True

    def ensure_keypair(self) -> str:
        return "age1fakepublickey"

    def public_key(self) -> str:
        return "age1fakepublickey"

    def encrypt_file(self, source: Path, destination: Path, recipients: Optional[List[str]] = None) -> None:
        self.encrypt_calls += 1
        if self.fail_encrypt:
            raise ExternalToolError("Failed to encrypt: simulated")
        Path(destination).write_text(FAKE_MARKER + Path(source).read_text())

    def decrypt_text(self, source: Path) -> str:
        self.decrypt_calls += 1
        source = Path(source)
        if not source.exists():
            raise MissingArtifactError(f"Missing: {source}")
        content = source.read_text()
        if not content.startswith(FAKE_MARKER):
            raise DecryptionError("Failed to decrypt: no identity matched")
        return content[len(FAKE_MARKER):]

    def decrypt_file(self, source: Path, destination: Path) -> None:
        text = self.decrypt_text(source)
        Path(destination).write_text(text)


class FakeDocker:
    """Records docker calls; networks are held in memory."""

    def __init__(self, networks: Optional[Dict[str, Dict]] = None, daemon_up: bool = True):
        self.networks = dict(networks or {})
        self.daemon_up = daemon_up
        self.calls: List[tuple] = []
        self.failing_stacks = set()

    @property
    def mutations(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ('network_create', 'network_remove', 'compose_up')]

    def info(self) -> bool:
        self.calls.append(('info',))
        return self.daemon_up

    def network_inspect(self, name: str):
        self.calls.append(('network_inspect', name))
        return self.networks.get(name)

    def network_create(self, name: str, driver: str = "bridge") -> None:
        self.calls.append(('network_create', name))
        self.networks[name] = {'Name': name, 'Labels': {}, 'Containers': {}}

    def network_remove(self, name: str) -> None:
        self.calls.append(('network_remove', name))
        self.networks.pop(name, None)

    def compose_up(self, stack, env_file: Path) -> None:
        self.calls.append(('compose_up', stack.name, Path(env_file)))
        if stack.name in self.failing_stacks:
            raise ExternalToolError(f"Command failed: docker compose up for {stack.name}")


@pytest.fixture
def config(tmp_path):
    """Empty project tree plus a private age directory."""
    project = tmp_path / "project"
    project.mkdir()
    return KantoConfig(project_dir=project, age_dir=tmp_path / "age", editor="true")


@pytest.fixture
def project(config, tmp_path):
    """Project with the lugia profile and its two stacks."""
    write_profile(config, 'lugia', lugia_profile(tmp_path / "volumes"))
    write_stack(config, '00-bifrost', {
        'traefik': {'image': 'traefik:v3.0'},
        'hello': {'image': 'nginxdemos/hello'},
    })
    write_stack(config, '05-fortress', {'grafana': {'image': 'grafana/grafana'}})
    return config


@pytest.fixture
def cipher():
    return FakeCipher()


@pytest.fixture
def store(config, cipher):
    return SecretStore(config, cipher=cipher)


@pytest.fixture
def encrypted_secrets(store):
    """Write and encrypt a small secret record for lugia."""
    def _write(text: str = "GRAFANA_ADMIN_PASSWORD=abc\n", server: str = 'lugia'):
        plaintext = store.plaintext_path(server)
        plaintext.parent.mkdir(parents=True, exist_ok=True)
        plaintext.write_text(text)
        return store.encrypt(server)
    return _write


@pytest.fixture
def docker():
    return FakeDocker()


@pytest.fixture(autouse=True)
def reset_file_logging():
    """Detach any log file a test configured and restore INFO level."""
    yield
    root = logging.getLogger(kanto_logger.ROOT_LOGGER)
    handler = kanto_logger._file_handler
    if handler is not None:
        root.removeHandler(handler)
        handler.close()
        kanto_logger._file_handler = None
    root.setLevel(logging.INFO)
