"""Kanto runtime configuration and project layout."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class KantoConfig:
    """Runtime configuration for Kanto operations.

    Every component receives this object explicitly; nothing looks up the
    operator key or project paths on its own.

    Attributes:
        project_dir: Root of the operator repository (configs/, docker/, secrets/)
        age_dir: Directory holding the operator age keypair (default: ~/.age)
        editor: Editor used by ``secrets edit`` (default: $EDITOR or nano)
        secrets_cache: Reuse a decrypted snapshot newer than its ciphertext
        secrets_cache_max_age: Snapshot expiry in seconds (0 = never expires)
        docker_binary: Docker CLI executable
        age_binary: age executable
        age_keygen_binary: age-keygen executable
        lock_timeout: Seconds to wait for the per-server deploy lock (0 = fail immediately)
    """

    project_dir: Path = field(default_factory=Path.cwd)
    age_dir: Path = field(default_factory=lambda: Path.home() / ".age")
    editor: str = "nano"
    secrets_cache: bool = True
    secrets_cache_max_age: int = 0
    docker_binary: str = "docker"
    age_binary: str = "age"
    age_keygen_binary: str = "age-keygen"
    lock_timeout: int = 0

    def __post_init__(self):
        self.project_dir = Path(self.project_dir)
        self.age_dir = Path(self.age_dir)

    @classmethod
    def from_env(cls, project_dir: Optional[str] = None) -> "KantoConfig":
        """Create config from environment variables.

        Environment variables:
            KANTO_PROJECT_DIR: Project root (overridden by ``project_dir``)
            KANTO_AGE_DIR: Directory with key.txt / key.pub
            EDITOR: Editor for ``secrets edit``
            KANTO_SECRETS_CACHE: Enable decrypted-snapshot reuse (default: 1)
            KANTO_SECRETS_CACHE_MAX_AGE: Snapshot expiry in seconds (default: 0)
            KANTO_LOCK_TIMEOUT: Deploy lock wait in seconds (default: 0)

        Returns:
            KantoConfig instance with values from environment or defaults
        """
        root = project_dir or os.getenv("KANTO_PROJECT_DIR") or Path.cwd()
        age_dir = os.getenv("KANTO_AGE_DIR")
        return cls(
            project_dir=Path(root).expanduser().resolve(),
            age_dir=Path(age_dir).expanduser() if age_dir else Path.home() / ".age",
            editor=os.getenv("EDITOR") or cls.editor,
            secrets_cache=os.getenv("KANTO_SECRETS_CACHE", "1").lower() in _TRUTHY,
            secrets_cache_max_age=int(
                os.getenv("KANTO_SECRETS_CACHE_MAX_AGE", cls.secrets_cache_max_age)
            ),
            docker_binary=os.getenv("KANTO_DOCKER_BINARY", cls.docker_binary),
            lock_timeout=int(os.getenv("KANTO_LOCK_TIMEOUT", cls.lock_timeout)),
        )

    # Project layout

    @property
    def servers_dir(self) -> Path:
        return self.project_dir / "configs" / "servers"

    @property
    def stacks_dir(self) -> Path:
        return self.project_dir / "docker" / "stacks"

    @property
    def env_dir(self) -> Path:
        return self.project_dir / "docker" / "env"

    @property
    def secrets_dir(self) -> Path:
        return self.project_dir / "secrets"

    @property
    def tunnel_template(self) -> Path:
        return self.project_dir / "templates" / "cloudflare" / "tunnel-config.yml.template"

    @property
    def tunnel_config(self) -> Path:
        return self.stacks_dir / "00-bifrost" / "config" / "cloudflare" / "tunnel.yml"

    @property
    def identity_file(self) -> Path:
        """Operator private key."""
        return self.age_dir / "key.txt"

    @property
    def recipients_file(self) -> Path:
        """Operator public key."""
        return self.age_dir / "key.pub"

    def profile_path(self, server: str) -> Path:
        return self.servers_dir / f"{server}.yml"

    def env_file(self, server: str) -> Path:
        return self.env_dir / server / ".env"

    def secrets_snapshot(self, server: str) -> Path:
        """Decrypted secret cache reused between deployments."""
        return self.env_dir / server / "secrets.env"

    def lock_file(self, server: str) -> Path:
        return self.env_dir / server / ".deploy.lock"

    def plaintext_secrets(self, server: str) -> Path:
        return self.secrets_dir / f"{server}.env"

    def encrypted_secrets(self, server: str) -> Path:
        return self.secrets_dir / f"{server}.env.age"
