"""Environment file rendering.

Flattens a server profile plus its secret record into the ``.env`` file that
``docker compose --env-file`` consumes. Output is deterministic apart from
the generation timestamp on the first line.
"""
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from kanto.core.config import KantoConfig
from kanto.core.files import write_private_file
from kanto.core.logger import get_logger
from kanto.models.environment import RenderedEnvironment
from kanto.models.profile import ServerProfile
from kanto.models.secrets import SecretRecord
from kanto.services.secrets.store import SecretStore

logger = get_logger(__name__)


class EnvironmentRenderer:
    """Renders RenderedEnvironment objects from profiles and secrets."""

    def render(
        self,
        profile: ServerProfile,
        secrets: Optional[SecretRecord] = None,
        domain_override: Optional[str] = None,
        generated_at: Optional[datetime] = None,
    ) -> RenderedEnvironment:
        """Build the environment for one deployment.

        Args:
            profile: Server profile as authored on disk
            secrets: Decrypted secret record (appended last, wins on collision)
            domain_override: Replaces the profile domain for this render only
            generated_at: Timestamp for the header comment (default: now)
        """
        profile = profile.with_domain(domain_override)
        server = profile.server
        timestamp = (generated_at or datetime.now()).isoformat(timespec='seconds')

        env = RenderedEnvironment(
            header=[f"Generated by kanto for {server.name} on {timestamp}"]
        )

        identity = env.section(f"Server configuration for {server.name}")
        identity.add("SERVER_NAME", server.name)
        identity.add("SERVER_TYPE", server.type)
        identity.add("DOMAIN", server.domain)
        identity.add("INTERNAL_DOMAIN", server.internal_domain)

        volumes = env.section("Volume mappings")
        for key, value in profile.volumes.items():
            volumes.add(key.upper(), value)

        variables = env.section("Environment variables")
        for key, value in profile.environment.items():
            variables.add(key, value)

        cloudflare = env.section("Cloudflare")
        cloudflare.add("CLOUDFLARE_TUNNEL_NAME", profile.tunnel_name)

        network, proxy = profile.network_names
        networks = env.section("Network configuration")
        networks.add(f"{server.name.upper()}_NETWORK", network)
        networks.add(f"{server.name.upper()}_PROXY", proxy)

        if secrets:
            profile_keys = {key for key, _ in env.entries()}
            collisions = [key for key in secrets if key in profile_keys]
            if collisions:
                logger.warning(
                    f"Secrets override profile values: {', '.join(collisions)}"
                )

            secret_section = env.section("Secrets")
            for key, value in secrets.items():
                secret_section.add(key, value)

        return env


def write_environment(env: RenderedEnvironment, path: Path) -> Path:
    """Overwrite the environment file (mode 0600, it contains secrets)."""
    return write_private_file(path, env.to_text())


class SecretSnapshotCache:
    """Decrypted secret snapshot reused between deployments.

    The snapshot at docker/env/<server>/secrets.env is valid iff it exists,
    the ciphertext exists, snapshot mtime >= ciphertext mtime, and (when
    ``secrets_cache_max_age`` is set) it is younger than that many seconds.
    Reuse avoids an age prompt per deployment at the cost of plaintext
    secrets on disk; disable with KANTO_SECRETS_CACHE=0.
    """

    def __init__(self, config: KantoConfig, store: SecretStore):
        self.config = config
        self.store = store

    def snapshot_path(self, server: str) -> Path:
        return self.config.secrets_snapshot(server)

    def is_valid(self, server: str, now: Optional[float] = None) -> bool:
        snapshot = self.snapshot_path(server)
        encrypted = self.store.encrypted_path(server)

        if not snapshot.exists() or not encrypted.exists():
            return False

        snapshot_mtime = snapshot.stat().st_mtime
        if snapshot_mtime < encrypted.stat().st_mtime:
            return False

        max_age = self.config.secrets_cache_max_age
        if max_age > 0:
            now = time.time() if now is None else now
            if now - snapshot_mtime > max_age:
                return False

        return True

    def load(self, server: str) -> SecretRecord:
        """Return the secret record for a deployment.

        Raises:
            MissingArtifactError: No encrypted secrets for the server
            DecryptionError: Decryption failed
        """
        snapshot = self.snapshot_path(server)

        if self.config.secrets_cache and self.is_valid(server):
            logger.info("Using existing decrypted secrets file")
            logger.warning(
                f"Plaintext secrets snapshot kept on disk: {snapshot} "
                f"(set KANTO_SECRETS_CACHE=0 to disable)"
            )
            return SecretRecord.parse(snapshot.read_text())

        record = SecretRecord.parse(self.store.view(server))

        if self.config.secrets_cache:
            header = [f"Decrypted from {self.store.encrypted_path(server)}; do not edit"]
            write_private_file(snapshot, record.format(header=header))
        elif snapshot.exists():
            snapshot.unlink()
            logger.info(f"Removed stale secrets snapshot: {snapshot}")

        logger.info("✓ Secrets decrypted")
        return record
