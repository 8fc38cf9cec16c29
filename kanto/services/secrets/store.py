"""Per-server secret store: generate, encrypt, decrypt, edit, view.

Records live encrypted at secrets/<server>.env.age. The plaintext
secrets/<server>.env exists only between ``generate``/``decrypt`` and the
next ``encrypt``; ``edit`` always re-encrypts, even when the editor fails.
"""
import base64
import secrets
import shlex
import subprocess
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from kanto.core.config import KantoConfig
from kanto.core.errors import (
    ExternalToolError,
    MalformedInputError,
    MissingArtifactError,
    MissingDependencyError,
    SecretExistsError,
)
from kanto.core.files import temp_sibling, write_private_file
from kanto.core.logger import get_logger
from kanto.models.secrets import SecretRecord
from kanto.services.secrets.age import AgeCipher

logger = get_logger(__name__)


def random_base64(num_bytes: int) -> str:
    """Equivalent of ``openssl rand -base64 N``."""
    return base64.b64encode(secrets.token_bytes(num_bytes)).decode('ascii')


def random_hex(num_bytes: int) -> str:
    return secrets.token_hex(num_bytes)


# (section, [(name, kind, arg)]) where kind is base64/hex/placeholder
SECRET_CATALOG: List[Tuple[str, List[Tuple[str, str, object]]]] = [
    ("Cloudflare Configuration", [
        ("CLOUDFLARE_TUNNEL_TOKEN", "placeholder", "your-tunnel-token-here"),
        ("CF_API_EMAIL", "placeholder", "your-email@example.com"),
        ("CF_DNS_API_TOKEN", "placeholder", "your-cloudflare-api-token"),
    ]),
    ("Grafana", [
        ("GRAFANA_ADMIN_PASSWORD", "base64", 32),
    ]),
    ("Authelia Authentication", [
        ("AUTHELIA_JWT_SECRET", "base64", 64),
        ("AUTHELIA_SESSION_SECRET", "base64", 32),
        ("AUTHELIA_STORAGE_KEY", "base64", 32),
    ]),
    ("Development Tools", [
        ("CODE_SERVER_PASSWORD", "base64", 24),
        ("CODE_SERVER_SUDO_PASSWORD", "base64", 24),
        ("GITEA_SECRET_KEY", "base64", 32),
    ]),
    ("Automation & Productivity", [
        ("N8N_PASSWORD", "base64", 24),
        ("VAULTWARDEN_ADMIN_TOKEN", "base64", 32),
        ("ONLYOFFICE_JWT_SECRET", "base64", 32),
    ]),
    ("AI/LLM Services", [
        ("OPEN_WEBUI_SECRET_KEY", "base64", 32),
        ("JUPYTER_TOKEN", "hex", 32),
    ]),
    ("Security & DNS", [
        ("PIHOLE_PASSWORD", "base64", 24),
    ]),
    ("VPN Services", [
        ("TAILSCALE_AUTH_KEY", "placeholder", "your-tailscale-auth-key"),
    ]),
    ("Media Services (for NAS servers)", [
        ("PLEX_CLAIM_TOKEN", "placeholder", "your-plex-claim-token"),
    ]),
    ("Server Information", [
        ("SERVER_IP", "placeholder", "your-server-ip-address"),
    ]),
]

_GENERATORS = {
    "base64": random_base64,
    "hex": random_hex,
    "placeholder": lambda value: value,
}


def placeholder_keys() -> List[str]:
    """Secrets only a human can supply."""
    return [
        name
        for _, entries in SECRET_CATALOG
        for name, kind, _ in entries
        if kind == "placeholder"
    ]


class SecretStore:
    """Manages encrypted secret records for every server."""

    def __init__(self, config: KantoConfig, cipher: Optional[AgeCipher] = None):
        self.config = config
        self.cipher = cipher or AgeCipher.from_config(config)

    def plaintext_path(self, server: str) -> Path:
        return self.config.plaintext_secrets(server)

    def encrypted_path(self, server: str) -> Path:
        return self.config.encrypted_secrets(server)

    def exists(self, server: str) -> bool:
        return self.encrypted_path(server).exists() or self.plaintext_path(server).exists()

    def has_plaintext(self, server: str) -> bool:
        return self.plaintext_path(server).exists()

    def generate(self, server: str, overwrite: bool = False) -> Path:
        """Write a fresh plaintext record with random values and placeholders.

        Raises:
            SecretExistsError: A record already exists and overwrite is False
        """
        plaintext = self.plaintext_path(server)

        if self.exists(server) and not overwrite:
            existing = plaintext if plaintext.exists() else self.encrypted_path(server)
            raise SecretExistsError(
                f"Secrets already exist for {server}: {existing}",
                remediation=(
                    f"kanto secrets edit {server} (or regenerate with "
                    f"kanto secrets generate {server} --force)"
                ),
            )

        logger.info(f"Generating secrets for {server}...")
        lines = [
            f"# Generated secrets for {server} server",
            f"# Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        ]
        for section, entries in SECRET_CATALOG:
            lines.append("")
            lines.append(f"# {section}")
            for name, kind, arg in entries:
                lines.append(f"{name}={_GENERATORS[kind](arg)}")

        write_private_file(plaintext, "\n".join(lines) + "\n")
        logger.info(f"✓ Secrets generated: {plaintext}")
        logger.warning(
            f"Edit the file to add your actual API tokens and keys: {', '.join(placeholder_keys())}"
        )
        return plaintext

    def encrypt(self, server: str, recipients: Optional[List[str]] = None) -> Path:
        """Encrypt the plaintext record and remove the plaintext.

        Raises:
            MissingArtifactError: No plaintext record to encrypt
        """
        plaintext = self.plaintext_path(server)
        encrypted = self.encrypted_path(server)

        if not plaintext.exists():
            raise MissingArtifactError(
                f"Secrets file not found: {plaintext}",
                remediation=f"kanto secrets generate {server}",
            )

        if recipients is None:
            recipients = [self.cipher.ensure_keypair()]

        logger.info(f"Encrypting secrets for {server}...")
        temp_path = temp_sibling(encrypted)
        try:
            self.cipher.encrypt_file(plaintext, temp_path, recipients)
            temp_path.replace(encrypted)
        finally:
            temp_path.unlink(missing_ok=True)

        plaintext.unlink()
        logger.info(f"✓ Secrets encrypted: {encrypted}")
        return encrypted

    def decrypt(self, server: str) -> Path:
        """Decrypt the record to its plaintext path.

        Nothing is written unless decryption fully succeeds, and an existing
        plaintext (unencrypted edits) is never overwritten.

        Raises:
            MissingArtifactError: Ciphertext or private key missing
            SecretExistsError: A plaintext record is already on disk
            DecryptionError: age could not decrypt the ciphertext
        """
        encrypted = self._require_encrypted(server)
        plaintext = self.plaintext_path(server)

        if self.has_plaintext(server):
            raise SecretExistsError(
                f"Plaintext secrets already on disk: {plaintext}",
                remediation=(
                    f"kanto secrets encrypt {server} to keep those edits, "
                    f"or delete {plaintext} to discard them"
                ),
            )

        logger.info(f"Decrypting secrets for {server}...")
        temp_path = temp_sibling(plaintext)
        try:
            self.cipher.decrypt_file(encrypted, temp_path)
            temp_path.chmod(0o600)
            temp_path.replace(plaintext)
        finally:
            temp_path.unlink(missing_ok=True)

        logger.info(f"✓ Secrets decrypted: {plaintext}")
        return plaintext

    def view(self, server: str) -> str:
        """Return the decrypted record text without touching the disk."""
        encrypted = self._require_encrypted(server)
        return self.cipher.decrypt_text(encrypted)

    def read(self, server: str) -> SecretRecord:
        return SecretRecord.parse(self.view(server))

    def edit(self, server: str, editor: Optional[str] = None) -> Path:
        """Decrypt, open an editor, and re-encrypt.

        Re-encryption runs in a ``finally`` block. If it fails, the plaintext
        is deleted anyway and the previous ciphertext is left untouched.
        """
        editor_cmd = self._editor_command(server, editor or self.config.editor)
        plaintext = self.decrypt(server)
        editor_error = None

        try:
            try:
                subprocess.run(editor_cmd, check=True)
            except FileNotFoundError:
                editor_error = MissingDependencyError(
                    f"Editor not found: {editor_cmd[0]}",
                    remediation="Set $EDITOR to an installed editor",
                )
            except OSError as exc:
                editor_error = ExternalToolError(
                    f"Cannot run editor {editor_cmd[0]}: {exc.strerror or exc}",
                    remediation="Set $EDITOR to an executable editor",
                )
            except subprocess.CalledProcessError as exc:
                editor_error = ExternalToolError(
                    f"Editor exited with status {exc.returncode}; secrets re-encrypted as saved",
                    remediation=f"kanto secrets edit {server}",
                )
        finally:
            try:
                encrypted = self.encrypt(server)
            finally:
                if plaintext.exists():
                    plaintext.unlink()
                    logger.error(
                        f"Re-encryption failed; removed plaintext {plaintext}. "
                        f"Previous ciphertext kept, edits discarded."
                    )

        if editor_error is not None:
            raise editor_error

        logger.info("✓ Secrets edited and re-encrypted")
        return encrypted

    def _editor_command(self, server: str, editor: str) -> List[str]:
        """Split the editor setting and append the plaintext path."""
        try:
            cmd = shlex.split(editor)
        except ValueError as exc:
            raise MalformedInputError(
                f"Cannot parse editor command {editor!r}: {exc}",
                remediation="Fix the quoting in $EDITOR",
            ) from exc
        if not cmd:
            raise MalformedInputError(
                "Editor command is empty",
                remediation="Set $EDITOR, e.g. export EDITOR=nano",
            )
        return cmd + [str(self.plaintext_path(server))]

    def _require_encrypted(self, server: str) -> Path:
        encrypted = self.encrypted_path(server)
        if not encrypted.exists():
            raise MissingArtifactError(
                f"Encrypted secrets file not found: {encrypted}",
                remediation=(
                    f"kanto secrets generate {server} && kanto secrets encrypt {server}"
                ),
            )
        return encrypted
