"""age / age-keygen command wrapper."""
import subprocess
from pathlib import Path
from typing import List, Optional

from kanto.core.config import KantoConfig
from kanto.core.errors import (
    DecryptionError,
    ExternalToolError,
    MissingArtifactError,
    MissingDependencyError,
)
from kanto.core.logger import get_logger

logger = get_logger(__name__)

INSTALL_HINT = "Install with: brew install age (macOS) or apt install age (Ubuntu)"


class AgeCipher:
    """Encrypts and decrypts files with the operator's age keypair.

    The public half (key.pub) is the default recipient; the private half
    (key.txt) is the identity used for decryption. Encryption accepts a list
    of recipients so additional operators can be added later.
    """

    def __init__(
        self,
        identity_file: Path,
        recipients_file: Path,
        age_binary: str = "age",
        keygen_binary: str = "age-keygen",
    ):
        self.identity_file = Path(identity_file)
        self.recipients_file = Path(recipients_file)
        self.age_binary = age_binary
        self.keygen_binary = keygen_binary

    @classmethod
    def from_config(cls, config: KantoConfig) -> "AgeCipher":
        return cls(
            identity_file=config.identity_file,
            recipients_file=config.recipients_file,
            age_binary=config.age_binary,
            keygen_binary=config.age_keygen_binary,
        )

    def has_identity(self) -> bool:
        return self.identity_file.exists()

    def ensure_keypair(self) -> str:
        """Generate the operator keypair once; return the public key."""
        if not self.identity_file.exists():
            logger.info("Generating age encryption key...")
            self.identity_file.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
            self._run([self.keygen_binary, "-o", str(self.identity_file)], "generate age key")
            self.identity_file.chmod(0o600)
            logger.info(f"✓ Age key generated: {self.identity_file}")

        if not self.recipients_file.exists():
            result = self._run(
                [self.keygen_binary, "-y", str(self.identity_file)],
                "derive age public key",
            )
            self.recipients_file.write_text(result.stdout.strip() + "\n")
            logger.info(f"Public key: {result.stdout.strip()}")

        return self.public_key()

    def public_key(self) -> str:
        if not self.recipients_file.exists():
            raise MissingArtifactError(
                f"Age public key not found: {self.recipients_file}",
                remediation="kanto secrets encrypt <server> generates the keypair",
            )
        return self.recipients_file.read_text().strip()

    def encrypt_file(self, source: Path, destination: Path,
                     recipients: Optional[List[str]] = None) -> None:
        """Encrypt ``source`` into ``destination`` for every recipient."""
        recipients = recipients or [self.public_key()]
        cmd = [self.age_binary]
        for recipient in recipients:
            cmd.extend(["-r", recipient])
        cmd.extend(["-o", str(destination), str(source)])
        self._run(cmd, f"encrypt {source}")

    def decrypt_file(self, source: Path, destination: Path) -> None:
        """Decrypt ``source`` into ``destination`` with the operator identity."""
        self._require_identity()
        self._run(
            [self.age_binary, "-d", "-i", str(self.identity_file), "-o", str(destination), str(source)],
            f"decrypt {source}",
            error_cls=DecryptionError,
        )

    def decrypt_text(self, source: Path) -> str:
        """Decrypt ``source`` to memory; nothing is written to disk."""
        self._require_identity()
        result = self._run(
            [self.age_binary, "-d", "-i", str(self.identity_file), str(source)],
            f"decrypt {source}",
            error_cls=DecryptionError,
        )
        return result.stdout

    def _require_identity(self) -> None:
        if not self.has_identity():
            raise MissingArtifactError(
                f"Age private key not found: {self.identity_file}",
                remediation=f"Restore your key to {self.identity_file}",
            )

    def _run(self, cmd: List[str], action: str,
             error_cls=ExternalToolError) -> subprocess.CompletedProcess:
        logger.debug(f"Running: {' '.join(cmd[:2])} ...")
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError as exc:
            raise MissingDependencyError(
                f"{cmd[0]} is not installed",
                remediation=INSTALL_HINT,
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            raise error_cls(
                f"Failed to {action}: {stderr or f'exit status {exc.returncode}'}",
                stderr=stderr,
                remediation="Check your age key or regenerate secrets",
            ) from exc
