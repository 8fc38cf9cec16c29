"""Server profile loader."""
from pathlib import Path
from typing import Any, Dict, List

import yaml

from kanto.config.validator import ProfileValidator
from kanto.core.config import KantoConfig
from kanto.core.errors import MalformedInputError, MissingArtifactError
from kanto.models.profile import ServerProfile


class ProfileLoader:
    """Loads server profiles from configs/servers/<server>.yml."""

    def __init__(self, config: KantoConfig):
        self.config = config
        self.validator = ProfileValidator()

    def available_servers(self) -> List[str]:
        """Return names of all servers with a profile."""
        if not self.config.servers_dir.is_dir():
            return []
        return sorted(p.stem for p in self.config.servers_dir.glob("*.yml"))

    def path_for(self, server: str) -> Path:
        return self.config.profile_path(server)

    def load_raw(self, server: str) -> Dict[str, Any]:
        """Parse the profile YAML without checking its structure.

        Raises:
            MissingArtifactError: Profile file does not exist
            MalformedInputError: File is not valid YAML or is empty
        """
        path = self.path_for(server)
        if not path.exists():
            available = ", ".join(self.available_servers()) or "none"
            raise MissingArtifactError(
                f"Server configuration not found: {path}",
                remediation=f"Create {path} (available servers: {available})",
            )

        try:
            with open(path) as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise MalformedInputError(
                f"Invalid YAML syntax in {path}: {exc}",
                issues=[str(exc)],
            ) from exc

        if not raw:
            raise MalformedInputError(f"Server configuration is empty: {path}")

        return raw

    def load(self, server: str) -> ServerProfile:
        """Load and structurally validate a server profile.

        Raises:
            MissingArtifactError: Profile file does not exist
            MalformedInputError: YAML or structure errors (all listed together)
        """
        raw = self.load_raw(server)

        errors = self.validator.validate_structure(raw)
        if errors:
            raise MalformedInputError(
                "Configuration validation failed:\n  " + "\n  ".join(errors),
                issues=errors,
                remediation=f"kanto validate {server}",
            )

        return ServerProfile.from_dict(raw)
