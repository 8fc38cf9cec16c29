"""Host directory provisioning for volume base paths."""
import os
from pathlib import Path
from typing import List, Optional

from kanto.core.errors import ExternalToolError
from kanto.core.logger import get_logger
from kanto.models.profile import ServerProfile

logger = get_logger(__name__)


class HostProvisioner:
    """Creates volume directories and hands them to PUID:PGID."""

    def create_directories(self, profile: ServerProfile, dry_run: bool = False) -> List[Path]:
        logger.info("Creating required directories...")
        created = []

        for directory in profile.volumes.directories():
            path = Path(directory)
            if not dry_run:
                try:
                    path.mkdir(parents=True, exist_ok=True)
                except OSError as exc:
                    raise ExternalToolError(
                        f"Cannot create directory {path}: {exc.strerror}",
                        remediation=f"sudo mkdir -p {path} && sudo chown {profile.puid}:{profile.pgid} {path}",
                    ) from exc
                self._chown(path, profile.puid, profile.pgid)
            logger.info(f"Directory: {path}")
            created.append(path)

        return created

    def _chown(self, path: Path, uid: Optional[int], gid: Optional[int]) -> None:
        if uid is None or gid is None:
            return
        try:
            os.chown(path, uid, gid)
        except PermissionError:
            logger.warning(
                f"Could not chown {path} to {uid}:{gid} (run as root or fix ownership manually)"
            )
