"""Cloudflare tunnel configuration rendering."""
from pathlib import Path
from string import Template
from typing import Optional

from kanto.core.config import KantoConfig
from kanto.core.logger import get_logger
from kanto.models.profile import ServerProfile

logger = get_logger(__name__)


class TunnelConfigRenderer:
    """Fills the tunnel template with the server's name and domains."""

    def __init__(self, config: KantoConfig):
        self.template_path = config.tunnel_template
        self.output_path = config.tunnel_config

    def render_text(self, profile: ServerProfile) -> str:
        template = Template(self.template_path.read_text())
        return template.safe_substitute(
            SERVER_NAME=profile.name,
            DOMAIN=profile.domain,
            INTERNAL_DOMAIN=profile.server.internal_domain,
        )

    def render(self, profile: ServerProfile, dry_run: bool = False) -> Optional[Path]:
        """Write the tunnel config; returns None when skipped."""
        if not self.template_path.exists():
            logger.warning(f"Tunnel template not found, skipping: {self.template_path}")
            return None

        content = self.render_text(profile)
        if dry_run:
            logger.info(f"DRY RUN: Would write tunnel configuration {self.output_path}")
            return None

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(content)
        logger.info(f"✓ Tunnel configuration created: {self.output_path}")
        return self.output_path
