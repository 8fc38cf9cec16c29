"""Stack definition enhancer.

Adds logging, healthcheck, monitoring label and resource limit sections to
services in docker/stacks/*/docker-compose.yml. Works on the parsed YAML
tree, one service at a time, and only adds a section when the service does
not already have it, so repeated runs change nothing. Files are loaded and
written with ruamel.yaml in round-trip mode: comments, quoting and YAML 1.2
scalars such as ``22:22`` or ``yes`` come back out as they went in.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError

from kanto.core.errors import MalformedInputError
from kanto.core.logger import get_logger
from kanto.models.stack import COMPOSE_FILENAME

logger = get_logger(__name__)

LOGGING_CONFIG = {
    'driver': 'json-file',
    'options': {
        'max-size': '10m',
        'max-file': '3',
    },
}

HEALTHCHECK_TIMING = {
    'interval': '30s',
    'timeout': '10s',
    'retries': 3,
}

HEALTHCHECKS = {
    'traefik': ["CMD-SHELL", "traefik healthcheck --ping"],
    'code-server': ["CMD-SHELL", "curl -f http://localhost:8443/healthz || exit 1"],
    'portainer': ["CMD-SHELL", "curl -f http://localhost:9000/api/status || exit 1"],
    'n8n': ["CMD-SHELL", "curl -f http://localhost:5678/healthz || exit 1"],
    'ollama': ["CMD-SHELL", "curl -f http://localhost:11434/api/health || exit 1"],
    'open-webui': ["CMD-SHELL", "curl -f http://localhost:8080/health || exit 1"],
}

MONITORING_CATEGORIES = {
    # 00-bifrost
    'traefik': 'proxy',
    'cloudflare-tunnel': 'network',
    'hello': 'test',
    # 01-watchtower
    'watchtower': 'system',
    'uptime-kuma': 'monitoring',
    'homarr': 'dashboard',
    'netdata': 'monitoring',
    # 03-workshop
    'code-server': 'development',
    'portainer': 'development',
    'jenkins': 'development',
    'argocd-server': 'development',
    'gitea': 'development',
    # 04-automation
    'n8n': 'automation',
    'casaos': 'automation',
    'filebrowser': 'automation',
    'vaultwarden': 'automation',
    # 06-media-nexus / 07-media-pirates
    'plex': 'media',
    'jellyfin': 'media',
    'overseerr': 'media',
    'tautulli': 'media',
    'sonarr': 'media',
    'radarr': 'media',
    'lidarr': 'media',
    'bazarr': 'media',
    'prowlarr': 'media',
    'qbittorrent': 'media',
    # 08-intelligence
    'ollama': 'ai',
    'open-webui': 'ai',
    'localai': 'ai',
    'jupyterlab': 'ai',
}

# service -> (memory limit, cpu limit)
RESOURCE_LIMITS = {
    'ollama': ('8G', '4.0'),
    'localai': ('8G', '4.0'),
    'open-webui': ('2G', '2.0'),
    'jupyterlab': ('4G', '2.0'),
    'plex': ('4G', '4.0'),
    'jellyfin': ('4G', '4.0'),
    'code-server': ('2G', '2.0'),
    'jenkins': ('2G', '2.0'),
    'netdata': ('512M', '1.0'),
}


@dataclass
class EnhancementResult:
    """Changes applied (or planned) to one compose file."""
    path: Path
    changes: List[str] = field(default_factory=list)
    written: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def half_memory(limit: str) -> str:
    """Reservation for a limit like '8G' or '512M', in megabytes."""
    value = limit.strip().upper()
    if value.endswith('G'):
        megabytes = int(float(value[:-1]) * 1024)
    elif value.endswith('M'):
        megabytes = int(float(value[:-1]))
    else:
        raise ValueError(f"Unsupported memory limit: {limit}")
    return f"{megabytes // 2}M"


class ComposeEnhancer:
    """Applies standard boilerplate sections to stack compose files."""

    def __init__(self, stacks_dir: Path):
        self.stacks_dir = Path(stacks_dir)

    def compose_files(self) -> List[Path]:
        if not self.stacks_dir.is_dir():
            return []
        return sorted(self.stacks_dir.glob(f"*/{COMPOSE_FILENAME}"))

    def enhance_all(self, dry_run: bool = False) -> List[EnhancementResult]:
        logger.info("Enhancing stack definitions...")
        return [self.enhance_file(path, dry_run=dry_run) for path in self.compose_files()]

    def enhance_file(self, path: Path, dry_run: bool = False) -> EnhancementResult:
        """Enhance one compose file; it is rewritten only if something changed.

        Raises:
            MalformedInputError: File is not valid YAML
        """
        result = EnhancementResult(path)

        try:
            compose = _round_trip_yaml().load(path)
        except YAMLError as exc:
            raise MalformedInputError(f"Invalid YAML in {path}: {exc}") from exc

        services = compose.get('services') if isinstance(compose, dict) else None
        if not isinstance(services, dict):
            logger.info(f"No services in {path}, skipping")
            return result

        for name, service in services.items():
            if service is None:
                service = services[name] = CommentedMap()
            if not isinstance(service, dict):
                continue
            result.changes.extend(
                f"{name}: {change}" for change in self.enhance_service(name, service)
            )

        if not result.changed:
            logger.info(f"Already enhanced: {path}")
            return result

        for change in result.changes:
            logger.info(f"{'DRY RUN: ' if dry_run else ''}{path.parent.name} {change}")

        if not dry_run:
            _round_trip_yaml().dump(compose, path)
            result.written = True

        return result

    def enhance_service(self, name: str, service: Dict[str, Any]) -> List[str]:
        """Add missing sections to a single service mapping in place."""
        changes = []
        key = self._catalog_key(name, service)

        if 'logging' not in service:
            service['logging'] = _copy(LOGGING_CONFIG)
            changes.append("added logging")

        if key in HEALTHCHECKS and 'healthcheck' not in service:
            service['healthcheck'] = _copy({'test': HEALTHCHECKS[key], **HEALTHCHECK_TIMING})
            changes.append("added healthcheck")

        if key in MONITORING_CATEGORIES and self._add_monitoring_label(service, MONITORING_CATEGORIES[key]):
            changes.append(f"added monitoring={MONITORING_CATEGORIES[key]} label")

        if key in RESOURCE_LIMITS and 'deploy' not in service:
            memory, cpus = RESOURCE_LIMITS[key]
            service['deploy'] = _copy({
                'resources': {
                    'limits': {'memory': memory, 'cpus': cpus},
                    'reservations': {'memory': half_memory(memory)},
                },
            })
            changes.append("added resource limits")

        return changes

    @staticmethod
    def _catalog_key(name: str, service: Dict[str, Any]) -> Optional[str]:
        if name in MONITORING_CATEGORIES or name in HEALTHCHECKS or name in RESOURCE_LIMITS:
            return name
        return service.get('container_name', name)

    @staticmethod
    def _add_monitoring_label(service: Dict[str, Any], category: str) -> bool:
        labels = service.get('labels')

        if labels is None:
            service['labels'] = CommentedSeq([f"monitoring={category}"])
            return True

        if isinstance(labels, dict):
            if 'monitoring' in labels:
                return False
            labels['monitoring'] = category
            return True

        if isinstance(labels, list):
            if any(str(label).startswith('monitoring=') for label in labels):
                return False
            labels.append(f"monitoring={category}")
            return True

        return False


def _round_trip_yaml() -> YAML:
    rt = YAML()
    rt.preserve_quotes = True
    rt.width = 4096
    rt.indent(mapping=2, sequence=4, offset=2)
    return rt


def _copy(value: Any) -> Any:
    """Deep copy into round-trip containers so new sections keep their key order."""
    if isinstance(value, dict):
        return CommentedMap((k, _copy(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return CommentedSeq(_copy(v) for v in value)
    return value
