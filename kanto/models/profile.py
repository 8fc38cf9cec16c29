"""Server profile models."""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ServerIdentity:
    """Who the server is and where it answers."""
    name: str
    type: str
    domain: str
    internal_domain: str


@dataclass(frozen=True)
class VolumeLayout:
    """Host base paths mounted into stacks."""
    config_base: str
    data_base: str
    downloads_base: str
    media_base: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)

    def items(self) -> List[Tuple[str, str]]:
        """Volume keys and paths in declaration order."""
        pairs = [
            ('config_base', self.config_base),
            ('data_base', self.data_base),
            ('downloads_base', self.downloads_base),
        ]
        if self.media_base is not None:
            pairs.append(('media_base', self.media_base))
        pairs.extend(self.extra.items())
        return pairs

    def directories(self) -> List[str]:
        """Directories created on the host before stacks start."""
        dirs = [self.config_base, self.data_base, self.downloads_base]
        if self.media_base:
            dirs.append(self.media_base)
        return dirs


@dataclass(frozen=True)
class ServerProfile:
    """Declarative per-host configuration record.

    Authored by the operator and never rewritten by Kanto; a domain override
    produces a modified copy via ``with_domain``.
    """
    server: ServerIdentity
    volumes: VolumeLayout
    environment: Dict[str, str]
    tunnel_name: str
    enabled_stacks: List[str]
    external_services: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.server.name

    @property
    def domain(self) -> str:
        return self.server.domain

    @property
    def network_names(self) -> Tuple[str, str]:
        """Per-server docker networks shared by all stacks."""
        return (f"{self.name}-network", f"{self.name}-proxy")

    @property
    def puid(self) -> Optional[int]:
        return _as_int(self.environment.get('PUID'))

    @property
    def pgid(self) -> Optional[int]:
        return _as_int(self.environment.get('PGID'))

    def with_domain(self, domain: Optional[str]) -> "ServerProfile":
        """Return a copy with the public domain replaced (no-op for None)."""
        if not domain:
            return self
        return replace(self, server=replace(self.server, domain=domain))

    def external_service_urls(self) -> List[str]:
        return [external_service_host(svc, self.name, self.domain) for svc in self.external_services]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerProfile":
        """Build a profile from parsed YAML.

        Assumes the structure was already checked by ProfileValidator.
        """
        server = data['server']
        volumes = dict(data['volumes'])
        known = {'config_base', 'data_base', 'downloads_base', 'media_base'}

        return cls(
            server=ServerIdentity(
                name=str(server['name']),
                type=str(server['type']),
                domain=str(server['domain']),
                internal_domain=str(server['internal_domain']),
            ),
            volumes=VolumeLayout(
                config_base=str(volumes['config_base']),
                data_base=str(volumes['data_base']),
                downloads_base=str(volumes['downloads_base']),
                media_base=str(volumes['media_base']) if volumes.get('media_base') else None,
                extra={k: str(v) for k, v in volumes.items() if k not in known},
            ),
            environment={str(k): _env_value(v) for k, v in data['environment'].items()},
            tunnel_name=str(data['cloudflare']['tunnel_name']),
            enabled_stacks=[str(s) for s in data['stacks']['enabled'] or []],
            external_services=[str(s) for s in data.get('external_services') or []],
        )


def external_service_host(service: str, server: str, domain: str) -> str:
    """Public hostname a service is published under, e.g. grafana-lugia.example.com."""
    return f"{service}-{server}.{domain}"

def _env_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None
