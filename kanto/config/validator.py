"""Server profile structure and format validation."""
import os
import re
from typing import Any, Dict, List

REQUIRED_FIELDS = {
    'server': ['name', 'type', 'domain', 'internal_domain'],
    'volumes': ['config_base', 'data_base', 'downloads_base'],
    'environment': ['TZ', 'PUID', 'PGID'],
    'cloudflare': ['tunnel_name'],
    'stacks': ['enabled'],
}

DOMAIN_PATTERN = re.compile(
    r'^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?'
    r'(\.[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?)*$'
)

INTERNAL_DOMAIN_SUFFIX = '.local'


class ProfileValidator:
    """Pure checks over a parsed server profile.

    Each method returns a list of messages instead of raising, so callers can
    aggregate every defect before reporting.
    """

    def validate_structure(self, config: Any) -> List[str]:
        """Check required sections and fields."""
        if not isinstance(config, dict):
            return ["Profile must be a YAML mapping of sections"]

        errors = []
        for section, fields in REQUIRED_FIELDS.items():
            if section not in config:
                errors.append(f"Missing section: {section}")
                continue

            body = config[section]
            if not isinstance(body, dict):
                errors.append(f"Section '{section}' must be a mapping")
                continue

            for field_name in fields:
                if field_name not in body or body[field_name] is None:
                    errors.append(f"Missing field: {section}.{field_name}")

        stacks = config.get('stacks')
        if isinstance(stacks, dict) and 'enabled' in stacks:
            if not isinstance(stacks['enabled'], list):
                errors.append("Field stacks.enabled must be a list of stack ids")

        external = config.get('external_services')
        if external is not None and not isinstance(external, list):
            errors.append("Field external_services must be a list of service names")

        return errors

    def validate_domains(self, config: Dict) -> List[str]:
        """Check public domain syntax and internal domain suffix.

        Missing fields are left to validate_structure.
        """
        errors = []
        server = config.get('server') if isinstance(config, dict) else None
        if not isinstance(server, dict):
            return errors

        domain = server.get('domain')
        if domain is not None and not is_valid_domain(str(domain)):
            errors.append(f"Invalid domain format: {domain}")

        internal_domain = server.get('internal_domain')
        if internal_domain is not None and not str(internal_domain).endswith(INTERNAL_DOMAIN_SUFFIX):
            errors.append(
                f"Internal domain should end with {INTERNAL_DOMAIN_SUFFIX}: {internal_domain}"
            )

        return errors

    def validate_volumes(self, config: Dict) -> List[str]:
        """Return warnings about volume paths (never fatal)."""
        warnings = []
        volumes = config.get('volumes') if isinstance(config, dict) else None
        if not isinstance(volumes, dict):
            return warnings

        for name, path in volumes.items():
            if path is None:
                continue
            path = str(path)
            if not os.path.isabs(path):
                warnings.append(f"Volume path should be absolute: {name}={path}")

            parent = os.path.dirname(path)
            if parent and os.path.exists(parent) and not os.access(parent, os.W_OK):
                warnings.append(f"Parent directory not writable: {parent}")

        return warnings


def is_valid_domain(domain: str) -> bool:
    return bool(DOMAIN_PATTERN.match(domain))
