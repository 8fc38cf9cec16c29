"""Stack model."""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

COMPOSE_FILENAME = "docker-compose.yml"

_STACK_ID = re.compile(r'^(\d+)-(.+)$')


@dataclass(frozen=True)
class Stack:
    """A compose definition directory such as ``05-fortress``.

    The numeric prefix encodes the port range the stack owns.
    """
    name: str
    directory: Path

    @property
    def compose_file(self) -> Path:
        return self.directory / COMPOSE_FILENAME

    @property
    def number(self) -> Optional[int]:
        match = _STACK_ID.match(self.name)
        return int(match.group(1)) if match else None

