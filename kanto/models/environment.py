"""Rendered environment model."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass
class EnvSection:
    """A commented block of KEY=value lines."""
    title: str
    entries: List[Tuple[str, str]] = field(default_factory=list)

    def add(self, key: str, value: str) -> None:
        self.entries.append((key, value))


@dataclass
class RenderedEnvironment:
    """Flat key/value file fed to ``docker compose --env-file``.

    Derived from a server profile plus its secret record; always regenerated
    wholesale, never edited by hand.
    """
    header: List[str] = field(default_factory=list)
    sections: List[EnvSection] = field(default_factory=list)

    def section(self, title: str) -> EnvSection:
        new_section = EnvSection(title)
        self.sections.append(new_section)
        return new_section

    def entries(self) -> List[Tuple[str, str]]:
        return [entry for section in self.sections for entry in section.entries]

    def as_dict(self) -> Dict[str, str]:
        """Resolve duplicate keys the way compose does: last one wins."""
        return dict(self.entries())

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.as_dict().get(key, default)

    def to_text(self) -> str:
        lines = [f"# {line}" for line in self.header]
        for section in self.sections:
            if lines:
                lines.append("")
            lines.append(f"# {section.title}")
            lines.extend(f"{key}={value}" for key, value in section.entries)
        return "\n".join(lines) + "\n"
