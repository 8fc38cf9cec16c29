"""Secret record model: an ordered KEY=value mapping."""
from typing import Dict, Iterator, List, Optional, Tuple


class SecretRecord:
    """Ordered mapping of secret names to values.

    Parsed from and formatted to ``KEY=value`` lines. Blank lines and ``#``
    comments are dropped; everything after the first ``=`` is kept verbatim.
    """

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def parse(cls, text: str) -> "SecretRecord":
        entries: Dict[str, str] = {}
        for line in text.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue
            if '=' not in line:
                continue
            key, value = line.split('=', 1)
            entries[key.strip()] = value
        return cls(entries)

    def format(self, header: Optional[List[str]] = None) -> str:
        lines = [f"# {comment}" for comment in (header or [])]
        lines.extend(f"{key}={value}" for key, value in self._entries.items())
        return "\n".join(lines) + "\n" if lines else ""

    def items(self) -> List[Tuple[str, str]]:
        return list(self._entries.items())

    def keys(self) -> List[str]:
        return list(self._entries)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._entries.get(key, default)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretRecord):
            return NotImplemented
        return list(self._entries.items()) == list(other._entries.items())

    def __repr__(self) -> str:
        # Never leak values into logs or tracebacks
        return f"SecretRecord(keys={self.keys()!r})"
