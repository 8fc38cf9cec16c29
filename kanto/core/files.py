"""File helpers for artifacts that may hold secrets."""
import os
from pathlib import Path


def write_private_file(path: Path, content: str, mode: int = 0o600) -> Path:
    """Write ``content`` to ``path`` wholesale with restrictive permissions.

    The data goes to a sibling temporary file first and is renamed into place,
    so readers never observe a partially written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = temp_sibling(path)

    fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    try:
        with os.fdopen(fd, 'w') as f:
            f.write(content)
        os.replace(temp_path, path)
    finally:
        temp_path.unlink(missing_ok=True)

    return path


def temp_sibling(path: Path) -> Path:
    """Temporary path in the same directory (same filesystem for rename)."""
    return path.with_name(f".{path.name}.{os.getpid()}.tmp")
