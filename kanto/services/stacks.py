"""Stack definitions under docker/stacks/."""
from pathlib import Path
from typing import List

from kanto.core.errors import MissingArtifactError
from kanto.models.stack import COMPOSE_FILENAME, Stack


class StackCatalog:
    """Read-only view of the static compose definitions."""

    def __init__(self, stacks_dir: Path):
        self.stacks_dir = Path(stacks_dir)

    def available(self) -> List[Stack]:
        """Stacks that have a compose file, in numeric prefix order.

        Ids without a numeric prefix sort last, by name.
        """
        if not self.stacks_dir.is_dir():
            return []
        stacks = [
            Stack(path.name, path)
            for path in self.stacks_dir.iterdir()
            if (path / COMPOSE_FILENAME).is_file()
        ]
        return sorted(stacks, key=lambda s: (s.number is None, s.number or 0, s.name))

    def get(self, stack_id: str) -> Stack:
        """Resolve a stack, checking its directory and compose file.

        Raises:
            MissingArtifactError: Directory or compose file is missing
        """
        stack = Stack(stack_id, self.stacks_dir / stack_id)
        available = ", ".join(s.name for s in self.available()) or "none"

        if not stack.directory.is_dir():
            raise MissingArtifactError(
                f"Stack directory not found: {stack.directory}",
                remediation=f"Use one of the available stacks: {available}",
            )
        if not stack.compose_file.is_file():
            raise MissingArtifactError(
                f"Docker compose file not found: {stack.compose_file}",
                remediation=f"Add {COMPOSE_FILENAME} to {stack.directory}",
            )
        return stack

    def missing(self, stack_ids: List[str]) -> List[str]:
        """Return an error message for each stack id that does not resolve."""
        errors = []
        for stack_id in stack_ids:
            directory = self.stacks_dir / stack_id
            if not directory.is_dir():
                errors.append(f"Stack directory not found: {stack_id}")
            elif not (directory / COMPOSE_FILENAME).is_file():
                errors.append(f"Docker compose file not found: {stack_id}/{COMPOSE_FILENAME}")
        return errors
