"""Error taxonomy shared by every Kanto component."""
from enum import Enum
from typing import List, Optional


class ErrorKind(Enum):
    """Failure categories reported by the CLI."""
    MISSING_DEPENDENCY = "missing-dependency"
    MISSING_ARTIFACT = "missing-artifact"
    MALFORMED_INPUT = "malformed-input"
    EXTERNAL_TOOL = "external-tool"
    CONFLICT = "conflict"


class KantoError(Exception):
    """Base class for all Kanto failures.

    Args:
        message: Human readable cause
        remediation: Exact command or action that fixes the problem (optional)
    """

    kind: ErrorKind = ErrorKind.EXTERNAL_TOOL

    def __init__(self, message: str, remediation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.remediation = remediation


class MissingDependencyError(KantoError):
    """A required external tool is not installed."""
    kind = ErrorKind.MISSING_DEPENDENCY


class MissingArtifactError(KantoError):
    """A profile, stack, key or secret file is absent."""
    kind = ErrorKind.MISSING_ARTIFACT


class MalformedInputError(KantoError):
    """Schema or syntax violation in operator-authored input."""
    kind = ErrorKind.MALFORMED_INPUT

    def __init__(self, message: str, issues: Optional[List[str]] = None,
                 remediation: Optional[str] = None):
        super().__init__(message, remediation)
        self.issues = list(issues or [])


class ExternalToolError(KantoError):
    """An external command (docker, age, editor) failed."""
    kind = ErrorKind.EXTERNAL_TOOL

    def __init__(self, message: str, stderr: Optional[str] = None,
                 remediation: Optional[str] = None):
        super().__init__(message, remediation)
        self.stderr = stderr


class DecryptionError(ExternalToolError):
    """Ciphertext could not be decrypted or authenticated."""


class ConflictError(KantoError):
    """A pre-existing resource blocks the operation."""
    kind = ErrorKind.CONFLICT


class SecretExistsError(ConflictError):
    """Refusing to overwrite an existing secret record."""
