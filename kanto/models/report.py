"""Validation report models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ValidationIssue:
    """One defect found by a validation check."""
    check: str
    message: str
    severity: Severity = Severity.ERROR
    remediation: Optional[str] = None


@dataclass
class ValidationReport:
    """Aggregated result of every validation check for one server.

    Ephemeral: printed by the CLI, never persisted.
    """
    server: str
    issues: List[ValidationIssue] = field(default_factory=list)
    checks: Dict[str, str] = field(default_factory=dict)  # check -> passed/failed/skipped
    summary: Dict[str, object] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    def record(self, check: str, issues: List[ValidationIssue]) -> None:
        """Store a check's issues and derive its pass/fail status."""
        self.issues.extend(issues)
        failed = any(i.severity == Severity.ERROR for i in issues)
        self.checks[check] = "failed" if failed else "passed"

    def skip(self, check: str, reason: str) -> None:
        self.checks[check] = "skipped"
        self.issues.append(ValidationIssue(check, f"Skipped: {reason}", Severity.WARNING))

    def messages(self, severity: Optional[Severity] = None) -> List[str]:
        return [
            i.message for i in self.issues
            if severity is None or i.severity == severity
        ]
