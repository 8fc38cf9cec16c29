"""Ordered pipeline of fallible steps.

Components raise ``KantoError`` subclasses; the pipeline turns each step into
a ``StepResult`` and stops at the first failure.
"""
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from kanto.core.errors import ErrorKind, KantoError
from kanto.core.logger import get_logger

logger = get_logger(__name__)


@dataclass
class StepResult:
    """Outcome of a single pipeline step."""
    name: str
    ok: bool
    message: str = ""
    kind: Optional[ErrorKind] = None
    remediation: Optional[str] = None
    value: Any = None
    duration_seconds: float = 0.0

    @classmethod
    def success(cls, name: str, value: Any = None, message: str = "") -> "StepResult":
        return cls(name=name, ok=True, value=value, message=message)

    @classmethod
    def failure(cls, name: str, error: KantoError) -> "StepResult":
        return cls(
            name=name,
            ok=False,
            message=error.message,
            kind=error.kind,
            remediation=error.remediation,
        )


@dataclass
class Step:
    """A named unit of work; ``action`` returns an optional value."""
    name: str
    action: Callable[[], Any]


@dataclass
class PipelineResult:
    """Results of every step that ran, in order."""
    steps: List[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(step.ok for step in self.steps)

    @property
    def failed_step(self) -> Optional[StepResult]:
        for step in self.steps:
            if not step.ok:
                return step
        return None

    def get(self, name: str) -> Optional[StepResult]:
        for step in self.steps:
            if step.name == name:
                return step
        return None


class Pipeline:
    """Run steps sequentially, aborting on the first failure.

    Example:
        pipeline = Pipeline([
            Step("render-environment", render),
            Step("networks", provision_networks),
        ])
        result = pipeline.run()
    """

    def __init__(self, steps: Optional[List[Step]] = None):
        self.steps: List[Step] = list(steps or [])

    def add(self, name: str, action: Callable[[], Any]) -> "Pipeline":
        self.steps.append(Step(name, action))
        return self

    def run(self) -> PipelineResult:
        result = PipelineResult()

        for step in self.steps:
            logger.debug(f"Running step: {step.name}")
            started = time.monotonic()
            try:
                value = step.action()
            except KantoError as err:
                outcome = StepResult.failure(step.name, err)
                outcome.duration_seconds = time.monotonic() - started
                result.steps.append(outcome)
                logger.error(f"✗ {step.name}: {err.message}")
                if err.remediation:
                    logger.info(f"  Fix: {err.remediation}")
                break

            outcome = StepResult.success(step.name, value=value)
            outcome.duration_seconds = time.monotonic() - started
            result.steps.append(outcome)

        return result
