from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from resilient.core.exceptions import InvalidStateTransition


class ExecutorPhase(StrEnum):
    attempting = "attempting"
    deciding = "deciding"
    sleeping = "sleeping"
    succeeded = "succeeded"
    failed = "failed"


TERMINAL_PHASES = frozenset({ExecutorPhase.succeeded, ExecutorPhase.failed})

_TRANSITIONS = {
    ExecutorPhase.attempting: {ExecutorPhase.succeeded, ExecutorPhase.deciding, ExecutorPhase.failed},
    ExecutorPhase.deciding: {ExecutorPhase.failed, ExecutorPhase.sleeping},
    ExecutorPhase.sleeping: {ExecutorPhase.attempting, ExecutorPhase.failed},
    ExecutorPhase.succeeded: set(),
    ExecutorPhase.failed: set(),
}


class AttemptState(BaseModel):
    """Per-call bookkeeping of the attempt loop.

    Notes:
    - One instance per ``execute()`` call, never shared between calls.
    - ``attempt`` is the 0-based index of the attempt currently running
      (or that ran last once the phase is terminal).
    - attempting -> failed is only taken on cancellation; a regular
      failure always passes through deciding.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=False)

    attempt: int = Field(default=0, ge=0)
    phase: ExecutorPhase = ExecutorPhase.attempting
    last_error: Optional[BaseException] = None

    @property
    def attempt_number(self) -> int:
        """1-based number of the current attempt."""
        return self.attempt + 1

    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def transition(self, target: ExecutorPhase) -> None:
        if target not in _TRANSITIONS[self.phase]:
            raise InvalidStateTransition(self.phase.value, target.value)
        if target == ExecutorPhase.attempting:
            self.attempt += 1
        self.phase = target

    def record_failure(self, error: BaseException) -> None:
        self.last_error = error
        self.transition(ExecutorPhase.deciding)
