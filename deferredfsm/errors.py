"""
Error taxonomy for the deferred FSM engine.

``ValidationError`` is raised synchronously while building a machine.
Every other error is only ever delivered through the future returned by
``post_start()`` / ``post_event()``.
"""

from typing import List, Optional


class MachineError(Exception):
    """
    Base class for all state machine errors.

    Attributes:
        event: The event being processed, or None (start event / validation).
        state: Name of the state active when the error occurred, or None.
    """

    def __init__(self, message: str, event: Optional[str] = None, state: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.event = event
        self.state = state

    def __str__(self) -> str:
        state = "<None>" if self.state is None else self.state
        return f"[state: {state}] {self.message}"


class ValidationError(MachineError, ValueError):
    """The specification is structurally invalid. No machine is produced."""


class MissingStartError(ValidationError):
    """The start state is neither declared nor the end state."""

    def __init__(self, start: str):
        super().__init__(f"missing start state {start}")
        self.start = start


class InvalidTargetsError(ValidationError):
    """One or more transitions name an undeclared target."""

    def __init__(self, targets: List[str]):
        plural = "s" if len(targets) > 1 else ""
        super().__init__(f"invalid next state{plural}: {', '.join(targets)}")
        self.targets = list(targets)


class UnexpectedEventError(MachineError):
    """The event is not valid in the current context."""


class InvalidNextStateError(MachineError):
    """A transition names a target that is not declared and is not the end state."""

    def __init__(self, target: str, event: Optional[str], state: Optional[str]):
        super().__init__(
            f"invalid next state {target} encountered while processing "
            f"event '{event}' in state {state}",
            event=event,
            state=state,
        )
        self.target = target
