"""
State machine data types and structures.

Defines the core types used by the deferred FSM engine:
- StateDefinition: Callbacks and transition table for one state
- Transition: Target state and optional action for one event
- MachineConfig: Immutable per-machine configuration
- TransitionOutcome: How processing a posted event ended
- TransitionRecord: Tracks processed events for introspection
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

#: Signature of ``entry``/``exit`` callbacks: ``callback(context)``.
StateCallback = Callable[[Any], None]

#: Signature of transition actions: ``action(context, *event_args)``.
ActionCallback = Callable[..., None]


@dataclass
class Transition:
    """
    Where an event leads from a given state.

    Args:
        target: Name of the next state. Must be a declared state or the
                machine's end state.
        action: Optional callable run between the old state's ``exit`` and
                the new state's ``entry``. Receives the machine context
                followed by any extra arguments posted with the event.
    """

    target: str
    action: Optional[ActionCallback] = None


@dataclass
class StateDefinition:
    """
    Callbacks and outgoing transitions for a single state.

    Args:
        transitions: Mapping of event name → Transition.
        entry: Called with the context immediately after entering the state.
        exit: Called with the context immediately before leaving the state.
        description: Brief description of the state (informational only).
    """

    transitions: Dict[str, Transition] = field(default_factory=dict)
    entry: Optional[StateCallback] = None
    exit: Optional[StateCallback] = None
    description: str = ""


#: A machine specification: state name → StateDefinition.
Spec = Mapping[str, StateDefinition]


@dataclass(frozen=True)
class MachineConfig:
    """
    Immutable configuration for one machine.

    Args:
        start: Name of the start state (default: "START").
        end: Name of the end state. Need not be declared in the spec.
        ignore_unexpected_events: Resolve instead of rejecting events that
            arrive before start or are missing from the current state's
            transitions.
        exit_on_restart: Run the current state's ``exit`` when
            ``post_start()`` resets an already started machine.
        history_size: Number of TransitionRecords kept (0 disables history).

    Raises:
        ValueError: If start/end are empty or history_size < 0.
    """

    start: str = "START"
    end: str = "END"
    ignore_unexpected_events: bool = False
    exit_on_restart: bool = True
    history_size: int = 100

    def __post_init__(self):
        if not self.start:
            raise ValueError("start state name must not be empty")
        if not self.end:
            raise ValueError("end state name must not be empty")
        if self.history_size < 0:
            raise ValueError(f"history_size must be >= 0, got {self.history_size}")


class TransitionOutcome(Enum):
    """Result of processing one posted event."""

    ENTERED = "entered"     # A declared state was entered
    FINISHED = "finished"   # The implicit end state was reached
    IGNORED = "ignored"     # Unexpected event swallowed by configuration
    REJECTED = "rejected"   # The event's future was rejected


@dataclass
class TransitionRecord:
    """
    Records the processing of a single posted event.

    ``event`` is None for the start event. ``target`` is None when no
    transition was found.
    """

    event: Optional[str]
    source: Optional[str]
    target: Optional[str]
    outcome: TransitionOutcome
    timestamp: float = field(default_factory=time.time)
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        """True if the event's future resolved."""
        return self.outcome != TransitionOutcome.REJECTED

    def to_dict(self) -> dict:
        """Serialise to a plain dictionary."""
        return {
            "event": self.event,
            "source": self.source,
            "target": self.target,
            "outcome": self.outcome.value,
            "timestamp": self.timestamp,
            "error_message": self.error_message,
        }
