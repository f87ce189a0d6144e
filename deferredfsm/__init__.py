"""
deferredfsm
~~~~~~~~~~~

An event-driven finite state machine whose transitions run on later turns
of the asyncio event loop, one at a time, in posting order.

Quick start:
    from deferredfsm import StateMachine, StateDefinition, Transition
    from deferredfsm import MachineConfig, create_machine, build_spec
"""

from deferredfsm.errors import (
    InvalidNextStateError,
    InvalidTargetsError,
    MachineError,
    MissingStartError,
    UnexpectedEventError,
    ValidationError,
)
from deferredfsm.helpers import build_spec, create_machine, default_spec, log_callback
from deferredfsm.machine import StateMachine
from deferredfsm.scheduler import EventScheduler
from deferredfsm.types import (
    MachineConfig,
    StateDefinition,
    Transition,
    TransitionOutcome,
    TransitionRecord,
)
from deferredfsm.validator import check_spec, collect_targets, validate

__all__ = [
    "StateMachine",
    "EventScheduler",
    "MachineConfig",
    "StateDefinition",
    "Transition",
    "TransitionOutcome",
    "TransitionRecord",
    "MachineError",
    "ValidationError",
    "MissingStartError",
    "InvalidTargetsError",
    "UnexpectedEventError",
    "InvalidNextStateError",
    "check_spec",
    "collect_targets",
    "validate",
    "build_spec",
    "create_machine",
    "default_spec",
    "log_callback",
]
