"""
Helper utilities for building state machines.

Provides convenience functions and decorators that reduce boilerplate
when writing specs and creating machines.
"""

import logging
from functools import wraps
from typing import Any, Dict, Mapping, Optional

from deferredfsm.machine import StateMachine
from deferredfsm.scheduler import EventScheduler
from deferredfsm.types import MachineConfig, StateDefinition, Transition

logger = logging.getLogger(__name__)

_STATE_KEYS = {"entry", "exit", "transitions", "description"}
_TRANSITION_KEYS = {"target", "next_state", "action"}


def build_transition(event: str, config: Mapping[str, Any]) -> Transition:
    """
    Build a Transition from a plain dict.

    Supported keys: ``target`` (or its alias ``next_state``) and ``action``.

    Raises:
        ValueError: If the target is missing or unknown keys are present.
    """
    unknown = set(config) - _TRANSITION_KEYS
    if unknown:
        raise ValueError(f"Transition '{event}' has unknown keys: {', '.join(sorted(unknown))}")

    target = config.get("target", config.get("next_state"))
    if not target:
        raise ValueError(f"Transition '{event}' config missing required 'target' field")
    return Transition(target=target, action=config.get("action"))


def build_spec(configs: Mapping[str, Mapping[str, Any]]) -> Dict[str, StateDefinition]:
    """
    Build a spec from a compact configuration.

    Each state maps to a plain dict instead of a verbose StateDefinition()
    call, and each transition to a plain dict instead of a Transition().

    Args:
        configs: Mapping of state name → config dict. Supported keys:
            - ``entry`` (callable, optional): Called with the context on entry.
            - ``exit`` (callable, optional): Called with the context on exit.
            - ``description`` (str, optional): Brief description.
            - ``transitions`` (dict, optional): event name → transition dict
              with ``target`` (or ``next_state``) and optional ``action``.

    Returns:
        Dict mapping each state name to a StateDefinition. Values that
        already are StateDefinitions are kept as-is.

    Raises:
        ValueError: On unknown keys or transitions without a target.

    Example:
        spec = build_spec({
            "START": {"entry": greet, "transitions": {"go": {"target": "MID"}}},
            "MID":   {"transitions": {"finish": {"target": "END", "action": log}}},
        })
    """
    result = {}
    for name, config in configs.items():
        if isinstance(config, StateDefinition):
            result[name] = config
            continue
        if not isinstance(config, Mapping):
            raise ValueError(
                f"State '{name}' must be a StateDefinition or a dict, "
                f"got {type(config).__name__}"
            )
        unknown = set(config) - _STATE_KEYS
        if unknown:
            raise ValueError(f"State '{name}' has unknown keys: {', '.join(sorted(unknown))}")
        result[name] = StateDefinition(
            transitions={
                event: build_transition(event, t)
                for event, t in (config.get("transitions") or {}).items()
            },
            entry=config.get("entry"),
            exit=config.get("exit"),
            description=config.get("description", ""),
        )
    return result


def default_spec() -> Dict[str, StateDefinition]:
    """A minimal spec: START --DONE--> END, logging each callback."""
    return build_spec({
        "START": {
            "entry": lambda ctx: logger.info(f"START entry (context={ctx!r})"),
            "exit": lambda ctx: logger.info(f"START exit (context={ctx!r})"),
            "transitions": {
                "DONE": {
                    "target": "END",
                    "action": lambda ctx, *args: logger.info(f"DONE action {args!r}"),
                },
            },
        },
    })


def create_machine(
    spec: Optional[Mapping[str, Any]] = None,
    *,
    context: Any = None,
    start: str = "START",
    end: str = "END",
    ignore_unexpected_events: bool = False,
    exit_on_restart: bool = True,
    scheduler: Optional[EventScheduler] = None,
) -> StateMachine:
    """
    Create a StateMachine in one call.

    ``spec`` may hold StateDefinitions or the compact dict form accepted by
    ``build_spec``, or a mix of both; it is converted when any value is not
    a StateDefinition. With no
    spec, ``default_spec()`` is used.

    Raises:
        ValidationError: If the spec is structurally invalid.
        ValueError: If the compact dict form is malformed.
    """
    if spec is None:
        spec = default_spec()
    elif any(not isinstance(d, StateDefinition) for d in spec.values()):
        spec = build_spec(spec)

    config = MachineConfig(
        start=start,
        end=end,
        ignore_unexpected_events=ignore_unexpected_events,
        exit_on_restart=exit_on_restart,
    )
    return StateMachine(spec, config, context=context, scheduler=scheduler)


def log_callback(func):
    """
    Decorator that adds DEBUG logging around entry/exit/action callbacks.

    Usage:
        @log_callback
        def on_enter_idle(ctx):
            ...

    Note:
        Optional. Exceptions still propagate and reject the event's future.
    """

    @wraps(func)
    def wrapper(context, *args):
        logger.debug(f"{func.__name__}: Starting...")
        result = func(context, *args)
        logger.debug(f"{func.__name__}: Complete")
        return result

    return wrapper
