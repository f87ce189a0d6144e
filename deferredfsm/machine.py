"""
StateMachine: an event-driven state machine with deferred transitions.

Features:
- Declarative spec of states, entry/exit callbacks, and per-event transitions
- Spec validated once at construction; bad specs never produce a machine
- Every posted event is processed on a later event-loop turn, one at a time,
  in posting order, so callbacks can safely post more events
- Fixed callback order per transition: exit → action → entry
- Futures resolve after the new state's entry callback has run
- Bounded transition history (deque) for debugging and introspection

Usage:
    import asyncio
    from deferredfsm import StateMachine, StateDefinition, Transition, MachineConfig

    spec = {
        "START": StateDefinition(
            entry=lambda ctx: print("ready"),
            transitions={"go": Transition("MID")},
        ),
        "MID": StateDefinition(
            transitions={"finish": Transition("END", action=lambda ctx, n: print(n))},
        ),
    }

    async def main():
        machine = StateMachine(spec, MachineConfig(start="START", end="END"))
        await machine.post_start()
        await machine.post_event("go")
        await machine.post_event("finish", 42)
        assert machine.is_finished

    asyncio.run(main())
"""

import asyncio
import logging
from collections import deque
from typing import Any, Callable, List, NamedTuple, Optional, Tuple

from deferredfsm.errors import InvalidNextStateError, UnexpectedEventError
from deferredfsm.scheduler import EventScheduler
from deferredfsm.types import (
    MachineConfig,
    Spec,
    StateDefinition,
    TransitionOutcome,
    TransitionRecord,
)
from deferredfsm.validator import validate

logger = logging.getLogger(__name__)


class _ActiveState(NamedTuple):
    name: str
    # None once the undeclared end state has been reached.
    definition: Optional[StateDefinition]


class StateMachine:
    """
    A single machine instance driven by posted events.

    Args:
        spec: Mapping of state name → StateDefinition. Held by reference;
              do not mutate it while the machine is running.
        config: Immutable MachineConfig (defaults to MachineConfig()).
        context: Value passed as the first argument to every callback.
                 Never read or modified by the machine.
        scheduler: EventScheduler to queue processing on. Each machine gets
                   its own unless one is shared explicitly.

    Raises:
        ValidationError: If the spec is structurally invalid.

    Attributes:
        START_EVENT: Sentinel event name meaning "enter the start state".
    """

    START_EVENT = None

    def __init__(
        self,
        spec: Spec,
        config: Optional[MachineConfig] = None,
        *,
        context: Any = None,
        scheduler: Optional[EventScheduler] = None,
    ):
        self._config = config if config is not None else MachineConfig()
        validate(spec, self._config.start, self._config.end)

        self._spec = spec
        self._context = context
        self._scheduler = scheduler if scheduler is not None else EventScheduler()

        self._current: Optional[_ActiveState] = None
        self._pending: int = 0
        self._history: deque = deque(maxlen=self._config.history_size)

        transitions = sum(len(d.transitions or {}) for d in spec.values())
        logger.info(
            f"{self.__class__.__name__} ready: {len(spec)} states, "
            f"{transitions} transitions, start={self._config.start}, end={self._config.end}"
        )

    # ------------------------------------------------------------------
    # Posting events
    # ------------------------------------------------------------------

    def post_start(self) -> "asyncio.Future[None]":
        """
        Queue the start event.

        On an unstarted machine this enters the start state. On a started
        machine it is a reset: the current state's ``exit`` runs (unless
        ``config.exit_on_restart`` is False), then the start state is
        re-entered.

        Returns:
            A future resolving once the start state's entry has run.
        """
        return self.post_event(self.START_EVENT)

    def post_event(self, event: Optional[str], *args: Any) -> "asyncio.Future[None]":
        """
        Queue ``event``; extra ``args`` are passed to the transition action.

        Processing never happens before this call returns. Errors are
        reported only through the returned future.

        Returns:
            A future that resolves when the transition completes, or is
            rejected with UnexpectedEventError, InvalidNextStateError, or
            whatever a callback raised.
        """
        future = self._scheduler.loop.create_future()
        self._scheduler.schedule(lambda: self._process(event, args, future))
        self._pending += 1
        return future

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def _process(self, event: Optional[str], args: Tuple[Any, ...], future: asyncio.Future) -> None:
        """Run one queued event to completion and settle its future."""
        self._pending -= 1
        before = self._current
        source = self.current_state

        try:
            outcome, target = self._transition(event, args)
        except UnexpectedEventError as e:
            if self._config.ignore_unexpected_events:
                logger.debug(f"Ignoring unexpected event '{event}' in state {source}")
                self._record(event, source, None, TransitionOutcome.IGNORED)
                _settle(future)
                return
            self._reject(future, e, event, source, None)
            return
        except InvalidNextStateError as e:
            self._reject(future, e, event, source, e.target)
            return
        except Exception as e:
            logger.error(f"Callback failed on event '{event}' in state {source}: {e}", exc_info=True)
            # A failing entry callback runs after the new state became current.
            reached = self._current.name if self._current is not before else None
            self._reject(future, e, event, source, reached)
            return

        self._record(event, source, target, outcome)
        _settle(future)

    def _transition(self, event: Optional[str], args: Tuple[Any, ...]) -> Tuple[TransitionOutcome, str]:
        current = self._current

        if event is self.START_EVENT:
            if current is not None and current.definition is not None and self._config.exit_on_restart:
                self._call(current.definition.exit)
            target = self._config.start
        elif current is None:
            raise UnexpectedEventError(
                f"received event '{event}' but state machine has not started",
                event=event,
            )
        else:
            transitions = current.definition.transitions if current.definition is not None else {}
            transition = (transitions or {}).get(event)
            if transition is None:
                raise UnexpectedEventError(
                    f"unexpected event '{event}' encountered in state {current.name}",
                    event=event,
                    state=current.name,
                )
            self._call(current.definition.exit)
            self._call(transition.action, *args)
            target = transition.target

        if target in self._spec:
            self._current = _ActiveState(target, self._spec[target])
            logger.info(f"Transition: {current.name if current else '<None>'} → {target}")
            self._call(self._current.definition.entry)
            return TransitionOutcome.ENTERED, target

        if target == self._config.end:
            self._current = _ActiveState(target, None)
            logger.info(f"Finished: {current.name if current else '<None>'} → {target}")
            return TransitionOutcome.FINISHED, target

        # Only reachable if the spec was mutated after validation.
        raise InvalidNextStateError(target, event, current.name if current else None)

    def _call(self, callback: Optional[Callable[..., None]], *args: Any) -> None:
        if callback is None:
            return
        result = callback(self._context, *args)
        if asyncio.iscoroutine(result):
            result.close()
            name = getattr(callback, "__name__", repr(callback))
            raise TypeError(
                f"callback {name} returned a coroutine; "
                f"entry, exit and action callbacks must be synchronous"
            )

    def _reject(
        self,
        future: asyncio.Future,
        error: Exception,
        event: Optional[str],
        source: Optional[str],
        target: Optional[str],
    ) -> None:
        logger.warning(f"Rejected event '{event}' in state {source}: {error}")
        self._record(event, source, target, TransitionOutcome.REJECTED, str(error))
        _settle(future, error)

    def _record(
        self,
        event: Optional[str],
        source: Optional[str],
        target: Optional[str],
        outcome: TransitionOutcome,
        error_message: Optional[str] = None,
    ) -> None:
        self._history.append(
            TransitionRecord(
                event=event,
                source=source,
                target=target,
                outcome=outcome,
                error_message=error_message,
            )
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def context(self) -> Any:
        return self._context

    @property
    def current_state(self) -> Optional[str]:
        """Name of the current state, or None before the machine has started."""
        return self._current.name if self._current is not None else None

    @property
    def is_started(self) -> bool:
        return self._current is not None

    @property
    def is_finished(self) -> bool:
        """True once the end state has been reached."""
        return self._current is not None and self._current.name == self._config.end

    @property
    def pending_events(self) -> int:
        """Events posted to this machine and not yet processed."""
        return self._pending

    def get_history(self, last_n: Optional[int] = None) -> List[TransitionRecord]:
        """
        Return processed-event history, oldest first.

        Args:
            last_n: If provided, return only the last N entries.
        """
        history = list(self._history)
        return history[-last_n:] if last_n is not None else history

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} state={self.current_state!r} "
            f"pending={self._pending} finished={self.is_finished}>"
        )


def _settle(future: asyncio.Future, error: Optional[BaseException] = None) -> None:
    # Cancelled futures are skipped; processing has already happened.
    if future.done():
        return
    if error is None:
        future.set_result(None)
    else:
        future.set_exception(error)
