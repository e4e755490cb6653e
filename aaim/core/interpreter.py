"""
aaim.core.interpreter — State machine interpreting a loaded interaction model.

The interpreter only tracks states and picks transitions. Everything a state
or transition actually does is delegated to an AAIMBehavior.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from collections import deque
from collections.abc import Mapping
from typing import Any, Optional

from aaim.utils.types import InteractionModel, State

logger = logging.getLogger(__name__)

# (timestamp, previous state name, new state name, event name)
TransitionRecord = tuple[float, Optional[str], Optional[str], Optional[str]]


def _state_name(state: Optional[State]) -> Optional[str]:
    return state.get("name") if state is not None else None


class AAIMInterpreter:
    """
    Runs the state machine of an interaction model.

    Lifecycle misuse (loading while running, starting without a usable
    initial state, unknown events) is ignored rather than raised. Only
    configuration faults from the behavior surface as exceptions.
    """

    def __init__(self, behavior=None, history_size: int = 100):
        self._behavior = behavior
        self._running = False
        self._model: Optional[InteractionModel] = None
        self._state: Optional[State] = None
        self._states: dict[str, State] = {}
        self._transition_log: deque[TransitionRecord] = deque(maxlen=history_size)
        self._pending: set[asyncio.Future] = set()

    @property
    def running(self) -> bool:
        return self._running

    @running.setter
    def running(self, run: bool):
        self.set_running(run)

    @property
    def model(self) -> Optional[InteractionModel]:
        """The loaded model; replace it with :meth:`load`."""
        return self._model

    @property
    def state(self) -> Optional[State]:
        return self._state

    @property
    def history(self) -> list[TransitionRecord]:
        return list(self._transition_log)

    def load(self, model: Any) -> bool:
        """Load an interaction model. Only possible while not running.

        The current state is kept, so resuming a paused interpreter after
        loading continues in a state of the previous model until reset.
        """
        if self._running:
            logger.warning("Cannot load a model while running")
            return False
        if not isinstance(model, Mapping):
            logger.warning("Rejected model: expected a mapping")
            return False
        states = model.get("states")
        if not isinstance(states, (list, tuple)) or not states:
            logger.warning("Rejected model: 'states' must be a non-empty sequence")
            return False

        self._model = model
        self._states = {}
        for state in states:
            if isinstance(state, Mapping):
                # first declaration wins on duplicate names
                self._states.setdefault(state.get("name"), state)

        logger.info(
            "Model loaded: %d states, initial '%s'",
            len(self._states),
            model.get("initial"),
        )
        return True

    def set_running(self, run: bool):
        """Run or pause the interpreter.

        Running requires a loaded model. The first run enters the initial
        state; after a pause the interpreter resumes in its current state
        without re-executing any behavior. Call :meth:`reset` while paused
        to start over.
        """
        if not run:
            if self._running:
                logger.info("Interpreter paused in '%s'", _state_name(self._state))
            self._running = False
            return

        if self._running or self._model is None:
            return

        self._running = True
        if self._state is not None:
            logger.info("Interpreter resumed in '%s'", _state_name(self._state))
            return

        initial = self._model.get("initial")
        if isinstance(initial, str) and initial in self._states:
            self._perform_transition(self._states[initial])
        else:
            logger.warning("Initial state '%s' is not defined", initial)
            self._running = False

    def reset(self):
        """Forget the current state. No effect while running."""
        if self._running:
            return
        if self._state is not None:
            logger.info("Interpreter reset from '%s'", _state_name(self._state))
        self._state = None

    def execute_event(self, name: str):
        """Fire an event on the current state; unknown events are ignored."""
        if not self._running or self._state is None:
            return

        for event in self._state.get("events") or []:
            if not isinstance(event, Mapping) or event.get("on") != name:
                continue
            target = event.get("goto")
            if isinstance(target, str) and target in self._states:
                self._perform_transition(self._states[target], event.get("do"), name)
                return

        logger.debug(
            "Event '%s' does not lead anywhere from '%s'", name, _state_name(self._state)
        )

    async def drain(self):
        """Wait until all behavior scheduled by transitions has finished."""
        while True:
            pending = [task for task in self._pending if not task.done()]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)
        # let done-callbacks report failures
        await asyncio.sleep(0)

    def _perform_transition(
        self, target: State, config: Any = None, event: Optional[str] = None
    ):
        """Enter ``target`` and delegate its behavior.

        The state changes immediately; the behavior runs asynchronously.
        A transition configuration is executed first and the target state's
        behavior only once it completed.
        """
        previous = self._state
        self._state = target
        self._transition_log.append(
            (time.time(), _state_name(previous), _state_name(target), event)
        )
        logger.info(
            "State: %s → %s",
            _state_name(previous),
            _state_name(target),
            extra={"state": _state_name(target)},
        )

        if self._behavior is None:
            return

        if config:
            transition = self._behavior.execute_transition(config)
            self._track(self._enter_after(transition, target), _state_name(target))
        else:
            self._track(
                self._behavior.execute_state(target.get("do")), _state_name(target)
            )

    async def _enter_after(self, transition, target: State):
        await transition
        entered = self._behavior.execute_state(target.get("do"))
        if inspect.isawaitable(entered):
            await entered

    def _track(self, work: Any, state_name: Optional[str]):
        if not inspect.isawaitable(work):
            return
        task = asyncio.ensure_future(work)
        self._pending.add(task)
        task.add_done_callback(functools.partial(self._on_behavior_done, state_name))

    def _on_behavior_done(self, state_name: Optional[str], task: asyncio.Future):
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Behavior of '%s' failed: %s",
                state_name,
                error,
                exc_info=error,
                extra={"state": state_name},
            )
