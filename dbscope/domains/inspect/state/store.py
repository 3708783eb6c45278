"""Single-value state container with synchronous change notification."""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from dbscope.domains.inspect.domain.models import InspectorState

Listener = Callable[[InspectorState, InspectorState], None]


class StateStore:
    """Holds the current ``InspectorState`` and notifies subscribers on change.

    Listeners receive ``(new_state, previous_state)`` synchronously after each
    ``set``, in subscription order. A listener may call ``set`` again; the
    nested notification completes before the outer one continues.
    """

    def __init__(self, initial: InspectorState | None = None):
        self._state = initial if initial is not None else InspectorState()
        self._listeners: list[Listener] = []

    def get(self) -> InspectorState:
        return self._state

    def set(self, state: InspectorState) -> None:
        previous = self._state
        if state is previous:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state, previous)
            except Exception:
                logger.exception("State listener {} failed", listener)

    def update(self, transition: Callable[[InspectorState], InspectorState]) -> InspectorState:
        """Apply a pure transition to the current state and store the result."""
        self.set(transition(self._state))
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
