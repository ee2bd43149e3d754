"""Publish-subscribe store holding the canonical navigation state."""

import logging
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from transit_api.client.state import NavigationState

logger = logging.getLogger(__name__)

Selector = Callable[[NavigationState], Any]
Reaction = Callable[[Any], None]
Transition = Callable[[NavigationState], NavigationState]


def shallow_equal(a: Any, b: Any) -> bool:
    """Compare mappings and sequences one level deep, anything else by equality."""
    if a is b:
        return True
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(a[k] is b[k] or a[k] == b[k] for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(x is y or x == y for x, y in zip(a, b))
    return a == b


@dataclass(eq=False)
class _Subscription:
    selector: Selector
    reaction: Reaction
    last: Any
    active: bool = True


class Store:
    """
    Single source of truth for NavigationState.

    Every mutation goes through a transition queue. A transition requested
    while observers are being notified runs after the current notification
    pass, so observers always see a settled state.
    """

    def __init__(self, initial: NavigationState | None = None) -> None:
        self._state = initial if initial is not None else NavigationState()
        self._subscriptions: list[_Subscription] = []
        self._queue: deque[Transition] = deque()
        self._dispatching = False

    def get_state(self) -> NavigationState:
        return self._state

    def set_state(self, patch: Mapping[str, Any]) -> None:
        """Shallow-merge a patch into the current state."""
        self.dispatch(lambda state: state.merge(patch))

    def replace_state(self, state: NavigationState) -> None:
        """Swap in a whole new state."""
        self.dispatch(lambda _: state)

    def dispatch(self, transition: Transition) -> None:
        """Queue a state transition and run the queue unless already running."""
        self._queue.append(transition)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._queue:
                transition = self._queue.popleft()
                self._state = transition(self._state)
                self._notify()
        except Exception:
            self._queue.clear()
            raise
        finally:
            self._dispatching = False

    def subscribe(
        self, selector: Selector, reaction: Reaction, immediate: bool = False
    ) -> Callable[[], None]:
        """
        Register an observer.

        The reaction receives the selector's output and runs only when that
        output changes. Returns a callable that unregisters the observer; it
        is safe to call at any time, including from inside a reaction.
        """
        subscription = _Subscription(selector, reaction, selector(self._state))
        self._subscriptions.append(subscription)
        if immediate:
            reaction(subscription.last)

        def unsubscribe() -> None:
            subscription.active = False
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def _notify(self) -> None:
        state = self._state
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            derived = subscription.selector(state)
            if shallow_equal(derived, subscription.last):
                continue
            subscription.last = derived
            subscription.reaction(derived)
