"""History projection and the LinkStateStore tying state, URL and history together."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from transit_api.client.link import LinkType, create_link, decode, encode, state_with_link
from transit_api.client.state import NavigationState
from transit_api.client.store import Reaction, Selector, Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    state: dict[str, Any] | None
    url: str


class History(Protocol):
    """Back/forward stack holding serialized states."""

    def push_state(self, state: dict[str, Any], url: str) -> None: ...

    def replace_state(self, state: dict[str, Any], url: str) -> None: ...

    def back(self) -> HistoryEntry | None: ...

    def forward(self) -> HistoryEntry | None: ...


class MemoryHistory:
    """In-process history stack with browser semantics."""

    def __init__(self, url: str = "/") -> None:
        self.entries: list[HistoryEntry] = [HistoryEntry(state=None, url=url)]
        self.index = 0

    @property
    def current(self) -> HistoryEntry:
        return self.entries[self.index]

    def push_state(self, state: dict[str, Any], url: str) -> None:
        # Pushing discards any forward entries
        del self.entries[self.index + 1 :]
        self.entries.append(HistoryEntry(state=state, url=url))
        self.index += 1

    def replace_state(self, state: dict[str, Any], url: str) -> None:
        self.entries[self.index] = HistoryEntry(state=state, url=url)

    def back(self) -> HistoryEntry | None:
        if self.index == 0:
            return None
        self.index -= 1
        return self.current

    def forward(self) -> HistoryEntry | None:
        if self.index >= len(self.entries) - 1:
            return None
        self.index += 1
        return self.current


class LinkStateStore:
    """
    Keeps the store, the address bar URL and the history stack consistent.

    User navigation pushes a history entry carrying the serialized new state,
    and in-place updates rewrite the current entry. Back/forward and URL changes are applied to the store without pushing, so
    history writes never feed back into further history writes.
    """

    def __init__(
        self,
        store: Store | None = None,
        history: History | None = None,
        base_path: str = "/",
    ) -> None:
        self.store = store if store is not None else Store()
        self.history = history if history is not None else MemoryHistory(base_path)
        self.base_path = base_path

    def get_state(self) -> NavigationState:
        return self.store.get_state()

    def subscribe(
        self, selector: Selector, reaction: Reaction, immediate: bool = False
    ) -> Callable[[], None]:
        return self.store.subscribe(selector, reaction, immediate=immediate)

    def url(self) -> str:
        """URL of the current state."""
        return encode(self.store.get_state(), self.base_path)

    def link(self, link_type: LinkType, value: str) -> str:
        """href for opening an entity from the current state."""
        return create_link(link_type, value, self.store.get_state(), self.base_path)

    def initialize(self, url: str, history_state: Mapping[str, Any] | None = None) -> None:
        """Restore state from a history entry if there is one, otherwise from the URL."""
        if history_state:
            state = NavigationState.from_dict(history_state)
        else:
            state = NavigationState().merge(decode(url))
        self.store.replace_state(state)
        self.history.replace_state(state.to_dict(), encode(state, self.base_path))

    def navigate(self, patch: Mapping[str, Any]) -> None:
        """Apply a patch the user can undo with back."""
        self._push(lambda state: state.merge(patch))

    def open_link(self, link_type: LinkType, value: str) -> None:
        """Follow a route, trip or stop link."""
        self._push(lambda state: state_with_link(state, link_type, value))

    def update(self, patch: Mapping[str, Any]) -> None:
        """Apply a patch in place, rewriting the current history entry instead of pushing."""

        def replace(state: NavigationState) -> NavigationState:
            new_state = state.merge(patch)
            self.history.replace_state(new_state.to_dict(), encode(new_state, self.base_path))
            return new_state

        self.store.dispatch(replace)

    def _push(self, transition: Callable[[NavigationState], NavigationState]) -> None:
        def push(state: NavigationState) -> NavigationState:
            new_state = transition(state)
            url = encode(new_state, self.base_path)
            self.history.push_state(new_state.to_dict(), url)
            logger.debug(f"Pushed history entry {url}")
            return new_state

        self.store.dispatch(push)

    def on_pop_state(self, entry_state: Mapping[str, Any] | None, url: str) -> None:
        """Apply a back/forward event without pushing a new entry."""
        if entry_state:
            self.store.replace_state(NavigationState.from_dict(entry_state))
        else:
            self.store.set_state(decode(url))

    def on_url_change(self, url: str) -> None:
        """Apply a URL edited outside the app (e.g. a hash change) without pushing."""
        self.store.set_state(decode(url))

    def back(self) -> bool:
        """Step back in history; returns False at the oldest entry."""
        entry = self.history.back()
        if entry is None:
            return False
        self.on_pop_state(entry.state, entry.url)
        return True

    def forward(self) -> bool:
        """Step forward in history; returns False at the newest entry."""
        entry = self.history.forward()
        if entry is None:
            return False
        self.on_pop_state(entry.state, entry.url)
        return True
