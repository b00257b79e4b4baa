"""
ListenerRegistry: storage and lookup for EventBus listeners.

Design Decisions
----------------
- Synchronous: mutations happen on a single event loop between awaits, so no
  locking is needed.
- Listeners are kept sorted by (priority, identifier) for deterministic
  execution order.
- `extract_listeners_for_event()` prunes once=True listeners in the same
  step that returns them.
"""

from __future__ import annotations

from lifequest.core.event.router import EventRouter
from lifequest.core.event.types import EventListener


def _sort_key(listener: EventListener) -> tuple[int, str]:
    return (listener.priority.value, listener.identifier)


class ListenerRegistry:
    """
    Registry for exact and wildcard listeners.

    Examples
    --------
    >>> registry = ListenerRegistry()
    >>> registry.add_listener("xp.awarded", listener, allow_duplicates=False)
    True
    >>> len(registry.extract_listeners_for_event("xp.awarded"))
    1
    """

    def __init__(self, router: EventRouter | None = None) -> None:
        self._router = router or EventRouter()
        self._listeners: dict[str, list[EventListener]] = {}
        self._wildcard_listeners: list[tuple[str, EventListener]] = []

    # ------------------------------------------------------------------ #
    # Modification
    # ------------------------------------------------------------------ #

    def add_listener(
        self,
        event_name: str,
        listener: EventListener,
        *,
        allow_duplicates: bool,
    ) -> bool:
        """
        Register a listener. Returns False when a duplicate
        `(event_name, identifier)` is rejected.
        """
        if "*" in event_name:
            if not allow_duplicates and any(
                pattern == event_name and existing.identifier == listener.identifier
                for pattern, existing in self._wildcard_listeners
            ):
                return False
            self._wildcard_listeners.append((event_name, listener))
            self._wildcard_listeners.sort(key=lambda pair: _sort_key(pair[1]))
            return True

        listeners = self._listeners.setdefault(event_name, [])
        if not allow_duplicates and any(
            existing.identifier == listener.identifier for existing in listeners
        ):
            return False

        listeners.append(listener)
        listeners.sort(key=_sort_key)
        return True

    def remove_listener(self, event_name: str, identifier: str) -> bool:
        removed = False

        exact = self._listeners.get(event_name)
        if exact is not None:
            kept = [lst for lst in exact if lst.identifier != identifier]
            removed = len(kept) < len(exact)
            if kept:
                self._listeners[event_name] = kept
            else:
                del self._listeners[event_name]

        before = len(self._wildcard_listeners)
        self._wildcard_listeners = [
            (pattern, lst)
            for pattern, lst in self._wildcard_listeners
            if not (pattern == event_name and lst.identifier == identifier)
        ]
        return removed or len(self._wildcard_listeners) < before

    def clear_all(self) -> int:
        """Remove every listener and return how many there were."""
        total = self.get_total_listener_count()
        self._listeners.clear()
        self._wildcard_listeners.clear()
        return total

    # ------------------------------------------------------------------ #
    # Lookup & Once-Removal
    # ------------------------------------------------------------------ #

    def extract_listeners_for_event(self, event_name: str) -> list[EventListener]:
        """
        Collect exact and wildcard listeners for `event_name`, pruning
        once=True listeners from the registry as they are returned.
        """
        result: list[EventListener] = []

        exact = self._listeners.get(event_name, [])
        result.extend(exact)
        kept_exact = [lst for lst in exact if not lst.once]
        if kept_exact:
            self._listeners[event_name] = kept_exact
        else:
            self._listeners.pop(event_name, None)

        kept_wildcards: list[tuple[str, EventListener]] = []
        for pattern, listener in self._wildcard_listeners:
            if self._router.matches(event_name, pattern):
                result.append(listener)
                if listener.once:
                    continue
            kept_wildcards.append((pattern, listener))
        self._wildcard_listeners = kept_wildcards

        result.sort(key=_sort_key)
        return result

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_listener_count_for_event(self, event_name: str) -> int:
        count = len(self._listeners.get(event_name, []))
        count += sum(
            1
            for pattern, _ in self._wildcard_listeners
            if self._router.matches(event_name, pattern)
        )
        return count

    def get_total_listener_count(self) -> int:
        total = sum(len(listeners) for listeners in self._listeners.values())
        return total + len(self._wildcard_listeners)

    def get_all_event_keys(self) -> list[str]:
        keys = set(self._listeners.keys())
        keys.update(pattern for pattern, _ in self._wildcard_listeners)
        return sorted(keys)
