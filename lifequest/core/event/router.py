"""
Wildcard matching for event names.

Event names are dotted (`main_quest.step_completed`). Patterns may contain
`*` anywhere; a lone `*` matches every event.
"""

from __future__ import annotations


class EventRouter:
    """
    Stateless wildcard matcher.

    Examples
    --------
    >>> router = EventRouter()
    >>> router.matches("main_quest.completed", "main_quest.*")
    True
    >>> router.matches("daily_quest.reset", "*.reset")
    True
    >>> router.matches("xp.awarded", "main_quest.*")
    False
    """

    def matches(self, event_name: str, pattern: str) -> bool:
        if pattern == "*":
            return True

        if "*" not in pattern:
            return event_name == pattern

        while "**" in pattern:
            pattern = pattern.replace("**", "*")

        parts = pattern.split("*")
        head, tail = parts[0], parts[-1]

        if head and not event_name.startswith(head):
            return False
        if tail and not event_name.endswith(tail):
            return False
        # Prefix and suffix must not overlap inside a short name.
        if len(head) + len(tail) > len(event_name):
            return False

        position = len(head)
        limit = len(event_name) - len(tail)
        for fragment in parts[1:-1]:
            if not fragment:
                continue
            found = event_name.find(fragment, position, limit)
            if found == -1:
                return False
            position = found + len(fragment)

        return True
