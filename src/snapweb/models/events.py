"""Property-change notification shared by files, sites, rows and tables.

Listeners are plain callables receiving a
[PropertyChangeEvent][snapweb.models.events.PropertyChangeEvent]. Events are
delivered synchronously on the thread that made the change.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PropertyChangeEvent:
    """A change of one named property on *source*.

    ``index`` is the list position for element insertions and removals
    (``-1`` for scalar properties).
    """

    source: Any
    name: str
    old_value: Any = None
    new_value: Any = None
    index: int = -1


Listener = Callable[[PropertyChangeEvent], None]


class Observable:
    """Mixin holding a list of property-change listeners."""

    _listeners: list[Listener]

    def add_listener(self, listener: Listener) -> None:
        if not hasattr(self, "_listeners"):
            self._listeners = []
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        listeners = getattr(self, "_listeners", None)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def fire_property_change(
        self, name: str, old_value: Any, new_value: Any, index: int = -1
    ) -> None:
        """Notify listeners unless the value did not change."""
        listeners = getattr(self, "_listeners", None)
        if not listeners or (index < 0 and old_value is new_value):
            return
        event = PropertyChangeEvent(self, name, old_value, new_value, index)
        for listener in list(listeners):
            listener(event)
