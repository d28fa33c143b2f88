"""
Client Events
=============
Synchronous publish/subscribe channel for auth lifecycle notifications.

Event name        Payload
----------------  -----------------
``ready``         (none)
``login``         ``User``
``logout``        (none)
``session_restored``  ``User``
``error``         ``Exception``
``debug``         ``str``

Listeners run in registration order. A listener that raises is logged and
does not prevent the others from running.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

EVENT_NAMES = frozenset({"ready", "login", "logout", "session_restored", "error", "debug"})

Listener = Callable[..., None]


class EventManager:
    """Registry of listeners keyed by event name."""

    def __init__(self, debug: bool = False):
        self.debug = debug
        # (listener, once) pairs
        self._listeners: Dict[str, List[Tuple[Listener, bool]]] = {name: [] for name in EVENT_NAMES}

    def on(self, event: str, listener: Listener) -> None:
        self._slot(event).append((listener, False))

    def once(self, event: str, listener: Listener) -> None:
        self._slot(event).append((listener, True))

    def off(self, event: str, listener: Listener) -> None:
        """Remove the first registration of *listener* for *event*."""
        slot = self._slot(event)
        for i, (registered, _) in enumerate(slot):
            if registered == listener:
                del slot[i]
                return

    def emit(self, event: str, *args) -> bool:
        """Dispatch *event* to its listeners. Returns False if there were none."""
        slot = self._slot(event)
        if not slot:
            return False

        listeners = list(slot)
        slot[:] = [(fn, once) for fn, once in slot if not once]

        for listener, _ in listeners:
            try:
                listener(*args)
            except Exception:
                logger.exception(f"[EVENTS] Listener for '{event}' raised")
        return True

    def emit_debug(self, message: str) -> None:
        if self.debug:
            logger.info(f"[YPAREO] {message}")
        else:
            logger.debug(f"[YPAREO] {message}")
        self.emit("debug", message)

    def listener_count(self, event: str) -> int:
        return len(self._slot(event))

    def _slot(self, event: str) -> List[Tuple[Listener, bool]]:
        try:
            return self._listeners[event]
        except KeyError:
            raise ValueError(f"Unknown event: {event!r}") from None
