# showcase/core/events.py
# Version 01.00.00.00 dated 20261019

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

EVENTS = ("enable", "disable", "resize", "navigate", "error")


@dataclass
class ShowcaseEvent:
    """What a listener receives: event name, its registration data and the payload."""
    name: str
    data: Any = None
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


Handler = Callable[[ShowcaseEvent], Any]


class NotificationChannel:
    """Named lifecycle notifications with per-event listener lists.

    Registration problems are not raised; they go to *report* (the error
    channel) with the matching tag and the registration is ignored.
    """

    def __init__(self, report: Optional[Callable[..., Any]] = None):
        self._handlers: Dict[str, List[Tuple[Handler, Any]]] = {name: [] for name in EVENTS}
        self._report = report or (lambda tag, *a, **k: logger.warning("[Events] %s", tag))
        self._forward: Optional[Callable[[str, Dict[str, Any]], Any]] = None

    def bind(self, report: Callable[..., Any],
             forward: Optional[Callable[[str, Dict[str, Any]], Any]] = None) -> None:
        self._report = report
        self._forward = forward

    def on(self, event: str, handler: Handler, data: Any = None) -> bool:
        if event not in self._handlers:
            self._report("ONEVENT", event)
            return False
        if not callable(handler):
            self._report("ONHANDLER", handler)
            return False
        self._handlers[event].append((handler, data))
        logger.debug("[Events] +%s (%d listeners)", event, len(self._handlers[event]))
        return True

    def off(self, event: Optional[str] = None, handler: Optional[Handler] = None) -> bool:
        """Remove listeners: all, all of one event, or one handler of one event."""
        if event is None:
            for handlers in self._handlers.values():
                handlers.clear()
            return True
        if event not in self._handlers:
            self._report("OFFEVENT", event)
            return False
        if handler is None:
            self._handlers[event].clear()
        else:
            self._handlers[event] = [(h, d) for h, d in self._handlers[event] if h is not handler]
        return True

    def notify(self, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        payload = payload or {}
        logger.debug("[Events] notify %s", event)
        # Snapshot: listeners may re-enter the engine and (un)register
        for handler, data in list(self._handlers.get(event, ())):
            try:
                handler(ShowcaseEvent(event, data, payload))
            except Exception:
                logger.exception("[Events] Listener for %s failed", event)
        if self._forward is not None:
            self._forward(event, payload)

    def handler_count(self, event: Optional[str] = None) -> int:
        if event is None:
            return sum(len(h) for h in self._handlers.values())
        return len(self._handlers.get(event, ()))
