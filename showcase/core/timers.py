# showcase/core/timers.py
# Version 01.00.00.00 dated 20261019

import logging
from typing import Callable, Dict, Optional

from PySide6.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)

EXPIRE = "expire"
FAILSAFE = "failsafe"
RETRY = "retry"


class TimerSlots(QObject):
    """One single-shot QTimer per purpose.

    Arming a purpose cancels whatever was pending for it, so each purpose has
    at most one outstanding callback.
    """

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._timers: Dict[str, QTimer] = {}

    def arm(self, purpose: str, delay_ms: float, callback: Callable[[], None]) -> None:
        self.clear(purpose)
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(delay_ms)))
        timer.timeout.connect(lambda: self._fire(purpose, timer, callback))
        self._timers[purpose] = timer
        timer.start()
        logger.debug("[Timers] Armed %s (%d ms)", purpose, timer.interval())

    def _fire(self, purpose: str, timer: QTimer, callback: Callable[[], None]) -> None:
        if self._timers.get(purpose) is not timer:
            return
        del self._timers[purpose]
        timer.deleteLater()
        logger.debug("[Timers] Fired %s", purpose)
        callback()

    def clear(self, purpose: str) -> None:
        timer = self._timers.pop(purpose, None)
        if timer is not None:
            timer.stop()
            timer.deleteLater()

    def clear_all(self) -> None:
        for purpose in list(self._timers):
            self.clear(purpose)

    def is_armed(self, purpose: str) -> bool:
        timer = self._timers.get(purpose)
        return timer is not None and timer.isActive()

    def interval(self, purpose: str) -> Optional[int]:
        """Configured delay of the pending timer, or None when nothing is armed."""
        timer = self._timers.get(purpose)
        return timer.interval() if timer is not None else None
