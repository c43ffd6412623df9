# showcase/core/navigation.py
# Version 01.00.00.00 dated 20261019

import logging

from showcase.core.state import EngineState, Instance

logger = logging.getLogger(__name__)

LEFT = "left"
RIGHT = "right"

KEY_ESCAPE = "escape"
KEY_LEFT = "arrowleft"
KEY_RIGHT = "arrowright"
KEY_ENTER = "enter"


class NavigationController:
    """Index into the target collection with wraparound, plus keyboard routing."""

    def __init__(self, host, instance: Instance, notifier, lifecycle, loader):
        self.host = host
        self.instance = instance
        self.notifier = notifier
        self.lifecycle = lifecycle
        self.loader = loader

    @property
    def count(self) -> int:
        return len(self.instance.targets)

    def configure(self, count: int, requested_index: int) -> int:
        """Starting index for a collection of *count* targets (clamped)."""
        inst = self.instance
        if count > 1:
            index = min(max(int(requested_index), 0), count - 1)
            inst.nav_enabled = True
        else:
            index = 0
            inst.nav_enabled = False
        self.host.set_nav_visible(inst.nav_enabled)
        return index

    @staticmethod
    def step(index: int, count: int, direction: str) -> int:
        offset = -1 if direction == LEFT else 1
        return (index + offset) % count

    def navigate(self, direction: str) -> bool:
        inst = self.instance
        if direction not in (LEFT, RIGHT):
            logger.warning("[Navigation] Unknown direction: %r", direction)
            return False
        if not inst.nav_enabled or inst.busy:
            return False

        self.notifier.notify("navigate", {"direction": direction})
        index = self.step(inst.current_index, self.count, direction)
        logger.info("[Navigation] %s -> %d/%d", direction, index + 1, self.count)

        self.lifecycle.reinit()
        inst.set_target(index)
        self.loader.load()
        return True

    def handle_key(self, key: str, in_input: bool = False, multiline: bool = False) -> bool:
        """Route a key press. Returns True when the key was consumed.

        Inside a text input the arrows belong to the input; enter still
        confirms from a single-line field but not from a multi-line one.
        """
        inst = self.instance
        if inst.state is EngineState.DISABLED:
            return False
        key = key.lower()
        if key in ("esc", KEY_ESCAPE):
            self.lifecycle.close()
            return True
        if key in ("return", KEY_ENTER):
            if multiline:
                return False
            if inst.current_content is not None and not inst.busy:
                self.host.confirm(inst.current_content)
            return True
        if in_input:
            return False
        if key in ("left", KEY_LEFT):
            self.navigate(LEFT)
            return True
        if key in ("right", KEY_RIGHT):
            self.navigate(RIGHT)
            return True
        return False
