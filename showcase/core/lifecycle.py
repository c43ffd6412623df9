# showcase/core/lifecycle.py
# Version 01.00.00.00 dated 20261019
"""
Lifecycle controller: open, reinit, complete and close the live Instance.

States::

    disabled -> enabling -> busy -> enabled
    enabled  -> busy -> enabled                 (navigation)
    enabled | busy -> unloading -> disabled     (close)

The failsafe protects against loads that never finish: once its timer fires
while the instance is still busy, a click on the overlay boundary aborts
the load with a forced close.
"""

import logging
from concurrent.futures import Future
from typing import Any, Callable, Optional, Sequence

from PySide6.QtCore import QObject, Qt, Signal, Slot

from showcase.config.showcase_config import EngineConfig, ShowcaseOptions
from showcase.core.completion import Completion
from showcase.core.errors import ErrorChannel
from showcase.core.events import NotificationChannel
from showcase.core.state import EngineState, Instance, ScaleMode, noop
from showcase.core.targets import Target
from showcase.core.timers import EXPIRE, FAILSAFE, RETRY, TimerSlots
from showcase.services.geometry_engine import GeometryEngine
from showcase.utils.qt_guards import make_guarded_slot

logger = logging.getLogger(__name__)


class FutureBridge(QObject):
    """Deliver a concurrent.futures.Future outcome on the GUI thread.

    The future's done-callback runs on whatever thread finished it; the
    queued signal hops back to the thread this bridge lives in.
    """
    _settled = Signal(object)

    def __init__(self, future: Future, completion: Completion, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._completion = completion
        self._settled.connect(self._on_settled, Qt.QueuedConnection)
        future.add_done_callback(self._settled.emit)

    @Slot(object)
    def _on_settled(self, future: Future) -> None:
        if future.cancelled():
            self._completion.reject(None)
        elif future.exception() is not None:
            self._completion.reject(future.exception())
        else:
            self._completion.resolve(future.result())
        self.deleteLater()


class LifecycleController:
    """Owns every state transition of the Instance."""

    def __init__(self, host, instance: Instance, timers: TimerSlots,
                 notifier: NotificationChannel, errors: ErrorChannel,
                 config: EngineConfig, geometry: GeometryEngine):
        self.host = host
        self.instance = instance
        self.timers = timers
        self.notifier = notifier
        self.errors = errors
        self.config = config
        self.geometry = geometry
        self.loader = None
        self.navigation = None
        # Shows a plain text message through the engine (forced load)
        self.present: Callable[[str], Any] = noop

    def bind_pipeline(self, loader, navigation) -> None:
        self.loader = loader
        self.navigation = navigation

    def is_busy(self) -> bool:
        return self.instance.busy

    def mark_busy(self) -> None:
        self.instance.transition(EngineState.BUSY)

    # ── Open ─────────────────────────────────────────────────────────

    def open(self, targets: Sequence[Target], options: ShowcaseOptions,
             callback: Callable[[], Any]) -> None:
        inst = self.instance
        was_disabled = inst.state is EngineState.DISABLED

        if was_disabled:
            inst.transition(EngineState.ENABLING)
        inst.transition(EngineState.BUSY)
        generation = inst.next_generation()

        inst.new_load = True
        inst.initialized = True
        inst.options = options
        inst.callback = callback
        inst.fade_content = options.animate and options.fade
        inst.image_retries = 0
        if options.expire > 0:
            inst.expire = options.expire

        self.host.set_titles(options.control_text)
        self.host.set_fade(options.fade)

        index = self.navigation.configure(len(targets), options.current_index)
        self.init(reset=True, was_disabled=was_disabled)
        inst.set_target(index, targets)
        logger.info("[Lifecycle] Opening %d target(s) at index %d", len(targets), index)

        gate = options.promise
        if gate is None:
            self.loader.load()
            return

        completion = self._as_completion(gate)
        completion.then(make_guarded_slot(inst, lambda _: self.loader.load(),
                                          generation=generation, name="gate_resolved"),
                        make_guarded_slot(inst, self.abort,
                                          generation=generation, name="gate_rejected")) \
            .catch(self.errors.capture)

    def _as_completion(self, gate: Any) -> Completion:
        if isinstance(gate, Completion):
            return gate
        if isinstance(gate, Future):
            completion = Completion("gate")
            FutureBridge(gate, completion, self.timers)
            return completion
        return Completion.resolved(gate, "gate")

    def init(self, reset: bool = True, was_disabled: bool = False) -> None:
        self.notifier.notify("enable")
        self.failsafe(self.config.failsafe_open_ms)
        self.hide_elems()
        self.host.set_enabled(True)
        if reset:
            self.reset(resize=was_disabled)

    def reinit(self) -> None:
        """Enter a follow-up load while keeping the current content visible."""
        inst = self.instance
        inst.transition(EngineState.BUSY)
        inst.next_generation()
        inst.defer_reset = True
        inst.image_retries = 0
        self.hide_elems()
        inst.scale = None
        self.failsafe(self.config.failsafe_navigate_ms)

    def reset(self, resize: bool = True) -> None:
        self.instance.current_content = None
        self.instance.scale = None
        self.host.clear_content()
        if resize:
            self.geometry.set_dimensions(0, 0)

    # ── Chrome ───────────────────────────────────────────────────────

    def hide_elems(self, uninit: bool = False) -> None:
        inst = self.instance
        if inst.scaled_mode is ScaleMode.NATURAL:
            self.host.set_background(True)
        if not uninit:
            self.host.set_loading(True)
        self.host.set_chrome_visible(False, False, False)

    def show_elems(self) -> None:
        inst = self.instance
        self.failsafe(False)
        self.host.set_loading(False)
        if inst.scaled_mode is ScaleMode.NATURAL:
            self.host.set_background(False)
        self.host.set_chrome_visible(True, inst.nav_enabled, inst.info_enabled)

    # ── Completion ───────────────────────────────────────────────────

    def load_complete(self) -> None:
        inst = self.instance
        self.show_elems()
        inst.transition(EngineState.ENABLED)

        callback, inst.callback = inst.callback, noop
        self.set_expiration()
        inst.expire = 0

        try:
            callback()
        except Exception as e:
            logger.exception("[Lifecycle] Completion callback raised")
            self.errors.report(e)

        if inst.current_content is not None:
            self.host.focus_input(inst.current_content)

    def set_expiration(self) -> None:
        inst = self.instance
        if inst.expire > 0:
            self.timers.arm(EXPIRE, inst.expire * 1000,
                            make_guarded_slot(inst, self.close, generation=inst.generation,
                                              name="expire"))
            self.host.show_expire_progress(inst.expire)
            logger.debug("[Lifecycle] Expires in %ss", inst.expire)
        else:
            self.host.show_expire_progress(0)

    # ── Failsafe ─────────────────────────────────────────────────────

    def failsafe(self, on: Any = True) -> None:
        """True engages the guard now (if busy), an int arms it after that many ms, False disarms."""
        inst = self.instance
        inst.failsafe_engaged = False
        self.timers.clear(FAILSAFE)
        if on is True:
            if inst.busy:
                inst.failsafe_engaged = True
                logger.info("[Lifecycle] Failsafe engaged")
        elif on is not False and on is not None:
            if inst.busy:
                self.timers.arm(FAILSAFE, on, lambda: self.failsafe(True))

    def on_boundary_click(self) -> bool:
        if not self.instance.failsafe_engaged:
            return False
        logger.warning("[Lifecycle] Boundary click while failsafe engaged, aborting load")
        self.abort()
        return True

    def abort(self, reason: Any = None) -> None:
        """Give up on the current load: show *reason* if it is text, otherwise close."""
        if isinstance(reason, str) and reason:
            self.present(reason)
        else:
            self.close(force=True)

    # ── Close ────────────────────────────────────────────────────────

    def close(self, force: bool = False) -> bool:
        inst = self.instance
        if inst.state is EngineState.DISABLED:
            return False
        if (inst.busy or inst.new_load) and not force:
            return False

        self.timers.clear(RETRY)
        self.timers.clear(EXPIRE)
        self.failsafe(False)
        inst.new_load = False
        self.host.show_expire_progress(0)

        generation = inst.generation
        self.notifier.notify("disable")
        reopened = inst.generation != generation or inst.state is EngineState.BUSY or inst.new_load
        if reopened and not force:
            logger.info("[Lifecycle] Close abandoned, a new load started")
            return False

        token = inst.next_generation()
        inst.callback = noop
        inst.transition(EngineState.UNLOADING)
        self.host.pause_media()

        def finalize(_=None):
            if inst.generation != token:
                return
            inst.transition(EngineState.DISABLED)
            self.hide_elems(uninit=True)
            self.host.set_enabled(False)
            logger.info("[Lifecycle] Closed")

        if inst.options.fade:
            self.host.fade_out().then(finalize).catch(self.errors.capture)
        else:
            finalize()
        return True

    # ── Re-open ──────────────────────────────────────────────────────

    def enable(self, callback: Callable[[], Any] = noop) -> bool:
        """Bring back the last content without reloading it."""
        inst = self.instance
        if inst.state is not EngineState.DISABLED:
            return False
        if not inst.initialized or inst.current_content is None:
            self.present("Hello!")
            return True
        inst.transition(EngineState.ENABLING)
        inst.next_generation()
        inst.callback = callback
        self.init(reset=False, was_disabled=True)
        self.load_complete()
        return True
