# showcase/core/engine.py
# Version 01.00.00.00 dated 20261019
# Showcase facade and process-wide accessor
#
# One Showcase per process presents one piece of content at a time inside a
# modal overlay. The facade composes the lifecycle, loader, geometry and
# navigation controllers by delegation and is the only public entry point.
#
# Usage:
#     from showcase import init_showcase, ImageTarget
#     engine = init_showcase(QtHostSurface(main_window))
#     engine.show(LinkTarget("photos/beach.jpg"), {"expire": 5})

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from PySide6.QtCore import QObject, Signal

from showcase.config.showcase_config import (
    EngineConfig, Extent, OptionDefaults, ShowcaseOptions, get_showcase_config,
)
from showcase.core.capabilities import Closable, Navigable, Openable, Resizable
from showcase.core.errors import ErrorChannel, build_error
from showcase.core.events import Handler, NotificationChannel
from showcase.core.lifecycle import LifecycleController
from showcase.core.navigation import NavigationController
from showcase.core.state import EngineState, Instance, noop
from showcase.core.targets import LinkTarget, MessageTarget, Target
from showcase.core.timers import TimerSlots
from showcase.services.content_loader import ContentLoader
from showcase.services.geometry_engine import GeometryEngine
from showcase.utils.qt_guards import make_guarded_slot

logger = logging.getLogger(__name__)

TargetsArg = Union[Target, str, Sequence[Union[Target, str]]]


class Showcase(QObject):
    """
    Public facade of the presentation engine.

    Every notification is also re-emitted as the Qt signal
    ``event_raised(name, payload)`` so widgets can connect directly.
    """
    event_raised = Signal(str, object)

    def __init__(self, host, config: Optional[EngineConfig] = None,
                 defaults: Optional[ShowcaseOptions] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.host = host
        self.config = config or EngineConfig()
        self.instance = Instance()
        self.defaults = OptionDefaults(defaults)
        self._torn_down = False

        self.notifier = NotificationChannel()
        self.errors = ErrorChannel(self.instance, self.notifier.notify, strict=self.config.strict)
        self.notifier.bind(self.errors.report, self._forward_event)
        self.timers = TimerSlots(self)

        self.geometry = GeometryEngine(host, self.instance, self.config)
        self.lifecycle = LifecycleController(host, self.instance, self.timers, self.notifier,
                                             self.errors, self.config, self.geometry)
        self.loader = ContentLoader(host, self.instance, self.timers, self.errors,
                                    self.notifier, self.geometry, self.config)
        self.navigation = NavigationController(host, self.instance, self.notifier,
                                               self.lifecycle, self.loader)

        # Wiring between controllers
        self.lifecycle.bind_pipeline(self.loader, self.navigation)
        self.lifecycle.present = self.show_message
        self.loader.mark_busy = self.lifecycle.mark_busy
        self.loader.reset = self.lifecycle.reset
        self.loader.on_ready = self.lifecycle.load_complete
        self.geometry.before_animate = self.lifecycle.hide_elems
        self.errors.bind_presenter(self.show_message, self.is_ready)

        # Capability views
        self.opener: Openable = self.lifecycle
        self.closer: Closable = self.lifecycle
        self.resizer: Resizable = self.geometry
        self.navigator: Navigable = self.navigation

    # ── Introspection ────────────────────────────────────────────────

    def is_ready(self) -> bool:
        return not self._torn_down and self.host is not None

    @property
    def state(self) -> EngineState:
        return self.instance.state

    @property
    def busy(self) -> bool:
        return self.instance.busy

    @property
    def error(self) -> str:
        return self.instance.error

    @property
    def content(self) -> Any:
        return self.instance.current_content

    @property
    def current_index(self) -> int:
        return self.instance.current_index

    # ── Loading ──────────────────────────────────────────────────────

    def show(self, targets: TargetsArg, options: Optional[Mapping[str, Any]] = None,
             on_complete: Optional[Callable[[], Any]] = None) -> "Showcase":
        """Present *targets* (one or a collection).

        ``options`` may be omitted and the callback passed in its place.
        While busy the call is refused unless ``force_load`` is set.
        """
        if not self.is_ready():
            self.errors.report("UNAVAILABLE")
            return self

        if callable(options) and on_complete is None:
            options, on_complete = None, options
        if isinstance(options, ShowcaseOptions):
            resolved = options
        else:
            if options is not None and not isinstance(options, Mapping):
                self.errors.report("OPTIONS", options)
                options = None
            resolved = self.defaults.resolve(options)

        if on_complete is None:
            on_complete = noop
        elif not callable(on_complete):
            self.errors.report("CALLBACK", on_complete)
            on_complete = noop

        target_list = self._normalize_targets(targets)
        if not target_list:
            self.errors.report("OPTIONS", "no targets to show")
            return self

        if self.lifecycle.is_busy() and not resolved.force_load:
            self.errors.report("BUSY")
            return self

        self.opener.open(target_list, resolved, on_complete)
        return self

    def show_message(self, text: str) -> "Showcase":
        """Show plain text with the current options, bypassing the busy check."""
        inst = self.instance
        options = replace(inst.options, promise=None, current_index=0, force_load=True)
        self.opener.open([MessageTarget(text)], options, inst.callback)
        return self

    def _normalize_targets(self, targets: TargetsArg) -> List[Target]:
        if targets is None:
            return []
        if isinstance(targets, (Target, str)):
            targets = [targets]
        normalized = []
        for target in targets:
            if isinstance(target, str):
                target = LinkTarget(target)
            if not isinstance(target, Target):
                self.errors.report("OPTIONS", target)
                continue
            normalized.append(target)
        return normalized

    # ── Open / close ─────────────────────────────────────────────────

    def enable(self, callback: Optional[Callable[[], Any]] = None) -> "Showcase":
        self.opener.enable(callback or noop)
        return self

    def disable(self) -> bool:
        return self.closer.close()

    # ── Geometry ─────────────────────────────────────────────────────

    def resize(self, width: Extent, height: Extent, animate: bool = True,
               callback: Optional[Callable[[], Any]] = None) -> "Showcase":
        """Resize the content area; ignored while busy."""
        if self.lifecycle.is_busy():
            return self
        inst = self.instance
        callback = callback or noop

        def _after(_):
            if animate:
                self.lifecycle.show_elems()
            callback()

        self.notifier.notify("resize", {"width": width, "height": height})
        self.resizer.set_dimensions(width, height, animate) \
            .then(make_guarded_slot(inst, _after, generation=inst.generation, name="resize")) \
            .catch(self.errors.capture)
        return self

    def on_window_resize(self) -> None:
        if self.instance.busy:
            return
        self.notifier.notify("resize")
        completion = self.resizer.on_window_resize()
        if completion is not None:
            completion.catch(self.errors.capture)

    # ── Navigation and input ─────────────────────────────────────────

    def navigate(self, direction: str) -> "Showcase":
        self.navigator.navigate(direction)
        return self

    def handle_key(self, key: str, in_input: bool = False, multiline: bool = False) -> bool:
        return self.navigator.handle_key(key, in_input, multiline)

    def on_boundary_click(self) -> bool:
        return self.lifecycle.on_boundary_click()

    # ── Events ───────────────────────────────────────────────────────

    def on(self, event: str, handler: Handler, data: Any = None) -> "Showcase":
        self.notifier.on(event, handler, data)
        return self

    def off(self, event: Optional[str] = None, handler: Optional[Handler] = None) -> "Showcase":
        self.notifier.off(event, handler)
        return self

    def _forward_event(self, event: str, payload: Dict[str, Any]) -> None:
        self.event_raised.emit(event, payload)

    # ── Defaults ─────────────────────────────────────────────────────

    def set_defaults(self, options: Optional[Mapping[str, Any]] = None, **kwargs) -> "Showcase":
        overrides = dict(options or {}, **kwargs)
        known = set(ShowcaseOptions.keys())
        for key in [k for k in overrides if k not in known]:
            self.errors.report("NODEFAULT", key, var=key)
            overrides.pop(key)
        self.defaults.update(overrides)
        return self

    def reset_defaults(self) -> "Showcase":
        self.defaults.reset()
        return self

    def get_defaults(self) -> ShowcaseOptions:
        return self.defaults.current

    def reset_size_cache(self) -> None:
        self.instance.size_cache.clear()

    # ── Teardown ─────────────────────────────────────────────────────

    def teardown(self) -> None:
        if self._torn_down:
            return
        if self.instance.state is not EngineState.DISABLED:
            self.closer.close(force=True)
        self.instance.next_generation()
        self.instance.transition(EngineState.DISABLED)
        self.timers.clear_all()
        self.notifier.off()
        self._torn_down = True
        logger.info("[Showcase] Torn down")


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------

_showcase_instance: Optional[Showcase] = None


def init_showcase(host, config: Optional[EngineConfig] = None,
                  defaults: Optional[ShowcaseOptions] = None) -> Showcase:
    """
    Create the process-wide Showcase bound to *host*.

    Without *config* the persisted ``~/.showcase/showcase_config.json``
    settings are used. Re-initializing tears the previous engine down.
    """
    global _showcase_instance
    if config is None:
        saved = get_showcase_config()
        config = saved.engine
        if defaults is None:
            defaults = saved.default_options()
    if _showcase_instance is not None:
        logger.warning("[Showcase] Re-initializing, tearing down the previous engine")
        _showcase_instance.teardown()

    engine = Showcase(host, config, defaults)
    bind = getattr(host, "bind_engine", None)
    if callable(bind):
        bind(engine)
    _showcase_instance = engine
    logger.info("[Showcase] Initialized (strict=%s)", config.strict)
    return engine


def get_showcase() -> Showcase:
    """Return the global Showcase.  Raises if not initialized."""
    if _showcase_instance is None:
        raise RuntimeError(
            "Showcase not initialized.  Call showcase.init_showcase() during app startup."
        )
    return _showcase_instance


def teardown_showcase() -> None:
    global _showcase_instance
    if _showcase_instance is not None:
        _showcase_instance.teardown()
    _showcase_instance = None


def show(targets: TargetsArg, options: Optional[Mapping[str, Any]] = None,
         on_complete: Optional[Callable[[], Any]] = None) -> Optional[Showcase]:
    """Module-level shortcut; reports Unavailable when no engine exists yet."""
    if _showcase_instance is None:
        logger.warning("[Showcase] %s", build_error("UNAVAILABLE").text)
        return None
    return _showcase_instance.show(targets, options, on_complete)
