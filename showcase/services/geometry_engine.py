# showcase/services/geometry_engine.py
# Version 01.00.00.00 dated 20261019
"""
Geometry engine: target dimensions of the overlay and resize sequencing.

Sizes flow through three stages on every load:

1. prepare()            decide the scale mode and pin numeric option sizes
2. check_content_size() measure, apply option sizes, aspect-correct scalable media
3. set_dimensions()     move max-width / max-height, animated or not

Scaled media runs a two-pass correction: the requested size is applied to
the wrapper without animation, the wrapper is measured again after the host
clamps it to the viewport, and each axis keeps the smaller of the requested
value and the value implied by the other axis and the aspect ratio.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from showcase.config.showcase_config import AUTO, FULL, EngineConfig, Extent, is_numeric
from showcase.core.completion import Completion, TransitionWatch
from showcase.core.size import AXES, Size
from showcase.core.state import Instance, ScaleContext, ScaleMode, noop
from showcase.core.targets import (
    ImageTarget, MediaTarget, Target, TargetKind, TargetSubKind, TargetType,
)

logger = logging.getLogger(__name__)

MAX_WIDTH = "max-width"
MAX_HEIGHT = "max-height"
TRANSITION_PROPERTIES = {"width": MAX_WIDTH, "height": MAX_HEIGHT}


@dataclass
class ScaledDimensions:
    width: Extent
    height: Extent
    scaled_width: Optional[float] = None
    scaled_height: Optional[float] = None


def _unresolved(value: Any) -> bool:
    return value in (AUTO, FULL)


class GeometryEngine:
    """Computes and applies overlay dimensions for the live Instance."""

    def __init__(self, host, instance: Instance, config: EngineConfig):
        self.host = host
        self.instance = instance
        self.config = config
        self._mode: Optional[ScaleMode] = None
        self._requested: Dict[str, float] = {}
        # Called before an animated resize starts (hides the chrome)
        self.before_animate: Callable[[], Any] = noop

    # ── Per-load preparation ─────────────────────────────────────────

    def prepare(self, scalable: bool) -> Optional[ScaleMode]:
        """Pick the scale mode for the attached content and pin numeric sizes."""
        opts = self.instance.options
        self._requested = {}
        if opts.scale_media and scalable:
            self._mode = ScaleMode.NATURAL
        else:
            self._mode = ScaleMode.FORCED if opts.force_scaling else None
            for axis in AXES:
                value = getattr(opts, axis)
                if is_numeric(value):
                    self._requested[axis] = self._pin_extent(axis, value)
        self.host.set_scaled(False)
        logger.debug("[Geometry] Scale mode: %s, pinned: %s",
                     self._mode.value if self._mode else None, self._requested or "-")
        return self._mode

    def _pin_extent(self, axis: str, requested: float) -> float:
        viewport = self.host.viewport_size().get(axis)
        if viewport < requested:
            self.host.set_content_extent(axis, viewport)
            return viewport
        self.host.set_content_extent(axis, requested)
        if requested < self.host.minimum_extent(axis):
            self.host.set_minimum_extent(axis, requested)
        else:
            self.host.set_minimum_extent(axis, None)
        return requested

    # ── Measurement ──────────────────────────────────────────────────

    def object_size(self, handle: Any, target: Target, target_type: TargetType) -> Size:
        """Natural size of image/media content, remembered per image source."""
        cache = self.instance.size_cache
        if target_type.sub_kind is TargetSubKind.IMAGE and isinstance(target, ImageTarget):
            src = target.src
            if src in cache:
                return cache[src].copy()
            size = target.natural_size.copy() if target.natural_size else self.host.measure(handle)
            if src and not size.is_empty:
                cache[src] = size.copy()
            return size
        if isinstance(target, MediaTarget) and target.video_size is not None:
            return target.video_size.copy()
        return self.host.measure(handle)

    def check_content_size(self, handle: Any, target: Target, target_type: TargetType) -> Size:
        """Final size for the content just attached.

        Numeric options win, ``auto`` axes are measured, scalable media is
        aspect-corrected, and zero measurements fall back to ``100%``.
        """
        opts = self.instance.options
        mode = self._mode
        auto = []

        if target_type.kind is TargetKind.OBJECT:
            size = self.object_size(handle, target, target_type)
        else:
            size = self.host.content_box_size()

        origin = size.copy() if mode is not None else None

        for axis in AXES:
            value = getattr(opts, axis)
            if is_numeric(value):
                size.set(axis, self._requested.get(axis, value))
            else:
                auto.append(axis)

        self.instance.scale = None
        if mode is not None:
            self.host.set_scaled(True)
            if mode is ScaleMode.NATURAL and not auto:
                # Containment alone keeps the ratio for fixed boxes
                self._mode = None
            else:
                if mode is ScaleMode.NATURAL and len(auto) == 1:
                    size.set(auto[0], AUTO)
                self.instance.scale = ScaleContext(origin, size.copy(), mode)
                scaled = self.scaled_dimensions()
                size = Size(scaled.width, scaled.height)
        elif "height" in auto:
            self.host.set_content_extent("height", None)
            size.height = self.host.content_box_size().height

        self.host.set_content_extent("width", None)
        self.host.set_content_extent("height", None)

        for axis in AXES:
            if size.get(axis) == 0:
                size.set(axis, FULL)

        logger.debug("[Geometry] Content size %s (auto: %s)", size, auto or "-")
        return size

    def scaled_dimensions(self) -> ScaledDimensions:
        """Two-pass aspect correction of the current ScaleContext."""
        ctx = self.instance.scale
        width, height = ctx.requested.width, ctx.requested.height
        origin = ctx.origin

        if _unresolved(width) and _unresolved(height):
            return ScaledDimensions(width, height)
        if not origin.is_numeric or origin.width <= 0 or origin.height <= 0:
            return ScaledDimensions(width, height)

        if _unresolved(width):
            width = (height / origin.height) * origin.width
        if _unresolved(height):
            height = (width / origin.width) * origin.height

        ratio = origin.width / origin.height
        previous = self.host.current_extent()

        self.host.apply_size(Size(width, height), False)
        actual = self.host.wrapper_size()
        ratio_width = actual.height * ratio
        ratio_height = actual.width / ratio

        width = min(width, ratio_width)
        height = min(height, ratio_height)

        self.host.apply_size(previous, False)
        return ScaledDimensions(width, height, actual.width, actual.height)

    # ── Applying sizes ───────────────────────────────────────────────

    def _settled(self, current: Any, target: Any) -> bool:
        if not (is_numeric(current) and is_numeric(target)):
            return False
        return abs(math.floor(current) - math.floor(target)) < self.config.resize_epsilon

    def set_dimensions(self, width: Extent = 0, height: Extent = 0,
                       animate: bool = False) -> Completion:
        """Move the overlay to *width* x *height*.

        Axes already within the resize threshold are not waited on; when both
        are, the resize completes synchronously and without animation.
        """
        current = self.host.current_extent()
        pending = [TRANSITION_PROPERTIES[axis] for axis, target in (("width", width), ("height", height))
                   if not self._settled(current.get(axis), target)]

        if animate and not pending:
            animate = False
        if animate:
            self.before_animate()

        watch = TransitionWatch(pending if animate else ())
        self.host.apply_size(Size(width, height), animate, watch if animate else None)
        logger.debug("[Geometry] set_dimensions %sx%s animate=%s waiting=%s",
                     width, height, animate, sorted(watch.pending) or "-")
        return watch.completion

    def on_window_resize(self) -> Optional[Completion]:
        """Recompute scaled media after the viewport changed."""
        ctx = self.instance.scale
        if self.instance.busy or ctx is None or ctx.mode is None:
            return None
        scaled = self.scaled_dimensions()
        width, height = scaled.width, scaled.height
        if width == ctx.origin.width and scaled.scaled_width is not None:
            width = scaled.scaled_width
        if height == ctx.origin.height and scaled.scaled_height is not None:
            height = scaled.scaled_height
        return self.set_dimensions(width, height)
