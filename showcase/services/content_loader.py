# showcase/services/content_loader.py
# Version 01.00.00.00 dated 20261019
"""
Content loader: turns the current Target into attached, measured content.

Dispatch (first match wins):
- data     links and unreadable images: decode, fetch or synthesize media
- object   readable images go straight to geometry, media waits for data
- element  attached as-is (cloned)

Every asynchronous continuation is guarded by the load generation captured
when load() started, so results that arrive after a close, an abort or a
newer load are dropped.
"""

import logging
import re
from typing import Any, Callable, Optional, Tuple

from showcase.core.completion import Completion
from showcase.core.errors import ErrorChannel
from showcase.core.events import NotificationChannel
from showcase.core.size import Size
from showcase.core.state import Instance, noop
from showcase.core.targets import (
    HAVE_CURRENT_DATA, ImageTarget, MarkupTarget, MediaTarget, MessageTarget,
    TargetKind, TargetSubKind, is_scalable, source_of,
)
from showcase.core.timers import EXPIRE, RETRY, TimerSlots
from showcase.services.geometry_engine import GeometryEngine
from showcase.utils.qt_guards import connect_guarded, make_guarded_slot

logger = logging.getLogger(__name__)

_EXTENSION = re.compile(r"\.([0-9a-z]+)$", re.IGNORECASE)


def split_source(src: str) -> Tuple[str, Optional[str]]:
    """``page.html#part`` -> (``page.html``, ``part``)."""
    if "#" in src:
        url, anchor = src.split("#", 1)
        return url, anchor or None
    return src, None


def _path_of(url: str) -> str:
    """URL without query string, for extension matching."""
    return url.split("?", 1)[0]


class ContentLoader:
    """Classifies, fetches and attaches the current target of the Instance."""

    def __init__(self, host, instance: Instance, timers: TimerSlots,
                 errors: ErrorChannel, notifier: NotificationChannel,
                 geometry: GeometryEngine, config):
        self.host = host
        self.instance = instance
        self.timers = timers
        self.errors = errors
        self.notifier = notifier
        self.geometry = geometry
        self.config = config
        # Lifecycle hooks, wired by the engine
        self.mark_busy: Callable[[], Any] = noop
        self.reset: Callable[[bool], Any] = noop
        self.on_ready: Callable[[], Any] = noop
        self._request = None

    # ── Public API ───────────────────────────────────────────────────

    def load(self) -> None:
        """Start loading the current target (re-entrant for retries and video)."""
        inst = self.instance
        self.timers.clear(RETRY)
        self.timers.clear(EXPIRE)
        self._drop_request()
        self.mark_busy()
        generation = inst.next_generation()

        target = inst.current_target
        target_type = inst.target_type
        inst.info_data = target.info
        logger.debug("[ContentLoader] Loading %s (gen %d)", target_type, generation)
        # Cleared before dispatch: an unanimated load completes synchronously
        inst.new_load = False

        if target_type.kind is TargetKind.DATA:
            self._load_data(generation)
        elif target_type.sub_kind is TargetSubKind.MEDIA:
            self._load_media(target, generation)
        else:
            self.prepare(clone=True)

    # ── Data targets ─────────────────────────────────────────────────

    def _load_data(self, generation: int) -> None:
        inst = self.instance
        opts = inst.options
        target = inst.current_target
        src = source_of(target)
        url, anchor = split_source(src)
        path = _path_of(url)

        if inst.target_type.sub_kind is TargetSubKind.IMAGE or opts.image_pattern.search(path):
            cached = inst.size_cache.get(url)
            if cached is not None:
                logger.debug("[ContentLoader] Size cache hit for %s", url)
                inst.replace_current(ImageTarget(url, cached.copy(), info=target.info))
                self.prepare(clone=False)
                return
            self._request_image(url, generation)
        elif opts.video_pattern.search(path):
            self._load_video(url)
        else:
            self._request_fragment(url, anchor, generation)

    def _request_image(self, src: str, generation: int) -> None:
        request = self.host.load_image(src)
        self._request = request
        connect_guarded(request.loaded, self.instance,
                        lambda size: self._on_image_loaded(src, size),
                        generation=generation, name="image_loaded")
        connect_guarded(request.failed, self.instance,
                        lambda size: self._on_image_failed(src, size, generation),
                        generation=generation, name="image_failed")
        logger.debug("[ContentLoader] Requesting image %s", src)
        request.start()

    def _on_image_loaded(self, src: str, size: Size) -> None:
        self._request = None
        inst = self.instance
        if not size.is_empty:
            inst.size_cache[src] = size.copy()
        inst.replace_current(ImageTarget(src, size.copy(), info=inst.current_target.info))
        self.prepare(clone=False)

    def _on_image_failed(self, src: str, size: Optional[Size], generation: int) -> None:
        self._request = None
        inst = self.instance
        if (size is None or size.is_empty) and inst.image_retries < 1:
            inst.image_retries += 1
            logger.info("[ContentLoader] Image %s reported 0x0, retrying in %d ms",
                        src, self.config.image_retry_ms)
            self.timers.arm(RETRY, self.config.image_retry_ms,
                            make_guarded_slot(inst, self.load, generation=generation,
                                              name="image_retry"))
            return
        self._fail("DATALOAD", src)

    def _load_video(self, src: str) -> None:
        inst = self.instance
        match = _EXTENSION.search(_path_of(src))
        mime = f"video/{match.group(1).lower() if match else 'webm'}"
        media = self.host.create_media(src, mime, inst.current_target.info)
        logger.debug("[ContentLoader] Synthesized %s media for %s", mime, src)
        inst.replace_current(media)
        self.load()

    def _request_fragment(self, url: str, anchor: Optional[str], generation: int) -> None:
        request = self.host.fetch_fragment(url, anchor)
        self._request = request
        connect_guarded(request.finished, self.instance, self._on_fragment_loaded,
                        generation=generation, name="fragment_loaded")
        connect_guarded(request.failed, self.instance,
                        lambda status, reason: self._fail("DATALOAD", f"{url}: {status} {reason}"),
                        generation=generation, name="fragment_failed")
        logger.debug("[ContentLoader] Fetching fragment %s (anchor=%s)", url, anchor)
        request.start()

    def _on_fragment_loaded(self, markup: str) -> None:
        self._request = None
        inst = self.instance
        inst.replace_current(MarkupTarget(markup, info=inst.current_target.info))
        self.prepare(clone=False)

    # ── Media targets ────────────────────────────────────────────────

    def _load_media(self, media: MediaTarget, generation: int) -> None:
        if media.ready_state >= HAVE_CURRENT_DATA:
            self.prepare(clone=True)
            return
        if media.error:
            self._fail("MEDIALOAD", media.error)
            return

        signals = media.signals
        connections = []

        def once(slot):
            def _fire(*args):
                for signal, wrapped in connections:
                    try:
                        signal.disconnect(wrapped)
                    except (RuntimeError, TypeError):
                        pass
                slot(*args)
            return _fire

        connections.append((signals.loaded_data, connect_guarded(
            signals.loaded_data, self.instance, once(lambda: self.prepare(clone=True)),
            generation=generation, name="media_loaded")))
        connections.append((signals.failed, connect_guarded(
            signals.failed, self.instance, once(lambda message: self._fail("MEDIALOAD", message)),
            generation=generation, name="media_failed")))
        logger.debug("[ContentLoader] Waiting for media data: %s", media.src)

    # ── Attach and size ──────────────────────────────────────────────

    def prepare(self, clone: bool = True) -> Optional[Completion]:
        """Attach the current target, size the overlay and complete the load."""
        inst = self.instance
        generation = inst.generation
        try:
            return self._prepare(clone, generation)
        except Exception as e:
            logger.exception("[ContentLoader] Preparing content failed")
            self._fail(e, None)
            return None

    def _prepare(self, clone: bool, generation: int) -> Completion:
        inst = self.instance
        opts = inst.options

        if inst.defer_reset:
            self.reset(False)
            inst.defer_reset = False

        target = inst.current_target
        if clone:
            target = self.host.clone(target, opts.clone_data)
        handle = self.host.attach(target, inst.fade_content)
        inst.current_content = handle

        info = inst.info_data or opts.info_content
        inst.info_enabled = bool(info)
        self.host.set_info(info or None)

        self.geometry.prepare(is_scalable(target))
        size = self.geometry.check_content_size(handle, target, inst.target_type)

        self.host.set_loading(False)
        self.host.set_background(inst.target_type.kind is TargetKind.OBJECT)

        self.notifier.notify("resize", {"width": size.width, "height": size.height})
        completion = self.geometry.set_dimensions(size.width, size.height, opts.animate)
        completion.then(make_guarded_slot(inst, lambda _: self.on_ready(),
                                          generation=generation, name="load_complete")) \
            .catch(self.errors.capture)
        return completion

    # ── Failure ──────────────────────────────────────────────────────

    def _fail(self, error: Any, detail: Any) -> None:
        # An error message that cannot be shown must not trigger another one
        showing_error = isinstance(self.instance.current_target, MessageTarget)
        self.errors.report(error, detail, self_host=not showing_error)

    def _drop_request(self) -> None:
        request, self._request = self._request, None
        if request is not None:
            request.cancel()
