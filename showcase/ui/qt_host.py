# showcase/ui/qt_host.py
# Version 01.00.00.00 dated 20261019
"""
QtHostSurface - PySide6 overlay implementing the Showcase host contract.

Widget tree::

    QtHostSurface (covers the parent window, dimmed background)
    ├── nav_left
    ├── wrapper            max-width animates here
    │   ├── close_button
    │   ├── expire_bar
    │   ├── content_wrapper  max-height animates here
    │   │   └── content      holds the attached handle
    │   └── info_label
    └── nav_right

Image decodes and fragment fetches run in QThreadPool workers; their
results come back through request objects living on the GUI thread.
"""

import copy
import os
from typing import Any, Dict, Optional

from PySide6.QtCore import (
    QEasingCurve, QEvent, QObject, QPropertyAnimation, QSize, Qt, QThreadPool, QUrl, Slot,
)
from PySide6.QtGui import QGuiApplication, QImage, QPainter, QPixmap
from PySide6.QtWidgets import (
    QFrame, QGraphicsOpacityEffect, QHBoxLayout, QLabel, QLineEdit, QPlainTextEdit,
    QProgressBar, QPushButton, QSizePolicy, QTextEdit, QVBoxLayout, QWidget,
)

from showcase.config.showcase_config import is_numeric
from showcase.core.completion import Completion, TransitionWatch
from showcase.core.host_protocol import FragmentRequest, ImageRequest
from showcase.core.size import Size
from showcase.core.targets import (
    ElementTarget, ImageTarget, MarkupTarget, MediaTarget, MessageTarget, Target,
)
from showcase.logging_config import get_logger
from showcase.services.geometry_engine import MAX_HEIGHT, MAX_WIDTH
from showcase.workers.fragment_worker import FragmentWorker
from showcase.workers.image_load_worker import ImageLoadWorker

logger = get_logger(__name__)

QWIDGETSIZE_MAX = 16777215
CONFIRM_BUTTON = "showcaseConfirm"
DEFAULT_MINIMUM = {"width": 160, "height": 90}
NAV_SPACE = 64  # horizontal room kept for the navigation arrows
CHROME_SPACE = 72  # vertical room kept for close button, expiry bar and info

_KEYS = {
    Qt.Key_Escape: "escape",
    Qt.Key_Left: "arrowleft",
    Qt.Key_Right: "arrowright",
    Qt.Key_Return: "enter",
    Qt.Key_Enter: "enter",
}


class QtImageRequest(ImageRequest):
    """Image decode running in a pool worker."""

    def __init__(self, src: str, pool: QThreadPool, images: Dict[str, QImage],
                 parent: Optional[QObject] = None):
        super().__init__(src, parent)
        self._pool = pool
        self._images = images
        self._worker: Optional[ImageLoadWorker] = None
        self._signals = None

    def start(self) -> None:
        worker = ImageLoadWorker(self.src)
        worker.signals.loaded.connect(self._on_decoded)
        worker.signals.failed.connect(self._on_failed)
        self._worker = worker
        self._signals = worker.signals  # keep alive past the runnable
        self._pool.start(worker)

    def cancel(self) -> None:
        if self._worker is not None:
            self._worker.cancel()

    @Slot(str, object, object)
    def _on_decoded(self, src: str, image: QImage, natural: Size) -> None:
        # Only one load is in flight, so only the latest decode is kept
        self._images.clear()
        self._images[src] = image
        self.loaded.emit(natural)
        self.deleteLater()

    @Slot(str, object)
    def _on_failed(self, src: str, natural: Size) -> None:
        self.failed.emit(natural)
        self.deleteLater()


class QtFragmentRequest(FragmentRequest):
    """Markup fetch running in a pool worker."""

    def __init__(self, url: str, anchor: Optional[str], pool: QThreadPool,
                 parent: Optional[QObject] = None):
        super().__init__(url, anchor, parent)
        self._pool = pool
        self._worker: Optional[FragmentWorker] = None
        self._signals = None

    def start(self) -> None:
        worker = FragmentWorker(self.url, self.anchor)
        worker.signals.finished.connect(self._on_finished)
        worker.signals.failed.connect(self._on_failed)
        self._worker = worker
        self._signals = worker.signals
        self._pool.start(worker)

    def cancel(self) -> None:
        if self._worker is not None:
            self._worker.cancel()

    @Slot(str)
    def _on_finished(self, markup: str) -> None:
        self.finished.emit(markup)
        self.deleteLater()

    @Slot(int, str)
    def _on_failed(self, status: int, reason: str) -> None:
        self.failed.emit(status, reason)
        self.deleteLater()


class ContainedImage(QWidget):
    """Paints a pixmap scaled to fit its rect, keeping the aspect ratio."""

    def __init__(self, pixmap: QPixmap, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._pixmap = pixmap
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumSize(1, 1)

    def sizeHint(self) -> QSize:
        return self._pixmap.size()

    def paintEvent(self, event):
        if self._pixmap.isNull():
            return
        scaled = self._pixmap.size().scaled(self.size(), Qt.KeepAspectRatio)
        x = (self.width() - scaled.width()) // 2
        y = (self.height() - scaled.height()) // 2
        painter = QPainter(self)
        painter.setRenderHint(QPainter.SmoothPixmapTransform)
        painter.drawPixmap(x, y, scaled.width(), scaled.height(), self._pixmap)
        painter.end()


class QtHostSurface(QWidget):
    """Modal overlay drawn above *parent* (or as a frameless top-level window)."""

    def __init__(self, parent: Optional[QWidget] = None, animate_ms: int = 400, fade_ms: int = 300):
        super().__init__(parent)
        self.setObjectName("showcaseOverlay")
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setStyleSheet("#showcaseOverlay { background: rgba(0, 0, 0, 170); }")
        self.setFocusPolicy(Qt.StrongFocus)
        if parent is None:
            self.setWindowFlags(Qt.FramelessWindowHint | Qt.Tool)
        else:
            parent.installEventFilter(self)

        self.animate_ms = animate_ms
        self.fade_ms = fade_ms
        self._engine = None
        self._pool = QThreadPool.globalInstance()
        self._images: Dict[str, QImage] = {}
        self._extent = Size(None, None)
        self._pinned: Dict[str, Optional[float]] = {"width": None, "height": None}
        self._handle: Optional[QWidget] = None
        self._owned = False
        self._media: Optional[MediaTarget] = None
        self._watch: Optional[TransitionWatch] = None
        self._animations: Dict[str, QPropertyAnimation] = {}
        self._nav_enabled = False
        self._fade = True
        self._fade_in_pending = False
        # Strong references to running one-off animations
        self._fade_in_animation: Optional[QPropertyAnimation] = None
        self._fade_out_animation: Optional[QPropertyAnimation] = None
        self._expire_animation: Optional[QPropertyAnimation] = None

        self._build()
        self.hide()

    # ── Construction ─────────────────────────────────────────────────

    def _build(self) -> None:
        row = QHBoxLayout(self)
        row.setContentsMargins(8, 8, 8, 8)

        self.nav_left = QPushButton("‹")
        self.nav_right = QPushButton("›")
        for button, direction in ((self.nav_left, "left"), (self.nav_right, "right")):
            button.setFixedWidth(NAV_SPACE // 2)
            button.setFocusPolicy(Qt.NoFocus)
            button.clicked.connect(lambda _=False, d=direction: self._engine and self._engine.navigate(d))
            button.hide()

        self.wrapper = QFrame()
        self.wrapper.setObjectName("showcaseWrapper")
        self.wrapper.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        column = QVBoxLayout(self.wrapper)
        column.setContentsMargins(0, 0, 0, 0)
        column.setSpacing(0)

        self.close_button = QPushButton("×")
        self.close_button.setFocusPolicy(Qt.NoFocus)
        self.close_button.clicked.connect(lambda: self._engine and self._engine.disable())
        self.close_button.hide()

        self.expire_bar = QProgressBar()
        self.expire_bar.setRange(0, 1000)
        self.expire_bar.setTextVisible(False)
        self.expire_bar.setFixedHeight(3)
        self.expire_bar.hide()

        self.content_wrapper = QFrame()
        self.content_wrapper.setObjectName("showcaseContentWrapper")
        inner = QVBoxLayout(self.content_wrapper)
        inner.setContentsMargins(0, 0, 0, 0)
        self.content = QWidget()
        self.content_layout = QVBoxLayout(self.content)
        self.content_layout.setContentsMargins(0, 0, 0, 0)
        inner.addWidget(self.content)

        self.loading_label = QLabel("…")
        self.loading_label.setAlignment(Qt.AlignCenter)
        self.loading_label.hide()

        self.info_label = QLabel()
        self.info_label.setWordWrap(True)
        self.info_label.setTextFormat(Qt.RichText)
        self.info_label.hide()

        column.addWidget(self.close_button, 0, Qt.AlignRight)
        column.addWidget(self.expire_bar)
        column.addWidget(self.loading_label)
        column.addWidget(self.content_wrapper, 1)
        column.addWidget(self.info_label)

        row.addWidget(self.nav_left)
        row.addStretch(1)
        row.addWidget(self.wrapper, 0, Qt.AlignCenter)
        row.addStretch(1)
        row.addWidget(self.nav_right)

        self.wrapper.setMaximumWidth(0)
        self.content_wrapper.setMaximumHeight(0)
        self.set_background(True)

    def bind_engine(self, engine) -> None:
        """Called by init_showcase(); routes user input to *engine*."""
        self._engine = engine
        self.animate_ms = engine.config.animate_ms
        self.fade_ms = engine.config.fade_ms

    # ── Content ──────────────────────────────────────────────────────

    def attach(self, target: Target, fade: bool) -> QWidget:
        if self._handle is not None:
            self.detach(self._handle)
        handle = self._make_widget(target)
        self._handle = handle
        self.content_layout.addWidget(handle)
        handle.show()
        self._fade_in_pending = fade
        if fade:
            effect = QGraphicsOpacityEffect(handle)
            effect.setOpacity(0.0)
            handle.setGraphicsEffect(effect)
        return handle

    def _make_widget(self, target: Target) -> QWidget:
        self._owned = True
        self._media = None
        if isinstance(target, ImageTarget):
            # Decoded pixels are handed over once; a cached-size reload reads from src
            image = self._images.pop(target.src, None)
            pixmap = QPixmap.fromImage(image) if image is not None else QPixmap(target.src)
            return ContainedImage(pixmap)
        if isinstance(target, MediaTarget):
            self._media = target
            if target.mime.startswith("audio/"):
                label = QLabel(os.path.basename(target.src))
                label.setAlignment(Qt.AlignCenter)
                return label
            from PySide6.QtMultimediaWidgets import QVideoWidget
            video = QVideoWidget()
            if target.player is not None:
                target.player.setVideoOutput(video)
                target.player.play()
            return video
        if isinstance(target, MarkupTarget):
            label = QLabel(target.markup)
            label.setTextFormat(Qt.RichText)
            label.setWordWrap(True)
            label.setOpenExternalLinks(True)
            label.setMargin(12)
            return label
        if isinstance(target, MessageTarget):
            return self._make_message(target.text)
        if isinstance(target, ElementTarget) and isinstance(target.content, QWidget):
            self._owned = False
            return target.content
        content = target.content if isinstance(target, ElementTarget) else ""
        label = QLabel(str(content or ""))
        label.setWordWrap(True)
        label.setMargin(12)
        return label

    def _make_message(self, text: str) -> QWidget:
        box = QWidget()
        layout = QVBoxLayout(box)
        label = QLabel(text)
        label.setWordWrap(True)
        label.setTextFormat(Qt.PlainText)
        ok = QPushButton("OK")
        ok.setObjectName(CONFIRM_BUTTON)
        ok.clicked.connect(lambda: self._engine and self._engine.disable())
        layout.addWidget(label)
        layout.addWidget(ok, 0, Qt.AlignRight)
        return box

    def detach(self, handle: Any) -> None:
        if handle is None:
            return
        self.content_layout.removeWidget(handle)
        handle.setGraphicsEffect(None)
        handle.hide()
        handle.setParent(None)
        if self._owned:
            handle.deleteLater()
        if handle is self._handle:
            self._handle = None

    def clear_content(self) -> None:
        if self._media is not None and self._media.player is not None:
            self._media.player.stop()
        self.detach(self._handle)

    def clone(self, target: Target, deep: bool) -> Target:
        if isinstance(target, MediaTarget):
            return target
        if isinstance(target, ElementTarget) and isinstance(target.content, QWidget):
            # Widgets cannot be copied; the element is moved into the overlay
            return target
        return copy.deepcopy(target) if deep else copy.copy(target)

    def focus_input(self, handle: Any) -> None:
        if isinstance(handle, (QLineEdit, QTextEdit, QPlainTextEdit)):
            handle.setFocus()
            return
        for kind in (QLineEdit, QTextEdit, QPlainTextEdit):
            field = handle.findChild(kind)
            if field is not None:
                field.setFocus()
                return
        self.setFocus()

    def confirm(self, handle: Any) -> None:
        button = handle.findChild(QPushButton, CONFIRM_BUTTON)
        if button is not None:
            button.click()

    # ── Measurement ──────────────────────────────────────────────────

    def measure(self, handle: Any) -> Size:
        if isinstance(handle, QWidget):
            hint = handle.sizeHint()
            return Size(max(hint.width(), 0), max(hint.height(), 0))
        return Size(0, 0)

    def content_box_size(self) -> Size:
        if self._handle is None:
            return Size(0, 0)
        natural = self.measure(self._handle)
        width = self._pinned["width"] if self._pinned["width"] is not None else natural.width
        if self._pinned["height"] is not None:
            height = self._pinned["height"]
        elif self._handle.hasHeightForWidth():
            height = self._handle.heightForWidth(int(width))
        else:
            height = natural.height
        return Size(max(width, self.content.minimumWidth()), max(height, self.content.minimumHeight()))

    def _available(self) -> Size:
        viewport = self.viewport_size()
        return Size(max(viewport.width - NAV_SPACE - 16, 0), max(viewport.height - CHROME_SPACE - 16, 0))

    def wrapper_size(self) -> Size:
        available = self._available()
        width = self._extent.width if is_numeric(self._extent.width) else available.width
        height = self._extent.height if is_numeric(self._extent.height) else available.height
        return Size(min(width, available.width), min(height, available.height))

    def current_extent(self) -> Size:
        return self._extent.copy()

    def viewport_size(self) -> Size:
        parent = self.parentWidget()
        if parent is not None:
            return Size(parent.width(), parent.height())
        screen = QGuiApplication.primaryScreen()
        if screen is None:
            return Size(self.width(), self.height())
        available = screen.availableSize()
        return Size(available.width(), available.height())

    def minimum_extent(self, axis: str) -> float:
        return self.content.minimumWidth() if axis == "width" else self.content.minimumHeight()

    def set_minimum_extent(self, axis: str, value: Optional[float]) -> None:
        value = DEFAULT_MINIMUM[axis] if value is None else int(value)
        if axis == "width":
            self.content.setMinimumWidth(value)
        else:
            self.content.setMinimumHeight(value)

    def set_content_extent(self, axis: str, value: Optional[float]) -> None:
        self._pinned[axis] = value

    # ── Sizing ───────────────────────────────────────────────────────

    def apply_size(self, size: Size, animate: bool, watch: Optional[TransitionWatch] = None) -> None:
        self._stop_animations()
        self._extent = Size(size.width if is_numeric(size.width) else None,
                            size.height if is_numeric(size.height) else None)
        self._watch = watch if animate else None

        for axis, prop, widget, name in (
            ("width", MAX_WIDTH, self.wrapper, b"maximumWidth"),
            ("height", MAX_HEIGHT, self.content_wrapper, b"maximumHeight"),
        ):
            value = size.get(axis)
            end = int(value) if is_numeric(value) else QWIDGETSIZE_MAX
            if animate and watch is not None and prop in watch.pending:
                start = widget.maximumWidth() if axis == "width" else widget.maximumHeight()
                if start >= QWIDGETSIZE_MAX:
                    start = widget.width() if axis == "width" else widget.height()
                animation = QPropertyAnimation(widget, name, self)
                animation.setDuration(self.animate_ms)
                animation.setStartValue(start)
                animation.setEndValue(end)
                animation.setEasingCurve(QEasingCurve.InOutCubic)
                animation.finished.connect(lambda p=prop, w=watch: w.observe(p))
                self._animations[prop] = animation
                animation.start()
            elif axis == "width":
                widget.setMaximumWidth(end)
            else:
                widget.setMaximumHeight(end)

    def _stop_animations(self) -> None:
        animations, self._animations = self._animations, {}
        for animation in animations.values():
            animation.stop()
        # A superseded resize must not leave its waiter hanging
        if self._watch is not None and not self._watch.settled:
            self._watch.flush()
        self._watch = None

    def set_scaled(self, scaled: bool) -> None:
        self.content.setProperty("scaled", scaled)

    # ── Requests ─────────────────────────────────────────────────────

    def load_image(self, src: str) -> ImageRequest:
        return QtImageRequest(src, self._pool, self._images, self)

    def fetch_fragment(self, url: str, anchor: Optional[str]) -> FragmentRequest:
        return QtFragmentRequest(url, anchor, self._pool, self)

    def create_media(self, src: str, mime: str, info: Optional[str]) -> MediaTarget:
        from PySide6.QtMultimedia import QAudioOutput, QMediaMetaData, QMediaPlayer

        player = QMediaPlayer(self)
        audio = QAudioOutput(player)
        player.setAudioOutput(audio)
        media = MediaTarget(src, mime, info=info, player=player)

        def _on_status(status):
            if status in (QMediaPlayer.MediaStatus.LoadedMedia, QMediaPlayer.MediaStatus.BufferedMedia) and media.ready_state < 2:
                resolution = player.metaData().value(QMediaMetaData.Key.Resolution)
                size = None
                if isinstance(resolution, QSize) and not resolution.isEmpty():
                    size = Size(resolution.width(), resolution.height())
                media.mark_loaded(size)
            elif status == QMediaPlayer.MediaStatus.InvalidMedia:
                media.mark_failed(player.errorString())

        player.mediaStatusChanged.connect(_on_status)
        player.errorOccurred.connect(lambda _error, message: media.mark_failed(message))
        url = QUrl.fromLocalFile(os.path.abspath(src)) if os.path.exists(src) else QUrl(src)
        player.setSource(url)
        return media

    # ── Chrome ───────────────────────────────────────────────────────

    def set_enabled(self, enabled: bool) -> None:
        if not enabled:
            self.hide()
            return
        self.setGraphicsEffect(None)
        parent = self.parentWidget()
        if parent is not None:
            self.setGeometry(parent.rect())
        else:
            size = self.viewport_size()
            self.resize(int(size.width), int(size.height))
        self.show()
        self.raise_()
        self.setFocus()

    def set_loading(self, loading: bool) -> None:
        self.loading_label.setVisible(loading)
        if self._handle is not None:
            effect = self._handle.graphicsEffect()
            if loading:
                if effect is None:
                    effect = QGraphicsOpacityEffect(self._handle)
                    self._handle.setGraphicsEffect(effect)
                effect.setOpacity(0.3)
            elif effect is not None:
                if self._fade_in_pending:
                    self._fade_in(effect)
                else:
                    effect.setOpacity(1.0)

    def _fade_in(self, effect: QGraphicsOpacityEffect) -> None:
        self._fade_in_pending = False
        animation = QPropertyAnimation(effect, b"opacity", self)
        animation.setDuration(self.fade_ms)
        animation.setStartValue(effect.opacity())
        animation.setEndValue(1.0)
        animation.setEasingCurve(QEasingCurve.OutCubic)
        self._fade_in_animation = animation
        animation.start()

    def set_chrome_visible(self, close: bool, nav: bool, info: bool) -> None:
        self.close_button.setVisible(close)
        self.nav_left.setVisible(nav and self._nav_enabled)
        self.nav_right.setVisible(nav and self._nav_enabled)
        self.info_label.setVisible(info and bool(self.info_label.text()))

    def set_nav_visible(self, enabled: bool) -> None:
        self._nav_enabled = enabled
        if not enabled:
            self.nav_left.hide()
            self.nav_right.hide()

    def set_info(self, text: Optional[str]) -> None:
        self.info_label.setText(text or "")
        if not text:
            self.info_label.hide()

    def set_titles(self, control_text: Dict[str, str]) -> None:
        self.close_button.setToolTip(control_text.get("close", ""))
        self.nav_left.setToolTip(control_text.get("nav_left", ""))
        self.nav_right.setToolTip(control_text.get("nav_right", ""))

    def set_fade(self, fade: bool) -> None:
        self._fade = fade

    def set_background(self, visible: bool) -> None:
        color = "#ffffff" if visible else "transparent"
        self.content_wrapper.setStyleSheet(f"#showcaseContentWrapper {{ background: {color}; }}")

    def fade_out(self) -> Completion:
        if not self._fade or self.fade_ms <= 0:
            return Completion.resolved(name="fade_out")
        done = Completion("fade_out")
        effect = QGraphicsOpacityEffect(self)
        effect.setOpacity(1.0)
        self.setGraphicsEffect(effect)
        animation = QPropertyAnimation(effect, b"opacity", self)
        animation.setDuration(self.fade_ms)
        animation.setStartValue(1.0)
        animation.setEndValue(0.0)
        animation.setEasingCurve(QEasingCurve.InCubic)
        animation.finished.connect(lambda: done.resolve())
        self._fade_out_animation = animation
        animation.start()
        return done

    def pause_media(self) -> None:
        if self._media is not None and self._media.player is not None:
            self._media.player.pause()

    def show_expire_progress(self, seconds: float) -> None:
        if self._expire_animation is not None:
            self._expire_animation.stop()
        if seconds <= 0:
            self.expire_bar.hide()
            return
        self.expire_bar.setValue(1000)
        self.expire_bar.show()
        animation = QPropertyAnimation(self.expire_bar, b"value", self)
        animation.setDuration(int(seconds * 1000))
        animation.setStartValue(1000)
        animation.setEndValue(0)
        self._expire_animation = animation
        animation.start()

    # ── Input ────────────────────────────────────────────────────────

    def keyPressEvent(self, event):
        key = _KEYS.get(event.key())
        if key is not None and self._engine is not None:
            focus = QGuiApplication.focusObject()
            multiline = isinstance(focus, (QTextEdit, QPlainTextEdit))
            in_input = multiline or isinstance(focus, QLineEdit)
            if self._engine.handle_key(key, in_input, multiline):
                event.accept()
                return
        super().keyPressEvent(event)

    def mousePressEvent(self, event):
        if self._engine is not None and not self.wrapper.geometry().contains(event.position().toPoint()):
            self._engine.on_boundary_click()
        super().mousePressEvent(event)

    def eventFilter(self, watched, event):
        if watched is self.parentWidget() and event.type() == QEvent.Resize and self.isVisible():
            self.setGeometry(watched.rect())
            if self._engine is not None:
                self._engine.on_window_resize()
        return super().eventFilter(watched, event)
