# showcase/core/host_protocol.py
# Type protocol for the surface a Showcase engine draws on
# Enables static type checking without inheritance (PEP 544)

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from PySide6.QtCore import QObject, Signal

from showcase.core.completion import Completion, TransitionWatch
from showcase.core.size import Size
from showcase.core.targets import MediaTarget, Target


class ImageRequest(QObject):
    """Pending image decode issued by a host.

    Created idle; the loader connects its slots and then calls start().
    Signals are delivered on the GUI thread.

    Signals:
        loaded(Size): natural size of the decoded image
        failed(Size): decode failed; the size is what the host could read (often 0x0)
    """
    loaded = Signal(object)
    failed = Signal(object)

    def __init__(self, src: str, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.src = src

    def start(self) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        """Best effort; a cancelled request may still emit (the loader ignores it)."""


class FragmentRequest(QObject):
    """Pending fetch of a markup fragment.

    Signals:
        finished(str): markup to inject (already reduced to the anchor, if any)
        failed(int, str): status code and reason
    """
    finished = Signal(str)
    failed = Signal(int, str)

    def __init__(self, url: str, anchor: Optional[str] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.url = url
        self.anchor = anchor

    def start(self) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        """Best effort, like ImageRequest.cancel()."""


@runtime_checkable
class HostSurface(Protocol):
    """
    Protocol for the overlay a Showcase engine renders into.

    The engine never touches widgets directly; everything visual goes
    through these calls. ``QtHostSurface`` implements it with PySide6
    widgets, tests use a scripted fake.
    """

    # --- Content ---

    def attach(self, target: Target, fade: bool) -> Any:
        """Insert *target* as the visible content; returns its handle."""
        ...

    def detach(self, handle: Any) -> None:
        ...

    def clear_content(self) -> None:
        ...

    def clone(self, target: Target, deep: bool) -> Target:
        """Copy of *target* safe to attach (deep copies carry attached data)."""
        ...

    def focus_input(self, handle: Any) -> None:
        """Focus the first text input inside the content, if any."""
        ...

    def confirm(self, handle: Any) -> None:
        """Trigger the content's confirm action (Enter key)."""
        ...

    # --- Measurement ---

    def measure(self, handle: Any) -> Size:
        """Natural rendered size of an attached handle."""
        ...

    def content_box_size(self) -> Size:
        ...

    def wrapper_size(self) -> Size:
        """Actual size of the wrapper after the viewport clamps it."""
        ...

    def current_extent(self) -> Size:
        """Current max-width / max-height (None on an axis that was never set)."""
        ...

    def viewport_size(self) -> Size:
        ...

    def minimum_extent(self, axis: str) -> float:
        ...

    def set_minimum_extent(self, axis: str, value: Optional[float]) -> None:
        """Lower the content's minimum on *axis*; None restores the default."""
        ...

    def set_content_extent(self, axis: str, value: Optional[float]) -> None:
        """Pin the content box on *axis*; None lets it size naturally."""
        ...

    # --- Sizing ---

    def apply_size(self, size: Size, animate: bool,
                   watch: Optional[TransitionWatch] = None) -> None:
        """Set max-width / max-height; report each animated property to *watch*."""
        ...

    def set_scaled(self, scaled: bool) -> None:
        """Contain the content inside the wrapper (aspect-preserving media)."""
        ...

    # --- Requests ---

    def load_image(self, src: str) -> ImageRequest:
        ...

    def fetch_fragment(self, url: str, anchor: Optional[str]) -> FragmentRequest:
        ...

    def create_media(self, src: str, mime: str, info: Optional[str]) -> MediaTarget:
        ...

    # --- Chrome ---

    def set_enabled(self, enabled: bool) -> None:
        ...

    def set_loading(self, loading: bool) -> None:
        ...

    def set_chrome_visible(self, close: bool, nav: bool, info: bool) -> None:
        ...

    def set_nav_visible(self, enabled: bool) -> None:
        ...

    def set_info(self, text: Optional[str]) -> None:
        ...

    def set_titles(self, control_text: Dict[str, str]) -> None:
        ...

    def set_fade(self, fade: bool) -> None:
        ...

    def set_background(self, visible: bool) -> None:
        """Panel background behind object content while it is not yet shown."""
        ...

    def fade_out(self) -> Completion:
        ...

    def pause_media(self) -> None:
        ...

    def show_expire_progress(self, seconds: float) -> None:
        """Animate the expiry bar over *seconds*; 0 stops and hides it."""
        ...
