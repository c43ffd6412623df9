# showcase/core/targets.py
# Version 01.00.00.00 dated 20261019
"""
Content references a Showcase can present, and their classification.

Classification drives the load pipeline:

    data      a link, or an image that cannot be displayed as-is
    object    a readable embedded image or a media element
    element   anything else, attached as content directly
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from PySide6.QtCore import QObject, Signal

from showcase.core.size import Size

# Media readiness levels (same numbering as HTMLMediaElement.readyState)
HAVE_NOTHING = 0
HAVE_CURRENT_DATA = 2


class TargetKind(str, Enum):
    DATA = "data"
    OBJECT = "object"
    ELEMENT = "element"


class TargetSubKind(str, Enum):
    EXTERNAL = "external"
    IMAGE = "image"
    MEDIA = "media"


@dataclass(frozen=True)
class TargetType:
    kind: TargetKind
    sub_kind: Optional[TargetSubKind] = None

    def matches(self, name: str) -> bool:
        """True when *name* is either the kind or the sub kind."""
        return self.kind.value == name or (self.sub_kind is not None and self.sub_kind.value == name)

    def __str__(self):
        return self.kind.value if self.sub_kind is None else f"{self.kind.value}/{self.sub_kind.value}"


@dataclass
class Target:
    info: Optional[str] = field(default=None, kw_only=True)


@dataclass
class LinkTarget(Target):
    href: str = ""


@dataclass
class ImageTarget(Target):
    src: str = ""
    natural_size: Optional[Size] = None

    @property
    def readable(self) -> bool:
        """Decoded with a non-zero natural size."""
        size = self.natural_size
        return size is not None and not size.is_empty


class MediaSignals(QObject):
    """Readiness notifications of a media target.

    Signals:
        loaded_data(): enough data to render the current frame
        failed(str): the media could not be loaded
    """
    loaded_data = Signal()
    failed = Signal(str)


@dataclass
class MediaTarget(Target):
    src: str = ""
    mime: str = ""
    ready_state: int = HAVE_NOTHING
    error: Optional[str] = None
    video_size: Optional[Size] = None
    player: Any = field(default=None, repr=False, compare=False)
    signals: MediaSignals = field(default_factory=MediaSignals, repr=False, compare=False)

    def mark_loaded(self, video_size: Optional[Size] = None) -> None:
        if video_size is not None:
            self.video_size = video_size
        self.ready_state = max(self.ready_state, HAVE_CURRENT_DATA)
        self.signals.loaded_data.emit()

    def mark_failed(self, message: str) -> None:
        self.error = message or "media error"
        self.signals.failed.emit(self.error)


@dataclass
class ElementTarget(Target):
    content: Any = None


@dataclass
class MarkupTarget(Target):
    markup: str = ""


@dataclass
class MessageTarget(Target):
    text: str = ""


def classify(target: Target) -> TargetType:
    if isinstance(target, LinkTarget):
        return TargetType(TargetKind.DATA, TargetSubKind.EXTERNAL)
    if isinstance(target, ImageTarget):
        if target.readable:
            return TargetType(TargetKind.OBJECT, TargetSubKind.IMAGE)
        return TargetType(TargetKind.DATA, TargetSubKind.IMAGE)
    if isinstance(target, MediaTarget):
        return TargetType(TargetKind.OBJECT, TargetSubKind.MEDIA)
    return TargetType(TargetKind.ELEMENT)


def is_scalable(target: Target) -> bool:
    """Images and video keep their aspect ratio; audio and markup do not."""
    if isinstance(target, ImageTarget):
        return True
    if isinstance(target, MediaTarget):
        return not target.mime.startswith("audio/")
    return False


def source_of(target: Target) -> str:
    if isinstance(target, LinkTarget):
        return target.href
    return getattr(target, "src", "")
