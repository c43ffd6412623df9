# showcase/core/capabilities.py
# Capability protocols the Showcase facade is composed from
# Enables static type checking without inheritance (PEP 544)

from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

from showcase.config.showcase_config import Extent, ShowcaseOptions
from showcase.core.completion import Completion
from showcase.core.targets import Target


@runtime_checkable
class Openable(Protocol):
    def open(self, targets: Sequence[Target], options: ShowcaseOptions,
             callback: Callable[[], Any]) -> None:
        """Start presenting *targets*."""
        ...

    def enable(self, callback: Callable[[], Any]) -> bool:
        ...


@runtime_checkable
class Closable(Protocol):
    def close(self, force: bool = False) -> bool:
        """Close the overlay; False when the close was refused."""
        ...


@runtime_checkable
class Resizable(Protocol):
    def set_dimensions(self, width: Extent = 0, height: Extent = 0,
                       animate: bool = False) -> Completion:
        ...

    def on_window_resize(self) -> Optional[Completion]:
        ...


@runtime_checkable
class Navigable(Protocol):
    def navigate(self, direction: str) -> bool:
        ...

    def handle_key(self, key: str, in_input: bool = False, multiline: bool = False) -> bool:
        ...
