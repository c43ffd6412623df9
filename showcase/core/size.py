from dataclasses import dataclass
from typing import Any

from showcase.config.showcase_config import Extent, is_numeric

AXES = ("width", "height")


@dataclass
class Size:
    """Width/height pair. Each axis is pixels or an unresolved marker ('auto', '100%')."""

    width: Extent = 0
    height: Extent = 0

    def copy(self) -> "Size":
        return Size(self.width, self.height)

    def get(self, axis: str) -> Extent:
        return getattr(self, axis)

    def set(self, axis: str, value: Any) -> None:
        setattr(self, axis, value)

    @property
    def is_numeric(self) -> bool:
        return is_numeric(self.width) and is_numeric(self.height)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 and self.height == 0

    def __str__(self):
        return f"{self.width}x{self.height}"
