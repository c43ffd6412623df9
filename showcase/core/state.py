# showcase/core/state.py
# Version 01.00.00.00 dated 20261019
"""
The single live Showcase session and its lifecycle states.

Only LifecycleController and the load pipeline mutate an Instance; readers
(the facade, tests, host callbacks) treat it as a snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from showcase.config.showcase_config import ShowcaseOptions
from showcase.core.size import Size
from showcase.core.targets import Target, TargetType, classify

logger = logging.getLogger(__name__)


def noop(*_args, **_kwargs) -> None:
    return None


class EngineState(str, Enum):
    DISABLED = "disabled"
    ENABLING = "enabling"
    ENABLED = "enabled"
    BUSY = "busy"
    UNLOADING = "unloading"


class ScaleMode(str, Enum):
    NATURAL = "natural"
    FORCED = "forced"


@dataclass
class ScaleContext:
    origin: Size
    requested: Size
    mode: Optional[ScaleMode]


@dataclass
class Instance:
    state: EngineState = EngineState.DISABLED
    targets: List[Target] = field(default_factory=list)
    current_index: int = 0
    current_target: Optional[Target] = None
    target_type: Optional[TargetType] = None
    current_content: Any = None
    options: ShowcaseOptions = field(default_factory=ShowcaseOptions)
    callback: Callable[[], Any] = noop

    failsafe_engaged: bool = False
    expire: float = 0
    error: str = ""
    new_load: bool = False
    defer_reset: bool = False
    fade_content: bool = False
    nav_enabled: bool = False
    info_enabled: bool = False
    info_data: Optional[str] = None
    image_retries: int = 0
    initialized: bool = False

    scale: Optional[ScaleContext] = None
    size_cache: Dict[str, Size] = field(default_factory=dict)
    generation: int = 0

    def transition(self, state: EngineState) -> None:
        if state is self.state:
            return
        logger.info("[Instance] %s -> %s", self.state.value, state.value)
        self.state = state

    def next_generation(self) -> int:
        self.generation += 1
        return self.generation

    @property
    def busy(self) -> bool:
        return self.state in (EngineState.ENABLING, EngineState.BUSY, EngineState.UNLOADING)

    @property
    def scaled_mode(self) -> Optional[ScaleMode]:
        return self.scale.mode if self.scale is not None else None

    def set_target(self, index: int, targets: Optional[Sequence[Target]] = None) -> Target:
        """Make ``targets[index]`` current and reclassify it."""
        if targets is not None:
            self.targets = list(targets)
        self.current_index = index
        self.current_target = self.targets[index]
        self.target_type = classify(self.current_target)
        logger.debug("[Instance] Target %d/%d is %s", index + 1, len(self.targets), self.target_type)
        return self.current_target

    def replace_current(self, target: Target) -> Target:
        """Swap the current target in place, e.g. a link resolved to synthesized media."""
        self.targets[self.current_index] = target
        return self.set_target(self.current_index)
