"""
Showcase Configuration
Per-load options, engine timing settings and the persisted configuration file.

Three layers:
- ShowcaseOptions: what a single show() call asks for (merged over defaults)
- EngineConfig: timings and thresholds of the engine itself
- ShowcaseConfig: JSON-backed holder of EngineConfig plus saved option defaults
"""

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Pattern, Tuple, Union

logger = logging.getLogger(__name__)

# Dimension values are either pixels or one of the unresolved markers
Extent = Union[int, float, str]
AUTO = "auto"
FULL = "100%"

IMAGE_PATTERN = re.compile(
    r"\.(bmp|gif|ico|jpe|jpeg|jpg|png|apng|svg|tif|tiff|wbmp)$", re.IGNORECASE
)
VIDEO_PATTERN = re.compile(r"\.(mp4|ogg|webm)$", re.IGNORECASE)

DEFAULT_CONTROL_TEXT = {
    "close": "Close",
    "nav_left": "Navigate Left",
    "nav_right": "Navigate Right",
}


def is_numeric(value: Any) -> bool:
    """True for real pixel values (bools are not dimensions)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _compile_pattern(value: Union[str, Pattern]) -> Pattern:
    if isinstance(value, str):
        return re.compile(value, re.IGNORECASE)
    return value


@dataclass
class ShowcaseOptions:
    """Options of a single load, already merged over the process-wide defaults."""

    width: Extent = AUTO
    height: Extent = AUTO
    current_index: int = 0
    info_content: Optional[str] = None
    scale_media: bool = True
    force_scaling: bool = False
    animate: bool = True
    fade: bool = True
    clone_data: bool = False
    expire: float = 0
    image_pattern: Pattern = IMAGE_PATTERN
    video_pattern: Pattern = VIDEO_PATTERN
    control_text: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CONTROL_TEXT))
    promise: Any = None
    force_load: bool = False

    @classmethod
    def keys(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> Tuple["ShowcaseOptions", List[str]]:
        """Return a copy with *overrides* applied and the list of unknown keys.

        ``control_text`` is merged key by key so a caller may relabel a
        single button.
        """
        known = set(self.keys())
        accepted: Dict[str, Any] = {}
        unknown: List[str] = []
        for key, value in (overrides or {}).items():
            if key not in known:
                unknown.append(key)
                continue
            if key == "control_text":
                text = dict(self.control_text)
                text.update(value or {})
                value = text
            elif key in ("image_pattern", "video_pattern"):
                value = _compile_pattern(value)
            accepted[key] = value
        return replace(self, **accepted), unknown


class OptionDefaults:
    """Process-wide option defaults used as the base of every load."""

    def __init__(self, base: Optional[ShowcaseOptions] = None):
        self._original = base or ShowcaseOptions()
        self._current = self._original

    @property
    def current(self) -> ShowcaseOptions:
        return self._current

    def update(self, overrides: Mapping[str, Any]) -> List[str]:
        """Apply *overrides* and return the keys that are not options."""
        self._current, unknown = self._current.merged(overrides)
        return unknown

    def reset(self) -> None:
        self._current = self._original

    def resolve(self, overrides: Optional[Mapping[str, Any]]) -> ShowcaseOptions:
        options, unknown = self._current.merged(overrides)
        if unknown:
            logger.warning("[ShowcaseOptions] Ignoring unknown option(s): %s", ", ".join(unknown))
        return options


@dataclass
class EngineConfig:
    """Timings and thresholds of the presentation engine."""

    failsafe_open_ms: int = 2000  # Boundary-click guard delay after show()
    failsafe_navigate_ms: int = 1000  # Boundary-click guard delay after navigate()
    image_retry_ms: int = 1000  # Delay before the single 0x0 image retry
    resize_epsilon: int = 2  # Axes closer than this (px) are not animated
    fade_ms: int = 300  # Overlay fade-out duration
    animate_ms: int = 400  # max-width / max-height transition duration
    strict: bool = False  # Re-raise every reported error


class ShowcaseConfig:
    """Main configuration manager for the Showcase engine."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.home() / ".showcase" / "showcase_config.json"

        self.config_path = Path(config_path)

        self.engine = EngineConfig()
        self.options: Dict[str, Any] = {}

        self.load()
        self._apply_environment()

    def load(self) -> None:
        """Load configuration from file."""
        if not self.config_path.exists():
            return
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            if "engine" in data:
                self.engine = EngineConfig(**data["engine"])
            if "options" in data:
                _, unknown = ShowcaseOptions().merged(data["options"])
                if unknown:
                    logger.warning("[ShowcaseConfig] Dropping unknown saved option(s): %s",
                                   ", ".join(unknown))
                self.options = {k: v for k, v in data["options"].items() if k not in unknown}

            logger.info("[ShowcaseConfig] Loaded from %s", self.config_path)
        except Exception as e:
            logger.warning("[ShowcaseConfig] Failed to load config: %s, using defaults", e)

    def save(self) -> None:
        """Save configuration to file."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                "engine": asdict(self.engine),
                "options": self.options,
            }
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            logger.info("[ShowcaseConfig] Saved to %s", self.config_path)
        except Exception as e:
            logger.warning("[ShowcaseConfig] Failed to save config: %s", e)

    def _apply_environment(self) -> None:
        strict = os.environ.get("SHOWCASE_STRICT")
        if strict is not None:
            self.engine.strict = strict.strip().lower() in ("1", "true", "yes", "on")

    def reset_to_defaults(self) -> None:
        """Reset all configuration to defaults."""
        self.engine = EngineConfig()
        self.options = {}
        self.save()

    def update_engine_config(self, **kwargs) -> None:
        """Update engine configuration parameters."""
        for key, value in kwargs.items():
            if hasattr(self.engine, key):
                setattr(self.engine, key, value)
            else:
                logger.warning("[ShowcaseConfig] Unknown engine setting: %s", key)
        self.save()

    def default_options(self) -> ShowcaseOptions:
        """Saved option overrides applied over the built-in defaults."""
        options, _ = ShowcaseOptions().merged(self.options)
        return options


# Global configuration instance
_config: Optional[ShowcaseConfig] = None


def get_showcase_config() -> ShowcaseConfig:
    """Get global Showcase configuration instance."""
    global _config
    if _config is None:
        _config = ShowcaseConfig()
    return _config


def reload_config() -> ShowcaseConfig:
    """Reload configuration from disk."""
    global _config
    _config = ShowcaseConfig()
    return _config
