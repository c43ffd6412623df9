"""
Configuration Module
Centralized configuration management for the Showcase engine.

Usage:
    from showcase.config import get_showcase_config, ShowcaseOptions

    config = get_showcase_config()
    retry_delay = config.engine.image_retry_ms
    options, unknown = ShowcaseOptions().merged({"width": 640})
"""

from showcase.config.showcase_config import (
    AUTO,
    FULL,
    DEFAULT_CONTROL_TEXT,
    IMAGE_PATTERN,
    VIDEO_PATTERN,
    EngineConfig,
    Extent,
    OptionDefaults,
    ShowcaseConfig,
    ShowcaseOptions,
    get_showcase_config,
    is_numeric,
    reload_config,
)

__all__ = [
    'AUTO',
    'FULL',
    'DEFAULT_CONTROL_TEXT',
    'IMAGE_PATTERN',
    'VIDEO_PATTERN',
    'EngineConfig',
    'Extent',
    'OptionDefaults',
    'ShowcaseConfig',
    'ShowcaseOptions',
    'get_showcase_config',
    'is_numeric',
    'reload_config',
]
