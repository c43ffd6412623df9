"""
Showcase: modal presentation of images, video and markup above a Qt window.

    from showcase import init_showcase, ImageTarget, LinkTarget
    from showcase.ui.qt_host import QtHostSurface

    engine = init_showcase(QtHostSurface(main_window))
    engine.show([LinkTarget("a.jpg"), LinkTarget("b.jpg")], {"current_index": 1})
"""

from showcase.config.showcase_config import EngineConfig, ShowcaseOptions
from showcase.core.completion import Completion, TransitionWatch
from showcase.core.engine import Showcase, get_showcase, init_showcase, show, teardown_showcase
from showcase.core.errors import ShowcaseError
from showcase.core.size import Size
from showcase.core.state import EngineState
from showcase.core.targets import (
    ElementTarget, ImageTarget, LinkTarget, MarkupTarget, MediaTarget, MessageTarget, Target,
)

__version__ = "1.0.0"

__all__ = [
    'Completion',
    'ElementTarget',
    'EngineConfig',
    'EngineState',
    'ImageTarget',
    'LinkTarget',
    'MarkupTarget',
    'MediaTarget',
    'MessageTarget',
    'Showcase',
    'ShowcaseError',
    'ShowcaseOptions',
    'Size',
    'Target',
    'TransitionWatch',
    'get_showcase',
    'init_showcase',
    'show',
    'teardown_showcase',
]
