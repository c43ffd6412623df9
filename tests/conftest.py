# tests/conftest.py
# Pytest fixtures: a scripted host surface, engine instances and sample images

import copy
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Optional

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PIL import Image

from showcase.config.showcase_config import EngineConfig, ShowcaseOptions, is_numeric
from showcase.core.completion import Completion
from showcase.core.engine import init_showcase, teardown_showcase
from showcase.core.host_protocol import FragmentRequest, ImageRequest
from showcase.core.size import Size
from showcase.core.targets import ImageTarget, MediaTarget

DEFAULT_MINIMUM = {"width": 160, "height": 90}

# ============================================================================
# Fake host surface
# ============================================================================

class FakeHandle:
    """Stands in for an attached widget."""

    def __init__(self, target, size: Size):
        self.target = target
        self.size = size


class FakeImageRequest(ImageRequest):
    """Image request that settles from a scripted outcome or by hand.

    Outcomes: a Size (loaded) or ("failed", Size).
    """

    def __init__(self, src, outcome=None):
        super().__init__(src)
        self.outcome = outcome
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True
        if self.outcome is None:
            return
        if isinstance(self.outcome, tuple):
            self.failed.emit(self.outcome[1])
        else:
            self.loaded.emit(self.outcome)

    def cancel(self):
        self.cancelled = True

    def complete(self, size: Size):
        self.loaded.emit(size)

    def fail(self, size: Optional[Size] = None):
        self.failed.emit(size if size is not None else Size(0, 0))


class FakeFragmentRequest(FragmentRequest):
    """Fragment request; outcome is markup (str) or (status, reason)."""

    def __init__(self, url, anchor=None, outcome=None):
        super().__init__(url, anchor)
        self.outcome = outcome
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True
        if self.outcome is None:
            return
        if isinstance(self.outcome, tuple):
            self.failed.emit(*self.outcome)
        else:
            self.finished.emit(self.outcome)

    def cancel(self):
        self.cancelled = True


class FakeHost:
    """
    Scripted HostSurface.

    The wrapper is clamped to the viewport like a real layout would clamp
    it. Animated resizes finish at once unless ``auto_transition`` is off,
    in which case finish_transitions() completes them.
    """

    def __init__(self):
        self.viewport = Size(1000, 800)
        self.box = Size(300, 200)
        self.extent = Size(None, None)
        self.minimum = dict(DEFAULT_MINIMUM)
        self.pinned: Dict[str, Optional[float]] = {"width": None, "height": None}
        self.auto_transition = True
        self.auto_fade = True
        self.watches = []
        self.applied: List[tuple] = []
        self.image_outcomes: Dict[str, list] = {}
        self.fragment_outcomes: Dict[str, list] = {}
        self.image_requests: List[FakeImageRequest] = []
        self.fragment_requests: List[FakeFragmentRequest] = []
        self.media: List[MediaTarget] = []
        self.attached = []
        self.current = None
        self.enabled = False
        self.loading = False
        self.chrome = (False, False, False)
        self.nav_visible = False
        self.info = None
        self.titles = {}
        self.fade = True
        self.background = False
        self.scaled = False
        self.expire_seconds = 0
        self.paused = 0
        self.focused = []
        self.confirmed = []
        self.pending_fades: List[Completion] = []
        self.bound_engine = None

    # --- scripting ---

    def script_image(self, src: str, *outcomes):
        self.image_outcomes.setdefault(src, []).extend(outcomes)

    def script_fragment(self, url: str, *outcomes):
        self.fragment_outcomes.setdefault(url, []).extend(outcomes)

    def finish_transitions(self):
        watches, self.watches = self.watches, []
        for watch in watches:
            for name in sorted(watch.pending):
                watch.observe(name)

    def bind_engine(self, engine):
        self.bound_engine = engine

    # --- content ---

    def attach(self, target, fade):
        if isinstance(target, ImageTarget) and target.natural_size is not None:
            size = target.natural_size.copy()
        elif isinstance(target, MediaTarget) and target.video_size is not None:
            size = target.video_size.copy()
        else:
            size = self.box.copy()
        handle = FakeHandle(target, size)
        self.attached.append(handle)
        self.current = handle
        return handle

    def detach(self, handle):
        if handle is self.current:
            self.current = None

    def clear_content(self):
        self.current = None

    def clone(self, target, deep):
        if isinstance(target, MediaTarget):
            return target
        return copy.deepcopy(target) if deep else copy.copy(target)

    def focus_input(self, handle):
        self.focused.append(handle)

    def confirm(self, handle):
        self.confirmed.append(handle)

    # --- measurement ---

    def measure(self, handle):
        return handle.size.copy() if isinstance(handle, FakeHandle) else Size(0, 0)

    def content_box_size(self):
        natural = self.current.size if self.current is not None else self.box
        width = self.pinned["width"] if self.pinned["width"] is not None else natural.width
        height = self.pinned["height"] if self.pinned["height"] is not None else natural.height
        return Size(width, height)

    def wrapper_size(self):
        sizes = []
        for axis in ("width", "height"):
            value = self.extent.get(axis)
            limit = self.viewport.get(axis)
            sizes.append(min(value, limit) if is_numeric(value) else limit)
        return Size(*sizes)

    def current_extent(self):
        return self.extent.copy()

    def viewport_size(self):
        return self.viewport.copy()

    def minimum_extent(self, axis):
        return self.minimum[axis]

    def set_minimum_extent(self, axis, value):
        self.minimum[axis] = value if value is not None else DEFAULT_MINIMUM[axis]

    def set_content_extent(self, axis, value):
        self.pinned[axis] = value

    # --- sizing ---

    def apply_size(self, size, animate, watch=None):
        self.applied.append((size.copy(), animate))
        self.extent = size.copy()
        if animate and watch is not None:
            self.watches.append(watch)
            if self.auto_transition:
                self.finish_transitions()

    def set_scaled(self, scaled):
        self.scaled = scaled

    # --- requests ---

    def load_image(self, src):
        outcomes = self.image_outcomes.get(src)
        request = FakeImageRequest(src, outcomes.pop(0) if outcomes else None)
        self.image_requests.append(request)
        return request

    def fetch_fragment(self, url, anchor):
        outcomes = self.fragment_outcomes.get(url)
        request = FakeFragmentRequest(url, anchor, outcomes.pop(0) if outcomes else None)
        self.fragment_requests.append(request)
        return request

    def create_media(self, src, mime, info):
        media = MediaTarget(src, mime, info=info)
        self.media.append(media)
        return media

    # --- chrome ---

    def set_enabled(self, enabled):
        self.enabled = enabled

    def set_loading(self, loading):
        self.loading = loading

    def set_chrome_visible(self, close, nav, info):
        self.chrome = (close, nav, info)

    def set_nav_visible(self, enabled):
        self.nav_visible = enabled

    def set_info(self, text):
        self.info = text

    def set_titles(self, control_text):
        self.titles = dict(control_text)

    def set_fade(self, fade):
        self.fade = fade

    def set_background(self, visible):
        self.background = visible

    def fade_out(self):
        if self.auto_fade:
            return Completion.resolved(None, "fade_out")
        done = Completion("fade_out")
        self.pending_fades.append(done)
        return done

    def pause_media(self):
        self.paused += 1

    def show_expire_progress(self, seconds):
        self.expire_seconds = seconds


# ============================================================================
# Engine fixtures
# ============================================================================

@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def engine_config() -> EngineConfig:
    """Short timers so failsafe/retry/expire paths run quickly."""
    return EngineConfig(
        failsafe_open_ms=50,
        failsafe_navigate_ms=50,
        image_retry_ms=20,
        fade_ms=0,
        animate_ms=0,
    )


@pytest.fixture
def static_options() -> dict:
    """Options for loads that complete synchronously."""
    return {"animate": False, "fade": False}


@pytest.fixture
def engine(qapp, host, engine_config):
    """Process-wide engine bound to the fake host."""
    engine = init_showcase(host, engine_config, ShowcaseOptions())
    yield engine
    teardown_showcase()


@pytest.fixture
def strict_engine(qapp, host, engine_config):
    engine_config.strict = True
    engine = init_showcase(host, engine_config, ShowcaseOptions())
    yield engine
    teardown_showcase()


# ============================================================================
# Files
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test files."""
    tmpdir = tempfile.mkdtemp(prefix="showcase_test_")
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def sample_image(temp_dir: Path) -> Path:
    """800x600 RGB JPEG."""
    img_path = temp_dir / "sample_001.jpg"
    Image.new("RGB", (800, 600), color=(100, 150, 200)).save(img_path, "JPEG", quality=85)
    return img_path


@pytest.fixture
def sample_images(temp_dir: Path) -> list:
    """Images in several orientations and formats."""
    images = []

    img1 = temp_dir / "photo_001.jpg"
    Image.new("RGB", (1920, 1080), color=(255, 0, 0)).save(img1, "JPEG")
    images.append(img1)

    img2 = temp_dir / "photo_002.png"
    Image.new("RGB", (1080, 1920), color=(0, 255, 0)).save(img2, "PNG")
    images.append(img2)

    img3 = temp_dir / "photo_003.tif"
    Image.new("RGB", (640, 480), color=(128, 128, 128)).save(img3, "TIFF")
    images.append(img3)

    return images
