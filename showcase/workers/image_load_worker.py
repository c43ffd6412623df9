# showcase/workers/image_load_worker.py
# Version 01.00.00.00 dated 20261019
# Background decode of images requested by the Qt host

import os

from PySide6.QtCore import QObject, QRunnable, Signal

from showcase.logging_config import get_logger

logger = get_logger(__name__)


class ImageLoadSignals(QObject):
    """
    Signals for the image load worker.

    Signals:
        loaded: (src, QImage, Size) - decoded image and its natural size
        failed: (src, Size) - decode failed; size from the header or 0x0
    """
    loaded = Signal(str, object, object)
    failed = Signal(str, object)


class ImageLoadWorker(QRunnable):
    """
    Decode one image off the GUI thread.

    Usage:
        worker = ImageLoadWorker("photos/a.jpg")
        worker.signals.loaded.connect(request.on_decoded)
        QThreadPool.globalInstance().start(worker)
    """
    # Max dimension of the decoded pixmap (screen-fit quality, not full resolution)
    MAX_DIM = 2560

    def __init__(self, src: str, max_dim: int = MAX_DIM):
        super().__init__()
        self.src = src
        self.max_dim = max_dim
        self.signals = ImageLoadSignals()
        self.cancelled = False

    def cancel(self):
        """Request cancellation; results are not emitted afterwards."""
        self.cancelled = True

    def run(self):
        from showcase.core.size import Size
        from showcase.services.image_probe import decode_image

        try:
            image, natural = decode_image(self.src, max_dim=self.max_dim)
        except Exception as e:
            logger.warning(f"[ImageLoadWorker] Error decoding {self.src}: {e}")
            image, natural = None, Size(0, 0)

        if self.cancelled:
            logger.debug(f"[ImageLoadWorker] Cancelled: {os.path.basename(self.src)}")
            return
        if image is None:
            self.signals.failed.emit(self.src, natural)
        else:
            self.signals.loaded.emit(self.src, image, natural)
