# showcase/services/image_probe.py
# Version 01.00.00.00 dated 20261019
"""
Image probing and decoding for the Qt host.

Reads an image source (local path, ``file://`` or ``http(s)://`` URL) and
returns the decoded QImage together with its natural size. Decoding goes
through QImageReader first and falls back to PIL for formats Qt handles
poorly. Safe to call from worker threads (returns QImage, never QPixmap).

Failure reporting matters to the loader: a source that cannot be read at
all reports 0x0 (eligible for one retry), while a file whose header gives a
size but whose pixels do not decode reports that size.
"""

import io
import os
import threading
import urllib.request
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QSize
from PySide6.QtGui import QImage, QImageReader

from showcase.core.size import Size
from showcase.logging_config import get_logger

logger = get_logger(__name__)

# Serialize PIL decode operations (PIL is not fully thread-safe)
_pil_decode_lock = threading.Lock()

# Formats that should always use PIL (Qt has compatibility issues)
PIL_PREFERRED_FORMATS = {
    '.tif', '.tiff', '.tga', '.psd', '.ico', '.bmp',
}

REMOTE_SCHEMES = ("http", "https")
MAX_SOURCE_BYTES = 200 * 1024 * 1024
FETCH_TIMEOUT = 15.0


def _extension(src: str) -> str:
    return os.path.splitext(urlparse(src).path or src)[1].lower()


def read_source(src: str, timeout: float = FETCH_TIMEOUT) -> Optional[bytes]:
    """Raw bytes of *src*, or None when it cannot be read."""
    parsed = urlparse(src)
    try:
        if parsed.scheme in REMOTE_SCHEMES:
            with urllib.request.urlopen(src, timeout=timeout) as response:
                return response.read(MAX_SOURCE_BYTES)
        path = unquote(parsed.path) if parsed.scheme == "file" else src
        if not os.path.exists(path):
            logger.warning(f"[ImageProbe] File not found: {path}")
            return None
        if os.path.getsize(path) > MAX_SOURCE_BYTES:
            logger.warning(f"[ImageProbe] File too large: {path}")
            return None
        with open(path, "rb") as f:
            return f.read()
    except Exception as e:
        logger.warning(f"[ImageProbe] Cannot read {src}: {e}")
        return None


def _reader_for(data: bytes) -> Tuple[QImageReader, QBuffer]:
    buffer = QBuffer()
    buffer.setData(QByteArray(data))
    buffer.open(QIODevice.ReadOnly)
    reader = QImageReader(buffer)
    reader.setAutoTransform(True)  # EXIF rotation
    return reader, buffer


def probe_size(data: bytes, ext: str = "") -> Size:
    """Natural size from the image header (0x0 if unknown)."""
    if ext not in PIL_PREFERRED_FORMATS:
        reader, buffer = _reader_for(data)
        size = reader.size()
        buffer.close()
        if size.isValid():
            return Size(size.width(), size.height())
    try:
        from PIL import Image
        with Image.open(io.BytesIO(data)) as img:
            return Size(img.width, img.height)
    except Exception as e:
        logger.debug(f"[ImageProbe] PIL could not read header: {e}")
        return Size(0, 0)


def decode_image(src: str, max_dim: int = 2560) -> Tuple[Optional[QImage], Size]:
    """
    Decode *src* for display, capped at *max_dim* on the longest edge.

    Returns:
        (image, natural_size). ``image`` is None on failure; ``natural_size``
        is then whatever the header revealed (0x0 if nothing).
    """
    data = read_source(src)
    if not data:
        return None, Size(0, 0)

    ext = _extension(src)
    natural = probe_size(data, ext)

    image = None
    if ext not in PIL_PREFERRED_FORMATS:
        image = _decode_qt(data, natural, max_dim)
    if image is None:
        image = _decode_pil(data, max_dim)

    if image is None:
        logger.warning(f"[ImageProbe] Decode failed for {src} (header size {natural})")
        return None, natural
    if natural.is_empty:
        natural = Size(image.width(), image.height())

    logger.debug(f"[ImageProbe] Decoded {os.path.basename(src)}: {natural} "
                 f"-> {image.width()}x{image.height()}")
    return image, natural


def _fit_dimensions(width: int, height: int, max_dim: int) -> Tuple[int, int]:
    longest = max(width, height)
    if longest <= max_dim or longest == 0:
        return width, height
    scale = max_dim / longest
    return max(1, int(width * scale)), max(1, int(height * scale))


def _decode_qt(data: bytes, natural: Size, max_dim: int) -> Optional[QImage]:
    reader, buffer = _reader_for(data)
    try:
        if not reader.canRead():
            return None
        if not natural.is_empty and max(natural.width, natural.height) > max_dim:
            # Pre-decode scaling: decode directly at target size
            reader.setScaledSize(QSize(*_fit_dimensions(natural.width, natural.height, max_dim)))
        image = reader.read()
        if image.isNull():
            logger.debug(f"[ImageProbe] Qt read failed ({reader.errorString()}), trying PIL")
            return None
        return image
    finally:
        buffer.close()


def _decode_pil(data: bytes, max_dim: int) -> Optional[QImage]:
    try:
        from PIL import Image, ImageOps

        with Image.open(io.BytesIO(data)) as img:
            try:
                img = ImageOps.exif_transpose(img)
            except Exception:
                pass  # Some formats don't support EXIF

            with _pil_decode_lock:
                img.load()

            target = _fit_dimensions(img.width, img.height, max_dim)
            if (img.width, img.height) != target:
                img.thumbnail(target, Image.Resampling.LANCZOS)

            if img.mode not in ('RGB', 'RGBA'):
                img = img.convert('RGBA' if 'transparency' in img.info else 'RGB')

            buf = io.BytesIO()
            img.save(buf, format="PNG")

        qimg = QImage.fromData(buf.getvalue())
        return None if qimg.isNull() else qimg
    except MemoryError:
        logger.error("[ImageProbe] PIL MemoryError")
        return None
    except Exception as e:
        logger.warning(f"[ImageProbe] PIL decode failed: {e}")
        return None
