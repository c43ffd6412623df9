# showcase/workers/fragment_worker.py
# Version 01.00.00.00 dated 20261019
# Background fetch of markup fragments requested by the Qt host

import os
import urllib.error
import urllib.request
from html.parser import HTMLParser
from typing import List, Optional
from urllib.parse import unquote, urlparse

from PySide6.QtCore import QObject, QRunnable, Signal

from showcase.logging_config import get_logger

logger = get_logger(__name__)

FETCH_TIMEOUT = 15.0

# Elements without closing tags
_VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}


class _AnchorExtractor(HTMLParser):
    """Collects the raw markup of the element whose id matches *anchor*."""

    def __init__(self, anchor: str):
        super().__init__(convert_charrefs=False)
        self.anchor = anchor
        self.depth = 0
        self.parts: List[str] = []
        self.done = False

    def handle_starttag(self, tag, attrs):
        if self.done:
            return
        if self.depth == 0:
            if dict(attrs).get("id") != self.anchor:
                return
        self.parts.append(self.get_starttag_text() or "")
        if tag not in _VOID_TAGS:
            self.depth += 1
        elif self.depth == 0:
            self.done = True

    def handle_startendtag(self, tag, attrs):
        if self.done:
            return
        if self.depth == 0 and dict(attrs).get("id") != self.anchor:
            return
        self.parts.append(self.get_starttag_text() or "")
        if self.depth == 0:
            self.done = True

    def handle_endtag(self, tag):
        if self.done or self.depth == 0:
            return
        self.parts.append(f"</{tag}>")
        self.depth -= 1
        if self.depth == 0:
            self.done = True

    def handle_data(self, data):
        if self.depth > 0 and not self.done:
            self.parts.append(data)

    def handle_entityref(self, name):
        self.handle_data(f"&{name};")

    def handle_charref(self, name):
        self.handle_data(f"&#{name};")


def extract_anchor(markup: str, anchor: Optional[str]) -> str:
    """Markup of the element with ``id=anchor``; the whole document if absent."""
    if not anchor:
        return markup
    parser = _AnchorExtractor(anchor)
    parser.feed(markup)
    parser.close()
    if not parser.parts:
        logger.debug(f"[FragmentWorker] Anchor #{anchor} not found, using whole document")
        return markup
    return "".join(parser.parts)


def fetch_markup(url: str, timeout: float = FETCH_TIMEOUT) -> str:
    """Read *url* as text. Raises OSError / urllib.error.URLError on failure."""
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https"):
        with urllib.request.urlopen(url, timeout=timeout) as response:
            charset = response.headers.get_content_charset() or "utf-8"
            return response.read().decode(charset, errors="replace")
    path = unquote(parsed.path) if parsed.scheme == "file" else url
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


class FragmentSignals(QObject):
    """
    Signals for the fragment worker.

    Signals:
        finished: (markup) - fetched markup, reduced to the anchor if one was given
        failed: (status, reason) - HTTP status (0 for non-HTTP failures) and reason
    """
    finished = Signal(str)
    failed = Signal(int, str)


class FragmentWorker(QRunnable):
    """Fetch a fragment off the GUI thread."""

    def __init__(self, url: str, anchor: Optional[str] = None):
        super().__init__()
        self.url = url
        self.anchor = anchor
        self.signals = FragmentSignals()
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def run(self):
        try:
            markup = extract_anchor(fetch_markup(self.url), self.anchor)
        except urllib.error.HTTPError as e:
            logger.warning(f"[FragmentWorker] {self.url}: HTTP {e.code}")
            if not self.cancelled:
                self.signals.failed.emit(e.code, str(e.reason))
            return
        except Exception as e:
            logger.warning(f"[FragmentWorker] {os.path.basename(self.url)}: {e}")
            if not self.cancelled:
                self.signals.failed.emit(0, str(e))
            return
        if not self.cancelled:
            self.signals.finished.emit(markup)
