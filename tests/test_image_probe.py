# tests/test_image_probe.py
# Image decoding for the Qt host and the background workers

import pytest

from showcase.core.size import Size
from showcase.services.image_probe import _fit_dimensions, decode_image, probe_size, read_source
from showcase.workers.fragment_worker import FragmentWorker, extract_anchor, fetch_markup
from showcase.workers.image_load_worker import ImageLoadWorker


class TestDecodeImage:
    """decode_image() returns the QImage and the natural size."""

    def test_jpeg(self, qapp, sample_image):
        image, natural = decode_image(str(sample_image))

        assert image is not None
        assert natural == Size(800, 600)
        assert (image.width(), image.height()) == (800, 600)

    def test_large_image_is_downscaled(self, qapp, sample_images):
        image, natural = decode_image(str(sample_images[0]), max_dim=960)

        assert natural == Size(1920, 1080)
        assert max(image.width(), image.height()) == 960

    def test_tiff_goes_through_pil(self, qapp, sample_images):
        image, natural = decode_image(str(sample_images[2]))

        assert image is not None
        assert natural == Size(640, 480)

    def test_file_url(self, qapp, sample_image):
        image, natural = decode_image(sample_image.as_uri())

        assert natural == Size(800, 600)

    def test_missing_file_reports_empty_size(self, qapp, temp_dir):
        image, natural = decode_image(str(temp_dir / "nope.jpg"))

        assert image is None
        assert natural.is_empty

    def test_garbage_reports_empty_size(self, qapp, temp_dir):
        path = temp_dir / "broken.png"
        path.write_bytes(b"definitely not an image")

        image, natural = decode_image(str(path))

        assert image is None
        assert natural == Size(0, 0)

    def test_probe_size_from_header(self, qapp, sample_image):
        assert probe_size(sample_image.read_bytes(), ".jpg") == Size(800, 600)

    def test_read_source_missing(self, temp_dir):
        assert read_source(str(temp_dir / "missing.bin")) is None

    @pytest.mark.parametrize("size,max_dim,expected", [
        ((1920, 1080), 960, (960, 540)),
        ((800, 600), 2560, (800, 600)),
        ((1080, 1920), 960, (540, 960)),
    ])
    def test_fit_dimensions(self, size, max_dim, expected):
        assert _fit_dimensions(*size, max_dim) == expected


class TestImageLoadWorker:
    """The worker emits loaded or failed exactly once."""

    def test_loaded(self, qapp, sample_image):
        worker = ImageLoadWorker(str(sample_image))
        results = []
        worker.signals.loaded.connect(lambda src, image, natural: results.append((src, natural)))

        worker.run()

        assert results == [(str(sample_image), Size(800, 600))]

    def test_failed(self, qapp, temp_dir):
        worker = ImageLoadWorker(str(temp_dir / "nope.png"))
        failures = []
        worker.signals.failed.connect(lambda src, natural: failures.append(natural))

        worker.run()

        assert failures == [Size(0, 0)]

    def test_cancelled_worker_is_silent(self, qapp, sample_image):
        worker = ImageLoadWorker(str(sample_image))
        results = []
        worker.signals.loaded.connect(lambda *args: results.append(args))

        worker.cancel()
        worker.run()

        assert results == []


class TestFragments:
    """Anchor extraction and fragment fetching."""

    PAGE = (
        "<html><body>"
        "<div id='intro'><p>Hello <b>there</b></p><br></div>"
        "<div id='other'>Other</div>"
        "</body></html>"
    )

    def test_extract_anchor(self):
        assert extract_anchor(self.PAGE, "intro") == "<div id='intro'><p>Hello <b>there</b></p><br></div>"

    def test_nested_same_tag(self):
        markup = "<div id='a'><div>inner</div>tail</div><div>after</div>"
        assert extract_anchor(markup, "a") == "<div id='a'><div>inner</div>tail</div>"

    def test_missing_anchor_returns_document(self):
        assert extract_anchor(self.PAGE, "absent") == self.PAGE

    def test_no_anchor(self):
        assert extract_anchor(self.PAGE, None) == self.PAGE

    def test_entities_preserved(self):
        assert extract_anchor("<p id='x'>a &amp; b</p>", "x") == "<p id='x'>a &amp; b</p>"

    def test_fetch_local_file(self, temp_dir):
        path = temp_dir / "page.html"
        path.write_text(self.PAGE, encoding="utf-8")

        assert fetch_markup(str(path)) == self.PAGE
        assert fetch_markup(path.as_uri()) == self.PAGE

    def test_worker_finished(self, qapp, temp_dir):
        path = temp_dir / "page.html"
        path.write_text(self.PAGE, encoding="utf-8")
        worker = FragmentWorker(str(path), "other")
        results = []
        worker.signals.finished.connect(results.append)

        worker.run()

        assert results == ["<div id='other'>Other</div>"]

    def test_worker_failed(self, qapp, temp_dir):
        worker = FragmentWorker(str(temp_dir / "missing.html"))
        failures = []
        worker.signals.failed.connect(lambda status, reason: failures.append(status))

        worker.run()

        assert failures == [0]
