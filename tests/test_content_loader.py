# tests/test_content_loader.py
# Load pipeline: image decode and retry, size cache, video synthesis,
# fragments and media readiness

from showcase.core.errors import SELF_HOSTED_PREFIX
from showcase.core.size import Size
from showcase.core.state import EngineState
from showcase.core.targets import (
    HAVE_CURRENT_DATA, HAVE_NOTHING, ElementTarget, ImageTarget, LinkTarget, MarkupTarget,
    MediaTarget, MessageTarget, TargetKind,
)
from showcase.core.timers import RETRY
from showcase.services.content_loader import split_source


class TestSplitSource:
    """Anchors are split off fragment sources."""

    def test_with_anchor(self):
        assert split_source("page.html#intro") == ("page.html", "intro")

    def test_without_anchor(self):
        assert split_source("page.html") == ("page.html", None)

    def test_empty_anchor(self):
        assert split_source("page.html#") == ("page.html", None)


class TestImageLinks:
    """Links that look like images are decoded by the host."""

    def test_decoded_link_becomes_image(self, engine, host, static_options):
        host.script_image("photos/a.jpg", Size(640, 480))
        done = []

        engine.show("photos/a.jpg", static_options, lambda: done.append(True))

        assert done == [True]
        assert engine.state is EngineState.ENABLED
        target = engine.instance.current_target
        assert isinstance(target, ImageTarget)
        assert target.natural_size == Size(640, 480)
        assert engine.instance.targets[0] is target

    def test_query_string_does_not_hide_extension(self, engine, host, static_options):
        host.script_image("a.png?v=2", Size(10, 10))

        engine.show("a.png?v=2", static_options)

        assert host.image_requests[0].src == "a.png?v=2"
        assert engine.state is EngineState.ENABLED

    def test_cached_size_skips_decode(self, engine, host, static_options):
        host.script_image("a.png", Size(640, 480))
        engine.show("a.png", static_options)
        engine.disable()

        engine.show("a.png", static_options)

        assert len(host.image_requests) == 1
        assert engine.instance.current_target.natural_size == Size(640, 480)

    def test_reset_size_cache_forces_decode(self, engine, host, static_options):
        host.script_image("a.png", Size(640, 480), Size(640, 480))
        engine.show("a.png", static_options)
        engine.disable()

        engine.reset_size_cache()
        engine.show("a.png", static_options)

        assert len(host.image_requests) == 2

    def test_empty_size_is_not_cached(self, engine, host, static_options):
        host.script_image("a.png", ("failed", Size(0, 0)))
        engine.show("a.png", static_options)

        assert "a.png" not in engine.instance.size_cache

    def test_zero_size_failure_retries_once(self, engine, host, qtbot, static_options):
        host.script_image("a.png", ("failed", Size(0, 0)), Size(320, 200))

        engine.show("a.png", static_options)
        assert engine.timers.is_armed(RETRY)
        assert engine.state is EngineState.BUSY

        qtbot.waitUntil(lambda: engine.state is EngineState.ENABLED, timeout=2000)
        assert len(host.image_requests) == 2
        assert engine.instance.current_target.natural_size == Size(320, 200)

    def test_second_failure_reports_dataload(self, engine, host, qtbot, static_options):
        host.script_image("a.png", ("failed", Size(0, 0)), ("failed", Size(0, 0)))
        errors = []
        engine.on("error", lambda event: errors.append(event.payload["code"]))

        engine.show("a.png", static_options)
        qtbot.waitUntil(lambda: bool(errors), timeout=2000)

        assert errors == ["005"]
        assert engine.error.startswith("005 - ")
        message = engine.instance.current_target
        assert isinstance(message, MessageTarget)
        assert message.text == SELF_HOSTED_PREFIX + engine.error

    def test_sized_failure_does_not_retry(self, engine, host, static_options):
        host.script_image("broken.png", ("failed", Size(50, 50)))

        engine.show("broken.png", static_options)

        assert len(host.image_requests) == 1
        assert engine.error.startswith("005")

    def test_unreadable_embedded_image_is_decoded(self, engine, host, static_options):
        host.script_image("lazy.png", Size(200, 100))

        engine.show(ImageTarget("lazy.png"), static_options)

        assert host.image_requests[0].src == "lazy.png"
        assert engine.instance.target_type.kind is TargetKind.OBJECT

    def test_late_result_after_close_is_dropped(self, engine, host):
        done = []
        engine.show("slow.png", {"force_load": True}, lambda: done.append(True))
        request = host.image_requests[0]

        engine.lifecycle.close(force=True)
        request.complete(Size(100, 100))

        assert done == []
        assert engine.state is EngineState.DISABLED
        assert host.attached == []

    def test_new_load_cancels_pending_request(self, engine, host, static_options):
        engine.show("slow.png")
        first = host.image_requests[0]
        host.script_image("fast.png", Size(10, 10))

        engine.show("fast.png", dict(static_options, force_load=True))

        assert first.cancelled
        first.complete(Size(999, 999))
        assert engine.instance.current_target.src == "fast.png"


class TestVideoLinks:
    """Video links are turned into media targets."""

    def test_video_is_synthesized(self, engine, host, static_options):
        engine.show(LinkTarget("clips/beach.MP4", info="Beach"), static_options)

        media = host.media[0]
        assert media.mime == "video/mp4"
        assert media.info == "Beach"
        assert engine.instance.current_target is media
        assert engine.instance.targets[0] is media
        assert engine.state is EngineState.BUSY

    def test_video_completes_when_data_arrives(self, engine, host, static_options):
        engine.show("clips/beach.webm", static_options)

        host.media[0].mark_loaded(Size(640, 360))

        assert engine.state is EngineState.ENABLED
        assert host.extent == Size(640, 360)
        assert host.info is None

    def test_info_is_shown(self, engine, host, static_options):
        engine.show(LinkTarget("clips/beach.webm", info="<b>Beach</b>"), static_options)
        host.media[0].mark_loaded(Size(640, 360))

        assert host.info == "<b>Beach</b>"
        assert host.chrome == (True, False, True)


class TestMediaTargets:
    """Media targets wait for their first frame."""

    def test_ready_media_prepares_immediately(self, engine, host, static_options):
        media = MediaTarget("a.ogg", "video/ogg", ready_state=2, video_size=Size(320, 240))

        engine.show(media, static_options)

        assert engine.state is EngineState.ENABLED
        assert host.current.target is media

    def test_metadata_alone_is_not_ready(self, engine, host, static_options):
        media = MediaTarget("a.ogg", "video/ogg", ready_state=HAVE_CURRENT_DATA - 1)

        engine.show(media, static_options)

        assert engine.state is EngineState.BUSY
        assert media.ready_state > HAVE_NOTHING

    def test_failed_media_reports_mediaload(self, engine, host, static_options):
        media = MediaTarget("a.ogg", "video/ogg", error="decoder missing")

        engine.show(media, static_options)

        assert engine.error.startswith("006")

    def test_failure_while_waiting(self, engine, host, static_options):
        media = MediaTarget("a.ogg", "video/ogg")
        engine.show(media, static_options)

        media.mark_failed("network")

        assert engine.error.startswith("006")
        assert isinstance(engine.instance.current_target, MessageTarget)

    def test_listener_fires_once(self, engine, host, static_options):
        media = MediaTarget("a.ogg", "video/ogg")
        calls = []
        engine.show(media, static_options, lambda: calls.append(True))

        media.mark_loaded(Size(320, 240))
        media.mark_failed("late")

        assert calls == [True]
        assert engine.error == ""

    def test_audio_is_not_scaled(self, engine, host, static_options):
        media = MediaTarget("a.ogg", "audio/ogg", ready_state=2)

        engine.show(media, static_options)

        assert engine.instance.scale is None


class TestFragments:
    """Other links are fetched as markup fragments."""

    def test_fragment_with_anchor(self, engine, host, static_options):
        host.script_fragment("page.html", "<div id='part'>hi</div>")

        engine.show("page.html#part", static_options)

        request = host.fragment_requests[0]
        assert (request.url, request.anchor) == ("page.html", "part")
        target = engine.instance.current_target
        assert isinstance(target, MarkupTarget)
        assert target.markup == "<div id='part'>hi</div>"
        assert engine.state is EngineState.ENABLED

    def test_fragment_failure(self, engine, host, static_options):
        host.script_fragment("missing.html", (404, "Not Found"))

        engine.show("missing.html", static_options)

        assert engine.error.startswith("005")
        assert isinstance(engine.instance.current_target, MessageTarget)


class TestElements:
    """Element targets are attached as copies."""

    def test_element_is_cloned(self, engine, host, static_options):
        element = ElementTarget({"rows": [1, 2]})

        engine.show(element, dict(static_options, clone_data=True))

        attached = host.current.target
        assert attached is not element
        assert attached.content == element.content
        assert attached.content is not element.content

    def test_info_content_option(self, engine, host, static_options):
        engine.show(MarkupTarget("<p>x</p>"), dict(static_options, info_content="Caption"))

        assert host.info == "Caption"
        assert engine.instance.info_enabled

    def test_message_failure_is_not_self_hosted_again(self, engine, host, static_options):
        def broken_attach(target, fade):
            raise ValueError("cannot attach")

        host.attach = broken_attach
        engine.show(MessageTarget("hi"), static_options)

        assert engine.error.startswith("000")
        assert isinstance(engine.instance.current_target, MessageTarget)
        assert engine.instance.current_target.text == "hi"
