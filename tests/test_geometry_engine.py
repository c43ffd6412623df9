# tests/test_geometry_engine.py
# Content sizing, aspect correction and resize sequencing

from showcase.config.showcase_config import AUTO, FULL
from showcase.core.size import Size
from showcase.core.state import ScaleMode
from showcase.core.targets import ImageTarget, LinkTarget, MarkupTarget, MediaTarget
from showcase.services.geometry_engine import MAX_HEIGHT, MAX_WIDTH


class TestScaledImages:
    """Scalable media keeps its aspect ratio inside the viewport."""

    def test_fits_inside_viewport(self, engine, host, static_options):
        engine.show(ImageTarget("wide.png", Size(400, 100)), static_options)

        assert host.extent == Size(400, 100)
        assert engine.instance.scale.mode is ScaleMode.NATURAL

    def test_single_numeric_axis_derives_the_other(self, engine, host, static_options):
        engine.show(ImageTarget("wide.png", Size(400, 100)), dict(static_options, width=200))

        assert host.extent == Size(200, 50)

    def test_width_only_keeps_ratio(self, engine, host, static_options):
        engine.show(ImageTarget("strip.png", Size(200, 50)),
                    dict(static_options, width=100, height=AUTO))

        assert host.extent == Size(100, 25)

    def test_oversized_image_is_clamped_by_ratio(self, engine, host, static_options):
        engine.show(ImageTarget("big.png", Size(2000, 1000)), static_options)

        # Requested 2000x1000, wrapper clamps to 1000x800
        assert host.extent == Size(1600, 500)
        effective = host.wrapper_size()
        assert effective == Size(1000, 500)
        assert effective.width / effective.height == 2

    def test_fixed_box_relies_on_containment(self, engine, host, static_options):
        engine.show(ImageTarget("a.png", Size(400, 300)),
                    dict(static_options, width=320, height=320))

        assert host.extent == Size(320, 320)
        assert engine.instance.scale is None
        assert host.scaled is True

    def test_scale_media_off_uses_natural_size(self, engine, host, static_options):
        engine.show(ImageTarget("big.png", Size(2000, 1000)),
                    dict(static_options, scale_media=False))

        assert host.extent == Size(2000, 1000)
        assert engine.instance.scale is None

    def test_image_size_is_cached_per_source(self, engine, host, static_options):
        engine.show(ImageTarget("a.png", Size(640, 480)), static_options)

        assert engine.instance.size_cache["a.png"] == Size(640, 480)

    def test_video_uses_reported_frame_size(self, engine, host, static_options):
        media = MediaTarget("clip.mp4", "video/mp4", ready_state=2, video_size=Size(640, 360))
        engine.show(media, static_options)

        assert host.extent == Size(640, 360)


class TestElementSizing:
    """Non-scalable content uses the measured content box."""

    def test_auto_axes_are_measured(self, engine, host, static_options):
        host.box = Size(420, 260)
        engine.show(MarkupTarget("<p>hello</p>"), static_options)

        assert host.extent == Size(420, 260)
        assert engine.instance.scale is None

    def test_numeric_width_is_pinned(self, engine, host, static_options):
        engine.show(MarkupTarget("<p>hello</p>"), dict(static_options, width=500))

        assert host.extent.width == 500
        # Pins are released once measured
        assert host.pinned == {"width": None, "height": None}

    def test_width_larger_than_viewport_is_capped(self, engine, host, static_options):
        engine.show(MarkupTarget("<p>x</p>"), dict(static_options, width=5000))

        assert host.extent.width == 1000

    def test_small_width_lowers_minimum(self, engine, host, static_options):
        engine.show(MarkupTarget("<p>x</p>"), dict(static_options, width=100))

        assert host.minimum["width"] == 100

    def test_zero_measurement_falls_back_to_full(self, engine, host, static_options):
        host.box = Size(0, 0)
        engine.show(MarkupTarget(""), static_options)

        assert host.extent == Size(FULL, FULL)

    def test_forced_scaling_applies_to_markup(self, engine, host, static_options):
        host.box = Size(400, 200)
        engine.show(MarkupTarget("<p>x</p>"), dict(static_options, force_scaling=True))

        assert engine.instance.scale.mode is ScaleMode.FORCED
        assert host.extent == Size(400, 200)


class TestSetDimensions:
    """Resize completion and the small-change threshold."""

    def test_changes_under_threshold_complete_synchronously(self, engine, host):
        host.extent = Size(300, 200)
        host.auto_transition = False

        done = engine.geometry.set_dimensions(301, 200.5, animate=True)

        assert done.settled
        assert host.applied[-1][1] is False
        assert host.watches == []

    def test_waits_only_for_moving_axes(self, engine, host):
        host.extent = Size(300, 200)
        host.auto_transition = False

        done = engine.geometry.set_dimensions(500, 201, animate=True)

        assert not done.settled
        assert host.watches[0].pending == frozenset({MAX_WIDTH})
        host.finish_transitions()
        assert done.settled

    def test_both_axes_pending(self, engine, host):
        host.extent = Size(300, 200)
        host.auto_transition = False

        done = engine.geometry.set_dimensions(600, 400, animate=True)

        assert host.watches[0].pending == frozenset({MAX_WIDTH, MAX_HEIGHT})
        host.watches[0].observe(MAX_WIDTH)
        assert not done.settled
        host.watches[0].observe(MAX_HEIGHT)
        assert done.settled

    def test_unresolved_targets_are_never_excluded(self, engine, host):
        host.extent = Size(AUTO, AUTO)
        host.auto_transition = False

        done = engine.geometry.set_dimensions(AUTO, AUTO, animate=True)

        assert not done.settled

    def test_animated_resize_hides_chrome_first(self, engine, host, static_options):
        engine.show(ImageTarget("a.png", Size(400, 300)), static_options)
        host.auto_transition = False

        engine.resize(600, 450)
        assert host.chrome == (False, False, False)
        host.finish_transitions()
        assert host.chrome[0] is True

    def test_resize_ignored_while_busy(self, engine, host):
        engine.show("slow.png")
        applied = len(host.applied)

        engine.resize(600, 450)

        assert len(host.applied) == applied

    def test_resize_notifies_listeners(self, engine, host, static_options):
        seen = []
        engine.show(ImageTarget("a.png", Size(400, 300)), static_options)
        engine.on("resize", lambda event: seen.append(event.payload))

        engine.resize(500, 400, animate=False)

        assert {"width": 500, "height": 400} in seen


class TestWindowResize:
    """Scaled media is recomputed when the viewport changes."""

    def test_recomputes_for_smaller_viewport(self, engine, host, static_options):
        engine.show(ImageTarget("big.png", Size(2000, 1000)), static_options)
        host.viewport = Size(600, 800)

        engine.on_window_resize()

        assert host.extent == Size(1600, 300)
        assert host.wrapper_size() == Size(600, 300)

    def test_uses_clamped_wrapper_when_size_equals_origin(self, engine, host, static_options):
        engine.show(ImageTarget("a.png", Size(400, 200)), static_options)
        host.viewport = Size(300, 800)

        engine.on_window_resize()

        # Width equals the origin, so the clamped wrapper width is used
        assert host.extent == Size(300, 150)
        assert host.wrapper_size() == Size(300, 150)

    def test_ignored_while_next_item_loads(self, engine, host, static_options):
        seen = []
        engine.show([ImageTarget("a.png", Size(400, 200)), LinkTarget("b.png")], static_options)
        engine.on("resize", lambda event: seen.append(event.name))
        engine.navigate("right")
        assert engine.busy
        applied = len(host.applied)
        host.viewport = Size(300, 800)

        engine.on_window_resize()

        assert len(host.applied) == applied
        assert seen == []
        assert engine.instance.scale is None

    def test_no_op_without_scale_context(self, engine, host, static_options):
        engine.show(MarkupTarget("<p>x</p>"), static_options)
        applied = len(host.applied)

        engine.on_window_resize()

        assert len(host.applied) == applied

    def test_scaled_dimensions_restore_extent(self, engine, host, static_options):
        engine.show(ImageTarget("a.png", Size(400, 200)), static_options)
        before = host.current_extent()

        engine.geometry.scaled_dimensions()

        assert host.current_extent() == before
