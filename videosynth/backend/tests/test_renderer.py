"""Frame renderer: totality, determinism, blend-state handling, animation."""

import dataclasses
import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
from PIL import Image

from promptvid.animation.blueprint import HSLA, build_scene
from promptvid.animation.renderer import (
    POLYGON_STEPS,
    draw_scene,
    layer_polygon,
    render_frame,
    spark_position,
)
from promptvid.animation.surface import LIGHTER, SOURCE_OVER, Surface


def _frame(bp, t, w, h):
    return np.asarray(render_frame(bp, t, w, h))


class TestRenderTotality:
    @pytest.mark.parametrize("t", [-10.0, 0.0, 0.001, 1e6])
    @pytest.mark.parametrize("size", [(1, 1), (384, 384), (1024, 1024)])
    def test_renders_without_error(self, scenario_blueprint, t, size):
        img = render_frame(scenario_blueprint, t, *size)
        assert img.size == size
        assert img.mode == "RGBA"
        # the gradient leaves every pixel opaque
        assert (np.asarray(img)[..., 3] == 255).all()

    def test_non_square_surface(self, default_blueprint):
        img = render_frame(default_blueprint, 1.5, 200, 64)
        assert img.size == (200, 64)

    def test_integer_time_accepted(self, default_blueprint):
        assert render_frame(default_blueprint, 3, 16, 16).size == (16, 16)


class TestRenderDeterminism:
    def test_same_inputs_same_pixels(self, scenario_blueprint):
        a = _frame(scenario_blueprint, 2.5, 128, 128)
        b = _frame(scenario_blueprint, 2.5, 128, 128)
        assert np.array_equal(a, b)

    def test_rebuilt_blueprint_same_pixels(self):
        a = _frame(build_scene("koi fish"), 1.0, 96, 96)
        b = _frame(build_scene("  KOI FISH "), 1.0, 96, 96)
        assert np.array_equal(a, b)

    def test_seekable_without_prior_frames(self, scenario_blueprint):
        surface = Surface(96, 96)
        for t in (0.0, 1.0, 2.0, 3.2):
            draw_scene(surface, t, scenario_blueprint)
        sequential = surface.to_array()
        direct = _frame(scenario_blueprint, 3.2, 96, 96)
        assert np.array_equal(sequential, direct)

    def test_overwrites_previous_contents(self, scenario_blueprint):
        surface = Surface.from_image(Image.new("RGBA", (64, 64), (255, 0, 255, 255)))
        draw_scene(surface, 0.5, scenario_blueprint)
        assert np.array_equal(surface.to_array(), _frame(scenario_blueprint, 0.5, 64, 64))

    def test_shared_blueprint_across_threads(self, scenario_blueprint):
        expected = _frame(scenario_blueprint, 1.75, 96, 96)

        def render(_):
            surface = Surface(96, 96)
            draw_scene(surface, 1.75, scenario_blueprint)
            return surface.to_array()

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(render, range(8)))
        for arr in results:
            assert np.array_equal(arr, expected)

    def test_surface_size_may_change_between_calls(self, scenario_blueprint):
        surface = Surface(32, 32)
        draw_scene(surface, 1.0, scenario_blueprint)
        surface.resize(48, 24)
        draw_scene(surface, 1.0, scenario_blueprint)
        assert surface.size == (48, 24)
        assert np.array_equal(surface.to_array(), _frame(scenario_blueprint, 1.0, 48, 24))


class TestBlendState:
    def test_leaves_source_over(self, scenario_blueprint):
        surface = Surface(32, 32)
        draw_scene(surface, 0.0, scenario_blueprint)
        assert surface.composite_op == SOURCE_OVER

    def test_resets_a_lighter_surface(self, scenario_blueprint):
        surface = Surface(32, 32)
        surface.set_composite_op(LIGHTER)
        draw_scene(surface, 0.0, scenario_blueprint)
        assert surface.composite_op == SOURCE_OVER
        assert np.array_equal(surface.to_array(), _frame(scenario_blueprint, 0.0, 32, 32))

    def test_later_draws_are_not_additive(self, scenario_blueprint):
        surface = Surface(16, 16)
        draw_scene(surface, 0.0, scenario_blueprint)
        surface.paint(Image.new("RGBA", (16, 16), (10, 10, 10, 255)))
        assert (surface.to_array() == (10, 10, 10, 255)).all()


class TestScenario:
    def test_background_shows_through(self, scenario_blueprint):
        assert all(layer.color.alpha < 1 for layer in scenario_blueprint.layers)

        white = (HSLA(0, 0, 100), HSLA(0, 0, 100))
        swapped = dataclasses.replace(scenario_blueprint, background=white)

        base = _frame(scenario_blueprint, 0.0, 768, 768).astype(int)
        bright = _frame(swapped, 0.0, 768, 768).astype(int)
        assert np.abs(bright[0, 0, :3] - base[0, 0, :3]).max() > 50
        assert np.abs(bright[-1, -1, :3] - base[-1, -1, :3]).max() > 50

    def test_animation_is_not_static(self, scenario_blueprint):
        assert any(layer.speed > 0 for layer in scenario_blueprint.layers)
        a = _frame(scenario_blueprint, 0.0, 768, 768)
        b = _frame(scenario_blueprint, 5.0, 768, 768)
        assert not np.array_equal(a, b)

    def test_frame_is_not_flat(self, scenario_blueprint):
        arr = _frame(scenario_blueprint, 0.0, 128, 128)
        assert arr[..., :3].std() > 5


class TestGeometry:
    def test_polygon_is_closed(self):
        pts = layer_polygon(50, 50, 20, 0.7, lobes=3, amplitude=0.3)
        assert len(pts) == POLYGON_STEPS + 1
        assert pts[0] == pytest.approx(pts[-1])

    def test_zero_amplitude_is_a_circle(self):
        for x, y in layer_polygon(10, 20, 5, 1.3, lobes=4, amplitude=0.0):
            assert math.hypot(x - 10, y - 20) == pytest.approx(5)

    def test_polygon_rotates_with_layer_time(self):
        a = layer_polygon(0, 0, 10, 0.0, lobes=2, amplitude=0.0)
        b = layer_polygon(0, 0, 10, 4.0, lobes=2, amplitude=0.0)
        # spun by layer_time * 0.25 = 1 radian
        assert b[0] == pytest.approx((10 * math.cos(1.0), 10 * math.sin(1.0)))
        assert a[0] == pytest.approx((10.0, 0.0))

    def test_spark_orbits_centre(self, scenario_blueprint):
        spark = scenario_blueprint.sparks[0]
        for t in (0.0, 1.0, 50.0):
            x, y = spark_position(spark, 0, t, 100, 100, 45)
            r = math.hypot(x - 100, y - 100)
            assert r <= (spark.distance + 0.02) * 45 + 1e-9
            assert r >= max(0.0, spark.distance - 0.02) * 45 - 1e-9
