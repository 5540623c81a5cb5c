from __future__ import annotations

import math

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from .blueprint import HSLA, LayerSpec, SceneBlueprint, SparkSpec
from .surface import LIGHTER, SOURCE_OVER, Surface

POLYGON_STEPS = 360
PULSE_AMPLITUDE = 0.05
DISTORT_SCALE = 0.4
SPIN_RATE = 0.25

BLUR_BASE = 3.0
BLUR_PER_LAYER = 1.5

SPARK_ORBIT = 0.45
SPARK_GLOW_UNIT = 12.0
SPARK_HUE_RATE = 40.0
SPARK_SATURATION = 80
SPARK_LIGHTNESS = 70
SPARK_CORE_ALPHA = 0.85


# -----------------------------
# Helpers
# -----------------------------
def _alpha_lut(alpha: float) -> list[int]:
    a = min(max(alpha, 0.0), 1.0)
    return [int(v * a + 0.5) for v in range(256)]


def layer_polygon(
    cx: float,
    cy: float,
    radius: float,
    layer_time: float,
    lobes: int,
    amplitude: float,
) -> list[tuple[float, float]]:
    """Closed outline: a circle with `lobes` sinusoidal bumps, spun by layer_time."""
    angles = np.arange(POLYGON_STEPS + 1, dtype=np.float64) / POLYGON_STEPS * math.tau
    distortion = np.sin(angles * lobes + layer_time) * amplitude
    r = radius * (1.0 + distortion)
    spun = angles + layer_time * SPIN_RATE
    xs = cx + np.cos(spun) * r
    ys = cy + np.sin(spun) * r
    return list(zip(xs.tolist(), ys.tolist()))


# -----------------------------
# Passes
# -----------------------------
def _draw_background(surface: Surface, bp: SceneBlueprint) -> None:
    start, end = bp.background
    surface.fill_gradient(start.rgba(), end.rgba())


def _draw_layer(
    surface: Surface,
    layer: LayerSpec,
    index: int,
    t: float,
    pulse: float,
    distort: float,
) -> None:
    w, h = surface.size
    max_dim = max(w, h)
    layer_time = t * layer.speed + layer.rotation
    radius = max_dim * layer.radius * pulse / 2

    points = layer_polygon(
        w / 2,
        h / 2,
        radius,
        layer_time,
        lobes=2 + index,
        amplitude=layer.variance * distort * DISTORT_SCALE,
    )

    # Single-colour fill: blur the coverage mask, then use it as alpha
    mask = Image.new("L", (w, h), 0)
    ImageDraw.Draw(mask).polygon(points, fill=255)
    mask = mask.filter(ImageFilter.GaussianBlur(BLUR_BASE + index * BLUR_PER_LAYER))

    r, g, b, a = layer.color.rgba()
    shape = Image.new("RGBA", (w, h), (r, g, b, 0))
    shape.putalpha(mask.point(_alpha_lut(a / 255.0)))
    surface.paint(shape)


def _spark_buffer(w: int, h: int, bp: SceneBlueprint, t: float) -> np.ndarray:
    """Premultiplied RGBA accumulation of every spark's radial glow."""
    acc = np.zeros((h, w, 4), dtype=np.float32)
    cx, cy = w / 2, h / 2
    orbit = max(w, h) * SPARK_ORBIT

    for idx, spark in enumerate(bp.sparks):
        x, y = spark_position(spark, idx, t, cx, cy, orbit)
        reach = spark.size * SPARK_GLOW_UNIT

        x0, x1 = max(0, int(math.floor(x - reach))), min(w, int(math.ceil(x + reach)) + 1)
        y0, y1 = max(0, int(math.floor(y - reach))), min(h, int(math.ceil(y + reach)) + 1)
        if x0 >= x1 or y0 >= y1:
            continue

        px = np.arange(x0, x1, dtype=np.float32) + 0.5
        py = np.arange(y0, y1, dtype=np.float32) + 0.5
        dist = np.hypot(px[None, :] - x, py[:, None] - y) / reach
        falloff = np.clip(1.0 - dist, 0.0, 1.0) * SPARK_CORE_ALPHA

        core = HSLA(spark.hue_shift + t * SPARK_HUE_RATE, SPARK_SATURATION, SPARK_LIGHTNESS)
        rgb = np.asarray(core.rgb(), dtype=np.float32) / 255.0

        patch = acc[y0:y1, x0:x1]
        patch[..., :3] += falloff[..., None] * rgb
        patch[..., 3] += falloff

    return acc


def spark_position(
    spark: SparkSpec,
    idx: int,
    t: float,
    cx: float,
    cy: float,
    orbit: float,
) -> tuple[float, float]:
    spark_time = t * spark.drift + idx * 0.01
    angle = spark.angle + math.sin(spark_time * 0.5) * 0.5
    distance = spark.distance + math.sin(spark_time) * 0.02
    return (
        cx + math.cos(angle) * distance * orbit,
        cy + math.sin(angle) * distance * orbit,
    )


# -----------------------------
# Main
# -----------------------------
def draw_scene(surface: Surface, t: float, bp: SceneBlueprint) -> None:
    """
    Paint the frame at elapsed time `t` (seconds) onto `surface`.

    Overwrites the whole surface. Output depends only on the surface size,
    `t` and the blueprint; the surface is left in source-over mode.
    """
    t = float(t)
    surface.clear()
    surface.set_composite_op(SOURCE_OVER)
    _draw_background(surface, bp)

    pulse = 1 + math.sin(t * bp.pulse) * PULSE_AMPLITUDE
    for index, layer in enumerate(bp.layers):
        _draw_layer(surface, layer, index, t, pulse, bp.distort)

    with surface.blending(LIGHTER):
        surface.paint_premultiplied(_spark_buffer(surface.width, surface.height, bp, t))


def render_frame(bp: SceneBlueprint, t: float, width: int, height: int) -> Image.Image:
    surface = Surface(width, height)
    draw_scene(surface, t, bp)
    return surface.image.copy()
