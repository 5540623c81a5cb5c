from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Tuple

from PIL import ImageColor

from .hashing import hash_prompt, normalize_prompt, to_int32
from .rng import SeededGenerator

TAU = math.pi * 2


def clamp(x: float, lo: float, hi: float) -> float:
    return min(max(x, lo), hi)


# -----------------------------
# Colour
# -----------------------------
@dataclass(frozen=True)
class HSLA:
    hue: float  # degrees
    saturation: float  # percent
    lightness: float  # percent
    alpha: float = 1.0

    def rgb(self) -> Tuple[int, int, int]:
        # ImageColor only parses non-negative hues
        h = self.hue % 360
        return ImageColor.getrgb(
            f"hsl({h:.4f}, {self.saturation:.4f}%, {self.lightness:.4f}%)"
        )

    def rgba(self) -> Tuple[int, int, int, int]:
        a = int(round(clamp(self.alpha, 0.0, 1.0) * 255))
        return self.rgb() + (a,)

    def css(self) -> str:
        return f"hsla({self.hue:g}, {self.saturation:g}%, {self.lightness:g}%, {self.alpha:g})"


# -----------------------------
# Blueprint
# -----------------------------
@dataclass(frozen=True)
class LayerSpec:
    color: HSLA
    radius: float
    rotation: float
    speed: float
    variance: float


@dataclass(frozen=True)
class SparkSpec:
    angle: float
    distance: float
    size: float
    drift: float
    hue_shift: float


@dataclass(frozen=True)
class SceneBlueprint:
    layers: Tuple[LayerSpec, ...]
    sparks: Tuple[SparkSpec, ...]
    background: Tuple[HSLA, HSLA]
    pulse: float
    distort: float
    seed: int = 0

    def __post_init__(self):
        if not self.layers:
            raise ValueError("blueprint needs at least one layer")
        if not self.sparks:
            raise ValueError("blueprint needs at least one spark")
        if len(self.background) != 2:
            raise ValueError("background must have exactly two colour stops")
        if not (math.isfinite(self.pulse) and math.isfinite(self.distort)):
            raise ValueError("pulse and distort must be finite")

    def to_dict(self) -> dict:
        """JSON-friendly view; colours rendered as CSS hsla() strings."""
        out = asdict(self)
        out["background"] = [c.css() for c in self.background]
        for layer, spec in zip(out["layers"], self.layers):
            layer["color"] = spec.color.css()
        return out


LAYER_COUNT_MIN, LAYER_COUNT_SPAN = 5, 5
SPARK_COUNT_MIN, SPARK_COUNT_SPAN = 120, 180


def _background(seed: int) -> Tuple[Tuple[HSLA, HSLA], float]:
    hue = (seed % 360) / 360
    # Arithmetic shift on the signed value, remainder keeps the dividend's sign
    accent = clamp(math.fmod(to_int32(seed) >> 8, 360) / 360, 0.0, 1.0)
    start = HSLA(math.floor(hue * 360), 68, 12)
    end = HSLA(math.floor(((hue + accent / 3) % 1) * 360), 80, 22)
    return (start, end), hue


def _layer(rng: SeededGenerator, base_hue: float, index: int) -> LayerSpec:
    raw_hue = math.fmod(base_hue + rng.next() * 0.25 - 0.125 + index * 0.03, 1.0)
    color = HSLA(
        hue=math.floor(raw_hue * 360) % 360,
        saturation=60 + math.floor(rng.next() * 30),
        lightness=45 + math.floor(rng.next() * 20),
        alpha=0.35 + rng.next() * 0.35,
    )
    return LayerSpec(
        color=color,
        radius=0.25 + rng.next() * 0.65,
        rotation=rng.next() * TAU,
        speed=0.2 + rng.next() * 0.9,
        variance=0.2 + rng.next() * 0.6,
    )


def _spark(rng: SeededGenerator) -> SparkSpec:
    return SparkSpec(
        angle=rng.next() * TAU,
        distance=0.1 + rng.next() * 0.9,
        size=1 + rng.next() * 2,
        drift=0.5 + rng.next() * 1.5,
        hue_shift=(rng.next() - 0.5) * 40,
    )


def build_scene(prompt: str | None) -> SceneBlueprint:
    """
    Turn a prompt into a SceneBlueprint.

    The generator is consumed in a fixed order (layer count, layers, spark
    count, sparks, pulse, distort); changing it changes every blueprint.
    """
    seed = hash_prompt(normalize_prompt(prompt))
    background, hue = _background(seed)

    rng = SeededGenerator(seed)
    layer_count = LAYER_COUNT_MIN + math.floor(rng.next() * LAYER_COUNT_SPAN)
    layers = tuple(_layer(rng, hue, i) for i in range(layer_count))

    spark_count = SPARK_COUNT_MIN + math.floor(rng.next() * SPARK_COUNT_SPAN)
    sparks = tuple(_spark(rng) for _ in range(spark_count))

    pulse = 0.4 + rng.next() * 0.4
    distort = 0.5 + rng.next() * 0.9

    return SceneBlueprint(
        layers=layers,
        sparks=sparks,
        background=background,
        pulse=pulse,
        distort=distort,
        seed=seed,
    )


@lru_cache(maxsize=64)
def _cached_scene(normalized: str) -> SceneBlueprint:
    return build_scene(normalized)


def blueprint_for(prompt: str | None) -> SceneBlueprint:
    """Memoized build_scene; prompts that normalize alike share one blueprint."""
    return _cached_scene(normalize_prompt(prompt))
