"""Raster target for the frame renderer.

A Surface is an RGBA Pillow image plus a compositing mode, the two pieces of
state a 2D drawing context carries between draw calls. Everything painted
onto it goes through `paint`, which honours the current mode:

    source-over   regular alpha-over compositing
    lighter       additive, on premultiplied colour (overlaps brighten)
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Tuple

import numpy as np
from PIL import Image

from ..errors import SurfaceError

SOURCE_OVER = "source-over"
LIGHTER = "lighter"
COMPOSITE_OPS = (SOURCE_OVER, LIGHTER)

RGBA = Tuple[int, int, int, int]


def _check_size(width: int, height: int) -> Tuple[int, int]:
    try:
        w, h = int(width), int(height)
    except (TypeError, ValueError):
        raise SurfaceError(f"invalid surface size: {width!r}x{height!r}") from None
    if w <= 0 or h <= 0:
        raise SurfaceError(f"surface must be at least 1x1, got {w}x{h}")
    return w, h


class Surface:
    def __init__(self, width: int, height: int):
        w, h = _check_size(width, height)
        self.image = Image.new("RGBA", (w, h), (0, 0, 0, 0))
        self.composite_op = SOURCE_OVER

    @classmethod
    def from_image(cls, img: Image.Image) -> "Surface":
        surface = cls(*img.size)
        surface.image = img.convert("RGBA")
        return surface

    @property
    def width(self) -> int:
        return self.image.size[0]

    @property
    def height(self) -> int:
        return self.image.size[1]

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def resize(self, width: int, height: int) -> None:
        """Reallocate to a new size. Contents are discarded."""
        w, h = _check_size(width, height)
        self.image = Image.new("RGBA", (w, h), (0, 0, 0, 0))

    def clear(self) -> None:
        self.image = Image.new("RGBA", self.image.size, (0, 0, 0, 0))

    def set_composite_op(self, op: str) -> None:
        if op not in COMPOSITE_OPS:
            raise ValueError(f"unknown composite op: {op}")
        self.composite_op = op

    @contextmanager
    def blending(self, op: str) -> Iterator["Surface"]:
        previous = self.composite_op
        self.set_composite_op(op)
        try:
            yield self
        finally:
            self.composite_op = previous

    # -----------------------------
    # Painting
    # -----------------------------
    def paint(self, layer: Image.Image) -> None:
        if layer.size != self.image.size:
            raise ValueError(f"layer size {layer.size} != surface size {self.image.size}")
        layer = layer if layer.mode == "RGBA" else layer.convert("RGBA")
        if self.composite_op == LIGHTER:
            self.paint_premultiplied(premultiplied(layer))
        else:
            self.image = Image.alpha_composite(self.image, layer)

    def paint_premultiplied(self, src: np.ndarray) -> None:
        """Composite a float (H, W, 4) premultiplied buffer in [0, 1]; values may exceed 1."""
        if src.shape[:2] != (self.height, self.width):
            raise ValueError(f"buffer shape {src.shape[:2]} != surface size {(self.height, self.width)}")
        dst = premultiplied(self.image)
        if self.composite_op == LIGHTER:
            out = dst + src
        else:
            src = np.clip(src, 0.0, 1.0)
            out = src + dst * (1.0 - src[..., 3:4])
        self.image = from_premultiplied(out)

    def fill_gradient(self, start: RGBA, end: RGBA) -> None:
        """Linear gradient across the diagonal, top-left to bottom-right."""
        self.paint(diagonal_gradient(self.width, self.height, start, end))

    def to_array(self) -> np.ndarray:
        return np.asarray(self.image, dtype=np.uint8).copy()


# -----------------------------
# Helpers
# -----------------------------
def diagonal_gradient(w: int, h: int, start: RGBA, end: RGBA) -> Image.Image:
    # Project pixel centres onto the (0,0)->(w,h) axis
    xs = (np.arange(w, dtype=np.float32) + 0.5) * w
    ys = (np.arange(h, dtype=np.float32) + 0.5) * h
    t = (ys[:, None] + xs[None, :]) / float(w * w + h * h)
    t = np.clip(t, 0.0, 1.0)[..., None]

    c0 = np.asarray(start, dtype=np.float32)
    c1 = np.asarray(end, dtype=np.float32)
    px = c0 + (c1 - c0) * t
    return Image.fromarray(np.clip(px + 0.5, 0, 255).astype(np.uint8))


def premultiplied(img: Image.Image) -> np.ndarray:
    arr = np.asarray(img, dtype=np.float32) / 255.0
    arr[..., :3] *= arr[..., 3:4]
    return arr


def from_premultiplied(arr: np.ndarray) -> Image.Image:
    arr = np.clip(arr, 0.0, 1.0)
    alpha = arr[..., 3:4]
    rgb = np.divide(arr[..., :3], alpha, out=np.zeros_like(arr[..., :3]), where=alpha > 0)
    out = np.concatenate([np.clip(rgb, 0.0, 1.0), alpha], axis=2)
    return Image.fromarray((out * 255.0 + 0.5).astype(np.uint8))
