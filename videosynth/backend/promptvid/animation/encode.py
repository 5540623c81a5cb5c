from __future__ import annotations

import io
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Protocol

from PIL import Image

from ..config import settings
from ..errors import EncoderUnavailableError, EncodingError
from .blueprint import SceneBlueprint, blueprint_for
from .renderer import draw_scene
from .surface import Surface

logger = logging.getLogger(__name__)

ProgressFn = Callable[[float], None]


# -----------------------------
# Timeline
# -----------------------------
def frame_count(duration_s: float, fps: float) -> int:
    if duration_s <= 0:
        raise ValueError("duration_s must be > 0")
    if fps <= 0:
        raise ValueError("fps must be > 0")
    return max(1, int(duration_s * fps))


def frame_times(duration_s: float, fps: float) -> Iterator[float]:
    for i in range(frame_count(duration_s, fps)):
        yield i / fps


def iter_frames(
    bp: SceneBlueprint,
    duration_s: float,
    fps: float,
    width: int,
    height: int,
    on_progress: Optional[ProgressFn] = None,
) -> Iterator[Image.Image]:
    """Render each frame of the clip in order. Progress is reported in percent."""
    total = frame_count(duration_s, fps)
    surface = Surface(width, height)
    for i, t in enumerate(frame_times(duration_s, fps)):
        draw_scene(surface, t, bp)
        yield surface.image.copy()
        if on_progress is not None:
            on_progress(min(100.0, (i + 1) / total * 100.0))


# -----------------------------
# Encoders
# -----------------------------
class FrameEncoder(Protocol):
    extension: str
    media_type: str

    def encode(self, frames: Iterable[Image.Image], fps: float) -> bytes: ...


class FfmpegEncoder:
    """Writes frames as PNGs to a scratch dir and hands them to ffmpeg."""

    def __init__(
        self,
        extension: str,
        media_type: str,
        codec_args: List[str],
        binary: Optional[str] = None,
    ):
        self.extension = extension
        self.media_type = media_type
        self.codec_args = list(codec_args)
        self.binary = binary or settings.ffmpeg_bin

    def _resolve_binary(self) -> str:
        found = shutil.which(self.binary)
        if not found:
            raise EncoderUnavailableError(f"ffmpeg not found: {self.binary}")
        return found

    def encode(self, frames: Iterable[Image.Image], fps: float) -> bytes:
        binary = self._resolve_binary()

        with tempfile.TemporaryDirectory(prefix="promptvid_frames_") as tmp:
            tmp_dir = Path(tmp)
            n = 0
            for img in frames:
                img.convert("RGB").save(tmp_dir / f"frame_{n:06d}.png", "PNG")
                n += 1
            if n == 0:
                raise ValueError("no frames to encode")

            out_path = tmp_dir / f"out.{self.extension}"
            cmd = [
                binary, "-y",
                "-framerate", str(fps),
                "-i", str(tmp_dir / "frame_%06d.png"),
                *self.codec_args,
                str(out_path),
            ]
            try:
                subprocess.run(cmd, check=True, capture_output=True, text=True)
            except subprocess.CalledProcessError as e:
                tail = (e.stderr or "")[-2000:]
                logger.error("ffmpeg failed (%s): %s", e.returncode, tail)
                raise EncodingError(f"ffmpeg exited with status {e.returncode}", stderr=tail) from e

            logger.info("encoded %d frames to %s", n, self.extension)
            return out_path.read_bytes()


class GifEncoder:
    extension = "gif"
    media_type = "image/gif"

    def encode(self, frames: Iterable[Image.Image], fps: float) -> bytes:
        it = iter(frames)
        try:
            first = next(it)
        except StopIteration:
            raise ValueError("no frames to encode") from None
        buf = io.BytesIO()
        # rest of the clip is converted lazily as Pillow writes it
        first.convert("RGB").save(
            buf,
            format="GIF",
            save_all=True,
            append_images=(f.convert("RGB") for f in it),
            duration=max(1, int(round(1000 / fps))),
            loop=0,
        )
        return buf.getvalue()


def _webm() -> FfmpegEncoder:
    return FfmpegEncoder(
        "webm",
        "video/webm",
        ["-c:v", "libvpx-vp9", "-b:v", settings.video_bitrate, "-pix_fmt", "yuv420p"],
    )


def _mp4() -> FfmpegEncoder:
    return FfmpegEncoder(
        "mp4",
        "video/mp4",
        ["-c:v", "libx264", "-pix_fmt", "yuv420p", "-movflags", "+faststart"],
    )


ENCODERS: Dict[str, Callable[[], FrameEncoder]] = {
    "webm": _webm,
    "mp4": _mp4,
    "gif": GifEncoder,
}


def get_encoder(fmt: str) -> FrameEncoder:
    factory = ENCODERS.get((fmt or "").lower())
    if factory is None:
        raise ValueError(f"unknown video format: {fmt}")
    return factory()


# -----------------------------
# Main
# -----------------------------
def render_video(
    prompt: str,
    duration_s: float = 6.0,
    fps: float = 24,
    resolution: int = 768,
    fmt: Optional[str] = None,
    on_progress: Optional[ProgressFn] = None,
    encoder: Optional[FrameEncoder] = None,
) -> bytes:
    encoder = encoder or get_encoder(fmt or settings.default_format)
    bp = blueprint_for(prompt)
    frames = iter_frames(bp, duration_s, fps, resolution, resolution, on_progress)
    return encoder.encode(frames, fps)


def render_to_file(
    prompt: str,
    out_path: str,
    duration_s: float = 6.0,
    fps: float = 24,
    resolution: int = 768,
    fmt: Optional[str] = None,
    on_progress: Optional[ProgressFn] = None,
) -> str:
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fmt = fmt or path.suffix.lstrip(".") or settings.default_format

    data = render_video(prompt, duration_s, fps, resolution, fmt, on_progress)
    path.write_bytes(data)
    return str(path)
