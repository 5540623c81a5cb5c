import re
from pathlib import Path
from .config import settings

PROJECT_ROOT = Path(__file__).resolve().parents[2]  # .../videosynth

_slug_re = re.compile(r"[^a-z0-9]+")


def assets_root() -> Path:
    p = Path(settings.assets_dir)
    return p if p.is_absolute() else (PROJECT_ROOT / p).resolve()


def ensure_assets_dir():
    assets_root().mkdir(parents=True, exist_ok=True)


def render_video_path(job_id: int, ext: str) -> str:
    ensure_assets_dir()
    p = assets_root() / "renders"
    p.mkdir(parents=True, exist_ok=True)
    return str(p / f"render_{job_id}.{ext}")


def prompt_slug(prompt: str, limit: int = 40) -> str:
    slug = _slug_re.sub("-", (prompt or "").lower()).strip("-")
    return slug[:limit]


def download_name(prompt: str, ext: str) -> str:
    return f"{settings.download_prefix}-{prompt_slug(prompt) or 'sequence'}.{ext}"
