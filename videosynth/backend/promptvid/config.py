from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

# Repo root: videosynth/
ROOT = Path(__file__).resolve().parents[2]
ENV_PATH = ROOT / ".env"


def _resolve_under_root(p: str) -> str:
    """Resolve ASSETS_DIR-like paths relative to repo root unless already absolute."""
    if not p:
        return str((ROOT / "_assets").resolve())
    path = Path(p)
    if path.is_absolute():
        return str(path)
    return str((ROOT / path).resolve())


class Settings(BaseSettings):
    database_url: str = "sqlite:///./promptvid.db"
    redis_url: str = "redis://localhost:6379/0"

    # always absolute so the backend works no matter where it's launched from
    assets_dir: str = str((ROOT / "_assets").resolve())

    # Encoding
    ffmpeg_bin: str = "ffmpeg"
    video_bitrate: str = "9M"
    default_format: str = "webm"
    download_prefix: str = "sora2-procedural"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=str(ENV_PATH), extra="ignore")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.assets_dir = _resolve_under_root(self.assets_dir)


settings = Settings()
