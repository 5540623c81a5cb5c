from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from .models import RenderStatus


class RenderRequest(BaseModel):
    """Clip parameters, bounded to what the generator form offered.

    The renderer itself accepts any positive duration / fps / size; these
    limits keep a single request from tying up a worker.
    """

    prompt: str = ""
    duration_s: int = Field(6, ge=2, le=12)
    fps: Literal[12, 24, 30] = 24
    resolution: int = Field(768, ge=384, le=1024, multiple_of=64)
    format: Literal["webm", "mp4", "gif"] = "webm"


class RenderJobOut(BaseModel):
    id: int
    prompt: str
    seed: int
    duration_s: int
    fps: int
    resolution: int
    format: str
    status: RenderStatus
    progress: float
    asset_path: Optional[str] = None
    error: Optional[str] = None

    class Config:
        from_attributes = True


class LayerOut(BaseModel):
    color: str
    radius: float
    rotation: float
    speed: float
    variance: float


class SparkOut(BaseModel):
    angle: float
    distance: float
    size: float
    drift: float
    hue_shift: float


class BlueprintOut(BaseModel):
    seed: int
    layers: List[LayerOut]
    sparks: List[SparkOut]
    background: List[str]
    pulse: float
    distort: float
