import enum
from datetime import datetime
from sqlalchemy import String, Text, DateTime, Enum, Integer, Float
from sqlalchemy.orm import Mapped, mapped_column
from .db import Base


class RenderStatus(str, enum.Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class RenderJob(Base):
    __tablename__ = "render_jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    prompt: Mapped[str] = mapped_column(Text)
    seed: Mapped[int] = mapped_column(Integer)

    duration_s: Mapped[int] = mapped_column(Integer)
    fps: Mapped[int] = mapped_column(Integer)
    resolution: Mapped[int] = mapped_column(Integer)  # square frames
    format: Mapped[str] = mapped_column(String(10))

    status: Mapped[RenderStatus] = mapped_column(
        Enum(RenderStatus),
        default=RenderStatus.PENDING,
    )
    progress: Mapped[float] = mapped_column(Float, default=0.0)  # percent
    asset_path: Mapped[str | None] = mapped_column(String(400), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
