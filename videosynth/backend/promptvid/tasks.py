from __future__ import annotations

import logging
from pathlib import Path

from celery import Celery
from sqlalchemy.orm import Session

from .config import settings
from .db import SessionLocal
from .errors import EncoderUnavailableError, EncodingError
from .models import RenderJob, RenderStatus
from .storage import render_video_path
from .animation.encode import render_to_file

logger = logging.getLogger(__name__)

# Commit progress to the row at most this often (percent)
PROGRESS_STEP = 10.0

celery_app = Celery(
    "promptvid",
    broker=settings.redis_url,
    backend=settings.redis_url,
)


def _progress_writer(db: Session, job: RenderJob):
    last = {"pct": 0.0}

    def report(pct: float) -> None:
        if pct - last["pct"] < PROGRESS_STEP and pct < 100.0:
            return
        last["pct"] = pct
        job.progress = round(pct, 2)
        db.commit()

    return report


@celery_app.task(name="render_job")
def render_job(job_id: int):
    db: Session = SessionLocal()
    job = None

    try:
        job = db.get(RenderJob, job_id)
        if not job:
            return {"ok": False, "error": "Render job not found"}

        # Mark as running
        job.status = RenderStatus.RUNNING
        job.progress = 0.0
        job.error = None
        db.commit()
        logger.info("render job %s started (seed=%s, %s)", job_id, job.seed, job.format)

        out_path = render_video_path(job.id, job.format)
        try:
            final_path = render_to_file(
                job.prompt,
                out_path,
                duration_s=float(job.duration_s),
                fps=job.fps,
                resolution=job.resolution,
                fmt=job.format,
                on_progress=_progress_writer(db, job),
            )
        except EncoderUnavailableError as e:
            job.status = RenderStatus.FAILED
            job.error = f"Video encoding is not supported here: {e}"
            db.commit()
            logger.warning("render job %s: %s", job_id, job.error)
            return {"ok": False, "error": job.error}
        except EncodingError as e:
            job.status = RenderStatus.FAILED
            job.error = f"Failed to record video: {e}"
            db.commit()
            return {"ok": False, "error": job.error}

        if not Path(final_path).exists():
            job.status = RenderStatus.FAILED
            job.error = "Rendered file not found after encoding"
            db.commit()
            return {"ok": False, "error": job.error}

        job.asset_path = str(Path(final_path).resolve())
        job.progress = 100.0
        job.status = RenderStatus.SUCCEEDED
        db.commit()
        logger.info("render job %s finished: %s", job_id, job.asset_path)

        return {"ok": True, "job_id": job_id, "asset_path": job.asset_path}

    except Exception as e:
        logger.exception("render job %s failed", job_id)
        if job is not None:
            job.status = RenderStatus.FAILED
            job.error = str(e)
            db.commit()
        return {"ok": False, "error": str(e)}

    finally:
        db.close()
