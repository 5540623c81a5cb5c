from __future__ import annotations

import io
import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse, Response
from sqlalchemy.orm import Session

from ..animation.blueprint import blueprint_for
from ..animation.encode import get_encoder
from ..animation.hashing import prompt_seed
from ..animation.renderer import render_frame
from ..db import get_db
from ..models import RenderJob
from ..schemas import BlueprintOut, RenderJobOut, RenderRequest
from ..storage import download_name
from ..tasks import celery_app, render_job

logger = logging.getLogger(__name__)

router = APIRouter(tags=["videos"])


def _worker_alive() -> bool:
    try:
        replies = celery_app.control.ping(timeout=1.0)
        return bool(replies)
    except Exception:
        logger.debug("celery ping failed", exc_info=True)
        return False


@router.post("/videos", response_model=RenderJobOut)
def create_video(req: RenderRequest, db: Session = Depends(get_db)):
    """Create a render job.

    Dev-friendly behavior:
    - If a Celery worker is alive, enqueue.
    - If no worker responds, render inline before returning.
    """
    job = RenderJob(
        prompt=req.prompt,
        seed=prompt_seed(req.prompt),
        duration_s=req.duration_s,
        fps=req.fps,
        resolution=req.resolution,
        format=req.format,
    )
    db.add(job)
    db.commit()
    db.refresh(job)

    if _worker_alive():
        try:
            celery_app.send_task("render_job", args=[job.id])
            return job
        except Exception:
            logger.warning("enqueue failed for job %s; rendering inline", job.id, exc_info=True)

    render_job(job.id)
    db.refresh(job)
    return job


@router.get("/videos/{job_id}", response_model=RenderJobOut)
def get_video_job(job_id: int, db: Session = Depends(get_db)):
    job = db.get(RenderJob, job_id)
    if not job:
        raise HTTPException(404, "Render job not found")
    return job


@router.get("/videos/{job_id}/file")
def get_video_file(job_id: int, download: bool = False, db: Session = Depends(get_db)):
    job = db.get(RenderJob, job_id)
    if not job:
        raise HTTPException(404, "Render job not found")
    if not job.asset_path or not Path(job.asset_path).exists():
        raise HTTPException(status_code=404, detail="No render found for this job")

    media_type = get_encoder(job.format).media_type
    if download:
        return FileResponse(job.asset_path, media_type=media_type, filename=download_name(job.prompt, job.format))
    return FileResponse(job.asset_path, media_type=media_type, content_disposition_type="inline")


@router.get("/blueprint", response_model=BlueprintOut)
def get_blueprint(prompt: str = ""):
    return blueprint_for(prompt).to_dict()


@router.get("/preview")
def preview_frame(
    prompt: str = "",
    t: float = 0.0,
    size: int = Query(512, ge=1, le=2048),
):
    """Single PNG frame at time t, for scrubbing without rendering a clip."""
    img = render_frame(blueprint_for(prompt), t, size, size)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return Response(content=buf.getvalue(), media_type="image/png")
