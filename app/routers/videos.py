from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import get_video_jobs
from app.studio.adapter import submit_video_job
from app.studio.errors import ApiError
from app.studio.jobs import VideoJob, VideoJobRegistry
from app.studio.schemas import VideoGenerationRequest

router = APIRouter(prefix="/v1/videos", tags=["videos"])


@router.post("")
async def create_video(
    payload: VideoGenerationRequest,
    jobs: VideoJobRegistry = Depends(get_video_jobs),
):
    job = submit_video_job(payload, jobs)
    return JSONResponse(status_code=202, content=job.to_payload())


@router.get("/{job_id}")
async def get_video(job_id: str, jobs: VideoJobRegistry = Depends(get_video_jobs)) -> dict:
    return _require_job(jobs.get(job_id), job_id).to_payload()


@router.delete("/{job_id}")
async def cancel_video(job_id: str, jobs: VideoJobRegistry = Depends(get_video_jobs)) -> dict:
    return _require_job(jobs.cancel(job_id), job_id).to_payload()


def _require_job(job: VideoJob | None, job_id: str) -> VideoJob:
    if job is None:
        raise ApiError(
            status_code=404,
            message=f"Unknown video job '{job_id}'.",
            code="job_not_found",
            param="job_id",
        )
    return job
