"""
Job endpoints - tracking accepted work until completion.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.api.v1.schemas.common import PaginatedResponse, PaginationParams, paginate
from app.api.v1.schemas.job import JobDetailResponse, JobListItem, JobStatusUpdate
from app.db.postgres.models import User
from app.db.postgres.session import get_db, get_read_db
from app.services.job_service import JobService, get_job_service

router = APIRouter()


@router.get("", response_model=PaginatedResponse[JobListItem], summary="List jobs")
async def list_jobs(
    pagination: PaginationParams = Depends(),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    job_service: JobService = Depends(get_job_service),
):
    """Providers see the jobs they perform, owners the jobs they ordered."""
    jobs, total = await job_service.list_jobs(db, current_user, pagination.skip, pagination.limit)
    return paginate(jobs, total, pagination)


@router.get("/{job_id}", response_model=JobDetailResponse, summary="Get a job")
async def get_job(
    job_id: UUID = Path(..., description="Job ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    job_service: JobService = Depends(get_job_service),
):
    return await job_service.get_job(db, job_id, current_user)


@router.put(
    "/{job_id}/status",
    response_model=JobDetailResponse,
    summary="Change job status",
    responses={
        400: {"description": "Job already completed"},
        403: {"description": "Not a participant, or owner trying a provider transition"},
        404: {"description": "Job not found"},
    },
)
async def update_job_status(
    data: JobStatusUpdate,
    job_id: UUID = Path(..., description="Job ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    job_service: JobService = Depends(get_job_service),
):
    """
    Move the job through pending, in_progress, pending_confirmation and
    completed.

    The provider drives the job. The owner can only confirm completion once
    the provider has asked for confirmation. Completing a job completes its
    request and notifies the owner.
    """
    return await job_service.update_status(db, job_id, current_user, data.status)
