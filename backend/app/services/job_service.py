"""
Job tracking from acceptance to completion.
"""

from datetime import datetime, timezone
from functools import partial
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.core.logging import get_logger
from app.db.postgres.models import AuditAction, Job, JobStatus, RequestStatus, User
from app.db.postgres.repositories import JobRepository, ServiceRequestRepository, UserRepository
from app.db.postgres.session import after_commit
from app.services.audit_service import get_audit_service
from app.services.email_service import get_email_service
from app.services.notification_service import JOB_COMPLETED, get_notification_service

logger = get_logger(__name__)


class JobService:
    async def list_jobs(self, db: AsyncSession, user: User, skip: int, limit: int) -> tuple[list[Job], int]:
        """Providers see the jobs they perform, everyone else the jobs they own."""
        return await JobRepository(db).list_for_user(user.id, user.is_provider, skip, limit)

    async def get_job(self, db: AsyncSession, job_id: UUID, user: User) -> Job:
        job = await JobRepository(db).get_detail(job_id)
        if job is None:
            raise NotFoundException(
                message=f"Job with ID {job_id} not found",
                resource_type="Job",
                resource_id=str(job_id),
            )
        if user.id not in (job.owner_id, job.provider_id):
            raise ForbiddenException(message=f"Access denied: Job {job_id} belongs to another user")
        return job

    async def update_status(self, db: AsyncSession, job_id: UUID, user: User, new_status: str) -> Job:
        """
        Move a job through its lifecycle.

        The provider drives the job; an owner who is not also the provider may
        only confirm completion of a job pending confirmation. Completed jobs
        are final. Completion also completes the originating request.

        Raises:
            NotFoundException / ForbiddenException / BadRequestException
        """
        jobs = JobRepository(db)
        job = await jobs.get(job_id)
        if job is None:
            raise NotFoundException(
                message=f"Job with ID {job_id} not found",
                resource_type="Job",
                resource_id=str(job_id),
            )

        is_provider = job.provider_id == user.id
        is_owner = job.owner_id == user.id
        if not (is_provider or is_owner):
            raise ForbiddenException(message=f"Update denied: You are not associated with job {job_id}")

        if is_owner and not is_provider:
            if job.status != JobStatus.PENDING_CONFIRMATION or new_status != JobStatus.COMPLETED:
                raise ForbiddenException(
                    message="Owners can only confirm completion of jobs marked as pending confirmation"
                )

        if job.status == JobStatus.COMPLETED and new_status != JobStatus.COMPLETED:
            raise BadRequestException(message=f"Job {job_id} is already completed and cannot be modified")

        old_status = job.status
        now = datetime.now(timezone.utc)
        job.status = new_status
        if new_status == JobStatus.IN_PROGRESS and job.started_at is None:
            job.started_at = now
        elif new_status == JobStatus.COMPLETED and job.completed_at is None:
            job.completed_at = now

        request = await ServiceRequestRepository(db).get(job.request_id)
        if new_status == JobStatus.COMPLETED and request is not None:
            request.status = RequestStatus.COMPLETED.value
        await db.flush()

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="Job",
            entity_id=job.id,
            action=AuditAction.UPDATE,
            changes={"status": {"old": old_status, "new": new_status}},
        )

        if new_status == JobStatus.COMPLETED and old_status != JobStatus.COMPLETED:
            await get_notification_service().create(
                db,
                job.owner_id,
                JOB_COMPLETED,
                "Job Completed",
                "Your job has been marked as completed. Please review and pay.",
                f"/jobs/{job.id}",
            )
            owner = await UserRepository(db).get(job.owner_id)
            if owner is not None and request is not None:
                after_commit(
                    db,
                    partial(
                        get_email_service().send_job_completed, owner.email, owner.name, request.title, str(job.id)
                    ),
                )

        logger.info(f"Job {job.id} moved from {old_status} to {new_status} by {user.id}")
        return await jobs.get_detail(job.id)


# Singleton instance
_job_service: JobService | None = None


def get_job_service() -> JobService:
    """Get or create job service instance."""
    global _job_service
    if _job_service is None:
        _job_service = JobService()
    return _job_service
