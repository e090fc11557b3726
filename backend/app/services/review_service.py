"""
Reviews of completed jobs and the provider rating they feed.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.review import ReviewCreate, ReviewUpdate
from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.core.logging import get_logger
from app.db.postgres.models import JobStatus, Review, User
from app.db.postgres.repositories import JobRepository, ReviewRepository, UserRepository

logger = get_logger(__name__)


class ReviewService:
    async def _refresh_provider_rating(self, db: AsyncSession, provider_id: UUID) -> None:
        """Recompute the denormalized rating and review count on the provider."""
        average, count = await ReviewRepository(db).rating_stats(provider_id)
        provider = await UserRepository(db).get(provider_id)
        if provider is None:
            return
        provider.rating = round(average, 2) if average is not None else None
        provider.review_count = count
        await db.flush()

    async def _get_review(self, db: AsyncSession, review_id: UUID) -> Review:
        review = await ReviewRepository(db).get_with_owner(review_id)
        if review is None:
            raise NotFoundException(message="Review not found", resource_type="Review", resource_id=str(review_id))
        return review

    async def create_review(self, db: AsyncSession, user: User, data: ReviewCreate) -> Review:
        """
        Review a completed job as its owner.

        Raises:
            NotFoundException: Job not found
            ForbiddenException: Caller is not the job owner
            BadRequestException: Job not completed, or already reviewed
        """
        job = await JobRepository(db).get(data.job_id)
        if job is None:
            raise NotFoundException(message="Job not found", resource_type="Job", resource_id=str(data.job_id))
        if job.owner_id != user.id:
            raise ForbiddenException(message="Only the job owner can leave a review")
        if job.status != JobStatus.COMPLETED:
            raise BadRequestException(message="Can only review completed jobs")

        reviews = ReviewRepository(db)
        if await reviews.get_by_job(job.id) is not None:
            raise BadRequestException(message="Review already exists for this job")

        review = await reviews.create(
            {
                "job_id": job.id,
                "owner_id": user.id,
                "provider_id": job.provider_id,
                "rating": data.rating,
                "comment": data.comment,
            }
        )
        await self._refresh_provider_rating(db, job.provider_id)
        logger.info(f"Review {review.id} created for job {job.id}")
        return await reviews.get_with_owner(review.id)

    async def list_for_provider(
        self, db: AsyncSession, provider_id: UUID, page: int, limit: int
    ) -> tuple[list[Review], int]:
        return await ReviewRepository(db).list_for_provider(provider_id, (page - 1) * limit, limit)

    async def get_review(self, db: AsyncSession, review_id: UUID) -> Review:
        return await self._get_review(db, review_id)

    async def get_by_job(self, db: AsyncSession, job_id: UUID) -> Review | None:
        return await ReviewRepository(db).get_by_job(job_id)

    async def update_review(self, db: AsyncSession, review_id: UUID, user: User, data: ReviewUpdate) -> Review:
        review = await self._get_review(db, review_id)
        if review.owner_id != user.id:
            raise ForbiddenException(message="You can only update your own reviews")

        updates = data.model_dump(exclude_unset=True)
        for key, value in updates.items():
            setattr(review, key, value)
        await db.flush()

        if "rating" in updates:
            await self._refresh_provider_rating(db, review.provider_id)
        return await self._get_review(db, review.id)

    async def respond(self, db: AsyncSession, review_id: UUID, user: User, response: str) -> Review:
        review = await self._get_review(db, review_id)
        if review.provider_id != user.id:
            raise ForbiddenException(message="Only the provider can respond to this review")

        review.response = response
        review.responded_at = datetime.now(timezone.utc)
        await db.flush()
        return review

    async def delete_review(self, db: AsyncSession, review_id: UUID, user: User) -> None:
        review = await self._get_review(db, review_id)
        if review.owner_id != user.id:
            raise ForbiddenException(message="You can only delete your own reviews")

        provider_id = review.provider_id
        await db.delete(review)
        await db.flush()
        await self._refresh_provider_rating(db, provider_id)


# Singleton instance
_review_service: ReviewService | None = None


def get_review_service() -> ReviewService:
    """Get or create review service instance."""
    global _review_service
    if _review_service is None:
        _review_service = ReviewService()
    return _review_service
