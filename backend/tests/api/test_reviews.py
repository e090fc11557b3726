"""
API tests for review endpoints.

Tests:
- POST /api/v1/reviews - Review a completed job
- GET /api/v1/reviews/provider/{id} - Paginated provider reviews (no auth)
- GET /api/v1/reviews/job/{id} - Review of a job, or null
- GET/PUT/DELETE /api/v1/reviews/{id}
- POST /api/v1/reviews/{id}/respond - Provider reply
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient


class TestCreateReview:
    """Tests for POST /api/v1/reviews endpoint."""

    @pytest.mark.asyncio
    async def test_review_completed_job(
        self, async_client: AsyncClient, completed_job, provider_user, owner_headers: dict
    ):
        response = await async_client.post(
            "/api/v1/reviews",
            headers=owner_headers,
            json={"job_id": str(completed_job.id), "rating": 5, "comment": "Spotless work"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["rating"] == 5
        assert data["provider_id"] == str(provider_user.id)
        assert data["owner"]["name"] == "Olivia Owner"

        assert provider_user.rating == 5.0
        assert provider_user.review_count == 1

    @pytest.mark.asyncio
    async def test_review_unfinished_job_returns_400(self, async_client: AsyncClient, test_job, owner_headers: dict):
        response = await async_client.post(
            "/api/v1/reviews", headers=owner_headers, json={"job_id": str(test_job.id), "rating": 4}
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Can only review completed jobs"

    @pytest.mark.asyncio
    async def test_second_review_returns_400(self, async_client: AsyncClient, test_review, owner_headers: dict):
        response = await async_client.post(
            "/api/v1/reviews", headers=owner_headers, json={"job_id": str(test_review.job_id), "rating": 1}
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Review already exists for this job"

    @pytest.mark.asyncio
    async def test_provider_cannot_review_own_job(
        self, async_client: AsyncClient, completed_job, provider_headers: dict
    ):
        response = await async_client.post(
            "/api/v1/reviews", headers=provider_headers, json={"job_id": str(completed_job.id), "rating": 5}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_rating_out_of_range_returns_400(
        self, async_client: AsyncClient, completed_job, owner_headers: dict
    ):
        response = await async_client.post(
            "/api/v1/reviews", headers=owner_headers, json={"job_id": str(completed_job.id), "rating": 6}
        )

        assert response.status_code == 400


class TestReadReviews:
    """Tests for the public review lookups."""

    @pytest.mark.asyncio
    async def test_provider_reviews_paginated(self, async_client: AsyncClient, test_review, provider_user):
        response = await async_client.get(f"/api/v1/reviews/provider/{provider_user.id}?limit=5")

        assert response.status_code == 200
        data = response.json()
        assert [r["id"] for r in data["reviews"]] == [str(test_review.id)]
        assert data["pagination"] == {"total": 1, "page": 1, "limit": 5, "totalPages": 1}

    @pytest.mark.asyncio
    async def test_review_for_job(self, async_client: AsyncClient, test_review):
        response = await async_client.get(f"/api/v1/reviews/job/{test_review.job_id}")

        assert response.status_code == 200
        assert response.json()["id"] == str(test_review.id)

    @pytest.mark.asyncio
    async def test_review_for_unreviewed_job_is_null(self, async_client: AsyncClient, completed_job):
        response = await async_client.get(f"/api/v1/reviews/job/{completed_job.id}")

        assert response.status_code == 200
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_missing_review_returns_404(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/v1/reviews/{uuid4()}")

        assert response.status_code == 404


class TestChangeReview:
    """Tests for editing, answering and deleting reviews."""

    @pytest.mark.asyncio
    async def test_update_rating_refreshes_provider(
        self, async_client: AsyncClient, test_review, provider_user, owner_headers: dict
    ):
        response = await async_client.put(
            f"/api/v1/reviews/{test_review.id}", headers=owner_headers, json={"rating": 2}
        )

        assert response.status_code == 200
        assert response.json()["rating"] == 2
        assert provider_user.rating == 2.0

    @pytest.mark.asyncio
    async def test_update_by_other_user_returns_403(
        self, async_client: AsyncClient, test_review, provider_headers: dict
    ):
        response = await async_client.put(
            f"/api/v1/reviews/{test_review.id}", headers=provider_headers, json={"rating": 5}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_provider_responds(self, async_client: AsyncClient, test_review, provider_headers: dict):
        response = await async_client.post(
            f"/api/v1/reviews/{test_review.id}/respond",
            headers=provider_headers,
            json={"response": "Thanks, see you at the next service!"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["response"] == "Thanks, see you at the next service!"
        assert data["responded_at"] is not None

    @pytest.mark.asyncio
    async def test_owner_cannot_respond(self, async_client: AsyncClient, test_review, owner_headers: dict):
        response = await async_client.post(
            f"/api/v1/reviews/{test_review.id}/respond", headers=owner_headers, json={"response": "Me again"}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_review_resets_rating(
        self, async_client: AsyncClient, test_review, provider_user, owner_headers: dict
    ):
        response = await async_client.delete(f"/api/v1/reviews/{test_review.id}", headers=owner_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Review deleted successfully"}
        assert provider_user.rating is None
        assert provider_user.review_count == 0

        lookup = await async_client.get(f"/api/v1/reviews/{test_review.id}")
        assert lookup.status_code == 404
