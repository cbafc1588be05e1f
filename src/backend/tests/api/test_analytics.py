"""
Tests for the analytics endpoint.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient


@pytest.mark.unit
class TestAnalyticsEndpoints:
    """Test the inbox summary over HTTP."""

    async def test_requires_authentication(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/analytics/summary")
        assert response.status_code in [401, 403]

    async def test_summary(
        self, client: AsyncClient, make_profile, make_message, auth_headers_for
    ) -> None:
        from core.clock import utc_now

        await make_profile("recipient-1")
        await make_message("recipient-1", utc_now() - timedelta(seconds=1))

        response = await client.get(
            "/api/v1/analytics/summary", headers=auth_headers_for("recipient-1")
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_messages"] == 1
        assert data["messages_this_week"] == 1
        assert data["messages_last_week"] == 0
        assert data["growth_percent"] == 100
        assert sum(data["by_day_of_week"]) == 1
        assert len(data["day_labels"]) == 7

    async def test_unknown_profile(self, client: AsyncClient, auth_headers_for) -> None:
        response = await client.get(
            "/api/v1/analytics/summary", headers=auth_headers_for("nobody")
        )

        assert response.status_code == 404
        assert response.json()["error"] == "unknown_recipient"
