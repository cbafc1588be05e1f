"""
Tests for message endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.fixture
async def recipient(make_profile) -> str:
    await make_profile("recipient-1", username="recipient")
    return "recipient-1"


@pytest.mark.unit
class TestSendMessage:
    """Test anonymous sending."""

    async def test_send_without_authentication(self, client: AsyncClient, recipient: str) -> None:
        response = await client.post(
            "/api/v1/messages", json={"recipient_id": recipient, "content": "hello"}
        )

        assert response.status_code == 201
        data = response.json()
        assert set(data) == {"id", "created_at"}

    async def test_empty_content(self, client: AsyncClient, recipient: str) -> None:
        response = await client.post(
            "/api/v1/messages", json={"recipient_id": recipient, "content": "   "}
        )

        assert response.status_code == 422
        assert response.json()["error"] == "empty_content"

    async def test_unknown_recipient(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/messages", json={"recipient_id": "nobody", "content": "hello"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "unknown_recipient"

    async def test_messages_disabled(self, client: AsyncClient, make_profile) -> None:
        await make_profile("quiet-1", allow_anonymous_messages=False)

        response = await client.post(
            "/api/v1/messages", json={"recipient_id": "quiet-1", "content": "hello"}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "messages_disabled"

    async def test_send_is_fanned_out(self, client: AsyncClient, recipient: str, fanout) -> None:
        subscription = fanout.subscribe(recipient)

        response = await client.post(
            "/api/v1/messages", json={"recipient_id": recipient, "content": "hello"}
        )

        event = await subscription.__anext__()
        assert event.id == response.json()["id"]
        subscription.close()

    async def test_unexpected_publish_error_still_returns_created(
        self, client: AsyncClient, recipient: str, fanout, auth_headers_for
    ) -> None:
        from unittest.mock import MagicMock

        fanout.publish = MagicMock(side_effect=RuntimeError("hub broken"))

        response = await client.post(
            "/api/v1/messages", json={"recipient_id": recipient, "content": "hello"}
        )

        assert response.status_code == 201
        inbox = await client.get("/api/v1/messages", headers=auth_headers_for(recipient))
        assert [m["id"] for m in inbox.json()] == [response.json()["id"]]


@pytest.mark.unit
class TestInbox:
    """Test the recipient's inbox operations."""

    async def _send(self, client: AsyncClient, recipient: str, content: str) -> str:
        response = await client.post(
            "/api/v1/messages", json={"recipient_id": recipient, "content": content}
        )
        return response.json()["id"]

    async def test_list_requires_authentication(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/messages")
        assert response.status_code in [401, 403]

    async def test_list_newest_first(self, client: AsyncClient, recipient: str, auth_headers_for) -> None:
        await self._send(client, recipient, "first")
        await self._send(client, recipient, "second")

        response = await client.get("/api/v1/messages", headers=auth_headers_for(recipient))

        assert response.status_code == 200
        assert [m["content"] for m in response.json()] == ["second", "first"]

    async def test_mark_read_and_filter(self, client: AsyncClient, recipient: str, auth_headers_for) -> None:
        headers = auth_headers_for(recipient)
        read_id = await self._send(client, recipient, "read me")
        await self._send(client, recipient, "unread")

        response = await client.post(
            "/api/v1/messages/read", json={"ids": [read_id, "missing"]}, headers=headers
        )
        assert response.json() == {"updated": 1}

        unread = await client.get("/api/v1/messages?filter=unread", headers=headers)
        assert [m["content"] for m in unread.json()] == ["unread"]

    async def test_mark_answered(self, client: AsyncClient, recipient: str, auth_headers_for) -> None:
        headers = auth_headers_for(recipient)
        message_id = await self._send(client, recipient, "question")

        response = await client.post(f"/api/v1/messages/{message_id}/answered", headers=headers)
        assert response.status_code == 204

        answered = await client.get("/api/v1/messages?filter=answered", headers=headers)
        assert [m["id"] for m in answered.json()] == [message_id]

    async def test_delete(self, client: AsyncClient, recipient: str, auth_headers_for) -> None:
        headers = auth_headers_for(recipient)
        message_id = await self._send(client, recipient, "bye")

        response = await client.delete(f"/api/v1/messages/{message_id}", headers=headers)
        assert response.status_code == 204

        listing = await client.get("/api/v1/messages", headers=headers)
        assert listing.json() == []

    async def test_delete_someone_elses(
        self, client: AsyncClient, recipient: str, auth_headers_for
    ) -> None:
        message_id = await self._send(client, recipient, "private")

        response = await client.delete(
            f"/api/v1/messages/{message_id}", headers=auth_headers_for("intruder")
        )

        assert response.status_code == 403
        assert response.json()["error"] == "not_owner"

    async def test_other_inbox_is_not_visible(
        self, client: AsyncClient, recipient: str, auth_headers_for
    ) -> None:
        await self._send(client, recipient, "private")

        response = await client.get("/api/v1/messages", headers=auth_headers_for("intruder"))

        assert response.json() == []
