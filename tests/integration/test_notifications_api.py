"""Integration tests for the notification inbox."""

from httpx import AsyncClient


async def _friend_request(client: AsyncClient, sender: dict, target: dict) -> None:
    response = await client.post(f"/api/v1/social/friends/{target['id']}/request", json={}, headers=sender["headers"])
    assert response.status_code == 201, response.text


class TestNotificationInbox:
    async def test_list_and_counts(self, client: AsyncClient, alice: dict, bob: dict):
        await _friend_request(client, bob, alice)

        response = await client.get("/api/v1/notifications", headers=alice["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        notification = data["notifications"][0]
        assert notification["type"] == "social"
        assert notification["subtype"] == "friend_request"
        assert notification["title"] == "Bob Cyclist sent you a friend request"
        assert notification["read"] is False
        assert notification["action_label"] == "Respond"
        assert notification["metadata"]["requester_id"] == bob["id"]

        counts = await client.get("/api/v1/notifications/counts", headers=alice["headers"])
        assert counts.json() == {"total": 1, "unread": 1}

        assert (await client.get("/api/v1/notifications", headers=bob["headers"])).json()["total"] == 0

    async def test_mark_read(self, client: AsyncClient, alice: dict, bob: dict):
        await _friend_request(client, bob, alice)
        notification_id = (await client.get("/api/v1/notifications", headers=alice["headers"])).json()[
            "notifications"
        ][0]["id"]

        response = await client.post(f"/api/v1/notifications/{notification_id}/read", headers=alice["headers"])
        assert response.status_code == 200

        counts = (await client.get("/api/v1/notifications/counts", headers=alice["headers"])).json()
        assert counts == {"total": 1, "unread": 0}

        unread = await client.get("/api/v1/notifications", params={"unread_only": True}, headers=alice["headers"])
        assert unread.json()["total"] == 0

    async def test_cannot_touch_other_users_notifications(self, client: AsyncClient, alice: dict, bob: dict):
        await _friend_request(client, bob, alice)
        notification_id = (await client.get("/api/v1/notifications", headers=alice["headers"])).json()[
            "notifications"
        ][0]["id"]

        assert (await client.post(f"/api/v1/notifications/{notification_id}/read",
                                  headers=bob["headers"])).status_code == 404
        assert (await client.delete(f"/api/v1/notifications/{notification_id}",
                                    headers=bob["headers"])).status_code == 404

    async def test_read_all_and_delete(self, client: AsyncClient, alice: dict, bob: dict, admin: dict):
        await _friend_request(client, bob, alice)
        await _friend_request(client, admin, alice)

        response = await client.post("/api/v1/notifications/read-all", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json()["detail"] == "Marked 2 notifications as read"

        notifications = (await client.get("/api/v1/notifications", headers=alice["headers"])).json()["notifications"]
        assert all(n["read"] for n in notifications)

        deleted = await client.delete(f"/api/v1/notifications/{notifications[0]['id']}", headers=alice["headers"])
        assert deleted.status_code == 204
        counts = (await client.get("/api/v1/notifications/counts", headers=alice["headers"])).json()
        assert counts == {"total": 1, "unread": 0}

    async def test_pagination(self, client: AsyncClient, alice: dict, bob: dict, admin: dict):
        await _friend_request(client, bob, alice)
        await _friend_request(client, admin, alice)

        page = await client.get("/api/v1/notifications", params={"per_page": 1, "page": 2}, headers=alice["headers"])
        data = page.json()
        assert data["total"] == 2
        assert len(data["notifications"]) == 1
        assert data["page"] == 2

    async def test_opted_out_user_receives_nothing(self, client: AsyncClient, alice: dict, bob: dict):
        await client.put("/api/v1/users/me/preferences", json={"allow_notifications": False}, headers=alice["headers"])
        await _friend_request(client, bob, alice)

        counts = (await client.get("/api/v1/notifications/counts", headers=alice["headers"])).json()
        assert counts == {"total": 0, "unread": 0}

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/notifications")
        assert response.status_code in (401, 403)
