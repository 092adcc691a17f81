"""Integration tests for friends, cheers and the activity feed."""

from httpx import AsyncClient

from conftest import complete_workout, make_friends, register_user
from fitvibe.db.models import XPLedger


async def _share(client: AsyncClient, user: dict, activity_id: int, **body) -> dict:
    response = await client.post(f"/api/v1/social/share/activity/{activity_id}", json=body, headers=user["headers"])
    assert response.status_code == 201, response.text
    return response.json()


class TestFriendRequests:
    async def test_request_and_accept(self, client: AsyncClient, alice: dict, bob: dict):
        sent = await client.post(
            f"/api/v1/social/friends/{bob['id']}/request", json={"message": "Run together?"}, headers=alice["headers"]
        )
        assert sent.status_code == 201
        assert sent.json()["status"] == "Pending"

        requests = (await client.get("/api/v1/social/friends/requests", headers=bob["headers"])).json()
        assert [r["id"] for r in requests["incoming"]] == [sent.json()["id"]]
        assert requests["outgoing"] == []

        accepted = await client.post(
            f"/api/v1/social/friends/requests/{sent.json()['id']}/respond",
            json={"accept": True},
            headers=bob["headers"],
        )
        assert accepted.json()["status"] == "Accepted"
        assert accepted.json()["responded_at"] is not None

        for me, other in ((alice, bob), (bob, alice)):
            friends = (await client.get("/api/v1/social/friends", headers=me["headers"])).json()
            assert friends["total"] == 1
            assert friends["friends"][0]["user_id"] == other["id"]

        badges = (await client.get("/api/v1/gamification/badges/mine", headers=alice["headers"])).json()
        assert "first_friend" in [b["slug"] for b in badges["earned"]]

    async def test_decline(self, client: AsyncClient, alice: dict, bob: dict):
        sent = await client.post(f"/api/v1/social/friends/{bob['id']}/request", json={}, headers=alice["headers"])
        url = f"/api/v1/social/friends/requests/{sent.json()['id']}/respond"

        assert (await client.post(url, json={"accept": True}, headers=alice["headers"])).status_code == 403

        declined = await client.post(url, json={"accept": False}, headers=bob["headers"])
        assert declined.json()["status"] == "Declined"
        assert (await client.post(url, json={"accept": True}, headers=bob["headers"])).status_code == 400
        assert (await client.get("/api/v1/social/friends", headers=bob["headers"])).json()["total"] == 0

    async def test_request_errors(self, client: AsyncClient, alice: dict, bob: dict):
        url = f"/api/v1/social/friends/{bob['id']}/request"
        assert (await client.post(f"/api/v1/social/friends/{alice['id']}/request", json={},
                                  headers=alice["headers"])).status_code == 400
        assert (await client.post("/api/v1/social/friends/987654/request", json={},
                                  headers=alice["headers"])).status_code == 404

        assert (await client.post(url, json={}, headers=alice["headers"])).status_code == 201
        duplicate = await client.post(url, json={}, headers=alice["headers"])
        assert duplicate.status_code == 409
        assert duplicate.json()["detail"] == "RequestExists"

        reverse = await client.post(f"/api/v1/social/friends/{alice['id']}/request", json={}, headers=bob["headers"])
        assert reverse.status_code == 409

    async def test_already_friends(self, client: AsyncClient, alice: dict, bob: dict):
        await make_friends(client, alice, bob)
        response = await client.post(f"/api/v1/social/friends/{bob['id']}/request", json={}, headers=alice["headers"])
        assert response.status_code == 409
        assert response.json()["detail"] == "AlreadyFriends"

    async def test_target_not_accepting(self, client: AsyncClient, alice: dict, bob: dict):
        await client.put(
            "/api/v1/users/me/preferences", json={"allow_friend_requests": False}, headers=bob["headers"]
        )
        response = await client.post(f"/api/v1/social/friends/{bob['id']}/request", json={}, headers=alice["headers"])
        assert response.status_code == 403

    async def test_hourly_quota(self, client: AsyncClient, alice: dict):
        for i in range(10):
            other = await register_user(client, f"quota{i}@example.com")
            response = await client.post(
                f"/api/v1/social/friends/{other['id']}/request", json={}, headers=alice["headers"]
            )
            assert response.status_code == 201
        extra = await register_user(client, "quota-extra@example.com")
        response = await client.post(f"/api/v1/social/friends/{extra['id']}/request", json={}, headers=alice["headers"])
        assert response.status_code == 429

    async def test_unfriend(self, client: AsyncClient, alice: dict, bob: dict):
        await make_friends(client, alice, bob)
        response = await client.delete(f"/api/v1/social/friends/{bob['id']}", headers=alice["headers"])
        assert response.status_code == 204
        assert (await client.get("/api/v1/social/friends", headers=bob["headers"])).json()["total"] == 0
        assert (await client.delete(f"/api/v1/social/friends/{bob['id']}", headers=alice["headers"])).status_code == 404


class TestCheers:
    async def test_cheer_friend(self, client: AsyncClient, alice: dict, bob: dict):
        await make_friends(client, alice, bob)
        response = await client.post(
            f"/api/v1/social/cheer/{bob['id']}",
            json={"cheer_type": "emoji", "emoji_code": "fire"},
            headers=alice["headers"],
        )
        assert response.status_code == 201
        data = response.json()
        assert data["cheer_type"] == "emoji"
        assert data["is_live"] is False
        assert data["power_up_value"] == 0

        notifications = (await client.get("/api/v1/notifications", headers=bob["headers"])).json()
        assert notifications["notifications"][0]["subtype"] == "cheer"

    async def test_live_cheer_on_active_session(self, client: AsyncClient, alice: dict, bob: dict):
        await make_friends(client, alice, bob)
        started = await client.post("/api/v1/activities/start", json={"activity_type": "running"}, headers=bob["headers"])
        response = await client.post(
            f"/api/v1/social/cheer/{bob['id']}",
            json={"cheer_type": "text", "message": "Go Bob!", "user_activity_id": started.json()["id"]},
            headers=alice["headers"],
        )
        assert response.json()["is_live"] is True

    async def test_powerup_grants_xp(self, client: AsyncClient, alice: dict, bob: dict):
        await make_friends(client, alice, bob)
        before = (await client.get("/api/v1/users/me", headers=bob["headers"])).json()["experience_points"]
        response = await client.post(
            f"/api/v1/social/cheer/{bob['id']}",
            json={"cheer_type": "powerup", "power_up_value": 25},
            headers=alice["headers"],
        )
        assert response.status_code == 201
        after = (await client.get("/api/v1/users/me", headers=bob["headers"])).json()["experience_points"]
        assert after == before + 25

    async def test_powerup_survives_failed_xp_grant(self, client: AsyncClient, alice: dict, bob: dict, monkeypatch):
        await make_friends(client, alice, bob)
        before = (await client.get("/api/v1/users/me", headers=bob["headers"])).json()["experience_points"]

        async def broken_grant(db, redis, user_id, *args, **kwargs):
            db.add(XPLedger(user_id=user_id))
            await db.flush()

        monkeypatch.setattr("fitvibe.social.cheer_service.grant_xp", broken_grant)
        response = await client.post(
            f"/api/v1/social/cheer/{bob['id']}",
            json={"cheer_type": "powerup", "power_up_value": 25},
            headers=alice["headers"],
        )
        assert response.status_code == 201
        assert response.json()["power_up_value"] == 25

        notifications = (await client.get("/api/v1/notifications", headers=bob["headers"])).json()
        assert [n["subtype"] for n in notifications["notifications"]][:1] == ["cheer"]
        me = (await client.get("/api/v1/users/me", headers=bob["headers"])).json()
        assert me["experience_points"] == before

    async def test_cheer_rules(self, client: AsyncClient, alice: dict, bob: dict):
        text = {"cheer_type": "text", "message": "Nice"}
        assert (await client.post(f"/api/v1/social/cheer/{alice['id']}", json=text,
                                  headers=alice["headers"])).status_code == 400
        assert (await client.post(f"/api/v1/social/cheer/{bob['id']}", json=text,
                                  headers=alice["headers"])).status_code == 403
        assert (await client.post("/api/v1/social/cheer/987654", json=text,
                                  headers=alice["headers"])).status_code == 404
        bad_powerup = await client.post(
            f"/api/v1/social/cheer/{bob['id']}", json={"cheer_type": "powerup", "power_up_value": 500},
            headers=alice["headers"],
        )
        assert bad_powerup.status_code == 400

    async def test_public_sharer_can_be_cheered(self, client: AsyncClient, alice: dict, bob: dict):
        await client.put(
            "/api/v1/users/me/preferences", json={"share_activities_publicly": True}, headers=bob["headers"]
        )
        response = await client.post(
            f"/api/v1/social/cheer/{bob['id']}", json={"cheer_type": "text", "message": "Nice"}, headers=alice["headers"]
        )
        assert response.status_code == 201

    async def test_activity_must_belong_to_target(self, client: AsyncClient, alice: dict, bob: dict):
        await make_friends(client, alice, bob)
        own = await complete_workout(client, alice)
        response = await client.post(
            f"/api/v1/social/cheer/{bob['id']}",
            json={"cheer_type": "text", "message": "Nice", "user_activity_id": own["activity"]["id"]},
            headers=alice["headers"],
        )
        assert response.status_code == 404

    async def test_rate_limit(self, client: AsyncClient, alice: dict, bob: dict):
        await make_friends(client, alice, bob)
        body = {"cheer_type": "emoji", "emoji_code": "clap"}
        for _ in range(5):
            response = await client.post(f"/api/v1/social/cheer/{bob['id']}", json=body, headers=alice["headers"])
            assert response.status_code == 201
        response = await client.post(f"/api/v1/social/cheer/{bob['id']}", json=body, headers=alice["headers"])
        assert response.status_code == 429


class TestFeed:
    async def test_share_like_comment(self, client: AsyncClient, alice: dict, bob: dict):
        workout = await complete_workout(client, alice)
        share = await _share(client, alice, workout["activity"]["id"], caption="Morning miles")
        assert share["privacy"] == "Public"

        feed = (await client.get("/api/v1/social/feed", headers=bob["headers"])).json()
        assert feed["total"] == 1
        item = feed["items"][0]
        assert item["share"]["caption"] == "Morning miles"
        assert item["owner"]["display_name"] == "Alice Runner"
        assert item["activity"]["distance_km"] == 5.0

        liked = await client.post(f"/api/v1/social/posts/{share['id']}/like", headers=bob["headers"])
        assert liked.status_code == 201
        assert liked.json() == {"share_id": share["id"], "liked": True}
        assert (await client.post(f"/api/v1/social/posts/{share['id']}/like", headers=bob["headers"])).status_code == 409

        comment = await client.post(
            f"/api/v1/social/posts/{share['id']}/comment", json={"content": "  Strong pace!  "}, headers=bob["headers"]
        )
        assert comment.status_code == 201
        assert comment.json()["content"] == "Strong pace!"
        assert comment.json()["author"]["user_id"] == bob["id"]

        feed = (await client.get("/api/v1/social/feed", headers=bob["headers"])).json()
        assert feed["items"][0]["like_count"] == 1
        assert feed["items"][0]["comment_count"] == 1
        assert feed["items"][0]["liked_by_me"] is True

        comments = (await client.get(f"/api/v1/social/posts/{share['id']}/comments", headers=alice["headers"])).json()
        assert [c["content"] for c in comments["comments"]] == ["Strong pace!"]

        notifications = (await client.get("/api/v1/notifications", headers=alice["headers"])).json()
        subtypes = [n["subtype"] for n in notifications["notifications"]]
        assert "post_liked" in subtypes
        assert "post_commented" in subtypes

        unliked = await client.delete(f"/api/v1/social/posts/{share['id']}/like", headers=bob["headers"])
        assert unliked.json()["liked"] is False
        assert (await client.delete(f"/api/v1/social/posts/{share['id']}/like",
                                    headers=bob["headers"])).status_code == 404

    async def test_privacy(self, client: AsyncClient, alice: dict, bob: dict):
        first = await complete_workout(client, alice)
        second = await complete_workout(client, alice, "cycling")
        private = await _share(client, alice, first["activity"]["id"], privacy="Private")
        followers = await _share(client, alice, second["activity"]["id"], privacy="FollowersOnly")

        assert (await client.get("/api/v1/social/feed", headers=bob["headers"])).json()["total"] == 0
        assert (await client.post(f"/api/v1/social/posts/{private['id']}/like",
                                  headers=bob["headers"])).status_code == 404

        await make_friends(client, alice, bob)
        feed = (await client.get("/api/v1/social/feed", headers=bob["headers"])).json()
        assert [item["share"]["id"] for item in feed["items"]] == [followers["id"]]

        own = (await client.get("/api/v1/social/feed", headers=alice["headers"])).json()
        assert own["total"] == 2

    async def test_share_rules(self, client: AsyncClient, alice: dict, bob: dict):
        workout = await complete_workout(client, alice)
        assert (await client.post(f"/api/v1/social/share/activity/{workout['activity']['id']}", json={},
                                  headers=bob["headers"])).status_code == 403

        started = await client.post("/api/v1/activities/start", json={"activity_type": "yoga"}, headers=alice["headers"])
        assert (await client.post(f"/api/v1/social/share/activity/{started.json()['id']}", json={},
                                  headers=alice["headers"])).status_code == 400

        long_caption = await client.post(
            f"/api/v1/social/share/activity/{workout['activity']['id']}",
            json={"caption": "x" * 501},
            headers=alice["headers"],
        )
        assert long_caption.status_code == 422

    async def test_empty_comment(self, client: AsyncClient, alice: dict):
        workout = await complete_workout(client, alice)
        share = await _share(client, alice, workout["activity"]["id"])
        response = await client.post(
            f"/api/v1/social/posts/{share['id']}/comment", json={"content": "   "}, headers=alice["headers"]
        )
        assert response.status_code == 400

    async def test_live_friend_sessions(self, client: AsyncClient, alice: dict, bob: dict):
        await make_friends(client, alice, bob)
        started = await client.post("/api/v1/activities/start", json={"activity_type": "running"}, headers=alice["headers"])

        feed = (await client.get("/api/v1/social/feed", headers=bob["headers"])).json()
        assert [live["user_activity_id"] for live in feed["live_friend_activities"]] == [started.json()["id"]]
        assert feed["live_friend_activities"][0]["owner"]["user_id"] == alice["id"]
