"""Integration tests for personal goals."""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient

from conftest import complete_workout


async def _create_goal(client: AsyncClient, user: dict, **overrides) -> dict:
    now = datetime.now(timezone.utc)
    payload = {
        "title": "Run 20 km",
        "type": "Distance",
        "target_value": 20,
        "unit": "km",
        "end_date": (now + timedelta(days=14)).isoformat(),
    }
    payload.update(overrides)
    response = await client.post("/api/v1/goals", json=payload, headers=user["headers"])
    assert response.status_code == 201, response.text
    return response.json()


class TestGoalCrud:
    async def test_create(self, client: AsyncClient, alice: dict):
        goal = await _create_goal(client, alice)
        assert goal["status"] == "Active"
        assert goal["frequency"] == "OneTime"
        assert goal["current_value"] == 0.0
        assert goal["percentage"] == 0.0
        assert goal["xp_reward"] == 50
        assert goal["is_overdue"] is False
        assert goal["time_remaining_seconds"] > 13 * 86400

    async def test_validation(self, client: AsyncClient, alice: dict):
        now = datetime.now(timezone.utc)
        zero_target = await client.post(
            "/api/v1/goals",
            json={"title": "x", "type": "Distance", "target_value": 0, "end_date": (now + timedelta(days=1)).isoformat()},
            headers=alice["headers"],
        )
        assert zero_target.status_code == 422

        inverted = await client.post(
            "/api/v1/goals",
            json={
                "title": "Backwards",
                "type": "Duration",
                "target_value": 60,
                "start_date": now.isoformat(),
                "end_date": (now - timedelta(days=1)).isoformat(),
            },
            headers=alice["headers"],
        )
        assert inverted.status_code == 400
        assert inverted.json()["detail"] == "End date must be after the start date"

    async def test_list_ordered_by_deadline(self, client: AsyncClient, alice: dict):
        now = datetime.now(timezone.utc)
        await _create_goal(client, alice, title="Later", end_date=(now + timedelta(days=30)).isoformat())
        await _create_goal(client, alice, title="Sooner", end_date=(now + timedelta(days=3)).isoformat())

        response = await client.get("/api/v1/goals", headers=alice["headers"])
        assert [g["title"] for g in response.json()["goals"]] == ["Sooner", "Later"]

    async def test_other_users_goal(self, client: AsyncClient, alice: dict, bob: dict):
        goal = await _create_goal(client, alice)
        assert (await client.get(f"/api/v1/goals/{goal['id']}", headers=bob["headers"])).status_code == 403
        assert (await client.get("/api/v1/goals", headers=bob["headers"])).json()["goals"] == []

    async def test_delete(self, client: AsyncClient, alice: dict):
        goal = await _create_goal(client, alice)
        response = await client.delete(f"/api/v1/goals/{goal['id']}", headers=alice["headers"])
        assert response.status_code == 204
        assert (await client.get(f"/api/v1/goals/{goal['id']}", headers=alice["headers"])).status_code == 404
        assert (await client.get("/api/v1/goals", headers=alice["headers"])).json()["goals"] == []

    async def test_update_fields(self, client: AsyncClient, alice: dict):
        goal = await _create_goal(client, alice)
        response = await client.put(
            f"/api/v1/goals/{goal['id']}",
            json={"title": "Run 25 km", "target_value": 25, "current_value": 5},
            headers=alice["headers"],
        )
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Run 25 km"
        assert data["target_value"] == 25.0
        assert data["percentage"] == 20.0


class TestGoalProgress:
    async def test_progress_and_completion(self, client: AsyncClient, alice: dict):
        goal = await _create_goal(client, alice, target_value=10, xp_reward=80)
        url = f"/api/v1/goals/{goal['id']}/progress"

        partial = await client.post(url, json={"value": 4}, headers=alice["headers"])
        assert partial.json()["percentage"] == 40.0
        assert partial.json()["status"] == "Active"

        done = await client.post(url, json={"value": 7}, headers=alice["headers"])
        data = done.json()
        assert data["status"] == "Completed"
        assert data["percentage"] == 100.0
        assert data["completed_at"] is not None

        me = (await client.get("/api/v1/users/me", headers=alice["headers"])).json()
        assert me["experience_points"] == 80

        notifications = (await client.get("/api/v1/notifications", headers=alice["headers"])).json()
        assert "goal_completed" in [n["subtype"] for n in notifications["notifications"]]

        # Further progress keeps the goal completed without a second reward
        await client.post(url, json={"value": 1}, headers=alice["headers"])
        me = (await client.get("/api/v1/users/me", headers=alice["headers"])).json()
        assert me["experience_points"] == 80

    async def test_non_positive_increment(self, client: AsyncClient, alice: dict):
        goal = await _create_goal(client, alice)
        for value in (0, -3):
            response = await client.post(
                f"/api/v1/goals/{goal['id']}/progress", json={"value": value}, headers=alice["headers"]
            )
            assert response.status_code == 400

    async def test_abandon(self, client: AsyncClient, alice: dict):
        goal = await _create_goal(client, alice)
        response = await client.post(f"/api/v1/goals/{goal['id']}/abandon", headers=alice["headers"])
        assert response.json()["status"] == "Abandoned"

        progress = await client.post(
            f"/api/v1/goals/{goal['id']}/progress", json={"value": 1}, headers=alice["headers"]
        )
        assert progress.status_code == 400

    async def test_completed_goal_cannot_be_abandoned(self, client: AsyncClient, alice: dict):
        goal = await _create_goal(client, alice, target_value=1)
        await client.post(f"/api/v1/goals/{goal['id']}/progress", json={"value": 1}, headers=alice["headers"])
        response = await client.post(f"/api/v1/goals/{goal['id']}/abandon", headers=alice["headers"])
        assert response.status_code == 400

    async def test_adaptive_target(self, client: AsyncClient, alice: dict):
        fixed = await _create_goal(client, alice)
        rejected = await client.put(
            f"/api/v1/goals/{fixed['id']}", json={"adaptive_target": 15}, headers=alice["headers"]
        )
        assert rejected.status_code == 400

        adaptive = await _create_goal(client, alice, is_adaptive=True)
        await client.post(f"/api/v1/goals/{adaptive['id']}/progress", json={"value": 12}, headers=alice["headers"])
        response = await client.put(
            f"/api/v1/goals/{adaptive['id']}", json={"adaptive_target": 12}, headers=alice["headers"]
        )
        assert response.json()["target_value"] == 12.0
        assert response.json()["status"] == "Completed"


class TestGoalDeadlines:
    async def test_lazy_expiry_and_extend(self, client: AsyncClient, alice: dict):
        now = datetime.now(timezone.utc)
        goal = await _create_goal(
            client,
            alice,
            start_date=(now - timedelta(days=10)).isoformat(),
            end_date=(now - timedelta(days=1)).isoformat(),
        )

        listed = await client.get("/api/v1/goals", headers=alice["headers"])
        assert listed.json()["goals"][0]["status"] == "Expired"
        expired = await client.get("/api/v1/goals", params={"status": "Expired"}, headers=alice["headers"])
        assert len(expired.json()["goals"]) == 1

        too_early = await client.post(
            f"/api/v1/goals/{goal['id']}/extend",
            json={"end_date": (now - timedelta(days=2)).isoformat()},
            headers=alice["headers"],
        )
        assert too_early.status_code == 400

        extended = await client.post(
            f"/api/v1/goals/{goal['id']}/extend",
            json={"end_date": (now + timedelta(days=7)).isoformat()},
            headers=alice["headers"],
        )
        assert extended.status_code == 200
        assert extended.json()["status"] == "Active"
        assert extended.json()["is_overdue"] is False


class TestGoalsFromActivities:
    async def test_workout_feeds_matching_goals(self, client: AsyncClient, alice: dict):
        distance = await _create_goal(client, alice, target_value=5, activity_type="running")
        frequency = await _create_goal(client, alice, title="Three sessions", type="Frequency", target_value=3, unit="")
        cycling = await _create_goal(client, alice, title="Ride 50 km", activity_type="cycling", target_value=50)
        numeric = await _create_goal(client, alice, title="Body weight", type="Numeric", target_value=70, unit="kg")

        result = await complete_workout(client, alice, distance_km=5.0)
        assert result["goals_completed"] == [distance["id"]]

        goals = {g["id"]: g for g in (await client.get("/api/v1/goals", headers=alice["headers"])).json()["goals"]}
        assert goals[distance["id"]]["status"] == "Completed"
        assert goals[frequency["id"]]["current_value"] == 1.0
        assert goals[cycling["id"]]["current_value"] == 0.0
        assert goals[numeric["id"]]["current_value"] == 0.0
