"""
Integration tests for goals, strategies and analytics routers.
"""
import pytest

from conftest import closed_payload


def _goal_json(user_id, **overrides):
    payload = {
        "user_id": user_id,
        "title": "Reach 60% win rate",
        "target_type": "winRate",
        "target_value": 60,
        "start_date": "2024-01-01T00:00:00",
        "end_date": "2024-06-30T00:00:00",
        "priority": "high",
        "milestones": [{"title": "Halfway", "target_value": 30}],
    }
    payload.update(overrides)
    return payload


class TestGoals:
    def test_create_list_get(self, client, user):
        response = client.post("/api/goals", json=_goal_json(user["id"]))
        assert response.status_code == 201
        goal = response.json()["goal"]
        assert goal["priority"] == "high"
        assert goal["milestones"][0]["title"] == "Halfway"

        goals = client.get(f"/api/goals?userId={user['id']}").json()["goals"]
        assert [g["id"] for g in goals] == [goal["id"]]
        assert client.get(f"/api/goals/{goal['id']}").json()["goal"]["title"] == goal["title"]

    def test_invalid_target_type(self, client, user):
        response = client.post("/api/goals", json=_goal_json(user["id"], target_type="happiness"))
        assert response.status_code == 400
        assert "target_type" in response.json()["message"]

    def test_end_before_start(self, client, user):
        response = client.post("/api/goals", json=_goal_json(user["id"], end_date="2023-01-01T00:00:00"))
        assert response.status_code == 400

    def test_update_and_delete(self, client, storage, user):
        goal = client.post("/api/goals", json=_goal_json(user["id"])).json()["goal"]
        updated = client.put(f"/api/goals/{goal['id']}", json={"title": "New title"}).json()["goal"]
        assert updated["title"] == "New title"
        assert updated["target_type"] == "winRate"

        assert client.delete(f"/api/goals/{goal['id']}").json()["success"] is True
        assert client.get(f"/api/goals/{goal['id']}").status_code == 404
        assert storage.get_goal_milestones_by_goal_id(goal["id"]) == []

    def test_milestones(self, client, user):
        goal = client.post("/api/goals", json=_goal_json(user["id"], milestones=[])).json()["goal"]
        created = client.post(f"/api/goals/{goal['id']}/milestones", json={"title": "First", "target_value": 10})
        assert created.status_code == 201
        milestone = created.json()["milestone"]

        listed = client.get(f"/api/goals/{goal['id']}/milestones").json()["milestones"]
        assert [m["id"] for m in listed] == [milestone["id"]]

        updated = client.put(f"/api/goals/milestones/{milestone['id']}", json={"is_completed": True}).json()
        assert updated["milestone"]["is_completed"] is True
        assert updated["milestone"]["completed_date"] is not None

        assert client.delete(f"/api/goals/milestones/{milestone['id']}").status_code == 200
        assert client.delete(f"/api/goals/milestones/{milestone['id']}").status_code == 404

    def test_milestone_for_missing_goal(self, client):
        response = client.post("/api/goals/99/milestones", json={"title": "x", "target_value": 1})
        assert response.status_code == 404

    def test_calculate_progress(self, client, storage, user):
        goal = client.post("/api/goals", json=_goal_json(user["id"])).json()["goal"]
        storage.create_trade(closed_payload(user["id"], 50))
        storage.create_trade(closed_payload(user["id"], -20))

        body = client.post(f"/api/goals/{goal['id']}/calculate-progress").json()
        assert body["progress"] == pytest.approx(50 / 60 * 100)
        assert body["goal"]["current_value"] == pytest.approx(50)
        assert body["goal"]["milestones"][0]["is_completed"] is True


class TestStrategies:
    def test_crud(self, client, user):
        response = client.post("/api/strategies", json={
            "user_id": user["id"],
            "name": "London Breakout",
            "rules": [{"label": "Wait for the Asian range"}],
            "timeframes": ["M15"],
            "risk_reward_ratio": 2,
        })
        assert response.status_code == 201
        strategy = response.json()["strategy"]
        assert strategy["rules"][0]["id"]
        assert strategy["rules"][0]["order"] == 0

        updated = client.put(f"/api/strategies/{strategy['id']}", json={"description": "Range breakouts"}).json()
        assert updated["strategy"]["description"] == "Range breakouts"
        assert updated["strategy"]["name"] == "London Breakout"

        listed = client.get(f"/api/strategies?userId={user['id']}").json()["strategies"]
        assert len(listed) == 1

        assert client.delete(f"/api/strategies/{strategy['id']}").status_code == 200
        assert client.get(f"/api/strategies/{strategy['id']}").status_code == 404

    def test_only_one_default(self, client, user):
        first = client.post("/api/strategies", json={"user_id": user["id"], "name": "A", "is_default": True}).json()
        client.post("/api/strategies", json={"user_id": user["id"], "name": "B", "is_default": True})
        refreshed = client.get(f"/api/strategies/{first['strategy']['id']}").json()["strategy"]
        assert refreshed["is_default"] is False

    def test_defaults(self, client, user):
        body = client.post("/api/strategies/defaults", json={"user_id": user["id"]}).json()
        assert body["created"] == 3
        assert sum(1 for s in body["strategies"] if s["is_default"]) == 1

        again = client.post("/api/strategies/defaults", json={"user_id": user["id"]}).json()
        assert again["created"] == 0
        assert len(again["strategies"]) == 3


class TestAnalytics:
    def test_stats(self, client, storage, user):
        storage.create_trade(closed_payload(user["id"], 100))
        storage.create_trade(closed_payload(user["id"], -50))
        stats = client.get(f"/api/analytics/stats?userId={user['id']}").json()["stats"]
        assert stats["total_trades"] == 2
        assert stats["win_rate"] == pytest.approx(50)
        assert stats["profit_factor"] == pytest.approx(2)
        assert stats["profit_factor_infinite"] is False

    def test_infinite_profit_factor_is_null(self, client, storage, user):
        storage.create_trade(closed_payload(user["id"], 100))
        stats = client.get(f"/api/analytics/stats?userId={user['id']}").json()["stats"]
        assert stats["profit_factor"] is None
        assert stats["profit_factor_infinite"] is True

    def test_performance(self, client, storage, user):
        storage.create_trade(closed_payload(user["id"], 100, emotion="Confident"))
        performance = client.get(f"/api/analytics/performance?userId={user['id']}").json()["performance"]
        assert performance["by_pair"][0]["pair"] == "EURUSD"
        assert performance["by_emotion"][0]["emotion"] == "Confident"

    def test_goals_progress(self, client, storage, user):
        client.post("/api/goals", json=_goal_json(user["id"], target_type="trades", target_value=4))
        storage.create_trade(closed_payload(user["id"], 10))
        progress = client.get(f"/api/analytics/goals-progress?userId={user['id']}").json()["progress"]
        assert progress[0]["progress"] == pytest.approx(25)
        assert progress[0]["milestones_total"] == 1

    def test_unknown_user(self, client, storage):
        assert client.get("/api/analytics/stats?userId=5").status_code == 404
        assert client.get("/api/analytics/stats").status_code == 400
