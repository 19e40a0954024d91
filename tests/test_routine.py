from backend.schemas import DAYS_OF_WEEK


class TestWeeklyRoutine:
    def test_default_week_is_empty(self, client, auth_headers):
        response = client.get("/api/routine", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["weeklyRoutine"] == {day: [] for day in DAYS_OF_WEEK}

    def test_save_sorts_each_day_by_time(self, client, auth_headers):
        weekly = {
            "Monday": [
                {"id": "b", "time": "18:30", "text": "Gym"},
                {"id": "a", "time": "07:00", "text": "Meditate"},
            ],
        }
        response = client.post("/api/routine", json={"weeklyRoutine": weekly}, headers=auth_headers)
        assert response.status_code == 200
        saved = response.json()["weeklyRoutine"]
        assert [task["time"] for task in saved["Monday"]] == ["07:00", "18:30"]
        assert saved["Sunday"] == []

        stored = client.get("/api/routine", headers=auth_headers).json()
        assert stored["weeklyRoutine"] == saved
        assert stored["id"] == response.json()["id"]

    def test_save_replaces_previous_routine(self, client, auth_headers):
        first = {"Friday": [{"id": "x", "time": "09:00", "text": "Plan"}]}
        second = {"Saturday": [{"id": "y", "time": "10:00", "text": "Hike"}]}
        client.post("/api/routine", json={"weeklyRoutine": first}, headers=auth_headers)
        client.post("/api/routine", json={"weeklyRoutine": second}, headers=auth_headers)
        stored = client.get("/api/routine", headers=auth_headers).json()["weeklyRoutine"]
        assert stored["Friday"] == []
        assert stored["Saturday"][0]["text"] == "Hike"

    def test_rejects_bad_time(self, client, auth_headers):
        weekly = {"Monday": [{"id": "a", "time": "9am", "text": "Gym"}]}
        response = client.post("/api/routine", json={"weeklyRoutine": weekly}, headers=auth_headers)
        assert response.status_code == 400
        assert client.get("/api/routine", headers=auth_headers).json()["weeklyRoutine"]["Monday"] == []

    def test_rejects_unknown_weekday(self, client, auth_headers):
        weekly = {"Someday": [{"id": "a", "time": "09:00", "text": "Gym"}]}
        response = client.post("/api/routine", json={"weeklyRoutine": weekly}, headers=auth_headers)
        assert response.status_code == 400

    def test_requires_token(self, client, auth_headers):
        assert client.get("/api/routine").status_code == 401
