"""
Integration tests for API endpoints using a SQLite DB.

The clock is fixed to Monday 2025-03-10 and the summarizer is a fake that
records its calls (see conftest.py).
"""
from datetime import date

import pytest


@pytest.fixture()
def headers(user_id):
    return {"X-User-Id": user_id}


def _complete_task(client, headers, title, day):
    r = client.post("/tasks", json={"title": title, "day": day}, headers=headers)
    assert r.status_code == 201
    task_id = r.json()["id"]
    r = client.post(f"/tasks/{task_id}/complete", json={"completed_on": day}, headers=headers)
    assert r.status_code == 200
    return r.json()


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestRecords:
    def test_diary_roundtrip(self, client, headers):
        r = client.put("/diaries/2025-03-09", json={"content": "rainy", "mood": "calm"}, headers=headers)
        assert r.status_code == 200
        r = client.get("/diaries/2025-03-09", headers=headers)
        assert r.status_code == 200
        assert r.json()["content"] == "rainy"

    def test_diary_replaced_not_duplicated(self, client, headers):
        first = client.put("/diaries/2025-03-09", json={"content": "v1"}, headers=headers).json()
        second = client.put("/diaries/2025-03-09", json={"content": "v2"}, headers=headers).json()
        assert first["id"] == second["id"]
        assert second["content"] == "v2"

    def test_missing_diary(self, client, headers):
        r = client.get("/diaries/2020-01-01", headers=headers)
        assert r.status_code == 404
        assert r.json()["code"] == "DIARY_NOT_FOUND"

    def test_task_defaults_to_today(self, client, headers):
        r = client.post("/tasks", json={"title": "plan"}, headers=headers)
        assert r.status_code == 201
        assert r.json()["day"] == "2025-03-10"
        assert r.json()["status"] == "pending"

    def test_complete_task(self, client, headers):
        body = _complete_task(client, headers, "ship", "2025-03-04")
        assert body["status"] == "done"
        assert body["completed_on"] == "2025-03-04"

    def test_complete_other_users_task(self, client, headers):
        task_id = client.post("/tasks", json={"title": "mine"}, headers=headers).json()["id"]
        r = client.post(f"/tasks/{task_id}/complete", headers={"X-User-Id": "someone-else"})
        assert r.status_code == 404
        assert r.json()["code"] == "TASK_NOT_FOUND"

    def test_question_and_answer(self, client, headers, ensure_question):
        question = ensure_question(date(2025, 3, 10))
        r = client.put("/questions/2025-03-10/answer", json={"content": "coffee"}, headers=headers)
        assert r.status_code == 200
        assert r.json() == {"year": 2025, "content": "coffee"}
        r = client.get("/questions/2025-03-10", headers=headers)
        body = r.json()
        assert body["question_id"] == question.id
        assert body["answers"] == [{"year": 2025, "content": "coffee"}]


class TestReports:
    def test_weekly_work_report_once(self, client, headers, summarizer):
        _complete_task(client, headers, "ship", "2025-03-04")
        _complete_task(client, headers, "docs", "2025-03-06")

        payload = {"source": "work", "week_start": "2025-03-02"}
        r = client.post("/reports/weekly", json=payload, headers=headers)
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "created"
        assert body["period_start"] == "2025-03-02"
        assert body["period_end"] == "2025-03-08"
        assert body["source_count"] == 2

        r = client.post("/reports/weekly", json=payload, headers=headers)
        assert r.json()["status"] == "existing"
        assert r.json()["content"] == body["content"]
        assert len(summarizer.calls) == 1

    def test_week_start_is_normalized(self, client, headers):
        _complete_task(client, headers, "ship", "2025-03-04")
        r = client.post("/reports/weekly", json={"source": "work", "week_start": "2025-03-05"}, headers=headers)
        assert r.json()["period_start"] == "2025-03-02"

    def test_regenerate(self, client, headers, summarizer):
        _complete_task(client, headers, "ship", "2025-03-04")
        payload = {"source": "work", "week_start": "2025-03-02"}
        first = client.post("/reports/weekly", json=payload, headers=headers).json()
        again = client.post(
            "/reports/weekly", json={**payload, "confirm_regenerate": True}, headers=headers,
        ).json()
        assert again["status"] == "regenerated"
        assert again["id"] == first["id"]
        assert again["content"] != first["content"]
        assert len(summarizer.calls) == 2

    def test_current_week_rejected(self, client, headers, summarizer):
        _complete_task(client, headers, "today", "2025-03-10")
        r = client.post("/reports/weekly", json={"source": "work", "week_start": "2025-03-10"}, headers=headers)
        assert r.status_code == 422
        assert r.json()["code"] == "WINDOW_NOT_ELAPSED"
        assert summarizer.calls == []

    def test_empty_week_rejected(self, client, headers):
        r = client.post("/reports/weekly", json={"source": "diary", "week_start": "2025-02-02"}, headers=headers)
        assert r.status_code == 422
        assert r.json()["code"] == "EMPTY_WINDOW"

    def test_provider_failure(self, client, headers, summarizer):
        _complete_task(client, headers, "ship", "2025-03-04")
        summarizer.fail = True
        r = client.post("/reports/weekly", json={"source": "work", "week_start": "2025-03-02"}, headers=headers)
        assert r.status_code == 502
        assert r.json()["code"] == "EXTERNAL_CALL_FAILED"
        r = client.get("/reports/summary?kind=weekly_work&start=2025-03-02", headers=headers)
        assert r.status_code == 404
        assert r.json()["code"] == "SUMMARY_NOT_FOUND"

    def test_monthly_diary_report(self, client, headers):
        client.put("/diaries/2025-02-03", json={"content": "a"}, headers=headers)
        client.put("/diaries/2025-02-20", json={"content": "b"}, headers=headers)
        r = client.post("/reports/monthly", json={"source": "diary", "year": 2025, "month": 2}, headers=headers)
        assert r.status_code == 200
        body = r.json()
        assert body["kind"] == "monthly_diary"
        assert body["period_end"] == "2025-02-28"
        r = client.get("/reports/summary?kind=monthly_diary&start=2025-02-14", headers=headers)
        assert r.status_code == 200
        assert r.json()["content"] == body["content"]

    def test_current_month_rejected(self, client, headers):
        client.put("/diaries/2025-03-03", json={"content": "a"}, headers=headers)
        r = client.post("/reports/monthly", json={"source": "diary", "year": 2025, "month": 3}, headers=headers)
        assert r.status_code == 422
        assert r.json()["code"] == "WINDOW_NOT_ELAPSED"

    def test_week_selector(self, client, headers):
        _complete_task(client, headers, "a", "2025-03-04")
        _complete_task(client, headers, "b", "2025-02-18")
        client.post("/reports/weekly", json={"source": "work", "week_start": "2025-03-02"}, headers=headers)

        r = client.get("/reports/weeks?source=work", headers=headers)
        assert r.status_code == 200
        items = r.json()["items"]
        assert [i["window"]["start"] for i in items] == ["2025-03-02", "2025-02-16"]
        assert [i["has_summary"] for i in items] == [True, False]
        assert all(i["is_generating"] is False for i in items)

    def test_week_selector_across_years(self, client, headers):
        client.put("/diaries/2024-12-30", json={"content": "a"}, headers=headers)
        client.put("/diaries/2025-01-02", json={"content": "b"}, headers=headers)
        r = client.get("/reports/weeks?source=diary&from_year=2024&to_year=2025", headers=headers)
        items = r.json()["items"]
        assert len(items) == 1
        assert items[0]["window"]["start"] == "2024-12-29"
        assert items[0]["window"]["end"] == "2025-01-04"
        assert items[0]["source_count"] == 2

    def test_month_selector(self, client, headers):
        client.put("/diaries/2025-01-10", json={"content": "a"}, headers=headers)
        r = client.get("/reports/months?source=diary&year=2025", headers=headers)
        assert [i["window"]["label"] for i in r.json()["items"]] == ["2025-01"]


class TestNotifications:
    def test_session_lifecycle(self, client, headers):
        r = client.post("/notifications/session", headers=headers)
        assert r.status_code == 200
        body = r.json()
        assert body["state"] == "ready"
        open_kinds = {p["kind"] for p in body["prompts"] if p["is_open"]}
        assert {"diary_missing", "weekly_summary_due"} <= open_kinds
        assert "monthly_summary_due" not in open_kinds

        r = client.delete("/notifications/session", headers=headers)
        assert r.status_code == 204

    def test_resolve_hides_prompt_for_the_day(self, client, headers):
        client.post("/notifications/session", headers=headers)
        r = client.post("/notifications/diary_missing/resolve", headers=headers)
        prompts = {p["kind"]: p for p in r.json()["prompts"]}
        assert prompts["diary_missing"]["is_open"] is False

        # A new session on the same day does not show it again.
        client.delete("/notifications/session", headers=headers)
        r = client.post("/notifications/session", headers=headers)
        prompts = {p["kind"]: p for p in r.json()["prompts"]}
        assert prompts["diary_missing"]["is_open"] is False
        assert prompts["weekly_summary_due"]["is_open"] is True

    def test_get_starts_session_implicitly(self, client, headers):
        r = client.get("/notifications", headers=headers)
        assert r.status_code == 200
        assert r.json()["state"] == "ready"

    def test_check_now(self, client, headers):
        client.put(
            "/notifications/preferences",
            json={"diary_enabled": False, "weekly_summary_enabled": True,
                  "monthly_summary_enabled": True, "daily_question_enabled": True},
            headers=headers,
        )
        r = client.post("/notifications/session", headers=headers)
        assert not {p["kind"]: p for p in r.json()["prompts"]}["diary_missing"]["is_open"]

        client.put("/notifications/preferences", json={"diary_enabled": True}, headers=headers)
        r = client.post("/notifications/check", headers=headers)
        assert {p["kind"]: p for p in r.json()["prompts"]}["diary_missing"]["is_open"]

    def test_preferences_default_on(self, client, headers):
        r = client.get("/notifications/preferences", headers=headers)
        assert r.json() == {
            "diary_enabled": True,
            "weekly_summary_enabled": True,
            "monthly_summary_enabled": True,
            "daily_question_enabled": True,
        }
