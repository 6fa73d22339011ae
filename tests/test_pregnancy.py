from datetime import date, datetime, timedelta

import pytest

from meduniverse import pregnancy
from meduniverse.ai_clients import ExternalServiceError
from meduniverse.auth_service import register_user

DUE = date(2026, 5, 20)


def test_profile_creates_weekly_tasks(patient_id):
    profile = pregnancy.create_profile(patient_id, DUE, 12, partner_name="Ravi", partner_phone="9123456780")
    assert profile["current_week"] == 12
    assert profile["due_date"] == "2026-05-20"
    assert profile["partner_name"] == "Ravi"

    tasks = pregnancy.list_tasks(patient_id, week=12)
    assert len(tasks) == 14
    assert [t["task_type"] for t in tasks[:7]] == ["yoga"] * 7
    assert tasks[0]["task_title"] == "Day 1 Pregnancy Yoga"
    assert len(pregnancy.list_tasks(patient_id, task_type="food")) == 7


def test_profile_validation(patient_id):
    with pytest.raises(ValueError):
        pregnancy.create_profile(patient_id, DUE, 41)
    with pytest.raises(ValueError):
        pregnancy.create_profile(patient_id, DUE, 10, language_preference="french")

    pregnancy.create_profile(patient_id, DUE, 10)
    with pytest.raises(ValueError, match="already exists"):
        pregnancy.create_profile(patient_id, DUE, 10)


def test_weekly_tasks_are_generated_once(patient_id):
    pregnancy.create_profile(patient_id, DUE, 20)
    assert pregnancy.generate_weekly_tasks(patient_id, 20) == 0
    assert len(pregnancy.list_tasks(patient_id)) == 14


def test_week_change_adds_tasks(patient_id):
    pregnancy.create_profile(patient_id, DUE, 20)
    profile = pregnancy.update_profile(patient_id, current_week=21, language_preference="bengali")
    assert profile["language_preference"] == "bengali"
    assert len(pregnancy.list_tasks(patient_id, week=21)) == 14
    assert len(pregnancy.list_tasks(patient_id)) == 28

    with pytest.raises(ValueError):
        pregnancy.update_profile(patient_id, current_week=0)


def test_update_without_profile(patient_id):
    with pytest.raises(LookupError):
        pregnancy.update_profile(patient_id, partner_name="Ravi")


def test_complete_task_only_for_owner(patient_id):
    pregnancy.create_profile(patient_id, DUE, 8)
    task = pregnancy.list_tasks(patient_id)[0]

    done = pregnancy.complete_pregnancy_task(patient_id, task["id"])
    assert done["is_completed"] is True
    assert done["completed_at"] is not None

    other = register_user("other@example.com", "secret123", "Other")
    with pytest.raises(LookupError):
        pregnancy.complete_pregnancy_task(other, task["id"])


def test_reminders(patient_id):
    past = datetime(2024, 1, 1, 9, 0)
    future = datetime.now() + timedelta(days=30)
    early = pregnancy.create_reminder(patient_id, "Blood test", past, "Fasting")
    later = pregnancy.create_reminder(patient_id, "Scan", future)

    assert [r["id"] for r in pregnancy.list_reminders(patient_id)] == [early, later]
    assert [r["id"] for r in pregnancy.due_reminders()] == [early]

    sent = pregnancy.mark_due_reminders_sent()
    assert [r["id"] for r in sent] == [early]
    assert sent[0]["is_sent"] is True
    assert pregnancy.due_reminders() == []

    pregnancy.delete_reminder(patient_id, later)
    assert len(pregnancy.list_reminders(patient_id)) == 1

    with pytest.raises(ValueError):
        pregnancy.create_reminder(patient_id, " ", past)
    with pytest.raises(LookupError):
        pregnancy.delete_reminder(patient_id, later)


def test_chat_is_recorded(patient_id, gemini):
    pregnancy.create_profile(patient_id, DUE, 30, language_preference="bengali")
    gemini.replies = ["Rest and hydrate."]

    reply = pregnancy.pregnancy_assistant(patient_id, "I feel tired", "chat", gemini)
    assert reply == "Rest and hydrate."
    prompt = gemini.calls[0]["prompt"]
    assert "Current Week: 30" in prompt
    assert "Respond in Bengali language" in prompt

    history = pregnancy.chat_history(patient_id)
    assert [(m["sender_type"], m["message"]) for m in history] == [
        ("user", "I feel tired"),
        ("assistant", "Rest and hydrate."),
    ]

    pregnancy.clear_chat(patient_id)
    assert pregnancy.chat_history(patient_id) == []


def test_guides_are_not_stored(patient_id, gemini):
    reply = pregnancy.pregnancy_assistant(patient_id, "", "food_guide", gemini)
    assert reply == "Gemini reply"
    assert "RECOMMENDED FOODS:" in gemini.calls[0]["prompt"]
    assert pregnancy.chat_history(patient_id) == []


def test_assistant_validation(patient_id, gemini):
    with pytest.raises(ValueError):
        pregnancy.pregnancy_assistant(patient_id, "hi", "horoscope", gemini)
    with pytest.raises(ValueError):
        pregnancy.pregnancy_assistant(patient_id, " ", "chat", gemini)


def test_failed_reply_records_nothing(patient_id, gemini):
    gemini.replies = [ExternalServiceError("Gemini is unreachable")]
    with pytest.raises(ExternalServiceError):
        pregnancy.pregnancy_assistant(patient_id, "Is this normal?", "chat", gemini)
    assert pregnancy.chat_history(patient_id) == []

    gemini.replies = ["Yes, it is common."]
    pregnancy.pregnancy_assistant(patient_id, "Is this normal?", "chat", gemini)
    assert [m["sender_type"] for m in pregnancy.chat_history(patient_id)] == ["user", "assistant"]


# =========================
# HTTP
# =========================
def test_pregnancy_over_http(client, register):
    headers = register()
    r = client.post("/api/pregnancy/profile", json={"due_date": "2026-05-20", "current_week": 16}, headers=headers)
    assert r.status_code == 200, r.text

    tasks = client.get("/api/pregnancy/tasks", params={"week": 16}, headers=headers).json()
    assert len(tasks) == 14

    r = client.patch(f"/api/pregnancy/tasks/{tasks[0]['id']}", json={"is_completed": True}, headers=headers)
    assert r.json()["is_completed"] is True

    r = client.post(
        "/api/pregnancy/reminders", json={"title": "Doctor visit", "reminder_date": "2026-03-01T10:00:00"}, headers=headers
    )
    reminder_id = r.json()["reminder_id"]
    r = client.delete(f"/api/pregnancy/reminders/{reminder_id}", headers=headers)
    assert r.json() == {"ok": True}

    r = client.post("/api/pregnancy/assistant", json={"message": "Hello", "message_type": "chat"}, headers=headers)
    assert r.json() == {"response": "Gemini reply"}
    assert len(client.get("/api/pregnancy/chat", headers=headers).json()) == 2


def test_missing_profile_is_null(client, register):
    assert client.get("/api/pregnancy/profile", headers=register()).json() is None
