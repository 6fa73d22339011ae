from datetime import date

import pytest

from meduniverse import recovery
from meduniverse.ai_clients import ExternalServiceError


def test_seeded_programs():
    programs = {p["surgery_type"]: p for p in recovery.list_programs()}
    assert set(programs) == {"cesarean", "heart", "knee", "others"}
    assert programs["knee"]["total_days"] == 42


def test_one_program_per_patient(patient_id):
    progress, created = recovery.start_program(patient_id, "knee", date(2025, 1, 10))
    assert created is True
    assert progress["current_day"] == 1
    assert progress["program"]["program_name"] == "Knee Mobility Program"

    again, created = recovery.start_program(patient_id, "heart", date(2025, 2, 1))
    assert created is False
    assert again["program"]["surgery_type"] == "knee"


def test_unknown_surgery_type(patient_id):
    with pytest.raises(LookupError):
        recovery.start_program(patient_id, "spine", date(2025, 1, 10))
    assert recovery.get_progress(patient_id) is None
    with pytest.raises(LookupError):
        recovery.todays_tasks(patient_id)


def test_daily_tasks_and_completion(patient_id):
    recovery.start_program(patient_id, "heart", date(2025, 1, 10))
    tasks = recovery.todays_tasks(patient_id)
    assert len(tasks) == 3
    assert {t["day_number"] for t in tasks} == {1}
    assert {t["difficulty_level"] for t in tasks} == {1}
    assert not any(t["is_completed"] for t in tasks)

    stats = recovery.complete_task(patient_id, tasks[0]["id"], notes="Felt fine")
    assert stats == {"completed": 1, "total": 3, "percentage": 33}
    assert recovery.get_progress(patient_id)["total_completion_percentage"] == pytest.approx(100 / 3)

    stats = recovery.complete_task(patient_id, tasks[1]["id"])
    assert stats["percentage"] == 67
    assert recovery.get_progress(patient_id)["total_completion_percentage"] == pytest.approx(200 / 3)
    recovery.complete_task(patient_id, tasks[1]["id"], is_completed=False)

    # unchecking the same task
    stats = recovery.complete_task(patient_id, tasks[0]["id"], is_completed=False)
    assert stats["completed"] == 0


def test_task_from_another_program(patient_id):
    recovery.start_program(patient_id, "heart", date(2025, 1, 10))
    with pytest.raises(LookupError):
        recovery.complete_task(patient_id, 999999)


def test_advance_day_until_the_end(patient_id):
    recovery.start_program(patient_id, "others", date(2025, 1, 10))
    first = recovery.todays_tasks(patient_id)[0]
    recovery.complete_task(patient_id, first["id"])

    for _ in range(7):
        progress = recovery.advance_day(patient_id)
    assert progress["current_day"] == 8
    assert progress["total_completion_percentage"] == 0.0
    tasks = recovery.todays_tasks(patient_id)
    assert {t["difficulty_level"] for t in tasks} == {2}
    assert not any(t["is_completed"] for t in tasks)

    for _ in range(13):
        recovery.advance_day(patient_id)
    assert recovery.get_progress(patient_id)["current_day"] == 21
    with pytest.raises(ValueError):
        recovery.advance_day(patient_id)


@pytest.mark.parametrize(
    "symptoms, severity, emergency",
    [
        ({}, 2, False),
        ({}, 4, True),
        ({"chest_pain": True}, 1, True),
        ({"difficulty_breathing": False, "fever": True}, 3, False),
    ],
)
def test_requires_emergency(symptoms, severity, emergency):
    assert recovery.requires_emergency(symptoms, severity) is emergency


def test_symptom_report(patient_id):
    report = recovery.submit_symptom_report(patient_id, {"difficulty_breathing": True}, 2)
    assert report["requires_emergency"] is True
    assert report["doctor_notified"] is True

    with pytest.raises(ValueError):
        recovery.submit_symptom_report(patient_id, {}, 0)


def test_assistant_prompt_carries_progress(patient_id, gemini):
    recovery.start_program(patient_id, "knee", date(2025, 1, 10))
    gemini.replies = ["Keep going!"]

    reply = recovery.recovery_assistant(patient_id, "", "daily_motivation", gemini)
    assert reply == "Keep going!"
    prompt = gemini.calls[0]["prompt"]
    assert "Surgery Type: knee" in prompt
    assert "Surgery Date: 2025-01-10" in prompt


def test_assistant_validation_and_fallback(patient_id, gemini):
    gemini.replies = [""]
    with pytest.raises(ValueError):
        recovery.recovery_assistant(patient_id, "hi", "poetry", gemini)
    with pytest.raises(ValueError):
        recovery.recovery_assistant(patient_id, "  ", "general", gemini)

    assert recovery.recovery_assistant(patient_id, "Can I climb stairs?", "general", gemini) == recovery.DEFAULT_REPLY
    assert "Surgery Type: general" in gemini.calls[0]["prompt"]


def test_assistant_failure_propagates(patient_id, gemini):
    gemini.replies = [ExternalServiceError("Gemini API error: 500")]
    with pytest.raises(ExternalServiceError):
        recovery.recovery_assistant(patient_id, "Is swelling normal?", "symptom_analysis", gemini)


# =========================
# HTTP
# =========================
def test_recovery_over_http(client, register, gemini):
    headers = register()
    r = client.post("/api/recovery/start", json={"surgery_type": "cesarean", "surgery_date": "2025-03-01"}, headers=headers)
    assert r.json()["created"] is True

    today = client.get("/api/recovery/today", headers=headers).json()
    assert today["stats"] == {"completed": 0, "total": 3, "percentage": 0}

    r = client.post("/api/recovery/tasks/complete", json={"task_id": today["tasks"][1]["id"]}, headers=headers)
    assert r.json()["completed"] == 1

    r = client.post("/api/recovery/assistant", json={"message": "Tips?", "message_type": "task_guidance"}, headers=headers)
    assert r.json() == {"response": "Gemini reply"}
    assert "Surgery Type: cesarean" in gemini.calls[0]["prompt"]


def test_today_without_program_is_not_found(client, register):
    assert client.get("/api/recovery/today", headers=register()).status_code == 404
