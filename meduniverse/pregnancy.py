from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import delete, func, select

from .ai_clients import ExternalServiceError, GeminiClient
from .auth_models import utcnow
from .db import db_session
from .models import PregnancyChatMessage, PregnancyProfile, PregnancyReminder, PregnancyTask

logger = logging.getLogger(__name__)

LANGUAGES = ("english", "bengali")
MESSAGE_TYPES = ("weekly_guide", "food_guide", "chat", "yoga_search")
MIN_WEEK, MAX_WEEK = 1, 40

GENERATION_CONFIG = {"temperature": 0.7, "topK": 40, "topP": 0.95, "maxOutputTokens": 2048}
DEFAULT_REPLY = "I'm here to help with your pregnancy journey!"

_PROFILE_FIELDS = (
    "due_date",
    "current_week",
    "language_preference",
    "partner_name",
    "partner_phone",
    "partner_email",
    "emergency_contact_name",
    "emergency_contact_phone",
)


def _check_week(week: int) -> None:
    if not MIN_WEEK <= week <= MAX_WEEK:
        raise ValueError("Pregnancy week must be between 1 and 40.")


def _check_language(language: str) -> None:
    if language not in LANGUAGES:
        raise ValueError("Language must be english or bengali.")


def _profile_dict(p: PregnancyProfile) -> dict[str, Any]:
    out: dict[str, Any] = {"id": p.id, "patient_id": p.patient_id}
    for f in _PROFILE_FIELDS:
        out[f] = getattr(p, f)
    out["due_date"] = p.due_date.isoformat()
    return out


def _task_dict(t: PregnancyTask) -> dict[str, Any]:
    return {
        "id": t.id,
        "task_type": t.task_type,
        "task_title": t.task_title,
        "task_description": t.task_description,
        "week_number": t.week_number,
        "day_number": t.day_number,
        "is_completed": t.is_completed,
        "completed_at": t.completed_at.isoformat() if t.completed_at else None,
    }


# =========================
# Profile
# =========================
def create_profile(
    patient_id: str,
    due_date: date,
    current_week: int,
    language_preference: str = "english",
    **contacts: str | None,
) -> dict:
    """Creates the profile, then the tasks of the current week (task failures are only logged)."""
    _check_week(current_week)
    _check_language(language_preference)

    with db_session() as s:
        exists = s.execute(
            select(PregnancyProfile).where(PregnancyProfile.patient_id == patient_id)
        ).scalar_one_or_none()
        if exists is not None:
            raise ValueError("Pregnancy profile already exists.")
        p = PregnancyProfile(
            patient_id=patient_id,
            due_date=due_date,
            current_week=current_week,
            language_preference=language_preference,
        )
        for k, v in contacts.items():
            if k in _PROFILE_FIELDS and v is not None:
                setattr(p, k, v)
        s.add(p)
        s.flush()
        out = _profile_dict(p)

    try:
        generate_weekly_tasks(patient_id, current_week)
    except Exception:
        logger.exception("Weekly task generation failed for %s", patient_id)
    return out


def get_profile(patient_id: str) -> dict | None:
    with db_session() as s:
        p = s.execute(select(PregnancyProfile).where(PregnancyProfile.patient_id == patient_id)).scalar_one_or_none()
        return _profile_dict(p) if p else None


def update_profile(patient_id: str, **fields: Any) -> dict:
    changes = {k: v for k, v in fields.items() if k in _PROFILE_FIELDS and v is not None}
    if "current_week" in changes:
        _check_week(changes["current_week"])
    if "language_preference" in changes:
        _check_language(changes["language_preference"])

    with db_session() as s:
        p = s.execute(select(PregnancyProfile).where(PregnancyProfile.patient_id == patient_id)).scalar_one_or_none()
        if p is None:
            raise LookupError("Pregnancy profile not found.")
        week_changed = "current_week" in changes and changes["current_week"] != p.current_week
        for k, v in changes.items():
            setattr(p, k, v)
        p.updated_at = utcnow()
        s.flush()
        out = _profile_dict(p)

    if week_changed:
        generate_weekly_tasks(patient_id, out["current_week"])
    return out


# =========================
# Tasks
# =========================
def generate_weekly_tasks(patient_id: str, week: int) -> int:
    """7 yoga + 7 food tasks for the week; does nothing if the week already has tasks."""
    _check_week(week)
    with db_session() as s:
        existing = s.execute(
            select(func.count(PregnancyTask.id)).where(
                PregnancyTask.patient_id == patient_id, PregnancyTask.week_number == week
            )
        ).scalar_one()
        if existing:
            return 0

        for day in range(1, 8):
            s.add(
                PregnancyTask(
                    patient_id=patient_id,
                    task_type="yoga",
                    task_title=f"Day {day} Pregnancy Yoga",
                    task_description=f"Gentle yoga routine for week {week}, day {day}. "
                    "Focus on breathing and stretching.",
                    week_number=week,
                    day_number=day,
                )
            )
        for day in range(1, 8):
            s.add(
                PregnancyTask(
                    patient_id=patient_id,
                    task_type="food",
                    task_title=f"Day {day} Nutrition Guide",
                    task_description=f"Daily nutrition recommendations for week {week}",
                    week_number=week,
                    day_number=day,
                )
            )
    logger.info("Generated 14 pregnancy tasks for %s, week %d", patient_id, week)
    return 14


def list_tasks(patient_id: str, week: int | None = None, task_type: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(PregnancyTask).where(PregnancyTask.patient_id == patient_id)
        if week is not None:
            q = q.where(PregnancyTask.week_number == week)
        if task_type:
            q = q.where(PregnancyTask.task_type == task_type)
        q = q.order_by(PregnancyTask.week_number, PregnancyTask.task_type.desc(), PregnancyTask.day_number)
        return [_task_dict(t) for t in s.scalars(q)]


def complete_pregnancy_task(patient_id: str, task_id: int, is_completed: bool = True) -> dict:
    with db_session() as s:
        t = s.get(PregnancyTask, task_id)
        if t is None or t.patient_id != patient_id:
            raise LookupError("Task not found.")
        t.is_completed = is_completed
        t.completed_at = utcnow() if is_completed else None
        s.flush()
        return _task_dict(t)


# =========================
# Reminders
# =========================
def _reminder_dict(r: PregnancyReminder) -> dict[str, Any]:
    return {
        "id": r.id,
        "reminder_title": r.reminder_title,
        "reminder_description": r.reminder_description,
        "reminder_date": r.reminder_date.isoformat(),
        "is_sent": r.is_sent,
        "sent_at": r.sent_at.isoformat() if r.sent_at else None,
    }


def create_reminder(patient_id: str, title: str, reminder_date: datetime, description: str | None = None) -> int:
    if not (title or "").strip():
        raise ValueError("Reminder title is required.")
    with db_session() as s:
        r = PregnancyReminder(
            patient_id=patient_id,
            reminder_title=title.strip(),
            reminder_description=description,
            reminder_date=reminder_date,
        )
        s.add(r)
        s.flush()
        return r.id


def list_reminders(patient_id: str) -> list[dict]:
    with db_session() as s:
        q = (
            select(PregnancyReminder)
            .where(PregnancyReminder.patient_id == patient_id)
            .order_by(PregnancyReminder.reminder_date)
        )
        return [_reminder_dict(r) for r in s.scalars(q)]


def delete_reminder(patient_id: str, reminder_id: int) -> None:
    with db_session() as s:
        r = s.get(PregnancyReminder, reminder_id)
        if r is None or r.patient_id != patient_id:
            raise LookupError("Reminder not found.")
        s.delete(r)


def mark_due_reminders_sent(now: datetime | None = None) -> list[dict]:
    """Marks every unsent reminder due at `now` as sent and returns them."""
    now = now or utcnow()
    with db_session() as s:
        due = list(
            s.scalars(
                select(PregnancyReminder)
                .where(PregnancyReminder.is_sent.is_(False), PregnancyReminder.reminder_date <= now)
                .order_by(PregnancyReminder.reminder_date)
            )
        )
        for r in due:
            r.is_sent = True
            r.sent_at = now
        return [_reminder_dict(r) for r in due]


def due_reminders(now: datetime | None = None) -> list[dict]:
    now = now or utcnow()
    with db_session() as s:
        q = (
            select(PregnancyReminder)
            .where(PregnancyReminder.is_sent.is_(False), PregnancyReminder.reminder_date <= now)
            .order_by(PregnancyReminder.reminder_date)
        )
        return [_reminder_dict(r) for r in s.scalars(q)]


# =========================
# AI assistant
# =========================
def build_assistant_prompt(message_type: str, message: str, week: int, language: str, due_date: str | None) -> str:
    lang = "Bengali" if language == "bengali" else "English"
    if message_type == "weekly_guide":
        system = (
            "You are an expert pregnancy counselor and medical advisor. "
            f"Provide comprehensive week {week} guidance.\n"
            f"Patient Details:\n- Current Week: {week}\n- Due Date: {due_date or 'Not specified'}\n"
            "Cover the baby's development this week, physical changes for the mother, health tips, "
            "milestones and checkups, warning signs, and emotional support.\n"
            f"Respond in {lang} language. Be warm, supportive, and medically accurate."
        )
        message = f"Generate comprehensive week {week} pregnancy guidance considering the patient's profile."
    elif message_type == "food_guide":
        system = (
            "You are a certified nutritionist specializing in pregnancy nutrition. "
            f"Provide personalized dietary recommendations for week {week}.\n"
            "Cover essential nutrients, recommended foods, foods to avoid, meal timing, hydration and supplements.\n"
            'Format the response clearly with "RECOMMENDED FOODS:" and "FOODS TO AVOID:" sections.\n'
            f"Respond in {lang} language."
        )
        message = f"Generate personalized nutrition plan for week {week}."
    elif message_type == "yoga_search":
        system = (
            "You are a pregnancy yoga specialist. Generate YouTube search queries for safe, appropriate yoga "
            f"content for pregnant women.\nPatient Details:\n- Current Week: {week}\n"
            "Consider trimester-appropriate poses and safety modifications. "
            "Generate 3-5 specific YouTube search terms."
        )
        message = f"Generate YouTube search terms for safe pregnancy yoga videos for week {week}."
    else:
        system = (
            "You are an AI pregnancy health assistant with expertise in obstetrics and maternal care.\n"
            f"Patient Context:\n- Current Week: {week}\n"
            "For serious symptoms, always recommend consulting a healthcare provider.\n"
            f"Respond in {lang} language.\n"
            "EMERGENCY KEYWORDS: If the user mentions severe bleeding, severe abdominal pain, difficulty "
            "breathing, severe headaches, vision problems, or signs of labor before 37 weeks, start your "
            'response with "EMERGENCY: Contact your doctor immediately or call emergency services."'
        )
    return f"{system}\n\nUser Input: {message}"


def pregnancy_assistant(patient_id: str, message: str, message_type: str, gemini: GeminiClient) -> str:
    if message_type not in MESSAGE_TYPES:
        raise ValueError(f"Invalid message type: {message_type}")
    if message_type == "chat" and not (message or "").strip():
        raise ValueError("Message is required.")

    profile = get_profile(patient_id)
    week = profile["current_week"] if profile else 1
    language = profile["language_preference"] if profile else "english"
    due_date = profile["due_date"] if profile else None

    prompt = build_assistant_prompt(message_type, message or "", week, language, due_date)
    try:
        reply = gemini.generate(prompt, generation_config=GENERATION_CONFIG) or DEFAULT_REPLY
    except ExternalServiceError:
        logger.error("Pregnancy assistant failed for %s (%s)", patient_id, message_type)
        raise

    # both turns or neither
    if message_type == "chat":
        with db_session() as s:
            s.add(PregnancyChatMessage(patient_id=patient_id, sender_type="user", message_type="chat", message=message))
            s.add(
                PregnancyChatMessage(patient_id=patient_id, sender_type="assistant", message_type="chat", message=reply)
            )
    return reply


def chat_history(patient_id: str, limit: int = 50) -> list[dict]:
    with db_session() as s:
        q = (
            select(PregnancyChatMessage)
            .where(PregnancyChatMessage.patient_id == patient_id)
            .order_by(PregnancyChatMessage.created_at.desc(), PregnancyChatMessage.id.desc())
            .limit(limit)
        )
        rows = list(s.scalars(q))
        return [
            {
                "id": m.id,
                "sender_type": m.sender_type,
                "message": m.message,
                "created_at": m.created_at.isoformat(),
            }
            for m in reversed(rows)
        ]


def clear_chat(patient_id: str) -> None:
    with db_session() as s:
        s.execute(delete(PregnancyChatMessage).where(PregnancyChatMessage.patient_id == patient_id))
