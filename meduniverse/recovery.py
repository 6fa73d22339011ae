from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select

from .ai_clients import GeminiClient
from .auth_models import utcnow
from .db import db_session
from .models import (
    DailyTaskCompletion,
    PatientRecoveryProgress,
    RecoveryProgram,
    RecoveryTask,
    SymptomReport,
)

logger = logging.getLogger(__name__)

EMERGENCY_SEVERITY = 4
EMERGENCY_SYMPTOMS = ("chest_pain", "difficulty_breathing")
MESSAGE_TYPES = ("daily_motivation", "task_guidance", "symptom_analysis", "general")

GENERATION_CONFIG = {"temperature": 0.7, "topK": 40, "topP": 0.95, "maxOutputTokens": 1024}
DEFAULT_REPLY = "I'm here to support your recovery journey!"


def _program_dict(p: RecoveryProgram) -> dict[str, Any]:
    return {"id": p.id, "surgery_type": p.surgery_type, "program_name": p.program_name, "total_days": p.total_days}


def _progress_dict(p: PatientRecoveryProgress) -> dict[str, Any]:
    return {
        "id": p.id,
        "program": _program_dict(p.program),
        "surgery_date": p.surgery_date.isoformat(),
        "current_day": p.current_day,
        "total_completion_percentage": p.total_completion_percentage,
    }


def _progress(s, patient_id: str) -> PatientRecoveryProgress:
    p = s.execute(
        select(PatientRecoveryProgress).where(PatientRecoveryProgress.patient_id == patient_id)
    ).scalar_one_or_none()
    if p is None:
        raise LookupError("No recovery program started.")
    return p


# =========================
# Programs
# =========================
def list_programs() -> list[dict]:
    with db_session() as s:
        return [_program_dict(p) for p in s.scalars(select(RecoveryProgram).order_by(RecoveryProgram.surgery_type))]


def start_program(patient_id: str, surgery_type: str, surgery_date: date) -> tuple[dict, bool]:
    """One program per patient: returns (progress, created)."""
    with db_session() as s:
        existing = s.execute(
            select(PatientRecoveryProgress).where(PatientRecoveryProgress.patient_id == patient_id)
        ).scalar_one_or_none()
        if existing is not None:
            return _progress_dict(existing), False

        program = s.execute(
            select(RecoveryProgram).where(RecoveryProgram.surgery_type == surgery_type)
        ).scalar_one_or_none()
        if program is None:
            raise LookupError(f"No recovery program for surgery type '{surgery_type}'.")

        p = PatientRecoveryProgress(
            patient_id=patient_id,
            program_id=program.id,
            surgery_date=surgery_date,
            current_day=1,
            total_completion_percentage=0.0,
        )
        s.add(p)
        s.flush()
        logger.info("Recovery program %s started for %s", program.surgery_type, patient_id)
        return _progress_dict(p), True


def get_progress(patient_id: str) -> dict | None:
    with db_session() as s:
        p = s.execute(
            select(PatientRecoveryProgress).where(PatientRecoveryProgress.patient_id == patient_id)
        ).scalar_one_or_none()
        return _progress_dict(p) if p else None


# =========================
# Daily tasks
# =========================
def _today(s, p: PatientRecoveryProgress) -> list[tuple[RecoveryTask, DailyTaskCompletion | None]]:
    tasks = list(
        s.scalars(
            select(RecoveryTask)
            .where(RecoveryTask.program_id == p.program_id, RecoveryTask.day_number == p.current_day)
            .order_by(RecoveryTask.id)
        )
    )
    completions = {
        c.task_id: c
        for c in s.scalars(
            select(DailyTaskCompletion).where(
                DailyTaskCompletion.progress_id == p.id, DailyTaskCompletion.day_number == p.current_day
            )
        )
    }
    return [(t, completions.get(t.id)) for t in tasks]


def _stats(rows: list[tuple[RecoveryTask, DailyTaskCompletion | None]]) -> dict[str, int]:
    total = len(rows)
    completed = sum(1 for _, c in rows if c is not None and c.is_completed)
    return {"completed": completed, "total": total, "percentage": round(completed / total * 100) if total else 0}


def todays_tasks(patient_id: str) -> list[dict]:
    with db_session() as s:
        p = _progress(s, patient_id)
        return [
            {
                "id": t.id,
                "day_number": t.day_number,
                "task_title": t.task_title,
                "task_description": t.task_description,
                "task_type": t.task_type,
                "difficulty_level": t.difficulty_level,
                "estimated_duration_minutes": t.estimated_duration_minutes,
                "is_completed": bool(c and c.is_completed),
                "notes": c.notes if c else None,
            }
            for t, c in _today(s, p)
        ]


def today_stats(patient_id: str) -> dict[str, int]:
    with db_session() as s:
        return _stats(_today(s, _progress(s, patient_id)))


def complete_task(patient_id: str, task_id: int, is_completed: bool = True, notes: str | None = None) -> dict[str, int]:
    with db_session() as s:
        p = _progress(s, patient_id)
        task = s.get(RecoveryTask, task_id)
        if task is None or task.program_id != p.program_id:
            raise LookupError("Task not found in your program.")

        c = s.execute(
            select(DailyTaskCompletion).where(
                DailyTaskCompletion.progress_id == p.id,
                DailyTaskCompletion.task_id == task_id,
                DailyTaskCompletion.day_number == p.current_day,
            )
        ).scalar_one_or_none()
        if c is None:
            c = DailyTaskCompletion(progress_id=p.id, task_id=task_id, day_number=p.current_day)
            s.add(c)
        c.is_completed = is_completed
        c.completion_date = utcnow() if is_completed else None
        c.notes = notes
        s.flush()

        stats = _stats(_today(s, p))
        # stored unrounded; today_stats reports the rounded figure
        p.total_completion_percentage = stats["completed"] / stats["total"] * 100 if stats["total"] else 0.0
        p.updated_at = utcnow()
        return stats


def advance_day(patient_id: str) -> dict:
    with db_session() as s:
        p = _progress(s, patient_id)
        if p.current_day >= p.program.total_days:
            raise ValueError("Recovery program already at its last day.")
        p.current_day += 1
        p.total_completion_percentage = 0.0
        p.updated_at = utcnow()
        s.flush()
        return _progress_dict(p)


# =========================
# Symptoms
# =========================
def requires_emergency(symptoms: dict[str, bool], severity: int) -> bool:
    return severity >= EMERGENCY_SEVERITY or any(bool(symptoms.get(k)) for k in EMERGENCY_SYMPTOMS)


def submit_symptom_report(patient_id: str, symptoms: dict[str, bool], severity: int) -> dict:
    if not 1 <= severity <= 5:
        raise ValueError("Severity must be between 1 and 5.")
    emergency = requires_emergency(symptoms, severity)
    with db_session() as s:
        r = SymptomReport(
            patient_id=patient_id,
            symptoms=dict(symptoms),
            severity_level=severity,
            requires_emergency=emergency,
            doctor_notified=emergency,
        )
        s.add(r)
        s.flush()
        if emergency:
            logger.warning("Emergency symptom report %s from %s", r.id, patient_id)
        return {
            "id": r.id,
            "requires_emergency": emergency,
            "doctor_notified": r.doctor_notified,
            "message": (
                "Please contact your doctor immediately or call emergency services."
                if emergency
                else "Symptoms recorded. Keep following your recovery plan."
            ),
        }


# =========================
# AI assistant
# =========================
def build_assistant_prompt(message_type: str, message: str, surgery_type: str, current_day: int,
                           surgery_date: str | None = None) -> str:
    if message_type == "daily_motivation":
        system = (
            "You are a compassionate recovery assistant helping patients after surgery.\n"
            f"Patient Context:\n- Surgery Type: {surgery_type}\n- Current Recovery Day: {current_day}\n"
            f"- Surgery Date: {surgery_date or 'Not specified'}\n"
            f"Generate a warm, encouraging daily motivation message that acknowledges their progress on day "
            f"{current_day}, gives specific encouragement for their surgery type and practical recovery tips. "
            "Keep it to 2-3 sentences."
        )
        message = f"Generate daily motivation for day {current_day} of {surgery_type} surgery recovery."
    elif message_type == "task_guidance":
        system = (
            "You are a medical recovery specialist providing task-specific guidance.\n"
            f"Patient Context:\n- Surgery Type: {surgery_type}\n- Current Recovery Day: {current_day}\n"
            "Include step-by-step instructions, safety precautions, what to expect, "
            "when to stop or seek help, and encouragement."
        )
    elif message_type == "symptom_analysis":
        system = (
            "You are a medical triage assistant analyzing post-surgery symptoms.\n"
            "CRITICAL: If symptoms suggest emergency (severe pain, difficulty breathing, chest pain, signs of "
            'infection), start response with "EMERGENCY: Contact your doctor immediately or call emergency '
            'services."\nFor non-emergency symptoms provide reassurance, comfort measures and when to contact '
            f"a healthcare provider.\nSurgery Context: {surgery_type}, Day {current_day}"
        )
    else:
        system = (
            "You are a helpful recovery assistant specializing in post-surgery care.\n"
            f"Patient Context:\n- Surgery Type: {surgery_type}\n- Recovery Day: {current_day}\n"
            "Cover recovery expectations, pain management, activity guidelines, when to seek medical help "
            "and emotional support. Always encourage patients to consult their healthcare team."
        )
    return f"{system}\n\nUser Input: {message}"


def recovery_assistant(patient_id: str, message: str, message_type: str, gemini: GeminiClient) -> str:
    if message_type not in MESSAGE_TYPES:
        raise ValueError(f"Invalid message type: {message_type}")
    if message_type != "daily_motivation" and not (message or "").strip():
        raise ValueError("Message is required.")

    progress = get_progress(patient_id)
    surgery_type = progress["program"]["surgery_type"] if progress else "general"
    current_day = progress["current_day"] if progress else 1
    surgery_date = progress["surgery_date"] if progress else None

    prompt = build_assistant_prompt(message_type, message or "", surgery_type, current_day, surgery_date)
    reply = gemini.generate(prompt, generation_config=GENERATION_CONFIG)
    return reply or DEFAULT_REPLY
