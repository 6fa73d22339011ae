from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from .. import articles, pregnancy, recovery, yoga
from ..ai_clients import GeminiClient, OpenAIClient, YouTubeClient, get_gemini, get_openai, get_youtube
from ..api_deps import get_current_user
from ..auth_models import User
from ..schemas import (
    ArticleIn,
    AssistantIn,
    PregnancyProfileIn,
    PregnancyProfileUpdateIn,
    PregnancyTaskIn,
    RecoveryStartIn,
    ReminderIn,
    SymptomReportIn,
    TaskCompletionIn,
    YogaAssistantIn,
    YogaTasksIn,
)

router = APIRouter(prefix="/api", tags=["wellness"])


# =========================
# Recovery journey
# =========================
@router.get("/recovery/programs")
def api_programs() -> list[dict]:
    return recovery.list_programs()


@router.post("/recovery/start")
def api_start_program(payload: RecoveryStartIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    progress, created = recovery.start_program(user.id, payload.surgery_type, payload.surgery_date)
    return {"created": created, "progress": progress}


@router.get("/recovery/progress")
def api_progress(user: User = Depends(get_current_user)) -> dict | None:
    return recovery.get_progress(user.id)


@router.get("/recovery/today")
def api_today(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"tasks": recovery.todays_tasks(user.id), "stats": recovery.today_stats(user.id)}


@router.post("/recovery/tasks/complete")
def api_complete_task(payload: TaskCompletionIn, user: User = Depends(get_current_user)) -> dict[str, int]:
    return recovery.complete_task(user.id, payload.task_id, payload.is_completed, payload.notes)


@router.post("/recovery/advance")
def api_advance_day(user: User = Depends(get_current_user)) -> dict:
    return recovery.advance_day(user.id)


@router.post("/recovery/symptoms")
def api_symptoms(payload: SymptomReportIn, user: User = Depends(get_current_user)) -> dict:
    return recovery.submit_symptom_report(user.id, payload.symptoms, payload.severity)


@router.post("/recovery/assistant")
def api_recovery_assistant(
    payload: AssistantIn, user: User = Depends(get_current_user), gemini: GeminiClient = Depends(get_gemini)
) -> dict[str, str]:
    reply = recovery.recovery_assistant(user.id, payload.message, payload.message_type, gemini)
    return {"response": reply}


# =========================
# Pregnancy companion
# =========================
@router.post("/pregnancy/profile")
def api_create_pregnancy(payload: PregnancyProfileIn, user: User = Depends(get_current_user)) -> dict:
    data = payload.model_dump()
    return pregnancy.create_profile(
        user.id, data.pop("due_date"), data.pop("current_week"), data.pop("language_preference"), **data
    )


@router.get("/pregnancy/profile")
def api_pregnancy_profile(user: User = Depends(get_current_user)) -> dict | None:
    return pregnancy.get_profile(user.id)


@router.patch("/pregnancy/profile")
def api_update_pregnancy(payload: PregnancyProfileUpdateIn, user: User = Depends(get_current_user)) -> dict:
    return pregnancy.update_profile(user.id, **payload.model_dump(exclude_none=True))


@router.get("/pregnancy/tasks")
def api_pregnancy_tasks(
    week: int | None = None, task_type: str | None = None, user: User = Depends(get_current_user)
) -> list[dict]:
    return pregnancy.list_tasks(user.id, week, task_type)


@router.patch("/pregnancy/tasks/{task_id}")
def api_pregnancy_task(task_id: int, payload: PregnancyTaskIn, user: User = Depends(get_current_user)) -> dict:
    return pregnancy.complete_pregnancy_task(user.id, task_id, payload.is_completed)


@router.get("/pregnancy/reminders")
def api_reminders(user: User = Depends(get_current_user)) -> list[dict]:
    return pregnancy.list_reminders(user.id)


@router.post("/pregnancy/reminders")
def api_create_reminder(payload: ReminderIn, user: User = Depends(get_current_user)) -> dict[str, Any]:
    rid = pregnancy.create_reminder(user.id, payload.title, payload.reminder_date, payload.description)
    return {"ok": True, "reminder_id": rid}


@router.delete("/pregnancy/reminders/{reminder_id}")
def api_delete_reminder(reminder_id: int, user: User = Depends(get_current_user)) -> dict[str, Any]:
    pregnancy.delete_reminder(user.id, reminder_id)
    return {"ok": True}


@router.post("/pregnancy/assistant")
def api_pregnancy_assistant(
    payload: AssistantIn, user: User = Depends(get_current_user), gemini: GeminiClient = Depends(get_gemini)
) -> dict[str, str]:
    reply = pregnancy.pregnancy_assistant(user.id, payload.message, payload.message_type, gemini)
    return {"response": reply}


@router.get("/pregnancy/chat")
def api_chat_history(user: User = Depends(get_current_user)) -> list[dict]:
    return pregnancy.chat_history(user.id)


@router.delete("/pregnancy/chat")
def api_clear_chat(user: User = Depends(get_current_user)) -> dict[str, Any]:
    pregnancy.clear_chat(user.id)
    return {"ok": True}


# =========================
# Yoga
# =========================
@router.post("/yoga/tasks")
def api_yoga_tasks(payload: YogaTasksIn, openai: OpenAIClient = Depends(get_openai)) -> dict[str, Any]:
    return {"tasks": yoga.generate_yoga_tasks(payload.level, payload.focus, openai)}


@router.post("/yoga/assistant")
def api_yoga_assistant(payload: YogaAssistantIn, openai: OpenAIClient = Depends(get_openai)) -> dict[str, str]:
    return {"response": yoga.yoga_assistant(payload.query, payload.type, payload.level, openai)}


@router.get("/yoga/videos")
def api_videos(
    query: str | None = None,
    week: int | None = None,
    type: str = "general",
    max_results: int = Query(12, ge=1, le=50),
    youtube: YouTubeClient = Depends(get_youtube),
) -> dict[str, Any]:
    return {"videos": yoga.search_videos(youtube, query, week, type, max_results)}


# =========================
# Articles
# =========================
@router.get("/articles")
def api_articles(category: str | None = None, search: str | None = None) -> list[dict]:
    return [articles.article_dict(a) for a in articles.search_articles(category, search)]


@router.get("/articles/categories")
def api_article_categories() -> list[dict]:
    return articles.article_categories()


@router.get("/articles/{article_id}")
def api_article(article_id: str) -> dict:
    return articles.article_dict(articles.view_article(article_id))


@router.post("/articles")
def api_generate_article(
    payload: ArticleIn, user: User = Depends(get_current_user), gemini: GeminiClient = Depends(get_gemini)
) -> dict:
    article = articles.generate_article(payload.topic, payload.category, gemini)
    return articles.article_dict(articles.save_article(article, created_by=user.id))
