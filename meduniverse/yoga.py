from __future__ import annotations

import json
import logging
from typing import Any

from .ai_clients import (
    JSON_ARRAY_RE,
    ExternalServiceError,
    OpenAIClient,
    ServiceNotConfigured,
    YouTubeClient,
    extract_json,
)

logger = logging.getLogger(__name__)

ASSISTANT_TYPES = ("pose_instructions", "posture_correction", "general")
VIDEO_TYPES = ("yoga", "nutrition", "exercise", "general")
BLOCKED_KEYWORDS = ("nsfw", "explicit", "adult", "inappropriate")
DEFAULT_QUERY = "yoga beginner safe practice"
MAX_VIDEO_RESULTS = 50

GENERIC_TASKS = [
    {"task": "Practice Mountain Pose with deep breathing", "duration": "3 minutes"},
    {"task": "Perform gentle neck and shoulder rolls", "duration": "5 minutes"},
    {"task": "Hold Warrior I pose on both sides", "duration": "6 minutes"},
    {"task": "Practice Cat-Cow stretches", "duration": "5 minutes"},
    {"task": "End with Child's Pose relaxation", "duration": "5 minutes"},
]


def focus_tasks(level: str, focus: str) -> list[dict[str, str]]:
    return [
        {"task": f"Practice basic {focus} poses for {level} level", "duration": "10 minutes"},
        {"task": f"Hold Mountain Pose with focus on {focus}", "duration": "3 minutes"},
        {"task": f"Perform gentle stretches targeting {focus}", "duration": "15 minutes"},
        {"task": "Practice breathing exercises", "duration": "5 minutes"},
        {"task": "End with relaxation pose", "duration": "5 minutes"},
    ]


def parse_tasks(text: str) -> list[dict[str, str]] | None:
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError):
        data = extract_json(text, JSON_ARRAY_RE)
    if not isinstance(data, list) or not data:
        return None
    tasks = []
    for item in data:
        if not isinstance(item, dict) or not item.get("task"):
            return None
        tasks.append({"task": str(item["task"]), "duration": str(item.get("duration", ""))})
    return tasks


def generate_yoga_tasks(level: str, focus: str, openai: OpenAIClient) -> list[dict[str, str]]:
    prompt = (
        f"Generate 5 specific yoga tasks for a {level} level practitioner focusing on {focus}. Each task should "
        f"be specific and actionable, include duration or repetitions, be appropriate for {level} level and "
        f"focus on {focus}.\n"
        'Return the response as a JSON array of objects with "task" and "duration" properties. Example:\n'
        '[{"task": "Hold Mountain Pose with deep breathing", "duration": "2 minutes"}]'
    )
    messages = [
        {"role": "system", "content": "You are a certified yoga instructor. Always respond with valid JSON only."},
        {"role": "user", "content": prompt},
    ]
    try:
        reply = openai.chat(messages, temperature=0.7)
    except (ExternalServiceError, ServiceNotConfigured) as e:
        logger.error("Yoga task generation failed: %s", e)
        return list(GENERIC_TASKS)

    tasks = parse_tasks(reply)
    if tasks is None:
        logger.warning("Unparsable yoga tasks reply, using %s fallback", focus)
        return focus_tasks(level, focus)
    return tasks


def _assistant_system_prompt(type_: str, level: str) -> str:
    if type_ == "pose_instructions":
        return (
            "You are a friendly and knowledgeable yoga expert. When asked about a yoga pose, provide clear, "
            f"simple, step-by-step instructions suitable for {level} level practitioners. Include starting "
            "position, step-by-step movements, key alignment points, breathing instructions, common mistakes, "
            "modifications and benefits of the pose."
        )
    if type_ == "posture_correction":
        return (
            "You are a yoga posture correction expert. Analyze the posture feedback and provide specific "
            "corrections: alignment, safety considerations, gradual improvement suggestions and breathing reminders."
        )
    return (
        "You are a friendly yoga expert. Help with yoga guidance and pose instructions. "
        f"Adapt your response to the user's {level} level and current progress."
    )


def yoga_assistant(query: str, type_: str, level: str, openai: OpenAIClient) -> str:
    if not (query or "").strip():
        raise ValueError("Query is required.")
    if type_ not in ASSISTANT_TYPES:
        raise ValueError(f"Invalid assistant type: {type_}")
    messages = [
        {"role": "system", "content": _assistant_system_prompt(type_, level or "beginner")},
        {"role": "user", "content": query.strip()},
    ]
    return openai.chat(messages, temperature=0.7, max_tokens=800)


# =========================
# Videos
# =========================
def trimester(week: int) -> str:
    if week <= 12:
        return "first"
    if week <= 27:
        return "second"
    return "third"


def build_video_query(query: str | None, week: int | None = None, type_: str = "general") -> str:
    if type_ == "yoga" and week:
        return f"pregnancy yoga {trimester(week)} trimester week {week} safe prenatal exercise"
    if type_ == "nutrition" and week:
        return f"pregnancy nutrition week {week} healthy eating pregnant women"
    if type_ == "exercise" and week:
        return f"pregnancy exercise week {week} safe workout pregnant women"
    return (query or "").strip() or DEFAULT_QUERY


def is_blocked(title: str) -> bool:
    lowered = (title or "").lower()
    return any(k in lowered for k in BLOCKED_KEYWORDS)


def search_videos(
    youtube: YouTubeClient,
    query: str | None = None,
    week: int | None = None,
    type_: str = "general",
    max_results: int = 12,
) -> list[dict[str, Any]]:
    if type_ not in VIDEO_TYPES:
        raise ValueError(f"Invalid video type: {type_}")
    # YouTube Data API allows 1..50 results per page
    max_results = max(1, min(max_results, MAX_VIDEO_RESULTS))
    search_query = build_video_query(query, week, type_)
    logger.debug("YouTube search query: %s", search_query)

    videos = []
    for item in youtube.search(search_query, max_results=max_results):
        snippet = item.get("snippet") or {}
        title = snippet.get("title") or ""
        if not title or is_blocked(title):
            continue
        thumbs = snippet.get("thumbnails") or {}
        thumb = (thumbs.get("medium") or thumbs.get("default") or {}).get("url")
        videos.append(
            {
                "id": (item.get("id") or {}).get("videoId"),
                "title": title,
                "description": snippet.get("description"),
                "thumbnail": thumb,
                "channel_title": snippet.get("channelTitle"),
                "published_at": snippet.get("publishedAt"),
            }
        )
    return videos
