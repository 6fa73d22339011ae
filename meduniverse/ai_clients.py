"""
Thin HTTP clients for the third-party services:
- Gemini generateContent
- OpenAI chat completions
- Plant.id v3 identification
- YouTube Data API v3 search

Each client only builds the request body and reads the response fields.
Failures surface as ExternalServiceError; a missing key as ServiceNotConfigured.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any

import requests

from .config import get_settings

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
PLANT_ID_URL = "https://plant.id/api/v3/identification"
YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"

JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


class ExternalServiceError(RuntimeError):
    """A third-party API failed or answered with an unusable payload."""


class ServiceNotConfigured(RuntimeError):
    """The API key for a third-party service is missing."""


def extract_json(text: str, pattern: re.Pattern[str] = JSON_OBJECT_RE) -> Any | None:
    """First JSON object (or array, with JSON_ARRAY_RE) embedded in a model reply."""
    match = pattern.search(text or "")
    if not match:
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError:
        return None


def _request_json(service: str, method: str, url: str, timeout: float, **kwargs: Any) -> dict[str, Any]:
    try:
        resp = requests.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        logger.error("%s request failed: %s", service, e)
        raise ExternalServiceError(f"{service} is unreachable") from e

    if not resp.ok:
        logger.error("%s API error %s: %s", service, resp.status_code, resp.text[:500])
        raise ExternalServiceError(f"{service} API error: {resp.status_code}")

    try:
        return resp.json()
    except ValueError as e:
        logger.error("%s returned a non-JSON body", service)
        raise ExternalServiceError(f"{service} returned an invalid response") from e


# =========================
# Gemini
# =========================
class GeminiClient:
    def __init__(self, api_key: str, model: str, timeout: float = 30.0) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def generate(
        self,
        prompt: str,
        image_b64: str | None = None,
        mime_type: str = "image/jpeg",
        generation_config: dict[str, Any] | None = None,
    ) -> str:
        if not self.api_key:
            raise ServiceNotConfigured("GEMINI_API_KEY is not configured")

        parts: list[dict[str, Any]] = [{"text": prompt}]
        if image_b64:
            parts.append({"inline_data": {"mime_type": mime_type, "data": image_b64}})

        body: dict[str, Any] = {"contents": [{"parts": parts}]}
        if generation_config:
            body["generationConfig"] = generation_config

        data = _request_json(
            "Gemini",
            "POST",
            GEMINI_URL.format(model=self.model),
            self.timeout,
            params={"key": self.api_key},
            json=body,
        )
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Gemini response without candidates: %s", str(data)[:500])
            raise ExternalServiceError("Gemini returned no content") from e


# =========================
# OpenAI
# =========================
class OpenAIClient:
    def __init__(self, api_key: str, model: str, timeout: float = 30.0) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def chat(self, messages: list[dict[str, str]], temperature: float = 0.7, max_tokens: int | None = None) -> str:
        if not self.api_key:
            raise ServiceNotConfigured("OPENAI_API_KEY is not configured")

        body: dict[str, Any] = {"model": self.model, "messages": messages, "temperature": temperature}
        if max_tokens:
            body["max_tokens"] = max_tokens

        data = _request_json(
            "OpenAI",
            "POST",
            OPENAI_URL,
            self.timeout,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json=body,
        )
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalServiceError("Invalid response from OpenAI API") from e


# =========================
# Plant.id
# =========================
class PlantIdClient:
    def __init__(self, api_key: str, timeout: float = 30.0) -> None:
        self.api_key = api_key
        self.timeout = timeout

    def identify(self, image_b64: str) -> dict[str, Any]:
        if not self.api_key:
            raise ServiceNotConfigured("PLANT_ID_API_KEY is not configured")

        body = {
            "images": [image_b64],
            "similar_images": True,
            "health": "all",
            "classification_level": "all",
        }
        return _request_json(
            "Plant.id",
            "POST",
            PLANT_ID_URL,
            self.timeout,
            headers={"Api-Key": self.api_key},
            json=body,
        )


# =========================
# YouTube
# =========================
class YouTubeClient:
    def __init__(self, api_key: str, timeout: float = 30.0) -> None:
        self.api_key = api_key
        self.timeout = timeout

    def search(self, query: str, max_results: int = 12) -> list[dict[str, Any]]:
        if not self.api_key:
            raise ServiceNotConfigured("YOUTUBE_API_KEY is not configured")

        params = {
            "part": "snippet",
            "type": "video",
            "q": query,
            "maxResults": max_results,
            "key": self.api_key,
            "videoDuration": "medium",
            "videoDefinition": "high",
            "safeSearch": "strict",
            "relevanceLanguage": "en",
            "order": "relevance",
        }
        data = _request_json("YouTube", "GET", YOUTUBE_SEARCH_URL, self.timeout, params=params)
        return list(data.get("items") or [])


# =========================
# Factories (FastAPI dependencies)
# =========================
def get_gemini() -> GeminiClient:
    s = get_settings()
    return GeminiClient(s.gemini_api_key, s.gemini_model, s.http_timeout_seconds)


def get_openai() -> OpenAIClient:
    s = get_settings()
    return OpenAIClient(s.openai_api_key, s.openai_model, s.http_timeout_seconds)


def get_plant_id() -> PlantIdClient:
    s = get_settings()
    return PlantIdClient(s.plant_id_api_key, s.http_timeout_seconds)


def get_youtube() -> YouTubeClient:
    s = get_settings()
    return YouTubeClient(s.youtube_api_key, s.http_timeout_seconds)
