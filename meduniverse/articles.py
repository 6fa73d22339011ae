"""
AI-written health articles.

Articles are generated on demand with Gemini and stored in the
health_articles table.
"""
from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from sqlalchemy import func, select, update

from .ai_clients import GeminiClient, extract_json
from .auth_models import new_uuid
from .db import db_session
from .models import HealthArticle

logger = logging.getLogger(__name__)

GENERATION_CONFIG = {"temperature": 0.7, "topK": 40, "topP": 0.95, "maxOutputTokens": 2048}
DEFAULT_READ_TIME = "5 min read"

CATEGORIES = (
    ("cardiology", "Cardiology", "Heart health and cardiovascular care"),
    ("mental-health", "Mental Health", "Mental wellness and psychological care"),
    ("fitness", "Fitness", "Exercise and physical wellness"),
    ("nutrition", "Nutrition", "Diet and nutritional guidance"),
    ("recovery", "Recovery", "Post-surgery and recovery tips"),
    ("pregnancy", "Pregnancy", "Pregnancy and maternal health"),
)
CATEGORY_IDS = tuple(c[0] for c in CATEGORIES)

_UNSPLASH = "https://images.unsplash.com/photo-{}?ixlib=rb-1.2.1&auto=format&fit=crop&w=800&q=80"
CATEGORY_IMAGES = {
    "cardiology": _UNSPLASH.format("1559757148-5c350d0d3c56"),
    "mental-health": _UNSPLASH.format("1573496359142-b8d87734a5a2"),
    "fitness": _UNSPLASH.format("1571019613454-1cb2f99b2d8b"),
    "nutrition": _UNSPLASH.format("1490645935967-10de6ba17061"),
    "recovery": _UNSPLASH.format("1576091160399-112ba8d25d1f"),
    "pregnancy": _UNSPLASH.format("1555252333-9f8e92e65df9"),
}


@dataclass
class Article:
    id: str
    title: str
    excerpt: str
    content: str
    category: str
    read_time: str
    views: int
    publish_date: str
    image: str
    featured: bool
    tags: list[str] = field(default_factory=list)


def article_prompt(topic: str, category: str) -> str:
    return (
        f'Write a comprehensive health article about "{topic}" in the {category} category.\n\n'
        "The article should be medically accurate and informative, written for a general audience, "
        "include practical tips and advice and be around 800-1000 words.\n\n"
        "Format your response as JSON with these fields:\n"
        '{"title": "Article title", "excerpt": "Brief summary (2-3 sentences)", '
        '"content": "Full article content in HTML format with proper headings and paragraphs", '
        '"readTime": "X min read", "tags": ["tag1", "tag2", "tag3"]}'
    )


def parse_article_reply(text: str, topic: str, category: str) -> dict[str, Any]:
    """JSON fields of a model reply, or a plain-text fallback when no JSON is found."""
    data = extract_json(text)
    if not isinstance(data, dict):
        logger.warning("Article reply for %r is not JSON, using it as content", topic)
        return {
            "title": topic,
            "excerpt": f"Learn about {topic} and how it relates to your health and wellness.",
            "content": text,
            "readTime": DEFAULT_READ_TIME,
            "tags": [category, "health", "wellness"],
        }
    return data


def generate_article(topic: str, category: str, gemini: GeminiClient, rng: random.Random | None = None) -> Article:
    if not (topic or "").strip():
        raise ValueError("Please enter a topic.")
    if category not in CATEGORY_IDS:
        raise ValueError(f"Invalid category: {category}")
    rng = rng or random.Random()
    topic = topic.strip()

    text = gemini.generate(article_prompt(topic, category), generation_config=GENERATION_CONFIG)
    parsed = parse_article_reply(text, topic, category)

    tags = parsed.get("tags")
    return Article(
        id=new_uuid(),
        title=parsed.get("title") or topic,
        excerpt=parsed.get("excerpt") or f"Learn about {topic} and improve your health.",
        content=parsed.get("content") or text,
        category=category,
        read_time=parsed.get("readTime") or DEFAULT_READ_TIME,
        views=rng.randint(100, 1099),
        publish_date=date.today().strftime("%B %d, %Y"),
        image=CATEGORY_IMAGES.get(category, CATEGORY_IMAGES["cardiology"]),
        featured=rng.random() > 0.7,
        tags=[str(t) for t in tags] if isinstance(tags, list) and tags else [category, "health"],
    )


# =========================
# Stored articles
# =========================
def _to_article(row: HealthArticle) -> Article:
    return Article(
        id=row.id,
        title=row.title,
        excerpt=row.excerpt,
        content=row.content,
        category=row.category,
        read_time=row.read_time,
        views=row.views,
        publish_date=row.publish_date,
        image=row.image,
        featured=row.featured,
        tags=list(row.tags or []),
    )


def save_article(article: Article, created_by: str | None = None) -> Article:
    with db_session() as s:
        s.add(HealthArticle(created_by=created_by, **asdict(article)))
    logger.info("Article %s saved (%s)", article.id, article.category)
    return article


def search_articles(category: str | None = None, query: str | None = None) -> list[Article]:
    """Featured first, then most viewed, then newest."""
    q = select(HealthArticle)
    if category and category != "all":
        q = q.where(HealthArticle.category == category)
    q = q.order_by(HealthArticle.featured.desc(), HealthArticle.views.desc(), HealthArticle.created_at.desc())
    with db_session() as s:
        found = [_to_article(row) for row in s.scalars(q)]
    if query:
        needle = query.lower()
        found = [
            a for a in found
            if needle in a.title.lower() or needle in a.excerpt.lower() or any(needle in t.lower() for t in a.tags)
        ]
    return found


def get_article(article_id: str) -> Article:
    with db_session() as s:
        row = s.get(HealthArticle, article_id)
        if row is None:
            raise LookupError("Article not found.")
        return _to_article(row)


def view_article(article_id: str) -> Article:
    """Counts one view (incremented in SQL) and returns the article."""
    with db_session() as s:
        done = s.execute(
            update(HealthArticle).where(HealthArticle.id == article_id).values(views=HealthArticle.views + 1)
        )
        if done.rowcount == 0:
            raise LookupError("Article not found.")
    return get_article(article_id)


def article_categories() -> list[dict[str, Any]]:
    with db_session() as s:
        counts = dict(
            s.execute(select(HealthArticle.category, func.count()).group_by(HealthArticle.category)).all()
        )
    return [
        {"id": cid, "name": name, "description": description, "count": counts.get(cid, 0)}
        for cid, name, description in CATEGORIES
    ]


def article_dict(a: Article) -> dict[str, Any]:
    return asdict(a)
