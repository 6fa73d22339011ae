import os
import tempfile
from pathlib import Path

# settings are read once, before the package is imported
_TMP = Path(tempfile.mkdtemp(prefix="meduniverse-tests-"))
os.environ["MEDUNIVERSE_DATABASE_URL"] = f"sqlite:///{_TMP / 'test.sqlite'}"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin123"
for _key in ("GEMINI_API_KEY", "OPENAI_API_KEY", "PLANT_ID_API_KEY", "YOUTUBE_API_KEY", "RESEND_API_KEY"):
    os.environ[_key] = ""

import pytest
from fastapi.testclient import TestClient

from meduniverse.ai_clients import get_gemini, get_openai, get_plant_id, get_youtube
from meduniverse.api_main import app
from meduniverse.auth_service import register_user
from meduniverse.db import Base, engine
from meduniverse.doctors import approve_verification_request, submit_verification_request
from meduniverse.mailer import Mailer, MailResult, get_mailer
from meduniverse.seed import seed_base


# =========================
# Fakes for the third-party clients
# =========================
class FakeGemini:
    """Replies are consumed in order; an exception in the queue is raised instead."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def generate(self, prompt, image_b64=None, mime_type="image/jpeg", generation_config=None):
        self.calls.append({"prompt": prompt, "image_b64": image_b64})
        reply = self.replies.pop(0) if self.replies else "Gemini reply"
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeOpenAI:
    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def chat(self, messages, temperature=0.7, max_tokens=None):
        self.calls.append({"messages": messages, "max_tokens": max_tokens})
        reply = self.replies.pop(0) if self.replies else "OpenAI reply"
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakePlantId:
    def __init__(self, payload=None):
        self.payload = payload or {}
        self.images = []

    def identify(self, image_b64):
        self.images.append(image_b64)
        return self.payload


class FakeYouTube:
    def __init__(self, items=None):
        self.items = items or []
        self.queries = []

    def search(self, query, max_results=12):
        self.queries.append((query, max_results))
        return list(self.items)


class FakeMailer(Mailer):
    def __init__(self):
        super().__init__("", "Medical Universe <test@example.com>")
        self.sent = []

    def send(self, to, subject, html):
        if not to:
            return MailResult(False, "No recipient email address")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return MailResult(True, "Email sent successfully")


# =========================
# Database
# =========================
@pytest.fixture(autouse=True)
def fresh_db():
    from meduniverse import auth_models, models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    seed_base()
    yield


@pytest.fixture
def patient_id():
    return register_user("patient@example.com", "secret123", "Asha Patient", phone="9876543210")


@pytest.fixture
def doctor_account():
    """(user_id, profile_id) of an approved doctor."""
    uid = register_user("doctor@example.com", "secret123", "Dr. Ravi Kumar", phone="9123456780")
    rid = submit_verification_request(
        uid,
        full_name="Dr. Ravi Kumar",
        email="doctor@example.com",
        specialization="Cardiology",
        medical_license="MCI-12345",
        hospital_affiliation="City Hospital",
        years_experience=8,
    )
    return uid, approve_verification_request(rid)


# =========================
# HTTP client
# =========================
@pytest.fixture
def gemini():
    return FakeGemini()


@pytest.fixture
def openai():
    return FakeOpenAI()


@pytest.fixture
def plant_id():
    return FakePlantId()


@pytest.fixture
def youtube():
    return FakeYouTube()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(gemini, openai, plant_id, youtube, mailer):
    app.dependency_overrides[get_gemini] = lambda: gemini
    app.dependency_overrides[get_openai] = lambda: openai
    app.dependency_overrides[get_plant_id] = lambda: plant_id
    app.dependency_overrides[get_youtube] = lambda: youtube
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def login(client, username, password):
    r = client.post("/api/auth/login", data={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def register(client):
    """Registers a patient account and returns its auth headers."""

    def _register(email="patient@example.com", password="secret123", full_name="Asha Patient", phone="9876543210"):
        r = client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "full_name": full_name, "phone": phone},
        )
        assert r.status_code == 200, r.text
        return login(client, email, password)

    return _register


@pytest.fixture
def admin_headers(client):
    return login(client, "admin", "admin123")


@pytest.fixture
def doctor(client, register, admin_headers):
    """Registers, verifies and approves a doctor through the API: {"headers", "doctor_id"}."""
    headers = register("doctor@example.com", "secret123", "Dr. Ravi Kumar", "9123456780")
    r = client.post(
        "/api/doctors/verification",
        json={
            "full_name": "Dr. Ravi Kumar",
            "email": "doctor@example.com",
            "specialization": "Cardiology",
            "medical_license": "MCI-12345",
        },
        headers=headers,
    )
    assert r.status_code == 200, r.text
    r = client.post(f"/api/admin/doctor-requests/{r.json()['request_id']}/approve", headers=admin_headers)
    assert r.status_code == 200, r.text
    return {"headers": headers, "doctor_id": r.json()["doctor_id"]}


@pytest.fixture
def login_as(client):
    return lambda username, password: login(client, username, password)
