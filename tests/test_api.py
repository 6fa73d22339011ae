import pytest
from jose import jwt

from meduniverse.ai_clients import get_openai
from meduniverse.api_main import app
from meduniverse.auth_security import JWT_ALG, create_access_token
from meduniverse.auth_service import register_user


def test_health(client):
    assert client.get("/api/health").json() == {"ok": True}


def test_register_login_me(client):
    r = client.post(
        "/api/auth/register",
        json={"email": " Asha@Example.com ", "password": "secret123", "full_name": "Asha", "phone": "9876543210"},
    )
    assert r.status_code == 200
    user_id = r.json()["user_id"]

    r = client.post("/api/auth/login", data={"username": "asha@example.com", "password": "secret123"})
    token = r.json()["access_token"]
    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == user_id
    assert claims["role"] == "patient"
    assert claims["email"] == "asha@example.com"

    me = client.get("/api/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["full_name"] == "Asha"
    assert me["role"] == "patient"


@pytest.mark.parametrize(
    "payload, detail",
    [
        ({"email": "bad-email", "password": "secret123", "full_name": "A"}, "Invalid email address."),
        ({"email": "a@example.com", "password": "123", "full_name": "A"}, "Password must be at least 6 characters."),
        ({"email": "a@example.com", "password": "secret123", "full_name": " "}, "Full name is required."),
    ],
)
def test_register_validation(client, payload, detail):
    r = client.post("/api/auth/register", json=payload)
    assert r.status_code == 400
    assert r.json()["detail"] == detail


def test_duplicate_email(client, register):
    register()
    r = client.post(
        "/api/auth/register", json={"email": "patient@example.com", "password": "secret123", "full_name": "Again"}
    )
    assert r.status_code == 400


def test_admin_cannot_self_register():
    with pytest.raises(PermissionError):
        register_user("boss@example.com", "secret123", "Boss", role="admin")


def test_wrong_password(client, register):
    register()
    r = client.post("/api/auth/login", data={"username": "patient@example.com", "password": "wrong-pass"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid credentials"


def test_quoted_token_is_accepted(client, register):
    token = register()["Authorization"].split(" ", 1)[1]
    r = client.get("/api/me", headers={"Authorization": f'Bearer "{token}"'})
    assert r.status_code == 200


def test_bad_tokens(client):
    assert client.get("/api/me", headers={"Authorization": "Bearer nonsense"}).status_code == 401

    forged = jwt.encode({"sub": "someone"}, "another-secret", algorithm=JWT_ALG)
    assert client.get("/api/me", headers={"Authorization": f"Bearer {forged}"}).status_code == 401

    unknown = create_access_token("no-such-user")
    r = client.get("/api/me", headers={"Authorization": f"Bearer {unknown}"})
    assert r.json()["detail"] == "Invalid user"


def test_role_comes_from_database(client, register):
    headers = register()
    user_id = client.get("/api/me", headers=headers).json()["id"]
    token = create_access_token(user_id, extra={"role": "admin"})
    r = client.get("/api/admin/stats", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


def test_missing_service_key_is_unavailable(client):
    app.dependency_overrides.pop(get_openai)
    r = client.post("/api/yoga/assistant", json={"query": "Hello"})
    assert r.status_code == 503
    assert r.json()["detail"] == "OPENAI_API_KEY is not configured"


def test_lookup_errors_are_not_found(client, register):
    headers = register()
    assert client.get("/api/orders/missing", headers=headers).status_code == 404
    assert client.get("/api/doctors/missing").status_code == 404
