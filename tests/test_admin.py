import pytest

from meduniverse import admin, face_lock
from meduniverse.auth_service import get_user_by_email

FACE = [0.1] * 128
OTHER_FACE = [0.9] * 128


def _admin_id():
    return get_user_by_email("admin").id


def test_dashboard_on_seeded_data(patient_id):
    stats = admin.dashboard_stats()
    assert stats["total_users"] == 2
    assert stats["total_patients"] == 1
    assert stats["total_doctors"] == 0
    assert stats["total_medicines"] == 8
    # only the cough syrup is at or under the threshold
    assert stats["low_stock_medicines"] == 1
    assert stats["pending_orders"] == 0


def test_users_and_activation(patient_id):
    assert [u["email"] for u in admin.list_users("patient")] == ["patient@example.com"]

    admin.set_user_active(patient_id, False)
    assert admin.list_users("patient")[0]["is_active"] is False

    with pytest.raises(PermissionError):
        admin.set_user_active(_admin_id(), False)
    with pytest.raises(LookupError):
        admin.set_user_active("missing", True)


def test_ticket_lifecycle(patient_id):
    with pytest.raises(ValueError):
        admin.create_ticket(patient_id, "Login issue", "", "medium")
    with pytest.raises(ValueError):
        admin.create_ticket(patient_id, "Login issue", "Cannot log in", "urgent")

    ticket_id = admin.create_ticket(patient_id, "Login issue", "Cannot log in", "high")
    assert admin.list_tickets(status="open")[0]["id"] == ticket_id

    t = admin.respond_ticket(ticket_id, "Password reset sent")
    assert (t["status"], t["admin_response"]) == ("responded", "Password reset sent")
    assert admin.close_ticket(ticket_id)["status"] == "closed"
    assert admin.list_tickets(user_id=patient_id)[0]["status"] == "closed"

    with pytest.raises(LookupError):
        admin.close_ticket(9999)


def test_notifications(patient_id):
    admin.create_ticket(patient_id, "Refund", "Order arrived damaged")
    notes = admin.list_notifications(unread_only=True)
    assert [n["type"] for n in notes] == ["support_ticket"]

    admin.mark_notification_read(notes[0]["id"])
    assert admin.list_notifications(unread_only=True) == []
    assert len(admin.list_notifications()) == 1


# =========================
# Face lock
# =========================
def test_distance():
    assert face_lock.euclidean_distance([0, 0], [3, 4]) == 5.0
    assert face_lock.best_distance([0.0], [[5.0], [0.25]]) == 0.25
    # nothing closer than 1.0
    assert face_lock.best_distance([0.0], [[3.0]]) == 1.0
    with pytest.raises(ValueError):
        face_lock.euclidean_distance([1, 2], [1])


def test_enroll_and_verify():
    uid = _admin_id()
    with pytest.raises(LookupError):
        face_lock.verify(uid, FACE)

    face_lock.enroll(uid, [FACE])
    assert face_lock.is_enabled(uid) is True
    assert face_lock.verify(uid, [0.11] * 128).matched is True
    assert face_lock.verify(uid, OTHER_FACE).matched is False

    # a new enrolment replaces the previous set
    face_lock.enroll(uid, [OTHER_FACE])
    assert face_lock.verify(uid, FACE).matched is False


def test_disable_keeps_descriptors():
    uid = _admin_id()
    face_lock.enroll(uid, [FACE])
    face_lock.set_enabled(uid, False)
    assert face_lock.is_enabled(uid) is False
    assert face_lock.stored_descriptors(uid) == [FACE]


def test_face_lock_is_admin_only(patient_id):
    with pytest.raises(PermissionError):
        face_lock.enroll(patient_id, [FACE])
    with pytest.raises(ValueError):
        face_lock.enroll(_admin_id(), [[0.1, 0.2], [0.3]])


# =========================
# HTTP
# =========================
def test_admin_routes_reject_patients(client, register):
    headers = register()
    assert client.get("/api/admin/stats", headers=headers).status_code == 403
    assert client.get("/api/admin/users", headers=headers).status_code == 403


def test_face_lock_login_flow(client, admin_headers):
    r = client.post("/api/admin/face-lock/enroll", json={"descriptors": [FACE]}, headers=admin_headers)
    assert r.json()["enabled"] is True
    assert client.get("/api/admin/face-lock", headers=admin_headers).json() == {"enabled": True, "enrolled": True}

    # the plain login is refused once face lock is on
    r = client.post("/api/auth/login", data={"username": "admin", "password": "admin123"})
    assert r.status_code == 403

    r = client.post("/api/auth/admin/login", json={"username": "admin", "password": "admin123"})
    assert r.json()["detail"] == "Face verification required"

    r = client.post(
        "/api/auth/admin/login", json={"username": "admin", "password": "admin123", "face_descriptor": OTHER_FACE}
    )
    assert r.status_code == 403
    assert r.json()["detail"] == "Face verification failed"

    r = client.post("/api/auth/admin/login", json={"username": "admin", "password": "admin123", "face_descriptor": FACE})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = client.put("/api/admin/face-lock", json={"enabled": False}, headers={"Authorization": f"Bearer {token}"})
    assert r.json() == {"ok": True, "enabled": False}
    assert client.post("/api/auth/login", data={"username": "admin", "password": "admin123"}).status_code == 200


def test_admin_login_rejects_patients(client, register):
    register()
    r = client.post("/api/auth/admin/login", json={"username": "patient@example.com", "password": "secret123"})
    assert r.status_code == 401


def test_support_tickets_over_http(client, register, admin_headers):
    headers = register()
    r = client.post("/api/support/tickets", json={"title": "App crash", "description": "On checkout"}, headers=headers)
    ticket_id = r.json()["ticket_id"]

    r = client.post(f"/api/admin/tickets/{ticket_id}/respond", json={"response": "Fixed"}, headers=admin_headers)
    assert r.json()["status"] == "responded"
    assert client.get("/api/support/tickets", headers=headers).json()[0]["admin_response"] == "Fixed"

    stats = client.get("/api/admin/stats", headers=admin_headers).json()
    assert stats["total_patients"] == 1


def test_deactivated_user_loses_access(client, register, admin_headers):
    headers = register()
    user_id = client.get("/api/me", headers=headers).json()["id"]

    r = client.patch(f"/api/admin/users/{user_id}", json={"is_active": False}, headers=admin_headers)
    assert r.json() == {"ok": True}
    assert client.get("/api/me", headers=headers).status_code == 401


def test_face_lock_needs_enrolment_before_enabling(client, admin_headers):
    with pytest.raises(ValueError, match="Enroll"):
        face_lock.set_enabled(_admin_id(), True)
    assert face_lock.is_enabled(_admin_id()) is False

    r = client.put("/api/admin/face-lock", json={"enabled": True}, headers=admin_headers)
    assert r.status_code == 400
    # the plain login still works
    assert client.post("/api/auth/login", data={"username": "admin", "password": "admin123"}).status_code == 200
