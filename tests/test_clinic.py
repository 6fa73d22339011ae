from datetime import datetime

import pytest

from meduniverse import appointments, doctors, prescriptions
from meduniverse.auth_models import Role
from meduniverse.auth_service import get_user_by_id, register_user

WHEN = datetime(2030, 1, 15, 10, 30)


def _book(doctor_id, patient_id, meeting_type="online", **kw):
    kw.setdefault("meeting_address", "Clinic road 1" if meeting_type == "offline" else None)
    return appointments.book_appointment(
        doctor_id,
        WHEN,
        "Asha Patient",
        reason="Chest pain",
        symptoms="cough",
        meeting_type=meeting_type,
        patient_id=patient_id,
        patient_email="patient@example.com",
        **kw,
    )


# =========================
# Verification
# =========================
def test_approval_status_lifecycle(patient_id):
    assert doctors.approval_status("new.doc@example.com") == "not_found"

    rid = doctors.submit_verification_request(
        patient_id, "Dr. New", "New.Doc@example.com", "Dermatology", "LIC-1"
    )
    assert doctors.approval_status("new.doc@example.com") == "pending"
    assert [r["id"] for r in doctors.list_verification_requests()] == [rid]

    profile_id = doctors.approve_verification_request(rid)
    assert doctors.approval_status("new.doc@example.com") == "approved"
    assert doctors.list_verification_requests() == []

    profile = doctors.get_doctor(profile_id)
    assert profile["consultation_fee"] == doctors.DEFAULT_CONSULTATION_FEE
    assert profile["hospital_name"] == doctors.DEFAULT_HOSPITAL
    assert get_user_by_id(patient_id).role == Role.DOCTOR


def test_rejected_request(patient_id):
    rid = doctors.submit_verification_request(patient_id, "Dr. No", "no@example.com", "ENT", "LIC-2")
    doctors.reject_verification_request(rid)
    assert doctors.approval_status("no@example.com") == "rejected"
    assert get_user_by_id(patient_id).role == Role.PATIENT


def test_verification_requires_license(patient_id):
    with pytest.raises(ValueError):
        doctors.submit_verification_request(patient_id, "Dr. X", "x@example.com", "ENT", "")
    with pytest.raises(LookupError):
        doctors.approve_verification_request(9999)


def test_remove_doctor_hides_profile(doctor_account):
    uid, profile_id = doctor_account
    assert [d["id"] for d in doctors.list_public_doctors()] == [profile_id]

    doctors.remove_doctor(profile_id)
    assert doctors.list_public_doctors() == []
    assert doctors.approval_status("doctor@example.com") == "not_found"
    assert get_user_by_id(uid).role == Role.PATIENT


def test_public_list_by_specialization(doctor_account):
    assert len(doctors.list_public_doctors("Cardiology")) == 1
    assert len(doctors.list_public_doctors("all")) == 1
    assert doctors.list_public_doctors("Neurology") == []


def test_profile_and_availability(doctor_account, patient_id):
    uid, _ = doctor_account
    profile = doctors.update_my_profile(uid, bio="Heart specialist", consultation_fee=500.0)
    assert profile["bio"] == "Heart specialist"
    assert profile["consultation_fee"] == 500.0

    profile = doctors.update_my_profile(uid, doctor_name="Dr. Ravi K.", specialization="Cardiology", years_experience=12)
    assert (profile["doctor_name"], profile["years_experience"]) == ("Dr. Ravi K.", 12)
    with pytest.raises(ValueError):
        doctors.update_my_profile(uid, specialization="  ")
    with pytest.raises(ValueError):
        doctors.update_my_profile(uid, years_experience=-1)
    with pytest.raises(ValueError):
        doctors.update_my_profile(uid, email="other@example.com")

    profile = doctors.set_availability(uid, is_available=False, status="In Surgery", message="Back at 5pm")
    assert profile["availability_status"] == "In Surgery"
    assert profile["is_available"] is False
    assert profile["last_availability_update"] is not None

    with pytest.raises(ValueError):
        doctors.set_availability(uid, status="Sleeping")
    with pytest.raises(PermissionError):
        doctors.my_profile(patient_id)


# =========================
# Appointments
# =========================
def test_online_booking_gets_meet_link(doctor_account, patient_id):
    _, profile_id = doctor_account
    a = _book(profile_id, patient_id)
    assert a["status"] == "pending"
    assert a["meeting_link"].startswith("https://meet.google.com/meet-" + a["id"][:8])
    assert a["notes"] == "Symptoms: cough | Online consultation via Google Meet"
    assert a["meeting_address"] is None


def test_offline_booking_needs_address(doctor_account, patient_id):
    _, profile_id = doctor_account
    with pytest.raises(ValueError, match="address"):
        _book(profile_id, patient_id, meeting_type="offline", meeting_address="")

    a = _book(profile_id, patient_id, meeting_type="offline")
    assert a["meeting_link"] is None
    assert a["notes"].endswith("Offline consultation")


def test_booking_validation(doctor_account, patient_id):
    _, profile_id = doctor_account
    with pytest.raises(ValueError):
        _book(profile_id, patient_id, meeting_type="phone")
    with pytest.raises(ValueError):
        _book(profile_id, patient_id, patient_age=200)
    with pytest.raises(LookupError):
        _book("missing", patient_id)


def test_patient_and_doctor_views(doctor_account, patient_id):
    uid, profile_id = doctor_account
    a = _book(profile_id, patient_id)

    mine = appointments.patient_appointments(patient_id)
    assert [x["id"] for x in mine] == [a["id"]]
    assert mine[0]["doctor_name"] == "Dr. Ravi Kumar"

    assert len(appointments.doctor_appointments(uid)) == 1
    assert appointments.doctor_appointments(uid, "completed") == []

    updated = appointments.update_appointment_status(uid, a["id"], "confirmed")
    assert updated["status"] == "confirmed"
    with pytest.raises(ValueError):
        appointments.update_appointment_status(uid, a["id"], "maybe")


def test_other_doctor_cannot_touch_appointment(doctor_account, patient_id):
    _, profile_id = doctor_account
    a = _book(profile_id, patient_id)

    other = register_user("other.doc@example.com", "secret123", "Dr. Other")
    rid = doctors.submit_verification_request(other, "Dr. Other", "other.doc@example.com", "ENT", "LIC-9")
    doctors.approve_verification_request(rid)

    with pytest.raises(PermissionError):
        appointments.update_appointment_status(other, a["id"], "cancelled")


def test_send_meet_link_emails_patient(doctor_account, patient_id, mailer):
    uid, profile_id = doctor_account
    a = _book(profile_id, patient_id)

    result = appointments.send_meet_link(uid, a["id"], mailer)
    assert result["email_sent"] is True
    assert result["meeting_link"].startswith("https://meet.google.com/")
    assert mailer.sent[0]["to"] == "patient@example.com"
    assert mailer.sent[0]["subject"] == "Google Meet Link for Your Appointment with Dr. Ravi Kumar"

    offline = _book(profile_id, patient_id, meeting_type="offline")
    with pytest.raises(ValueError):
        appointments.send_meet_link(uid, offline["id"], mailer)


def test_manual_meet_link_must_be_url(doctor_account, patient_id):
    uid, profile_id = doctor_account
    a = _book(profile_id, patient_id)
    with pytest.raises(ValueError):
        appointments.set_manual_meet_link(uid, a["id"], "not a link")

    updated = appointments.set_manual_meet_link(uid, a["id"], "https://zoom.us/j/123")
    assert updated["meeting_link"] == "https://zoom.us/j/123"


def test_end_meeting_completes_and_notifies(doctor_account, patient_id, mailer):
    uid, profile_id = doctor_account
    a = _book(profile_id, patient_id)

    result = appointments.end_meeting(uid, a["id"], mailer)
    assert result["status"] == "completed"
    assert result["message"] == "Meeting ended notification sent successfully"
    assert "Consultation Completed" in mailer.sent[0]["subject"]

    patients = appointments.doctor_past_patients(uid)
    assert patients[0]["patient_email"] == "patient@example.com"
    assert patients[0]["visits"] == 1


def test_end_meeting_reports_mail_failure(doctor_account, patient_id, mailer):
    uid, profile_id = doctor_account
    a = appointments.book_appointment(
        profile_id, WHEN, "Walk In", reason="Fever", meeting_type="online", patient_id=patient_id
    )
    result = appointments.end_meeting(uid, a["id"], mailer)
    assert result["email_sent"] is False
    assert result["message"].startswith("Meeting ended but email notification failed")


# =========================
# Reviews
# =========================
def test_doctor_review_needs_completed_visit(doctor_account, patient_id, mailer):
    uid, profile_id = doctor_account
    with pytest.raises(PermissionError):
        doctors.submit_doctor_review(patient_id, profile_id, 5)

    a = _book(profile_id, patient_id)
    appointments.end_meeting(uid, a["id"], mailer)

    assert doctors.submit_doctor_review(patient_id, profile_id, 4, "Kind") == "inserted"
    assert doctors.get_doctor(profile_id)["rating"] == 4.0
    assert doctors.submit_doctor_review(patient_id, profile_id, 5, "Very kind") == "updated"
    assert doctors.get_doctor(profile_id)["rating"] == 5.0

    reviews = doctors.list_doctor_reviews(profile_id)
    assert reviews[0]["patient_name"] == "Asha Patient"

    with pytest.raises(ValueError):
        doctors.submit_doctor_review(patient_id, profile_id, 0)


# =========================
# Prescriptions
# =========================
def test_render_medications():
    text = prescriptions.render_medications(
        [
            {"name": "Amoxicillin", "dosage": "500mg", "frequency": "3x daily", "duration": "5 days"},
            {"name": "  "},
            {"name": "Paracetamol", "dosage": "650mg"},
        ]
    )
    assert text == "Amoxicillin - 500mg - 3x daily - 5 days; Paracetamol - 650mg -  - "
    assert prescriptions.render_medications([]) == prescriptions.EMPTY_MEDICATIONS


def test_prescription_needs_medication_or_notes(doctor_account):
    uid, _ = doctor_account
    with pytest.raises(ValueError):
        prescriptions.create_prescription(uid, "Asha Patient", [])

    p = prescriptions.create_prescription(uid, "Asha Patient", [], notes="Rest for two days")
    assert p["medications"] == prescriptions.EMPTY_MEDICATIONS


def test_prescription_email_and_patient_view(doctor_account, patient_id, mailer):
    uid, profile_id = doctor_account
    a = _book(profile_id, patient_id)

    p = prescriptions.create_prescription(
        uid,
        "Asha Patient",
        [{"name": "Amoxicillin", "dosage": "500mg", "frequency": "3x daily", "duration": "5 days"}],
        appointment_id=a["id"],
        send_email=True,
        mailer=mailer,
    )
    assert p["email_sent"] is True
    assert p["sent_via_email"] is True
    assert p["patient_email"] == "patient@example.com"
    assert mailer.sent[0]["subject"] == "Your Prescription from Dr. Ravi Kumar"

    mine = prescriptions.patient_prescriptions(patient_id)
    assert [x["id"] for x in mine] == [p["id"]]
    assert prescriptions.doctor_prescriptions(uid)[0]["doctor_name"] == "Dr. Ravi Kumar"


# =========================
# HTTP
# =========================
def test_doctor_routes_need_doctor_role(client, register):
    assert client.get("/api/doctor/profile", headers=register()).status_code == 403


def test_approval_status_endpoint(client, doctor):
    r = client.get("/api/doctors/approval-status", params={"email": "doctor@example.com"})
    assert r.json() == {"email": "doctor@example.com", "status": "approved"}


def test_booking_and_consultation_over_http(client, register, doctor, mailer):
    patient = register()
    r = client.post(
        "/api/appointments",
        json={
            "doctor_id": doctor["doctor_id"],
            "appointment_date": "2030-01-15T10:30:00",
            "patient_name": "Asha Patient",
            "reason": "Follow-up",
            "meeting_type": "online",
        },
        headers=patient,
    )
    assert r.status_code == 200, r.text
    appointment = r.json()
    # filled in from the account
    assert appointment["patient_email"] == "patient@example.com"
    assert appointment["patient_phone"] == "9876543210"

    r = client.get("/api/doctor/appointments", headers=doctor["headers"])
    assert [a["id"] for a in r.json()] == [appointment["id"]]

    r = client.post(f"/api/doctor/appointments/{appointment['id']}/end", headers=doctor["headers"])
    assert r.json()["email_sent"] is True

    r = client.post(
        "/api/doctor/prescriptions",
        json={
            "patient_name": "Asha Patient",
            "appointment_id": appointment["id"],
            "medications": [{"name": "Cetirizine", "dosage": "10mg", "frequency": "daily", "duration": "7 days"}],
        },
        headers=doctor["headers"],
    )
    assert r.status_code == 200, r.text

    r = client.get("/api/prescriptions", headers=patient)
    assert r.json()[0]["medications"] == "Cetirizine - 10mg - daily - 7 days"

    r = client.post(f"/api/doctors/{doctor['doctor_id']}/reviews", json={"rating": 5}, headers=patient)
    assert r.json() == {"ok": True, "result": "inserted"}


def test_admin_removes_doctor(client, doctor, admin_headers):
    r = client.delete(f"/api/admin/doctors/{doctor['doctor_id']}", headers=admin_headers)
    assert r.json() == {"ok": True}
    assert client.get("/api/doctors").json() == []
    # the account is back to patient
    assert client.get("/api/doctor/profile", headers=doctor["headers"]).status_code == 403


def test_profile_update_over_http(client, doctor):
    r = client.patch("/api/doctor/profile", json={"specialization": "Neurology"}, headers=doctor["headers"])
    assert r.status_code == 200
    assert r.json()["specialization"] == "Neurology"
    assert client.get("/api/doctors", params={"specialization": "Neurology"}).json()[0]["id"] == doctor["doctor_id"]


def test_prescription_is_private(client, doctor, register, admin_headers):
    patient = register()
    r = client.post(
        "/api/doctor/prescriptions",
        json={
            "patient_name": "Asha Patient",
            "patient_email": "patient@example.com",
            "medications": [{"name": "Amoxicillin", "dosage": "500mg"}],
        },
        headers=doctor["headers"],
    )
    prescription_id = r.json()["id"]
    url = f"/api/prescriptions/{prescription_id}"

    assert client.get(url, headers=patient).status_code == 200
    assert client.get(url, headers=doctor["headers"]).status_code == 200
    assert client.get(url, headers=admin_headers).status_code == 200

    stranger = register("stranger@example.com", phone="9000000002")
    r = client.get(url, headers=stranger)
    assert r.status_code == 404
    assert client.get("/api/prescriptions", headers=stranger).json() == []
