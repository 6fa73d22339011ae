import io
from pathlib import Path

import pytest

from meduniverse import admin, blood, hospital, storage
from meduniverse.auth_service import register_user
from meduniverse.config import get_settings

AADHAAR = "123412341234"


def _bed(bed_type):
    return next(b for b in hospital.bed_availability() if b["bed_type"] == bed_type)


def _booking(user_id, bed_type="ICU", **kw):
    return hospital.book_bed(user_id, "Asha Patient", 34, "Female", "Dengue fever", bed_type, **kw)


# =========================
# Blood support
# =========================
def test_donor_validation(patient_id):
    with pytest.raises(ValueError, match="Aadhaar"):
        blood.register_donor(patient_id, "Ravi", 30, "O+", "9876543210", "1234", "Pune")
    with pytest.raises(ValueError, match="Blood group"):
        blood.register_donor(patient_id, "Ravi", 30, "Z+", "9876543210", AADHAAR, "Pune")
    with pytest.raises(ValueError, match="age"):
        blood.register_donor(patient_id, "Ravi", 17, "O+", "9876543210", AADHAAR, "Pune")


def test_donor_moderation(patient_id):
    donor_id = blood.register_donor(patient_id, "Ravi", 30, "O+", "9876543210", AADHAAR, "Pune")
    assert blood.available_donors() == []
    assert [d["id"] for d in blood.list_donors("pending")] == [donor_id]

    donor = blood.moderate_donor(donor_id, "approved")
    assert donor["is_approved"] is True
    assert donor["admin_response"] == "Application approved by admin"

    assert [d["id"] for d in blood.available_donors("O+")] == [donor_id]
    assert blood.available_donors("A-") == []

    with pytest.raises(ValueError):
        blood.moderate_donor(donor_id, "maybe")
    with pytest.raises(LookupError):
        blood.moderate_donor(9999, "approved")


def test_blood_request_and_receipts(patient_id):
    with pytest.raises(ValueError, match="Emergency"):
        blood.create_blood_request(patient_id, "Asha", "B+", "9876543210", AADHAAR, "Pune", emergency_level="high")

    rid = blood.create_blood_request(patient_id, "Asha", "B+", "9876543210", AADHAAR, "Pune", "critical")
    assert blood.approved_receipts(patient_id) == []

    r = blood.moderate_request(rid, "approved", "Two units reserved")
    assert r["status"] == "approved"
    assert r["admin_response"] == "Two units reserved"
    assert [x["id"] for x in blood.approved_receipts(patient_id)] == [rid]

    other = register_user("other@example.com", "secret123", "Other")
    assert blood.list_blood_requests(user_id=other) == []


def test_blood_events_notify_admin(patient_id):
    blood.register_donor(patient_id, "Ravi", 30, "O+", "9876543210", AADHAAR, "Pune")
    blood.create_blood_request(patient_id, "Asha", "B+", "9876543210", AADHAAR, "Pune", "urgent")

    types = {n["type"] for n in admin.list_notifications()}
    assert {"blood_donor", "blood_request"} <= types


# =========================
# Hospital
# =========================
def test_seeded_beds_and_theaters():
    icu = _bed("ICU")
    assert (icu["total_beds"], icu["available_beds"], icu["occupied_beds"]) == (8, 8, 0)
    assert [t["name"] for t in hospital.list_theaters()] == ["OT-1", "OT-2", "OT-3"]


def test_booking_starts_pending(patient_id):
    b = _booking(patient_id, is_emergency=True)
    assert b["booking_id"].startswith("BKD")
    assert b["admission_status"] == "pending"
    assert b["payment_status"] == "pending"
    # a pending booking does not hold a bed
    assert _bed("ICU")["available_beds"] == 8


def test_booking_validation(patient_id):
    with pytest.raises(LookupError):
        _booking(patient_id, bed_type="Suite")
    with pytest.raises(ValueError):
        hospital.book_bed(patient_id, "Asha", 200, "Female", "Fever", "ICU")
    with pytest.raises(ValueError):
        hospital.book_bed(patient_id, "Asha", 30, "Female", " ", "ICU")


def test_no_beds_left(patient_id):
    hospital.admin_update_bed_count(_bed("Private")["id"], "available_beds", 0)
    with pytest.raises(ValueError, match="not available"):
        _booking(patient_id, bed_type="Private")


def test_admission_moves_beds(patient_id):
    b = _booking(patient_id)

    hospital.admin_update_admission(b["booking_id"], "confirmed")
    assert _bed("ICU")["available_beds"] == 7

    # same status twice changes nothing
    hospital.admin_update_admission(b["booking_id"], "confirmed")
    assert _bed("ICU")["available_beds"] == 7

    updated = hospital.admin_update_admission(b["booking_id"], "discharged")
    assert updated["admission_status"] == "discharged"
    assert _bed("ICU")["available_beds"] == 8

    with pytest.raises(ValueError):
        hospital.admin_update_admission(b["booking_id"], "archived")


def test_bed_counts():
    bed_id = _bed("Semi-Private")["id"]
    with pytest.raises(ValueError):
        hospital.admin_update_bed_count(bed_id, "available_beds", 21)
    with pytest.raises(ValueError):
        hospital.admin_update_bed_count(bed_id, "occupied_beds", 1)

    bed = hospital.admin_update_bed_count(bed_id, "total_beds", 12)
    assert (bed["total_beds"], bed["available_beds"]) == (12, 12)


def test_payment_is_owner_only(patient_id):
    b = _booking(patient_id)
    other = register_user("other@example.com", "secret123", "Other")
    with pytest.raises(PermissionError):
        hospital.pay_booking(other, b["booking_id"])

    assert hospital.pay_booking(patient_id, b["booking_id"])["payment_status"] == "paid"


def test_emergency_bookings_listed_first(patient_id):
    _booking(patient_id, bed_type="General Ward")
    urgent = _booking(patient_id, is_emergency=True)
    assert hospital.list_bookings()[0]["booking_id"] == urgent["booking_id"]


def test_medical_report_storage():
    with pytest.raises(ValueError, match="PDF"):
        hospital.save_medical_report("notes.txt", "text/plain", b"hello")
    with pytest.raises(ValueError, match="5MB"):
        hospital.save_medical_report("scan.png", "image/png", b"0" * (hospital.REPORT_MAX_BYTES + 1))

    path = Path(hospital.save_medical_report("../my report.pdf", "application/pdf", b"%PDF-1.4"))
    assert path.read_bytes() == b"%PDF-1.4"
    assert path.parent.name == "medical-reports"
    assert path.name.endswith("_my_report.pdf")


def test_oversized_report_stream_leaves_no_file():
    folder = Path(get_settings().upload_dir) / "medical-reports"
    before = set(folder.glob("*")) if folder.exists() else set()

    stream = io.BytesIO(b"0" * (hospital.REPORT_MAX_BYTES + 3 * storage.CHUNK_BYTES))
    with pytest.raises(ValueError, match="5MB"):
        hospital.save_medical_report("scan.pdf", "application/pdf", stream)
    # stopped once the limit was crossed
    assert stream.tell() < len(stream.getvalue())
    assert set(folder.glob("*")) == before


# =========================
# HTTP
# =========================
def test_blood_flow_over_http(client, register, admin_headers):
    headers = register()
    payload = {
        "full_name": "Asha Patient",
        "blood_group": "AB-",
        "phone_number": "9876543210",
        "aadhar_number": AADHAAR,
        "address": "Pune",
        "emergency_level": "urgent",
    }
    r = client.post("/api/blood/requests", json=payload, headers=headers)
    request_id = r.json()["request_id"]

    r = client.get("/api/admin/blood/requests", params={"status": "pending"}, headers=admin_headers)
    assert [x["id"] for x in r.json()] == [request_id]

    r = client.post(
        f"/api/admin/blood/requests/{request_id}/moderate", json={"action": "approved"}, headers=admin_headers
    )
    assert r.json()["status"] == "approved"

    r = client.get("/api/blood/receipts", headers=headers)
    assert len(r.json()) == 1


def test_hospital_booking_over_http(client, register, admin_headers):
    headers = register()
    r = client.post(
        "/api/hospital/reports",
        files={"file": ("report.pdf", b"%PDF-1.4 test", "application/pdf")},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    report = r.json()["medical_report_url"]

    r = client.post(
        "/api/hospital/bookings",
        json={
            "patient_name": "Asha Patient",
            "patient_age": 34,
            "patient_gender": "Female",
            "disease": "Fracture",
            "bed_type": "General Ward",
            "medical_report_url": report,
        },
        headers=headers,
    )
    assert r.status_code == 200, r.text
    booking_id = r.json()["booking_id"]

    r = client.post(f"/api/hospital/bookings/{booking_id}/pay", headers=headers)
    assert r.json()["payment_status"] == "paid"

    r = client.patch(f"/api/admin/hospital/bookings/{booking_id}", json={"status": "confirmed"}, headers=admin_headers)
    assert r.json()["admission_status"] == "confirmed"

    beds = {b["bed_type"]: b for b in client.get("/api/hospital/beds").json()}
    assert beds["General Ward"]["occupied_beds"] == 1


def test_report_upload_rejects_text(client, register):
    r = client.post(
        "/api/hospital/reports", files={"file": ("notes.txt", b"hello", "text/plain")}, headers=register()
    )
    assert r.status_code == 400


def test_theater_toggle_is_admin_only(client, register, admin_headers):
    ot_id = client.get("/api/hospital/theaters").json()[0]["id"]
    body = {"is_available": False}
    assert client.patch(f"/api/admin/hospital/theaters/{ot_id}", json=body, headers=register()).status_code == 403

    assert client.patch(f"/api/admin/hospital/theaters/{ot_id}", json=body, headers=admin_headers).json() == {"ok": True}
    assert client.get("/api/hospital/theaters").json()[0]["is_available"] is False


def test_report_upload_rejects_large_files(client, register):
    big = b"0" * (hospital.REPORT_MAX_BYTES + 1)
    r = client.post("/api/hospital/reports", files={"file": ("scan.png", big, "image/png")}, headers=register())
    assert r.status_code == 400
    assert r.json()["detail"] == "File size must be less than 5MB."
