import base64
from datetime import date
from pathlib import Path

import pytest

from meduniverse import crops
from meduniverse.auth_service import register_user

PHOTO = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8leaf").decode()


@pytest.fixture
def record(patient_id):
    return crops.create_record(patient_id, " North field ", "Wheat")


def test_create_and_list_records(patient_id, record):
    assert record["plot_name"] == "North field"
    assert record["soil_report_url"] is None
    assert [r["id"] for r in crops.list_records(patient_id)] == [record["id"]]

    with pytest.raises(ValueError, match="Plot name"):
        crops.create_record(patient_id, "", "Wheat")
    with pytest.raises(ValueError, match="Crop type"):
        crops.create_record(patient_id, "South field", " ")


def test_records_belong_to_their_owner(patient_id, record):
    other = register_user("farmer2@example.com", "secret123", "Second Farmer")
    assert crops.list_records(other) == []
    with pytest.raises(LookupError):
        crops.get_record(other, record["id"])
    with pytest.raises(LookupError):
        crops.add_treatment(other, record["id"], "Pesticide", "Neem oil", date(2024, 3, 1))


def test_treatments_newest_first(patient_id, record):
    crops.add_treatment(patient_id, record["id"], "Fertilizer", "Urea", date(2024, 2, 1), dose="20kg")
    t2 = crops.add_treatment(patient_id, record["id"], "Pesticide", "Neem oil", date(2024, 3, 1))

    treatments = crops.list_treatments(patient_id, record["id"])
    assert [t["name"] for t in treatments] == ["Neem oil", "Urea"]
    assert treatments[1]["dose"] == "20kg"

    with pytest.raises(ValueError):
        crops.add_treatment(patient_id, record["id"], "", "Urea", date(2024, 2, 1))

    crops.delete_treatment(patient_id, t2["id"])
    assert [t["name"] for t in crops.list_treatments(patient_id, record["id"])] == ["Urea"]
    with pytest.raises(LookupError):
        crops.delete_treatment(patient_id, t2["id"])


def test_symptom_with_photo(patient_id, record):
    s = crops.add_symptom(
        patient_id, record["id"], "Yellow leaves", date(2024, 3, 5), image_b64=PHOTO, image_name="leaf.jpg"
    )
    path = Path(s["image_url"])
    assert path.read_bytes() == b"\xff\xd8leaf"
    assert path.name.endswith("_leaf.jpg")

    plain = crops.add_symptom(patient_id, record["id"], "Wilting", date(2024, 3, 9))
    assert plain["image_url"] is None
    assert [x["symptom"] for x in crops.list_symptoms(patient_id, record["id"])] == ["Wilting", "Yellow leaves"]

    with pytest.raises(ValueError, match="base64"):
        crops.add_symptom(patient_id, record["id"], "Spots", date(2024, 3, 9), image_b64="not base64!")


def test_timeline_oldest_first(patient_id, record):
    crops.add_timeline_entry(patient_id, record["id"], "Flowering", date(2024, 4, 20))
    crops.add_timeline_entry(patient_id, record["id"], "Seedling", date(2024, 2, 10), notes="Even germination")

    full = crops.get_record(patient_id, record["id"])
    assert [x["stage"] for x in full["timeline"]] == ["Seedling", "Flowering"]
    assert full["timeline"][0]["notes"] == "Even germination"
    assert full["treatments"] == [] and full["symptoms"] == []


def test_soil_report_must_be_pdf(patient_id, record):
    with pytest.raises(ValueError, match="PDF"):
        crops.save_soil_report(patient_id, record["id"], "soil.png", "image/png", b"png")

    url = crops.save_soil_report(patient_id, record["id"], "soil test.pdf", "application/pdf", b"%PDF-1.4")
    assert Path(url).read_bytes() == b"%PDF-1.4"
    assert crops.get_record(patient_id, record["id"])["soil_report_url"] == url


# =========================
# HTTP
# =========================
def test_crop_records_over_http(client, register):
    headers = register()
    r = client.post("/api/analyzers/crop-records", json={"plot_name": "Plot A", "crop_type": "Rice"}, headers=headers)
    assert r.status_code == 200, r.text
    record_id = r.json()["id"]
    base = f"/api/analyzers/crop-records/{record_id}"

    r = client.post(
        f"{base}/treatments",
        json={"treatment_type": "Fertilizer", "name": "DAP", "treatment_date": "2024-03-01"},
        headers=headers,
    )
    treatment_id = r.json()["id"]
    r = client.post(f"{base}/symptoms", json={"symptom": "Brown spots", "observed_date": "2024-03-04"}, headers=headers)
    assert r.json()["date"] == "2024-03-04"
    client.post(f"{base}/timeline", json={"stage": "Tillering", "stage_date": "2024-03-10"}, headers=headers)

    r = client.post(
        f"{base}/soil-report", files={"file": ("soil.pdf", b"%PDF-1.4", "application/pdf")}, headers=headers
    )
    assert r.json()["ok"] is True

    full = client.get(base, headers=headers).json()
    assert [t["name"] for t in full["treatments"]] == ["DAP"]
    assert full["symptoms"][0]["symptom"] == "Brown spots"
    assert full["timeline"][0]["stage"] == "Tillering"
    assert full["soil_report_url"] == r.json()["soil_report_url"]

    stranger = register("stranger@example.com", phone="9000000002")
    assert client.get(base, headers=stranger).status_code == 404
    assert client.delete(f"/api/analyzers/crop-treatments/{treatment_id}", headers=stranger).status_code == 404
    assert client.delete(f"/api/analyzers/crop-treatments/{treatment_id}", headers=headers).json() == {"ok": True}


def test_crop_records_need_login(client):
    assert client.get("/api/analyzers/crop-records").status_code == 401
