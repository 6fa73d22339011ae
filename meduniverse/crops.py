"""
Crop health records.

A farmer keeps one record per plot and crop. Each record collects:
- treatments (fertilizer, pesticide, ...) newest first
- observed symptoms, optionally with a photo, newest first
- growth timeline stages, optionally with a photo, oldest first
- one soil report (PDF)

Every operation is scoped to the record owner; someone else's record is "not found".
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, BinaryIO

from sqlalchemy import select

from .db import db_session
from .models import CropHealthRecord, CropSymptom, CropTimeline, CropTreatment
from .storage import decode_base64, store_stream

logger = logging.getLogger(__name__)

SOIL_REPORT_CONTENT_TYPES = ("application/pdf",)
SOIL_REPORT_MAX_BYTES = 10 * 1024 * 1024
CROP_IMAGE_MAX_BYTES = 5 * 1024 * 1024


def _required(value: str | None, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required.")
    return value


def _owned_record(s, user_id: str, record_id: str) -> CropHealthRecord:
    r = s.get(CropHealthRecord, record_id)
    if r is None or r.user_id != user_id:
        raise LookupError("Crop record not found.")
    return r


def _store_image(folder: str, record_id: str, image_b64: str | None, image_name: str | None) -> str | None:
    if not image_b64:
        return None
    data = decode_base64(image_b64)
    path = store_stream(
        f"{folder}/{record_id}", image_name or "photo.jpg", data, CROP_IMAGE_MAX_BYTES, "Image must be less than 5MB."
    )
    return str(path)


def record_dict(r: CropHealthRecord) -> dict[str, Any]:
    return {
        "id": r.id,
        "plot_name": r.plot_name,
        "crop_type": r.crop_type,
        "soil_report_url": r.soil_report_url,
        "created_at": r.created_at.isoformat(),
    }


# =========================
# Records
# =========================
def create_record(user_id: str, plot_name: str, crop_type: str, soil_report_url: str | None = None) -> dict:
    plot_name = _required(plot_name, "Plot name")
    crop_type = _required(crop_type, "Crop type")
    with db_session() as s:
        r = CropHealthRecord(
            user_id=user_id, plot_name=plot_name, crop_type=crop_type, soil_report_url=soil_report_url or None
        )
        s.add(r)
        s.flush()
        logger.info("Crop record %s created (%s, %s)", r.id, plot_name, crop_type)
        return record_dict(r)


def list_records(user_id: str) -> list[dict]:
    with db_session() as s:
        q = (
            select(CropHealthRecord)
            .where(CropHealthRecord.user_id == user_id)
            .order_by(CropHealthRecord.created_at.desc())
        )
        return [record_dict(r) for r in s.scalars(q)]


def get_record(user_id: str, record_id: str) -> dict:
    """The record with its treatments, symptoms and timeline."""
    with db_session() as s:
        r = _owned_record(s, user_id, record_id)
        out = record_dict(r)
    out["treatments"] = list_treatments(user_id, record_id)
    out["symptoms"] = list_symptoms(user_id, record_id)
    out["timeline"] = list_timeline(user_id, record_id)
    return out


def save_soil_report(
    user_id: str, record_id: str, filename: str, content_type: str, data: bytes | BinaryIO
) -> str:
    if not filename:
        raise ValueError("Soil report file name is missing.")
    if content_type not in SOIL_REPORT_CONTENT_TYPES:
        raise ValueError("Soil report must be a PDF file.")
    with db_session() as s:
        _owned_record(s, user_id, record_id)

    path = store_stream(
        f"crop-reports/{record_id}", filename, data, SOIL_REPORT_MAX_BYTES, "Soil report must be less than 10MB."
    )
    with db_session() as s:
        _owned_record(s, user_id, record_id).soil_report_url = str(path)
    logger.info("Soil report stored for crop record %s", record_id)
    return str(path)


# =========================
# Treatments
# =========================
def _treatment_dict(t: CropTreatment) -> dict[str, Any]:
    return {
        "id": t.id,
        "record_id": t.record_id,
        "treatment_type": t.treatment_type,
        "name": t.name,
        "dose": t.dose,
        "date": t.treatment_date.isoformat(),
        "notes": t.notes,
    }


def add_treatment(
    user_id: str,
    record_id: str,
    treatment_type: str,
    name: str,
    applied_on: date,
    dose: str | None = None,
    notes: str | None = None,
) -> dict:
    treatment_type = _required(treatment_type, "Treatment type")
    name = _required(name, "Treatment name")
    if applied_on is None:
        raise ValueError("Treatment date is required.")
    with db_session() as s:
        _owned_record(s, user_id, record_id)
        t = CropTreatment(
            record_id=record_id,
            treatment_type=treatment_type,
            name=name,
            dose=(dose or "").strip() or None,
            treatment_date=applied_on,
            notes=notes,
        )
        s.add(t)
        s.flush()
        return _treatment_dict(t)


def list_treatments(user_id: str, record_id: str) -> list[dict]:
    with db_session() as s:
        _owned_record(s, user_id, record_id)
        q = (
            select(CropTreatment)
            .where(CropTreatment.record_id == record_id)
            .order_by(CropTreatment.treatment_date.desc(), CropTreatment.id.desc())
        )
        return [_treatment_dict(t) for t in s.scalars(q)]


def delete_treatment(user_id: str, treatment_id: int) -> None:
    with db_session() as s:
        t = s.get(CropTreatment, treatment_id)
        if t is None or t.record.user_id != user_id:
            raise LookupError("Treatment not found.")
        s.delete(t)


# =========================
# Symptoms & timeline
# =========================
def _symptom_dict(x: CropSymptom) -> dict[str, Any]:
    return {
        "id": x.id,
        "record_id": x.record_id,
        "symptom": x.symptom,
        "image_url": x.image_url,
        "date": x.observed_date.isoformat(),
        "notes": x.notes,
    }


def add_symptom(
    user_id: str,
    record_id: str,
    symptom: str,
    observed_on: date,
    notes: str | None = None,
    image_b64: str | None = None,
    image_name: str | None = None,
) -> dict:
    symptom = _required(symptom, "Symptom")
    if observed_on is None:
        raise ValueError("Symptom date is required.")
    with db_session() as s:
        _owned_record(s, user_id, record_id)

    image_url = _store_image("crop-symptoms", record_id, image_b64, image_name)
    with db_session() as s:
        x = CropSymptom(
            record_id=record_id, symptom=symptom, image_url=image_url, observed_date=observed_on, notes=notes
        )
        s.add(x)
        s.flush()
        return _symptom_dict(x)


def list_symptoms(user_id: str, record_id: str) -> list[dict]:
    with db_session() as s:
        _owned_record(s, user_id, record_id)
        q = (
            select(CropSymptom)
            .where(CropSymptom.record_id == record_id)
            .order_by(CropSymptom.observed_date.desc(), CropSymptom.id.desc())
        )
        return [_symptom_dict(x) for x in s.scalars(q)]


def _timeline_dict(x: CropTimeline) -> dict[str, Any]:
    return {
        "id": x.id,
        "record_id": x.record_id,
        "stage": x.stage,
        "image_url": x.image_url,
        "date": x.stage_date.isoformat(),
        "notes": x.notes,
    }


def add_timeline_entry(
    user_id: str,
    record_id: str,
    stage: str,
    stage_on: date,
    notes: str | None = None,
    image_b64: str | None = None,
    image_name: str | None = None,
) -> dict:
    stage = _required(stage, "Stage")
    if stage_on is None:
        raise ValueError("Stage date is required.")
    with db_session() as s:
        _owned_record(s, user_id, record_id)

    image_url = _store_image("crop-timelines", record_id, image_b64, image_name)
    with db_session() as s:
        x = CropTimeline(record_id=record_id, stage=stage, image_url=image_url, stage_date=stage_on, notes=notes)
        s.add(x)
        s.flush()
        return _timeline_dict(x)


def list_timeline(user_id: str, record_id: str) -> list[dict]:
    # growth stages read oldest first
    with db_session() as s:
        _owned_record(s, user_id, record_id)
        q = (
            select(CropTimeline)
            .where(CropTimeline.record_id == record_id)
            .order_by(CropTimeline.stage_date.asc(), CropTimeline.id.asc())
        )
        return [_timeline_dict(x) for x in s.scalars(q)]
