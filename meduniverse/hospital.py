from __future__ import annotations

import logging
import secrets
from typing import Any, BinaryIO

from sqlalchemy import select

from .admin import add_admin_notification
from .auth_models import utcnow
from .db import db_session
from .models import AdmissionStatus, BedBooking, HospitalBed, OperationTheater, PaymentStatus
from .storage import store_stream

logger = logging.getLogger(__name__)

REPORT_CONTENT_TYPES = ("application/pdf", "image/jpeg", "image/png", "image/jpg")
REPORT_MAX_BYTES = 5 * 1024 * 1024
BED_COUNT_FIELDS = ("total_beds", "available_beds")


def generate_booking_id() -> str:
    return f"BKD{utcnow():%Y%m%d}{secrets.token_hex(2).upper()}"


def validate_medical_report(filename: str, content_type: str, size: int) -> None:
    if not filename:
        raise ValueError("Medical report file name is missing.")
    if content_type not in REPORT_CONTENT_TYPES:
        raise ValueError("Please upload a PDF, JPEG or PNG file.")
    if size > REPORT_MAX_BYTES:
        raise ValueError("File size must be less than 5MB.")


def save_medical_report(filename: str, content_type: str, data: bytes | BinaryIO) -> str:
    """
    Validates and stores an uploaded report under UPLOAD_DIR/medical-reports; returns its path.
    A file object is copied in chunks and abandoned as soon as it passes REPORT_MAX_BYTES.
    """
    validate_medical_report(filename, content_type, 0)
    target = store_stream("medical-reports", filename, data, REPORT_MAX_BYTES, "File size must be less than 5MB.")
    logger.info("Medical report stored at %s", target)
    return str(target)


def _bed_dict(b: HospitalBed) -> dict[str, Any]:
    return {
        "id": b.id,
        "bed_type": b.bed_type,
        "total_beds": b.total_beds,
        "available_beds": b.available_beds,
        "occupied_beds": b.total_beds - b.available_beds,
        "updated_at": b.updated_at.isoformat(),
    }


def _booking_dict(b: BedBooking) -> dict[str, Any]:
    return {
        "id": b.id,
        "booking_id": b.booking_id,
        "patient_user_id": b.patient_user_id,
        "patient_name": b.patient_name,
        "patient_age": b.patient_age,
        "patient_gender": b.patient_gender,
        "disease": b.disease,
        "preferred_bed_type": b.preferred_bed_type,
        "is_emergency": b.is_emergency,
        "medical_report_url": b.medical_report_url,
        "admission_status": b.admission_status.value,
        "payment_status": b.payment_status.value,
        "created_at": b.created_at.isoformat(),
    }


# =========================
# Beds & theaters
# =========================
def bed_availability() -> list[dict]:
    with db_session() as s:
        return [_bed_dict(b) for b in s.scalars(select(HospitalBed).order_by(HospitalBed.bed_type))]


def admin_update_bed_count(bed_id: int, field: str, value: int) -> dict:
    if field not in BED_COUNT_FIELDS:
        raise ValueError("Field must be total_beds or available_beds.")
    if value < 0:
        raise ValueError("Bed count cannot be negative.")

    with db_session() as s:
        bed = s.get(HospitalBed, bed_id)
        if bed is None:
            raise LookupError("Bed type not found.")
        if field == "available_beds":
            if value > bed.total_beds:
                raise ValueError("Available beds cannot exceed total beds.")
            bed.available_beds = value
        else:
            bed.total_beds = value
            if bed.available_beds > value:
                bed.available_beds = value
        bed.updated_at = utcnow()
        s.flush()
        logger.info("Bed type %s: %s=%d", bed.bed_type, field, value)
        return _bed_dict(bed)


def list_theaters() -> list[dict]:
    with db_session() as s:
        return [
            {"id": t.id, "name": t.name, "is_available": t.is_available, "updated_at": t.updated_at.isoformat()}
            for t in s.scalars(select(OperationTheater).order_by(OperationTheater.name))
        ]


def admin_set_theater_status(ot_id: int, is_available: bool) -> None:
    with db_session() as s:
        t = s.get(OperationTheater, ot_id)
        if t is None:
            raise LookupError("Operation theater not found.")
        t.is_available = is_available
        t.updated_at = utcnow()


# =========================
# Bookings
# =========================
def book_bed(
    user_id: str,
    patient_name: str,
    patient_age: int,
    patient_gender: str,
    disease: str,
    bed_type: str,
    is_emergency: bool = False,
    medical_report_url: str | None = None,
) -> dict:
    if not (patient_name or "").strip():
        raise ValueError("Patient name is required.")
    if patient_age is None or not 0 <= patient_age <= 150:
        raise ValueError("Please enter a valid age.")
    if not (patient_gender or "").strip():
        raise ValueError("Gender is required.")
    if not (disease or "").strip():
        raise ValueError("Please describe the disease or condition.")
    if not (bed_type or "").strip():
        raise ValueError("Please select a bed type.")

    with db_session() as s:
        bed = s.execute(select(HospitalBed).where(HospitalBed.bed_type == bed_type)).scalar_one_or_none()
        if bed is None:
            raise LookupError("Bed type not found.")
        if bed.available_beds <= 0:
            raise ValueError("Selected bed type is not available.")

        b = BedBooking(
            booking_id=generate_booking_id(),
            patient_user_id=user_id,
            patient_name=patient_name.strip(),
            patient_age=patient_age,
            patient_gender=patient_gender.strip(),
            disease=disease.strip(),
            preferred_bed_type=bed_type,
            is_emergency=is_emergency,
            medical_report_url=medical_report_url,
            admission_status=AdmissionStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )
        s.add(b)
        s.flush()
        add_admin_notification(
            s,
            "bed_booking",
            "Emergency bed booking" if is_emergency else "New bed booking",
            f"{b.patient_name} requested a {bed_type} bed.",
            {"booking_id": b.booking_id},
        )
        logger.info("Bed booking %s created (%s)", b.booking_id, bed_type)
        return _booking_dict(b)


def pay_booking(user_id: str, booking_id: str) -> dict:
    """Demo payment: no gateway, the booking is just marked paid."""
    with db_session() as s:
        b = s.execute(select(BedBooking).where(BedBooking.booking_id == booking_id)).scalar_one_or_none()
        if b is None:
            raise LookupError("Booking not found.")
        if b.patient_user_id != user_id:
            raise PermissionError("This booking belongs to another patient.")
        b.payment_status = PaymentStatus.PAID
        b.updated_at = utcnow()
        s.flush()
        return _booking_dict(b)


def patient_bookings(user_id: str) -> list[dict]:
    with db_session() as s:
        q = select(BedBooking).where(BedBooking.patient_user_id == user_id).order_by(BedBooking.created_at.desc())
        return [_booking_dict(b) for b in s.scalars(q)]


def list_bookings(status: str | None = None) -> list[dict]:
    with db_session() as s:
        q = select(BedBooking).order_by(BedBooking.is_emergency.desc(), BedBooking.created_at.desc())
        if status:
            q = q.where(BedBooking.admission_status == AdmissionStatus(status))
        return [_booking_dict(b) for b in s.scalars(q)]


def admin_update_admission(booking_id: str, status: str) -> dict:
    """
    Confirming a booking takes a bed of its type; moving a confirmed
    booking anywhere else (discharged, rejected, pending) gives it back.
    """
    try:
        new_status = AdmissionStatus(status)
    except ValueError:
        raise ValueError(f"Invalid admission status: {status}") from None

    with db_session() as s:
        b = s.execute(select(BedBooking).where(BedBooking.booking_id == booking_id)).scalar_one_or_none()
        if b is None:
            raise LookupError("Booking not found.")
        old_status = b.admission_status
        if old_status == new_status:
            return _booking_dict(b)

        bed = s.execute(select(HospitalBed).where(HospitalBed.bed_type == b.preferred_bed_type)).scalar_one_or_none()
        if new_status == AdmissionStatus.CONFIRMED:
            if bed is None or bed.available_beds <= 0:
                raise ValueError("No beds of this type are available.")
            bed.available_beds -= 1
            bed.updated_at = utcnow()
        elif old_status == AdmissionStatus.CONFIRMED and bed is not None:
            bed.available_beds = min(bed.total_beds, bed.available_beds + 1)
            bed.updated_at = utcnow()

        b.admission_status = new_status
        b.updated_at = utcnow()
        s.flush()
        logger.info("Booking %s: %s -> %s", booking_id, old_status.value, new_status.value)
        return _booking_dict(b)
